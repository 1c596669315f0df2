"""Signer identity.

The key is parsed once at startup and only its address is ever used: as the
declared sender of simulated swaps and as their default recipient. Nothing
here signs or submits a transaction, and the key never leaves this object.
"""

import logging
from typing import Optional

from eth_account import Account
from eth_keys.exceptions import ValidationError as KeyValidationError

from walletmcp.config import Settings
from walletmcp.errors import WalletError

logger = logging.getLogger(__name__)


class WalletManager:
    """Holds the optional signer address."""

    def __init__(self, address: Optional[str] = None):
        self._address = address

    @classmethod
    def from_private_key(cls, private_key: str) -> "WalletManager":
        """Derive the signer address from a hex key, with or without 0x.

        Raises:
            WalletError: if the key is malformed (the key is not echoed)
        """
        key = private_key.strip()
        if not key.startswith("0x"):
            key = "0x" + key
        try:
            account = Account.from_key(key)
        except (ValueError, TypeError, KeyValidationError):
            raise WalletError("PRIVATE_KEY is not a valid secp256k1 key") from None
        return cls(account.address)

    @classmethod
    def from_settings(cls, settings: Settings) -> "WalletManager":
        if not settings.has_signer:
            logger.warning("PRIVATE_KEY not set - swap simulation disabled")
            return cls()
        wallet = cls.from_private_key(settings.private_key.get_secret_value())
        logger.info(f"Signer configured: {wallet.address}")
        return wallet

    @property
    def address(self) -> Optional[str]:
        return self._address

    @property
    def is_configured(self) -> bool:
        return self._address is not None

    def require_address(self) -> str:
        """Signer address, or WalletError when no signer is configured."""
        if self._address is None:
            raise WalletError("No signer configured; set PRIVATE_KEY to simulate swaps")
        return self._address

    def __repr__(self) -> str:
        return f"WalletManager(address={self._address!r})"
