"""Error taxonomy shared by every layer.

Each error carries a JSON-RPC code and a kind so callers can branch on
retryability without parsing messages. Messages never contain key material.
"""

from typing import Optional


class AppError(Exception):
    """Base class for errors surfaced to callers."""

    code = -32603
    kind = "internal"

    def __init__(self, message: str, data: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.data = data or {}

    def to_json_rpc(self) -> dict:
        """Render as a JSON-RPC error object."""
        return {
            "code": self.code,
            "message": self.message,
            "data": {"kind": self.kind, **self.data},
        }


class ValidationError(AppError):
    """Malformed input, rejected before any network call."""

    code = -32602
    kind = "invalid_params"


class UnsupportedAssetError(AppError):
    """Identifier is neither registered nor discoverable on chain."""

    code = -32602
    kind = "unsupported_asset"


class ConfigurationError(AppError):
    """A required piece of configuration (feed, counter-asset, key) is missing."""

    code = -32001
    kind = "configuration"


class UpstreamError(AppError):
    """Node unreachable, timed out, or returned something unusable."""

    code = -32002
    kind = "upstream"


class ContractRevertError(UpstreamError):
    """A read-only call reverted. Semantic, never retried."""

    kind = "revert"

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message, {"reason": reason} if reason else None)
        self.reason = reason


class PricingError(AppError):
    code = -32010
    kind = "pricing"


class SimulationError(AppError):
    """Quote, gas estimation or dry-run of a swap failed."""

    code = -32020
    kind = "simulation"

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message, {"reason": reason} if reason else None)
        self.reason = reason


class WalletError(AppError):
    code = -32030
    kind = "wallet"


class WalletIOError(AppError):
    code = -32040
    kind = "io"


class SerializationError(AppError):
    code = -32700
    kind = "serialization"


class InternalError(AppError):
    code = -32603
    kind = "internal"
