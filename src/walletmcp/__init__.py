"""walletmcp: read-only EVM wallet tools.

Balance lookup, oracle/market pricing and Uniswap V3 swap simulation over
JSON-RPC. Nothing is ever signed or broadcast.
"""

__version__ = "0.1.0"
