"""Node access: JSON-RPC transport, typed client and ABI fragments."""

from walletmcp.node.client import FailureKind, NodeClient, build_tx, classify_failure
from walletmcp.node.transport import HttpJsonRpcTransport, NodeTransport

__all__ = [
    "FailureKind",
    "NodeClient",
    "build_tx",
    "classify_failure",
    "HttpJsonRpcTransport",
    "NodeTransport",
]
