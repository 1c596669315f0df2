"""JSON-RPC framing for the tool methods."""

from walletmcp.rpc.dispatcher import Dispatcher
from walletmcp.rpc.stdio import StdioServer

__all__ = ["Dispatcher", "StdioServer"]
