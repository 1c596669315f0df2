"""HTTP surface: health checks and the JSON-RPC endpoint."""
