"""JSON-RPC 2.0 dispatcher for the three tools.

Transport-agnostic: takes a decoded request (or raw text) and returns the
response envelope. Used by both the stdio loop and the HTTP endpoint.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from walletmcp.contracts import GetBalanceParams, GetTokenPriceParams, SwapTokensParams
from walletmcp.errors import AppError, InternalError, SerializationError
from walletmcp.services.context import ServiceLayer

logger = logging.getLogger(__name__)

METHOD_NOT_FOUND = -32601
INVALID_REQUEST = -32600
INVALID_PARAMS = -32602


def error_response(request_id: Any, code: int, message: str, data: Optional[dict] = None) -> dict:
    error = {"code": code, "message": message}
    if data:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": request_id, "error": error}


def result_response(request_id: Any, result: Any) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


class Dispatcher:
    """Routes JSON-RPC methods to the service layer."""

    def __init__(self, services: ServiceLayer):
        self.services = services
        self._methods: dict[str, tuple[type[BaseModel], Callable[[Any], Awaitable[BaseModel]]]] = {
            "get_balance": (GetBalanceParams, services.get_balance),
            "get_token_price": (GetTokenPriceParams, services.get_token_price),
            "swap_tokens": (SwapTokensParams, services.swap_tokens),
        }

    @property
    def methods(self) -> list[str]:
        return sorted(self._methods)

    async def handle_text(self, line: str) -> dict:
        """Handle one raw request line."""
        try:
            request = json.loads(line)
        except json.JSONDecodeError as e:
            err = SerializationError(f"Parse error: {e.msg}")
            return {"jsonrpc": "2.0", "id": None, "error": err.to_json_rpc()}
        return await self.handle(request)

    async def handle(self, request: Any) -> dict:
        """Handle one decoded request object."""
        if not isinstance(request, dict) or not isinstance(request.get("method"), str):
            request_id = request.get("id") if isinstance(request, dict) else None
            return error_response(request_id, INVALID_REQUEST, "Invalid request")

        request_id = request.get("id")
        method = request["method"]
        entry = self._methods.get(method)
        if entry is None:
            return error_response(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        params_model, handler = entry
        raw_params = request.get("params") or {}
        if not isinstance(raw_params, dict):
            return error_response(request_id, INVALID_PARAMS, "params must be an object")

        try:
            params = params_model.model_validate(raw_params)
        except PydanticValidationError as e:
            errors = e.errors(include_url=False, include_context=False, include_input=False)
            return error_response(
                request_id,
                INVALID_PARAMS,
                "Invalid params",
                {"kind": "invalid_params", "errors": errors},
            )

        try:
            result = await handler(params)
        except AppError as e:
            logger.warning(f"{method} failed: {e.kind}: {e.message}")
            return {"jsonrpc": "2.0", "id": request_id, "error": e.to_json_rpc()}
        except Exception:
            logger.exception(f"Unhandled error in {method}")
            err = InternalError("Internal error")
            return {"jsonrpc": "2.0", "id": request_id, "error": err.to_json_rpc()}

        return result_response(request_id, result.model_dump(mode="json"))
