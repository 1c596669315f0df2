"""JSON-RPC endpoint: one request per POST, same envelope as stdio."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.post("/rpc")
async def rpc(request: Request):
    """Dispatch a JSON-RPC request. Protocol errors still return HTTP 200."""
    body = await request.body()
    dispatcher = request.app.state.dispatcher
    response = await dispatcher.handle_text(body.decode("utf-8", errors="replace"))
    return JSONResponse(response)
