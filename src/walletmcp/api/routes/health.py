"""Health check endpoints."""

from fastapi import APIRouter, Request

from walletmcp.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "walletmcp"}


@router.get("/health/detailed")
async def detailed_health(request: Request):
    """Detailed health check with configuration info."""
    settings = get_settings()
    context = request.app.state.context
    return {
        "status": "healthy",
        "service": "walletmcp",
        "version": "0.1.0",
        "signer_configured": context.wallet.is_configured,
        "registered_tokens": len(context.registry),
        "config": settings.get_safe_dict(),
    }
