"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from walletmcp.config import get_settings
from walletmcp.rpc.dispatcher import Dispatcher
from walletmcp.services.context import ServiceContext, ServiceLayer


def attach_context(app: FastAPI, context: ServiceContext) -> None:
    app.state.context = context
    app.state.dispatcher = Dispatcher(ServiceLayer(context))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: build a context unless one was supplied
    owned = getattr(app.state, "context", None) is None
    if owned:
        context = ServiceContext.from_settings(get_settings())
        attach_context(app, context)
        try:
            await context.verify_chain()
        except Exception:
            await context.aclose()
            raise
    yield
    # Shutdown
    if owned:
        await app.state.context.aclose()


def create_app(context: Optional[ServiceContext] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="walletmcp",
        description="Read-only EVM balance, pricing and swap simulation tools",
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.debug,
    )
    if context is not None:
        attach_context(app, context)

    # Register routes
    from walletmcp.api.routes import health, rpc

    app.include_router(health.router, tags=["Health"])
    app.include_router(rpc.router, tags=["JSON-RPC"])

    return app
