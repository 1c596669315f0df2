"""Main entry point - serves the tools over stdio or HTTP."""

import argparse
import asyncio
import logging
import sys

import uvicorn

from walletmcp.config import Settings, get_settings
from walletmcp.errors import AppError
from walletmcp.rpc.dispatcher import Dispatcher
from walletmcp.rpc.stdio import StdioServer
from walletmcp.services.context import ServiceContext, ServiceLayer

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Log to stderr; stdout belongs to the stdio transport."""
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    # Request-level noise from the HTTP client
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def run_stdio(settings: Settings) -> None:
    """Serve JSON-RPC on stdin/stdout until stdin closes."""
    context = ServiceContext.from_settings(settings)
    try:
        await context.verify_chain()
        await StdioServer(Dispatcher(ServiceLayer(context))).serve()
    finally:
        await context.aclose()


def run_http(settings: Settings) -> None:
    """Run the FastAPI server."""
    from walletmcp.api.app import create_app

    logger.info(f"Starting API server on {settings.api_host}:{settings.api_port}")
    uvicorn.run(
        create_app(),
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Read-only EVM wallet tools")
    parser.add_argument("--http", action="store_true", help="Serve over HTTP instead of stdio")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings)
    logger.info(f"Starting walletmcp (chain {settings.default_chain_id}, {settings.environment})")

    try:
        if args.http:
            run_http(settings)
        else:
            asyncio.run(run_stdio(settings))
    except AppError as e:
        # Startup failures such as a malformed PRIVATE_KEY or token file
        logger.error(f"Startup failed: {e.message}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")


if __name__ == "__main__":
    main()
