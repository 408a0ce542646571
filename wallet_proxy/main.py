"""Main entry point for the Solana wallet proxy."""

# Standard library imports
import sys
from contextlib import asynccontextmanager
from typing import Optional

# Third-party library imports
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Internal imports
from wallet_proxy import __version__
from wallet_proxy.config import AppConfig, get_app_config, get_server_config, get_solana_config
from wallet_proxy.dependencies import ServiceContainer
from wallet_proxy.logging_config import RequestIdMiddleware, configure_logging, get_logger
from wallet_proxy.routes import birdeye_router, buys_router, system_router, wallet_router
from wallet_proxy.utils.errors import ErrorCode, WalletProxyError

logger = get_logger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Map exceptions escaping route handlers to JSON responses."""

    @app.exception_handler(WalletProxyError)
    async def wallet_proxy_error_handler(request: Request, exc: WalletProxyError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(part) for part in error.get("loc", ())[1:]), "message": error.get("msg")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid request parameters",
                "code": ErrorCode.BAD_REQUEST.value,
                "details": details,
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "code": ErrorCode.UNKNOWN_ERROR.value},
        )


def create_app(container: Optional[ServiceContainer] = None,
               config: Optional[AppConfig] = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        container: Pre-built services (tests inject fakes); built from config if None
        config: Application configuration; read from the environment if None

    Returns:
        The configured application
    """
    if container is not None:
        config = config or container.config
    config = config or get_app_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services = container or ServiceContainer.from_config(config)
        app.state.container = services
        await services.startup()
        try:
            yield
        finally:
            await services.shutdown()

    app = FastAPI(
        title="Solana Wallet Proxy",
        description="Read-only wallet snapshots and recent buys for Solana",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    app.include_router(system_router)
    app.include_router(wallet_router)
    app.include_router(buys_router)
    app.include_router(birdeye_router)

    register_error_handlers(app)
    return app


def build_app() -> FastAPI:
    """Application factory used by uvicorn."""
    server_config = get_server_config()
    configure_logging(server_config.log_level)
    return create_app()


def run_server(port=None):
    """Run the server from command line.

    Args:
        port: Optional port override
    """
    config = get_server_config()
    solana_config = get_solana_config()

    if port is not None:
        try:
            config.port = int(port)
        except ValueError:
            logger.error(f"Invalid port number: {port}")
            sys.exit(1)

    configure_logging(config.log_level)
    logger.info(
        f"Starting wallet proxy on {config.host}:{config.port} (Environment: {config.environment})"
    )
    logger.info(f"Using Solana RPC URL: {solana_config.rpc_url}")

    uvicorn.run(
        "wallet_proxy.main:build_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    run_server()
