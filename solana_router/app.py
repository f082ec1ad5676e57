"""
FastAPI application for the Solana query router.

This module initializes the FastAPI application, sets up middleware,
configures routes, and manages the application lifecycle.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from solana_router import __version__
from solana_router.api.error_handlers import register_error_handlers
from solana_router.api.routes import api_router, system_router
from solana_router.config import AppConfig, get_app_config
from solana_router.logging_config import RequestIdMiddleware, configure_logging
from solana_router.router.pipeline import QueryRouter, build_router

logger = logging.getLogger(__name__)

tags_metadata = [
    {
        "name": "query",
        "description": "Natural-language questions, address classification and the tool catalogue",
    },
    {
        "name": "system",
        "description": "System-level operations for monitoring",
    },
]


def create_application(
    config: Optional[AppConfig] = None,
    query_router: Optional[QueryRouter] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Application configuration, loaded from the environment when omitted
        query_router: Prebuilt router; built at startup when omitted

    Returns:
        The configured FastAPI application
    """
    config = config or get_app_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(config.server.log_level, config.server.log_format)

        http_client: Optional[httpx.AsyncClient] = None
        if query_router is None:
            http_client = httpx.AsyncClient()
            app.state.query_router = build_router(config, http_client)
        else:
            app.state.query_router = query_router

        logger.info(
            f"Application initialized ({len(config.solana.rpc_endpoints)} RPC endpoints, "
            f"model {'enabled' if config.model.enabled else 'disabled'})"
        )

        yield  # Application is running here

        logger.info("Application shutting down...")
        if http_client is not None:
            await app.state.query_router.close()
            await http_client.aclose()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Solana Query Router",
        description="Answers natural-language questions about Solana using documentation and live ledger data.",
        version=__version__,
        openapi_tags=tags_metadata,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        debug=config.server.debug,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    register_error_handlers(app)

    app.include_router(api_router)
    app.include_router(system_router)
    return app
