"""FastAPI dependency providers."""

from fastapi import Request

from solana_router.router.pipeline import QueryRouter
from solana_router.utils.errors import ConfigurationError


def get_query_router(request: Request) -> QueryRouter:
    """Return the router built during application startup."""
    router = getattr(request.app.state, "query_router", None)
    if router is None:
        raise ConfigurationError("Query router is not initialized")
    return router
