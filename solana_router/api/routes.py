"""
API routes for the Solana query router
"""
import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends

from solana_router import __version__
from solana_router.api.dependencies import get_query_router
from solana_router.models.api import ClassifyRequest, QueryRequest
from solana_router.models.conversation import ConversationTurn, Query, TurnRole
from solana_router.router.pipeline import QueryRouter

api_router = APIRouter(prefix="/api")
system_router = APIRouter()


@api_router.post("/query", tags=["query"])
async def query(request: QueryRequest, router: QueryRouter = Depends(get_query_router)) -> Dict[str, Any]:
    """
    Answer a natural-language question about Solana

    Returns:
        ``{response, toolsUsed, toolResults?, sources?, intent, sessionId}``
    """
    history = tuple(
        ConversationTurn(role=TurnRole(message.role), text=message.content)
        for message in (request.chat_history or [])
    )
    response = await router.route(Query(
        text=request.query,
        address=request.address,
        session_id=request.session_id,
        history=history,
    ))
    return response.to_payload()


@api_router.post("/classify", tags=["query"])
async def classify(request: ClassifyRequest, router: QueryRouter = Depends(get_query_router)) -> Dict[str, Any]:
    """Classify an address or transaction signature"""
    result = await router.classify_address(request.address)
    return result.to_dict()


@api_router.get("/tools", tags=["query"])
async def list_tools(router: QueryRouter = Depends(get_query_router)) -> Dict[str, Any]:
    """List the tool catalogue as JSON schemas"""
    return {"tools": router.registry.get_definitions()}


@system_router.get("/health", tags=["system"])
async def health(router: QueryRouter = Depends(get_query_router)) -> Dict[str, Any]:
    """Check the health of the service"""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "tools": len(router.registry),
        "model_enabled": router.model_client is not None,
        "sessions": len(router.sessions),
    }
