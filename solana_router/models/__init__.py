"""Data types for the Solana router."""

from solana_router.models.conversation import ConversationTurn, Query, TurnRole
from solana_router.models.entities import ClassificationResult, ClassificationStage, EntityType
from solana_router.models.tools import ToolCall, ToolDescriptor, ToolErr, ToolOk, ToolResult

__all__ = [
    "ClassificationResult",
    "ClassificationStage",
    "ConversationTurn",
    "EntityType",
    "Query",
    "ToolCall",
    "ToolDescriptor",
    "ToolErr",
    "ToolOk",
    "ToolResult",
    "TurnRole",
]
