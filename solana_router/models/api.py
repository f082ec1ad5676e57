"""Request and response models for the HTTP API.

This module defines Pydantic models for the query endpoint and the
structured answer returned to the UI layer.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """A prior conversation message supplied by the caller."""

    role: Literal["user", "assistant"] = Field(..., description="Who sent the message")
    content: str = Field(..., description="Message text")


class QueryRequest(BaseModel):
    """Model for natural-language query requests."""

    query: str = Field(..., description="Natural-language question about Solana")
    address: Optional[str] = Field(
        None,
        description="Optional address or transaction signature the question is about"
    )
    session_id: Optional[str] = Field(
        None,
        description="Conversation session to continue"
    )
    chat_history: Optional[List[ChatMessage]] = Field(
        None,
        description="Prior turns, used when no server-side session exists"
    )


class ClassifyRequest(BaseModel):
    """Model for entity classification requests."""

    address: str = Field(..., description="Address or transaction signature to classify")


class DocSource(BaseModel):
    """A knowledge passage used in an answer."""

    content: str
    source_url: Optional[str] = None
    source_title: Optional[str] = None
    similarity: float = Field(..., ge=0.0, le=1.0)


class Sources(BaseModel):
    """Provenance of an answer."""

    type: Literal["live_data", "documentation", "hybrid", "none"]
    docs: Optional[List[DocSource]] = None
    blockchain_data: Optional[Dict[str, Any]] = None


class RouterResponse(BaseModel):
    """Structured answer returned to the UI layer."""

    model_config = ConfigDict(populate_by_name=True)

    response: str = Field(..., description="Final natural-language answer")
    tools_used: List[str] = Field(default_factory=list, alias="toolsUsed")
    tool_results: Optional[List[Dict[str, Any]]] = Field(None, alias="toolResults")
    sources: Optional[Sources] = None
    intent: Optional[str] = None
    session_id: Optional[str] = Field(None, alias="sessionId")

    def to_payload(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, dropping empty optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)
