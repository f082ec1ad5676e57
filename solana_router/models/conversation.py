"""Conversation turn and query types."""

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple


class TurnRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    TOOL_RESULT = "tool_result"


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass(frozen=True)
class ConversationTurn:
    """One entry of a conversation's append-only turn log."""

    role: TurnRole
    text: Optional[str] = None
    payload: Optional[Mapping[str, Any]] = None
    tool_name: Optional[str] = None
    created_at: datetime.datetime = field(default_factory=_utc_now)

    def __post_init__(self):
        if self.text is None and self.payload is None:
            raise ValueError("A conversation turn needs text or a payload")


@dataclass(frozen=True)
class Query:
    """A natural-language question as submitted by the caller.

    Attributes:
        text: Raw question text
        address: Optional address or signature the caller already knows about
        session_id: Optional conversation session to continue
        history: Optional prior turns supplied by the caller
    """

    text: str
    address: Optional[str] = None
    session_id: Optional[str] = None
    history: Tuple[ConversationTurn, ...] = ()
