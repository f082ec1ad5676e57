"""Conversation context for the query router.

A context is an append-only log of turns plus one "active address" slot.
Turns are frozen once appended; a correction is a new turn.
"""

import asyncio
import datetime
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from solana_router.models.conversation import ConversationTurn, TurnRole
from solana_router.models.tools import ToolResult
from solana_router.utils.errors import InvalidInputError
from solana_router.utils.validation import (
    extract_addresses,
    validate_public_key,
    validate_transaction_signature,
)

# Tool payloads are shortened before they are replayed to the model
MAX_REPLAYED_PAYLOAD_CHARS = 2000


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def normalize_subject(value: str) -> str:
    """
    Check that a value can be an active address.

    Args:
        value: Account address or transaction signature

    Returns:
        The value, stripped of surrounding whitespace

    Raises:
        InvalidInputError: If the value is neither address- nor signature-shaped
    """
    candidate = value.strip() if isinstance(value, str) else value
    if not (validate_public_key(candidate) or validate_transaction_signature(candidate)):
        raise InvalidInputError(f"Invalid Solana address: {value}", value=str(value))
    return candidate


@dataclass
class ConversationContext:
    """Turn log and active address for one session."""

    session_id: str
    history_limit: int = 20
    created_at: datetime.datetime = field(default_factory=_utc_now)
    last_accessed: datetime.datetime = field(default_factory=_utc_now)
    _turns: List[ConversationTurn] = field(default_factory=list, repr=False)
    _active_address: Optional[str] = field(default=None, repr=False)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    @property
    def turns(self) -> Tuple[ConversationTurn, ...]:
        """Snapshot of the turn log."""
        return tuple(self._turns)

    @property
    def active_address(self) -> Optional[str]:
        return self._active_address

    def touch(self) -> None:
        """Update the last access time."""
        self.last_accessed = _utc_now()

    def is_expired(self, ttl_minutes: float, now: Optional[datetime.datetime] = None) -> bool:
        now = now or _utc_now()
        return now > self.last_accessed + datetime.timedelta(minutes=ttl_minutes)

    def set_active_address(self, address: str) -> str:
        """Replace the active address; raises InvalidInputError for malformed values."""
        self._active_address = normalize_subject(address)
        return self._active_address

    def add_turn(self, turn: ConversationTurn) -> ConversationTurn:
        """
        Append a turn to the log.

        A user turn that mentions an address makes the first mentioned
        address the active one.
        """
        self._turns.append(turn)
        if turn.role == TurnRole.USER and turn.text:
            found = extract_addresses(turn.text)
            if found:
                self._active_address = found[0]
        return turn

    def add_user_message(self, text: str) -> ConversationTurn:
        return self.add_turn(ConversationTurn(role=TurnRole.USER, text=text))

    def add_assistant_message(self, text: str) -> ConversationTurn:
        return self.add_turn(ConversationTurn(role=TurnRole.ASSISTANT, text=text))

    def add_tool_result(self, result: ToolResult) -> ConversationTurn:
        return self.add_turn(ConversationTurn(
            role=TurnRole.TOOL_RESULT,
            payload=result.to_dict(),
            tool_name=result.tool_name,
        ))

    def recent_messages(self, limit: Optional[int] = None) -> List[Dict[str, str]]:
        """
        Render the latest turns as chat messages.

        Tool results are replayed as assistant text so the message list
        stays valid without the original tool-call ids.

        Args:
            limit: Maximum number of turns, defaults to the history limit

        Returns:
            Messages with ``role`` and ``content`` keys, oldest first
        """
        limit = self.history_limit if limit is None else limit
        if limit <= 0:
            return []
        messages = []
        for turn in self._turns[-limit:]:
            if turn.role == TurnRole.TOOL_RESULT:
                content = json.dumps(turn.payload, default=str)
                if len(content) > MAX_REPLAYED_PAYLOAD_CHARS:
                    content = content[:MAX_REPLAYED_PAYLOAD_CHARS] + "..."
                messages.append({"role": "assistant", "content": f"[{turn.tool_name} result] {content}"})
            else:
                messages.append({"role": turn.role.value, "content": turn.text or ""})
        return messages

    def context_preamble(self) -> Optional[str]:
        """One-line note about the active address, for system prompts."""
        if not self._active_address:
            return None
        return f"The active address in this conversation is {self._active_address}."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "created_at": self.created_at.isoformat(),
            "last_accessed": self.last_accessed.isoformat(),
            "active_address": self._active_address,
            "turns": len(self._turns),
        }
