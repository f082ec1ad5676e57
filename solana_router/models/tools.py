"""Tool catalogue and dispatch result types."""

import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Optional, Tuple, Type, Union

from pydantic import BaseModel

from solana_router.models.entities import EntityType


@dataclass(frozen=True)
class ToolDescriptor:
    """A named, schema-described operation in the tool catalogue."""

    name: str
    description: str
    parameters: Dict[str, Any]
    args_model: Type[BaseModel]
    handler: Callable[..., Awaitable[Any]]
    subject_param: Optional[str] = None
    subject_kind: str = "address"
    accepts: FrozenSet[EntityType] = frozenset()
    fallbacks: Tuple[str, ...] = ()

    @property
    def required(self) -> Tuple[str, ...]:
        return tuple(self.parameters.get("required", ()))

    def accepts_entity(self, entity_type: EntityType) -> bool:
        """Whether the tool can serve a subject of the given type.

        An empty ``accepts`` set, or an unknown type, never rules a tool out.
        """
        return not self.accepts or entity_type == EntityType.UNKNOWN or entity_type in self.accepts

    def definition(self) -> Dict[str, Any]:
        """The ``{name, description, parameters}`` description of the tool."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }

    def openai_schema(self) -> Dict[str, Any]:
        """The tool in the function-calling format of the chat completions API."""
        return {"type": "function", "function": self.definition()}


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the reasoning step."""

    tool_name: str
    arguments: Union[Dict[str, Any], str, None] = field(default_factory=dict)
    call_id: Optional[str] = None

    def arguments_json(self) -> str:
        if isinstance(self.arguments, str):
            return self.arguments
        return json.dumps(self.arguments or {})


@dataclass(frozen=True)
class ToolOk:
    """A tool result carrying a payload."""

    tool_name: str
    payload: Any
    call_id: Optional[str] = None
    requested_tool: Optional[str] = None
    arguments: Dict[str, Any] = field(default_factory=dict)

    ok = True

    def to_dict(self) -> Dict[str, Any]:
        data = {"tool": self.tool_name, "ok": True, "result": self.payload}
        if self.requested_tool and self.requested_tool != self.tool_name:
            data["requestedTool"] = self.requested_tool
        return data


@dataclass(frozen=True)
class ToolErr:
    """A tool result carrying an error instead of a payload."""

    tool_name: str
    kind: str
    message: str
    call_id: Optional[str] = None
    requested_tool: Optional[str] = None
    arguments: Dict[str, Any] = field(default_factory=dict)

    ok = False

    @property
    def error_text(self) -> str:
        """Verbatim error line used in synthesis input."""
        return f"ERROR [{self.kind}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tool": self.tool_name,
            "ok": False,
            "error": {"kind": self.kind, "message": self.message},
        }


ToolResult = Union[ToolOk, ToolErr]
