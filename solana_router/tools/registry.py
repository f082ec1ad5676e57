"""
Tool registry.

Maps tool names to typed handlers. Every registration is checked against
its declared schema, so catalogue mistakes fail at startup rather than on
the first call.
"""

import inspect
import logging
from typing import Any, Dict, Iterator, List, Optional, Type

from pydantic import BaseModel

from solana_router.models.tools import ToolDescriptor
from solana_router.utils.errors import ConfigurationError, UnknownToolError


def schema_from_model(args_model: Type[BaseModel]) -> Dict[str, Any]:
    """Build the ``{type: object, properties, required}`` schema of an argument struct."""
    schema = args_model.model_json_schema(by_alias=True)
    properties = {
        name: {key: value for key, value in prop.items() if key != "title"}
        for name, prop in schema.get("properties", {}).items()
    }
    return {
        "type": "object",
        "properties": properties,
        "required": list(schema.get("required", [])),
        "additionalProperties": False,
    }


def _handler_parameters(handler) -> List[str]:
    return [
        name for name, param in inspect.signature(handler).parameters.items()
        if param.kind in (param.POSITIONAL_OR_KEYWORD, param.KEYWORD_ONLY)
    ]


class ToolRegistry:
    """
    Registry of the tools the reasoning step may call.

    Each tool has a descriptor (name, description, parameters) and an async handler.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._tools: Dict[str, ToolDescriptor] = {}
        self.logger = logger or logging.getLogger(__name__)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def register(self, descriptor: ToolDescriptor) -> None:
        """Register a tool after checking it against its schema.

        Raises:
            ConfigurationError: If the schema, argument struct and handler disagree
        """
        name = descriptor.name
        if name in self._tools:
            raise ConfigurationError(f"Tool {name} is already registered")

        parameters = descriptor.parameters
        if parameters.get("type") != "object":
            raise ConfigurationError(f"Tool {name}: parameters must be an object schema")

        properties = parameters.get("properties", {})
        missing_required = set(descriptor.required) - set(properties)
        if missing_required:
            raise ConfigurationError(
                f"Tool {name}: required parameters {sorted(missing_required)} are not declared"
            )

        fields = descriptor.args_model.model_fields
        aliases = {field.alias or field_name for field_name, field in fields.items()}
        if aliases != set(properties):
            raise ConfigurationError(
                f"Tool {name}: schema properties {sorted(properties)} do not match "
                f"argument struct {sorted(aliases)}"
            )

        if not inspect.iscoroutinefunction(descriptor.handler):
            raise ConfigurationError(f"Tool {name}: handler must be an async function")
        handler_params = _handler_parameters(descriptor.handler)
        if set(handler_params) != set(fields):
            raise ConfigurationError(
                f"Tool {name}: handler parameters {handler_params} do not match "
                f"argument fields {sorted(fields)}"
            )

        if descriptor.subject_param is not None and descriptor.subject_param not in properties:
            raise ConfigurationError(
                f"Tool {name}: subject parameter {descriptor.subject_param} is not declared"
            )

        self._tools[name] = descriptor
        self.logger.debug(f"Registered tool {name}")

    def validate_fallbacks(self) -> None:
        """Check that every fallback names a registered tool with a subject parameter.

        Raises:
            UnknownToolError: If a fallback is not in the catalogue
            ConfigurationError: If a fallback cannot receive the subject
        """
        for descriptor in self._tools.values():
            for fallback in descriptor.fallbacks:
                target = self._tools.get(fallback)
                if target is None:
                    raise UnknownToolError(fallback)
                if target.subject_param is None or descriptor.subject_param is None:
                    raise ConfigurationError(
                        f"Tool {descriptor.name}: fallback {fallback} needs a subject parameter on both tools"
                    )

    def get_tool(self, name: str) -> Optional[ToolDescriptor]:
        """Get a registered tool by name."""
        return self._tools.get(name)

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def get_definitions(self) -> List[Dict[str, Any]]:
        """All tools as ``{name, description, parameters}``."""
        return [descriptor.definition() for descriptor in self._tools.values()]

    def openai_schemas(self) -> List[Dict[str, Any]]:
        """All tools in the function-calling format for the model service."""
        return [descriptor.openai_schema() for descriptor in self._tools.values()]
