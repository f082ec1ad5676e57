"""
Tool dispatcher.

Turns a ``ToolCall`` into a ``ToolResult`` and never raises for tool-level
problems: unknown names, bad arguments and handler failures all come back
as error results that the reasoning step can read and react to.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from solana_router.models.entities import EntityType
from solana_router.models.tools import ToolCall, ToolDescriptor, ToolErr, ToolOk, ToolResult
from solana_router.services.entity_classifier import EntityClassifier
from solana_router.tools.registry import ToolRegistry
from solana_router.utils.errors import (
    EndpointPoolExhausted,
    InvalidInputError,
    RouterError,
    ToolValidationError,
    UnknownToolError,
    error_kind,
)
from solana_router.utils.validation import looks_like_pubkey, looks_like_signature


def _error_result(call: ToolCall, error: RouterError, arguments: Optional[Dict[str, Any]] = None) -> ToolErr:
    return ToolErr(
        tool_name=call.tool_name,
        kind=error.kind,
        message=error.message,
        call_id=call.call_id,
        requested_tool=call.tool_name,
        arguments=arguments or {},
    )


class ToolDispatcher:
    """Validates and executes tool calls against a ``ToolRegistry``."""

    def __init__(
        self,
        registry: ToolRegistry,
        classifier: Optional[EntityClassifier] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the dispatcher.

        Args:
            registry: The tool catalogue
            classifier: Used to pick between a tool and its fallbacks; None disables that routing
            logger: Optional logger instance
        """
        self.registry = registry
        self.classifier = classifier
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    @staticmethod
    def _decode_arguments(call: ToolCall) -> Dict[str, Any]:
        arguments = call.arguments
        if arguments is None or arguments == "":
            return {}
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments)
            except ValueError as e:
                raise ToolValidationError(call.tool_name, f"Arguments are not valid JSON: {e}")
        if not isinstance(arguments, dict):
            raise ToolValidationError(call.tool_name, "Arguments must be a JSON object")
        return dict(arguments)

    @staticmethod
    def _subject_fits(descriptor: ToolDescriptor, value: str) -> bool:
        if descriptor.subject_kind == "signature":
            return looks_like_signature(value)
        return looks_like_pubkey(value)

    def _apply_subject_default(self, descriptor: ToolDescriptor, arguments: Dict[str, Any],
                               active_address: Optional[str]) -> None:
        param = descriptor.subject_param
        if param is None or arguments.get(param) not in (None, ""):
            return
        if active_address and self._subject_fits(descriptor, active_address):
            arguments[param] = active_address
            self.logger.debug(f"{descriptor.name}: using context address for {param}")
            return
        raise ToolValidationError(
            descriptor.name,
            f"No {descriptor.subject_kind} was given for '{param}' and the conversation has no "
            f"active {descriptor.subject_kind}",
            details={"missing": [param]}
        )

    def validate(self, call: ToolCall, active_address: Optional[str] = None) -> Tuple[ToolDescriptor, Dict[str, Any]]:
        """
        Resolve and validate a call without executing it.

        Returns:
            The tool descriptor and the validated arguments, keyed by handler parameter

        Raises:
            UnknownToolError: If the tool is not in the catalogue
            ToolValidationError: If the arguments do not match the schema
        """
        descriptor = self.registry.get_tool(call.tool_name)
        if descriptor is None:
            raise UnknownToolError(call.tool_name)

        arguments = self._decode_arguments(call)
        self._apply_subject_default(descriptor, arguments, active_address)

        missing = [name for name in descriptor.required if arguments.get(name) in (None, "")]
        if missing:
            raise ToolValidationError(
                descriptor.name,
                f"Missing required argument(s): {', '.join(missing)}",
                details={"missing": missing}
            )

        try:
            parsed = descriptor.args_model.model_validate(arguments)
        except ValidationError as e:
            problems = [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            raise ToolValidationError(
                descriptor.name,
                f"Invalid arguments: {'; '.join(problems)}",
                details={"errors": problems}
            )
        return descriptor, parsed.model_dump()

    async def _subject_type(self, descriptor: ToolDescriptor, arguments: Dict[str, Any]) -> EntityType:
        if self.classifier is None or not descriptor.accepts or descriptor.subject_param is None:
            return EntityType.UNKNOWN
        subject = self._subject_value(descriptor, arguments)
        try:
            result = await self.classifier.classify(subject)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.warning(f"{descriptor.name}: could not classify {subject}, treating it as unknown: {e}")
            return EntityType.UNKNOWN
        return result.type

    @staticmethod
    def _subject_field(descriptor: ToolDescriptor) -> Optional[str]:
        """Argument-struct field that holds the subject address."""
        return next(
            (name for name, field in descriptor.args_model.model_fields.items()
             if (field.alias or name) == descriptor.subject_param),
            None
        )

    def _subject_value(self, descriptor: ToolDescriptor, arguments: Dict[str, Any]) -> Optional[str]:
        field_name = self._subject_field(descriptor)
        return arguments.get(field_name) if field_name else None

    def _fallback_chain(self, descriptor: ToolDescriptor, entity_type: EntityType) -> List[ToolDescriptor]:
        chain = []
        for name in descriptor.fallbacks:
            fallback = self.registry.get_tool(name)
            if fallback is not None and fallback.accepts_entity(entity_type):
                chain.append(fallback)
        return chain

    async def _invoke(self, descriptor: ToolDescriptor, arguments: Dict[str, Any]) -> Any:
        return await descriptor.handler(**arguments)

    def _log_failure(self, descriptor: ToolDescriptor, error: Exception) -> None:
        if isinstance(error, InvalidInputError):
            self.logger.info(f"{descriptor.name} rejected input: {error}")
        elif isinstance(error, EndpointPoolExhausted):
            self.logger.warning(f"{descriptor.name} could not reach any endpoint: {error}")
        elif isinstance(error, RouterError):
            self.logger.warning(f"{descriptor.name} failed: {error}")
        else:
            self.logger.exception(f"{descriptor.name} raised an unexpected error: {error}")

    async def dispatch(self, call: ToolCall, active_address: Optional[str] = None) -> ToolResult:
        """
        Execute one tool call.

        Args:
            call: Requested tool and arguments
            active_address: Conversation address used when the subject is omitted

        Returns:
            A payload result, or an error result describing what went wrong
        """
        try:
            descriptor, arguments = self.validate(call, active_address)
        except UnknownToolError as e:
            self.logger.error(f"Dispatch of unregistered tool {call.tool_name!r}; catalogue and caller disagree")
            return _error_result(call, e)
        except ToolValidationError as e:
            self.logger.info(f"Rejected call to {call.tool_name}: {e.message}")
            return _error_result(call, e)

        subject = self._subject_value(descriptor, arguments)
        entity_type = await self._subject_type(descriptor, arguments)

        candidates: List[Tuple[ToolDescriptor, Dict[str, Any]]] = []
        if descriptor.accepts_entity(entity_type):
            candidates.append((descriptor, arguments))
        else:
            self.logger.info(f"{descriptor.name} does not serve {entity_type.value} subjects; trying fallbacks")
        for fallback in self._fallback_chain(descriptor, entity_type):
            candidates.append((fallback, self._fallback_arguments(fallback, subject)))

        if not candidates:
            error = ToolValidationError(
                descriptor.name,
                f"{subject} is a {entity_type.value}, which {descriptor.name} cannot handle",
                details={"entity_type": entity_type.value}
            )
            return _error_result(call, error, arguments)

        first_error: Optional[Exception] = None
        for candidate, candidate_args in candidates:
            try:
                payload = await self._invoke(candidate, candidate_args)
            except EndpointPoolExhausted as e:
                self._log_failure(candidate, e)
                first_error = first_error or e
                break
            except Exception as e:
                self._log_failure(candidate, e)
                first_error = first_error or e
                continue
            return ToolOk(
                tool_name=candidate.name,
                payload=payload,
                call_id=call.call_id,
                requested_tool=call.tool_name,
                arguments=candidate_args,
            )

        return ToolErr(
            tool_name=call.tool_name,
            kind=error_kind(first_error),
            message=first_error.message if isinstance(first_error, RouterError) else str(first_error),
            call_id=call.call_id,
            requested_tool=call.tool_name,
            arguments=arguments,
        )

    @staticmethod
    def _fallback_arguments(fallback: ToolDescriptor, subject: Optional[str]) -> Dict[str, Any]:
        """Arguments for a fallback: the subject alone, with struct defaults for the rest."""
        return fallback.args_model.model_validate({fallback.subject_param: subject}).model_dump()

    async def dispatch_all(self, calls: Sequence[ToolCall], active_address: Optional[str] = None) -> List[ToolResult]:
        """Dispatch a round of calls one after another, keeping request order."""
        results = []
        for call in calls:
            results.append(await self.dispatch(call, active_address))
        return results
