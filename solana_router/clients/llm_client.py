"""Language model collaborator built on the OpenAI async SDK.

The client is used for three things: tool-choosing chat completions,
single-label intent classification and text embeddings. Every SDK failure
surfaces as ``UpstreamServiceError``.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from solana_router.config import ModelConfig
from solana_router.models.tools import ToolCall
from solana_router.utils.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

INTENT_LABELS = ("on_chain_query", "doc_query", "hybrid_query", "general")

INTENT_PROMPT = (
    "Classify the user's question about the Solana blockchain. Reply with a JSON "
    'object of the form {"intent": "<label>"} where <label> is exactly one of: '
    "on_chain_query (needs live account, token or transaction data), "
    "doc_query (conceptual or documentation question), "
    "hybrid_query (needs both, e.g. debugging a failed transaction), "
    "general (anything else)."
)


@dataclass
class ModelReply:
    """A chat completion: free text, requested tool invocations, or both."""

    text: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)

    @property
    def wants_tools(self) -> bool:
        return bool(self.tool_calls)

    def assistant_message(self) -> Dict[str, Any]:
        """The reply as a chat message, for feeding tool results back."""
        message: Dict[str, Any] = {"role": "assistant", "content": self.text}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.call_id,
                    "type": "function",
                    "function": {"name": call.tool_name, "arguments": call.arguments_json()},
                }
                for call in self.tool_calls
            ]
        return message


class ModelClient:
    """Thin async wrapper around the chat completions and embeddings APIs."""

    def __init__(self, config: ModelConfig, client: Optional[AsyncOpenAI] = None):
        self.config = config
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.config.api_key, timeout=self.config.timeout)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()

    async def complete(
        self,
        messages: Sequence[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[str] = "auto",
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> ModelReply:
        """Run one chat completion.

        Args:
            messages: Ordered chat messages
            tools: Tool schemas in function-calling format
            tool_choice: Tool policy; "auto" lets the model decide
            temperature: Sampling temperature override
            max_tokens: Output token limit override

        Returns:
            The model's reply

        Raises:
            UpstreamServiceError: If the model service fails
        """
        request: Dict[str, Any] = {
            "model": self.config.chat_model,
            "messages": list(messages),
            "temperature": self.config.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.config.max_tokens,
        }
        if tools:
            request["tools"] = tools
            request["tool_choice"] = tool_choice

        try:
            response = await self._get_client().chat.completions.create(**request)
        except (OpenAIError, asyncio.TimeoutError) as e:
            raise UpstreamServiceError("model", str(e)) from e

        if not response.choices:
            raise UpstreamServiceError("model", "empty completion")

        message = response.choices[0].message
        calls = [
            ToolCall(
                tool_name=call.function.name,
                arguments=call.function.arguments,
                call_id=call.id,
            )
            for call in (message.tool_calls or [])
        ]
        return ModelReply(text=message.content, tool_calls=calls)

    async def classify_intent(self, query: str) -> Optional[str]:
        """Ask the model for exactly one intent label.

        Returns:
            One of ``INTENT_LABELS``, or None when the reply cannot be parsed

        Raises:
            UpstreamServiceError: If the model service fails
        """
        try:
            response = await self._get_client().chat.completions.create(
                model=self.config.intent_model,
                messages=[
                    {"role": "system", "content": INTENT_PROMPT},
                    {"role": "user", "content": query},
                ],
                temperature=0,
                max_tokens=20,
                response_format={"type": "json_object"},
            )
        except (OpenAIError, asyncio.TimeoutError) as e:
            raise UpstreamServiceError("model", str(e)) from e

        if not response.choices:
            return None
        content = response.choices[0].message.content or ""
        try:
            label = json.loads(content).get("intent")
        except (ValueError, AttributeError):
            logger.warning(f"Unparseable intent reply: {content!r}")
            return None
        return label if label in INTENT_LABELS else None

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed texts with the configured embedding model.

        Raises:
            UpstreamServiceError: If the embeddings call fails
        """
        try:
            response = await self._get_client().embeddings.create(
                model=self.config.embedding_model,
                input=list(texts),
            )
        except (OpenAIError, asyncio.TimeoutError) as e:
            raise UpstreamServiceError("embeddings", str(e)) from e
        return [item.embedding for item in response.data]
