"""Unit tests for the model collaborator."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from solana_router.clients.llm_client import ModelClient, ModelReply
from solana_router.config import ModelConfig
from solana_router.models.tools import ToolCall
from solana_router.utils.errors import UpstreamServiceError


def completion(content=None, tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def sdk_tool_call(call_id, name, arguments):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


@pytest.fixture
def sdk():
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    client.embeddings.create = AsyncMock()
    client.close = AsyncMock()
    return client


@pytest.fixture
def model(sdk):
    return ModelClient(ModelConfig(api_key="sk-test"), client=sdk)


class TestComplete:
    """Test suite for chat completions."""

    async def test_text_reply(self, model, sdk):
        sdk.chat.completions.create.return_value = completion("Hello")

        reply = await model.complete([{"role": "user", "content": "hi"}])

        assert reply.text == "Hello"
        assert reply.wants_tools is False
        request = sdk.chat.completions.create.await_args.kwargs
        assert request["model"] == "gpt-4o-mini"
        assert "tools" not in request

    async def test_tool_calls_parsed(self, model, sdk):
        # Setup
        sdk.chat.completions.create.return_value = completion(tool_calls=[
            sdk_tool_call("call_1", "getSolBalance", '{"address": "abc"}'),
        ])
        tools = [{"type": "function", "function": {"name": "getSolBalance"}}]

        # Execute
        reply = await model.complete([{"role": "user", "content": "balance?"}], tools=tools)

        # Verify
        assert reply.tool_calls == [ToolCall("getSolBalance", '{"address": "abc"}', "call_1")]
        request = sdk.chat.completions.create.await_args.kwargs
        assert request["tools"] == tools
        assert request["tool_choice"] == "auto"

    async def test_sdk_error_becomes_upstream_error(self, model, sdk):
        request = httpx.Request("POST", "https://api.invalid/v1/chat/completions")
        sdk.chat.completions.create.side_effect = openai.APITimeoutError(request=request)

        with pytest.raises(UpstreamServiceError) as exc_info:
            await model.complete([{"role": "user", "content": "hi"}])
        assert exc_info.value.service == "model"

    async def test_empty_choices(self, model, sdk):
        sdk.chat.completions.create.return_value = SimpleNamespace(choices=[])

        with pytest.raises(UpstreamServiceError):
            await model.complete([{"role": "user", "content": "hi"}])

    def test_assistant_message_replays_tool_calls(self):
        reply = ModelReply(tool_calls=[ToolCall("getSolBalance", {"address": "abc"}, "call_1")])

        message = reply.assistant_message()

        assert message["role"] == "assistant"
        assert message["tool_calls"][0]["id"] == "call_1"
        assert json.loads(message["tool_calls"][0]["function"]["arguments"]) == {"address": "abc"}


class TestClassifyIntent:
    """Test suite for the intent vote."""

    @pytest.mark.parametrize("content,expected", [
        ('{"intent": "doc_query"}', "doc_query"),
        ('{"intent": "on_chain_query"}', "on_chain_query"),
        ('{"intent": "weather"}', None),
        ("not json", None),
        ("[1, 2]", None),
    ])
    async def test_labels(self, model, sdk, content, expected):
        sdk.chat.completions.create.return_value = completion(content)

        assert await model.classify_intent("what is rent?") == expected


class TestEmbed:
    """Test suite for embeddings."""

    async def test_vectors_in_order(self, model, sdk):
        sdk.embeddings.create.return_value = SimpleNamespace(data=[
            SimpleNamespace(embedding=[0.1, 0.2]),
            SimpleNamespace(embedding=[0.3, 0.4]),
        ])

        vectors = await model.embed(["a", "b"])

        assert vectors == [[0.1, 0.2], [0.3, 0.4]]
        assert sdk.embeddings.create.await_args.kwargs["model"] == "text-embedding-3-small"

    async def test_close(self, model, sdk):
        await model.close()

        sdk.close.assert_awaited_once()
