"""Unit tests for response synthesis."""

import pytest

from solana_router.clients.llm_client import ModelReply
from solana_router.models.tools import ToolErr, ToolOk
from solana_router.router.prompts import GENERAL_RESPONSE, KNOWLEDGE_PROMPT, SYNTHESIS_PROMPT
from solana_router.router.synthesizer import Provenance, ResponseSynthesizer, format_tool_result, provenance
from solana_router.services.knowledge_service import KnowledgePassage
from solana_router.utils.errors import UpstreamServiceError
from tests.fixtures.common import WALLET_ADDRESS

BALANCE = ToolOk("getSolBalance", {"address": WALLET_ADDRESS, "lamports": 1_500_000_000, "sol": 1.5,
                                   "formatted": "1.5 SOL"})
FAILURE = ToolErr("getTokenInfo", "invalid_input", f"{WALLET_ADDRESS} is not a token mint")
PASSAGE = KnowledgePassage(
    content="A program derived address is derived from seeds.",
    source_url="https://solana.com/docs/core/pda",
    source_title="Program Derived Addresses (PDA)",
    similarity=0.9,
)


class TestProvenance:
    """Test suite for provenance tagging."""

    @pytest.mark.parametrize("tools,passages,expected", [
        ([BALANCE], [PASSAGE], Provenance.HYBRID),
        ([BALANCE], [], Provenance.LIVE_DATA),
        ([FAILURE], [], Provenance.LIVE_DATA),
        ([], [PASSAGE], Provenance.DOCUMENTATION),
        ([], [], Provenance.NONE),
    ])
    def test_tags(self, tools, passages, expected):
        assert provenance(tools, passages) == expected


class TestTemplates:
    """Test suite for model-free answers."""

    def test_balance_sentence(self):
        assert format_tool_result(BALANCE) == f"The SOL balance of {WALLET_ADDRESS} is 1.5 SOL."

    def test_unformatted_tool_falls_back_to_json(self):
        text = format_tool_result(ToolOk("customTool", {"a": 1}))

        assert text == 'customTool: {"a": 1}'

    def test_malformed_payload_falls_back_to_json(self):
        text = format_tool_result(ToolOk("getTokenHoldings", {"address": WALLET_ADDRESS, "tokens": 5}))

        assert text.startswith("getTokenHoldings: ")

    def test_errors_listed_verbatim(self):
        answer = ResponseSynthesizer().template_answer([BALANCE, FAILURE], [])

        assert "1.5 SOL" in answer
        assert "Some data could not be retrieved:" in answer
        assert FAILURE.error_text in answer

    def test_passages_cited(self):
        answer = ResponseSynthesizer().template_answer([], [PASSAGE])

        assert "**Program Derived Addresses (PDA)**" in answer
        assert "Source: https://solana.com/docs/core/pda" in answer

    def test_nothing_to_say(self):
        assert ResponseSynthesizer().template_answer([], []) == GENERAL_RESPONSE


class TestSynthesize:
    """Test suite for ResponseSynthesizer.synthesize."""

    async def test_without_model_uses_templates(self):
        result = await ResponseSynthesizer().synthesize("balance?", [BALANCE])

        assert result.provenance == Provenance.LIVE_DATA
        assert "1.5 SOL" in result.text

    async def test_model_answer(self, mock_model_client):
        # Setup
        mock_model_client.complete.return_value = ModelReply(text="You have 1.5 SOL.")
        synthesizer = ResponseSynthesizer(mock_model_client)
        history = [{"role": "user", "content": "hi"}]

        # Execute
        result = await synthesizer.synthesize("balance?", [BALANCE, FAILURE], [], history)

        # Verify
        assert result.text == "You have 1.5 SOL."
        messages = mock_model_client.complete.await_args.args[0]
        assert messages[0]["content"] == SYNTHESIS_PROMPT
        assert messages[1] == history[0]
        assert FAILURE.error_text in messages[-1]["content"]
        assert mock_model_client.complete.await_args.kwargs["tools"] is None

    async def test_documentation_prompt(self, mock_model_client):
        mock_model_client.complete.return_value = ModelReply(text="PDAs are derived.")

        result = await ResponseSynthesizer(mock_model_client).synthesize("what is a pda?", [], [PASSAGE])

        assert result.provenance == Provenance.DOCUMENTATION
        assert mock_model_client.complete.await_args.args[0][0]["content"] == KNOWLEDGE_PROMPT

    async def test_model_failure_uses_templates(self, mock_model_client):
        mock_model_client.complete.side_effect = UpstreamServiceError("model", "rate limited")

        result = await ResponseSynthesizer(mock_model_client).synthesize("balance?", [BALANCE])

        assert "1.5 SOL" in result.text
        assert result.provenance == Provenance.LIVE_DATA

    async def test_empty_model_reply_uses_templates(self, mock_model_client):
        mock_model_client.complete.return_value = ModelReply(text="")

        result = await ResponseSynthesizer(mock_model_client).synthesize("balance?", [BALANCE])

        assert "1.5 SOL" in result.text

    async def test_nothing_gathered_skips_model(self, mock_model_client):
        result = await ResponseSynthesizer(mock_model_client).synthesize("hello")

        assert result.text == GENERAL_RESPONSE
        assert result.provenance == Provenance.NONE
        mock_model_client.complete.assert_not_called()
