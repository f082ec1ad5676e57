"""Unit tests for the keyword tool planner."""

import pytest

from solana_router.models.entities import EntityType
from solana_router.router.planner import MAX_PLANNED_CALLS, plan_tool_calls
from tests.fixtures.common import SIGNATURE, TOKEN_MINT, WALLET_ADDRESS


def names(calls):
    return [call.tool_name for call in calls]


class TestPlanToolCalls:
    """Test suite for plan_tool_calls."""

    def test_no_subject_no_calls(self):
        assert plan_tool_calls("what is my balance?", None) == []

    def test_signature_is_analyzed(self):
        calls = plan_tool_calls("what happened here?", SIGNATURE)

        assert names(calls) == ["analyzeTransactionSignature"]
        assert calls[0].arguments == {"signature": SIGNATURE}

    def test_balance_for_wallet(self):
        calls = plan_tool_calls("What is the balance?", WALLET_ADDRESS, EntityType.WALLET)

        assert names(calls) == ["getSolBalance"]
        assert calls[0].arguments == {"address": WALLET_ADDRESS}
        assert calls[0].call_id == "plan-0"

    def test_mint_tools_use_mint_argument(self):
        calls = plan_tool_calls("who are the holders and what is the price?", TOKEN_MINT, EntityType.TOKEN)

        assert names(calls) == ["getTokenHolders", "getTokenInfo"]
        assert all(call.arguments == {"mintAddress": TOKEN_MINT} for call in calls)

    def test_mint_tools_skipped_for_wallets(self):
        calls = plan_tool_calls("is it safe? show the price and the tokens", WALLET_ADDRESS, EntityType.WALLET)

        assert names(calls) == ["getTokenHoldings"]

    def test_calls_are_capped(self):
        text = "risk, holders, price, balance, tokens, last and history"

        calls = plan_tool_calls(text, TOKEN_MINT)

        assert len(calls) == MAX_PLANNED_CALLS
        assert names(calls) == ["checkForHoneypotPatterns", "getTokenHolders", "getTokenInfo"]

    @pytest.mark.parametrize("entity_type,tool", [
        (EntityType.TOKEN, "getTokenInfo"),
        (EntityType.NFT, "getTokenInfo"),
        (EntityType.WALLET, "getSolBalance"),
        (EntityType.PROGRAM, "getAccountInfo"),
        (EntityType.PDA, "getAccountInfo"),
        (None, "getAccountInfo"),
    ])
    def test_default_tool_by_type(self, entity_type, tool):
        assert names(plan_tool_calls("tell me about it", WALLET_ADDRESS, entity_type)) == [tool]
