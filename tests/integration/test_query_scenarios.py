"""End-to-end routing scenarios against mocked ledger data."""

from solana_router.models.conversation import Query
from tests.fixtures.common import (
    OTHER_WALLET,
    SIGNATURE,
    TOKEN_MINT,
    WALLET_ADDRESS,
    mint_account,
    parsed_mint_account,
    parsed_transaction,
)


class TestQueryScenarios:
    """Representative questions from start to finish."""

    async def test_wallet_balance(self, query_router, mock_rpc_client):
        # Execute
        response = await query_router.route(Query(text=f"What is the balance of wallet {WALLET_ADDRESS}"))

        # Verify
        assert response.intent == "live_data"
        assert response.tools_used == ["getSolBalance"]
        assert "1.5 SOL" in response.response
        assert response.sources.type == "live_data"
        assert response.tool_results == [{
            "tool": "getSolBalance",
            "ok": True,
            "result": {"address": WALLET_ADDRESS, "lamports": 1_500_000_000, "sol": 1.5, "formatted": "1.5 SOL"},
        }]

    async def test_pda_concept(self, query_router, mock_rpc_client):
        response = await query_router.route(Query(text="What is a program-derived address?"))

        assert response.intent == "knowledge"
        assert response.tools_used == []
        assert response.sources.type == "documentation"
        assert response.sources.docs[0].source_title == "Program Derived Addresses (PDA)"
        assert "Program Derived Addresses (PDA)" in response.response
        mock_rpc_client.get_account_info.assert_not_called()

    async def test_transaction_signature(self, query_router, mock_rpc_client):
        # Setup
        mock_rpc_client.get_transaction.return_value = parsed_transaction()

        # Execute
        response = await query_router.route(Query(text=f"Analyze transaction {SIGNATURE}"))

        # Verify
        assert response.tools_used == ["analyzeTransactionSignature"]
        assert "succeeded" in response.response
        assert "SOL Transfer" in response.response
        data = response.sources.blockchain_data["analyzeTransactionSignature"]
        assert data["transfers"][0]["to"] == OTHER_WALLET

    async def test_failed_transaction_is_hybrid(self, query_router, mock_rpc_client):
        mock_rpc_client.get_transaction.return_value = parsed_transaction(err={"InstructionError": [0, "Custom"]})

        response = await query_router.route(Query(text=f"Why did transaction {SIGNATURE} fail?"))

        assert response.intent == "hybrid"
        assert response.sources.type == "hybrid"
        assert response.sources.docs
        assert "failed" in response.response

    async def test_token_safety(self, query_router, mock_rpc_client):
        # Setup: base64 for classification, jsonParsed for token info
        async def account_info(address, encoding="base64"):
            if encoding == "jsonParsed":
                return parsed_mint_account(mint_authority=WALLET_ADDRESS, freeze_authority=OTHER_WALLET)
            return mint_account(supply=5_000_000, decimals=6)

        mock_rpc_client.get_account_info.side_effect = account_info
        mock_rpc_client.get_token_supply.return_value = {"uiAmount": 5.0, "decimals": 6}
        mock_rpc_client.get_token_largest_accounts.return_value = [{"address": "holderA", "uiAmount": 1.0}]

        # Execute
        response = await query_router.route(Query(text=f"Is token {TOKEN_MINT} a honeypot or a scam?"))

        # Verify
        assert response.tools_used == ["checkForHoneypotPatterns"]
        result = response.sources.blockchain_data["checkForHoneypotPatterns"]
        assert result["is_honeypot"] is True
        assert "[CRITICAL]" in response.response
