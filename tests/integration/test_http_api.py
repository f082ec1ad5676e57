"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from solana_router.app import create_application
from solana_router.config import AppConfig, ModelConfig, ServerConfig, SolanaConfig
from tests.fixtures.common import SIGNATURE, WALLET_ADDRESS


@pytest.fixture
def client(query_router):
    config = AppConfig(
        solana=SolanaConfig(rpc_endpoints=("https://rpc.example.com",)),
        model=ModelConfig(api_key=None),
        server=ServerConfig(log_level="WARNING"),
    )
    app = create_application(config, query_router=query_router)
    with TestClient(app) as test_client:
        yield test_client


class TestQueryEndpoint:
    """Test suite for POST /api/query."""

    def test_balance_question(self, client):
        # Execute
        response = client.post("/api/query", json={"query": f"What is the balance of wallet {WALLET_ADDRESS}"})

        # Verify
        assert response.status_code == 200
        data = response.json()
        assert data["toolsUsed"] == ["getSolBalance"]
        assert data["sources"]["type"] == "live_data"
        assert data["intent"] == "live_data"
        assert "1.5 SOL" in data["response"]
        assert data["sessionId"]
        assert "X-Request-ID" in response.headers

    def test_session_continues(self, client):
        first = client.post("/api/query", json={"query": f"What is the balance of wallet {WALLET_ADDRESS}"}).json()

        second = client.post(
            "/api/query",
            json={"query": "show me the tokens", "session_id": first["sessionId"]},
        ).json()

        assert second["sessionId"] == first["sessionId"]
        assert second["toolsUsed"] == ["getTokenHoldings"]

    def test_chat_history_seeds_context(self, client):
        response = client.post("/api/query", json={
            "query": "show me the balance",
            "chat_history": [{"role": "user", "content": f"my wallet is {WALLET_ADDRESS}"}],
        })

        assert response.json()["toolsUsed"] == ["getSolBalance"]

    def test_empty_query_is_400(self, client):
        response = client.post("/api/query", json={"query": "  "})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_INPUT"

    def test_malformed_address_still_answered(self, client):
        response = client.post("/api/query", json={"query": "show me my balance and tokens", "address": "0xabc"})

        assert response.status_code == 200
        assert "`0xabc` is not a valid Solana address" in response.json()["response"]

    def test_missing_body_field_is_400(self, client):
        response = client.post("/api/query", json={"address": WALLET_ADDRESS})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_INPUT"


class TestOtherEndpoints:
    """Test suite for classification, tools and health."""

    def test_classify_signature(self, client):
        response = client.post("/api/classify", json={"address": SIGNATURE})

        assert response.status_code == 200
        data = response.json()
        assert data["type"] == "transaction"
        assert data["confidence"] == 1.0

    def test_classify_garbage_is_unknown(self, client):
        data = client.post("/api/classify", json={"address": "not an address"}).json()

        assert data["type"] == "unknown"
        assert data["confidence"] == 0.0

    def test_tools(self, client):
        data = client.get("/api/tools").json()

        names = {tool["name"] for tool in data["tools"]}
        assert "getSolBalance" in names
        assert len(names) == 13

    def test_health(self, client):
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["model_enabled"] is False
        assert data["tools"] == 13

    def test_unknown_route(self, client):
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "HTTP_ERROR"
