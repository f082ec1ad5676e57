"""Common test fixtures for the Solana router tests.

This module provides fixtures and record builders that can be reused
across different test modules. No fixture touches the network.
"""

import base64
import struct
from typing import Optional
from unittest.mock import AsyncMock

import base58
import pytest

from solana_router.clients.llm_client import ModelClient
from solana_router.clients.market_client import MarketDataClient
from solana_router.clients.rpc_client import SolanaRpcClient
from solana_router.constants import SYSTEM_PROGRAM_ID, TOKEN_PROGRAM_ID, USDC_MINT
from solana_router.router.intent import IntentClassifier
from solana_router.router.pipeline import QueryRouter
from solana_router.router.synthesizer import ResponseSynthesizer
from solana_router.services.entity_classifier import EntityClassifier
from solana_router.services.knowledge_service import KnowledgeService
from solana_router.services.ledger_tools import LedgerTools
from solana_router.services.security_tools import SecurityTools
from solana_router.session import SessionStore
from solana_router.tools.catalog import build_registry
from solana_router.tools.dispatcher import ToolDispatcher

# Real mainnet addresses; all are valid 32-byte keys
WALLET_ADDRESS = "vines1vzrYbzLMRdu58ou5XTby4qAqVRLmqo36NKPTg"
OTHER_WALLET = "83astBRguLMdt2h5U1Tpdq5tjFoJ6noeGwaY3mDLVcri"
TOKEN_MINT = USDC_MINT
BONK_MINT = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
SIGNATURE = (
    "5VERv8NMvzbJMEkV8xnrLkEaWRtSz9CosKDYjCJjBRnbJLgp8uirBgmQpjKhoR4tjF3ZpRzrFmBV6UjKdiSZkQUW"
)
RPC_ENDPOINT = "https://rpc.test.invalid"


def encode_account(raw: bytes, owner: str, lamports: int = 2_039_280, executable: bool = False) -> dict:
    """An account record as returned by ``getAccountInfo`` in base64 encoding."""
    return {
        "data": [base64.b64encode(raw).decode("ascii"), "base64"],
        "owner": owner,
        "lamports": lamports,
        "executable": executable,
        "rentEpoch": 361,
        "space": len(raw),
    }


def _coption(key: Optional[str]) -> bytes:
    if key is None:
        return struct.pack("<I", 0) + bytes(32)
    return struct.pack("<I", 1) + base58.b58decode(key)


def mint_account(
    supply: int,
    decimals: int,
    mint_authority: Optional[str] = None,
    freeze_authority: Optional[str] = None,
    owner: str = TOKEN_PROGRAM_ID
) -> dict:
    """A base64 SPL mint account (82 bytes)."""
    raw = _coption(mint_authority) + struct.pack("<QBB", supply, decimals, 1) + _coption(freeze_authority)
    assert len(raw) == 82
    return encode_account(raw, owner)


def token_account(mint: str, holder: str, amount: int, owner: str = TOKEN_PROGRAM_ID) -> dict:
    """A base64 SPL token account (165 bytes)."""
    raw = base58.b58decode(mint) + base58.b58decode(holder) + struct.pack("<Q", amount)
    raw += bytes(165 - len(raw))
    return encode_account(raw, owner)


def parsed_mint_account(
    supply: str = "5000000",
    decimals: int = 6,
    mint_authority: Optional[str] = WALLET_ADDRESS,
    freeze_authority: Optional[str] = None
) -> dict:
    """A mint account as returned by ``getAccountInfo`` in jsonParsed encoding."""
    return {
        "owner": TOKEN_PROGRAM_ID,
        "lamports": 1_461_600,
        "executable": False,
        "data": {
            "program": "spl-token",
            "parsed": {
                "type": "mint",
                "info": {
                    "decimals": decimals,
                    "supply": supply,
                    "mintAuthority": mint_authority,
                    "freezeAuthority": freeze_authority,
                    "isInitialized": True,
                },
            },
        },
    }


def system_account(lamports: int = 1_500_000_000) -> dict:
    return encode_account(b"", SYSTEM_PROGRAM_ID, lamports=lamports)


def parsed_transaction(
    signature: str = SIGNATURE,
    sender: str = WALLET_ADDRESS,
    receiver: str = OTHER_WALLET,
    lamports: int = 250_000_000,
    fee: int = 5000,
    err: Optional[dict] = None,
    with_transfer_instruction: bool = True
) -> dict:
    """A jsonParsed ``getTransaction`` record of one SOL transfer."""
    instructions = []
    if with_transfer_instruction:
        instructions.append({
            "program": "system",
            "programId": SYSTEM_PROGRAM_ID,
            "parsed": {
                "type": "transfer",
                "info": {"source": sender, "destination": receiver, "lamports": lamports},
            },
        })
    return {
        "slot": 250_000_000,
        "blockTime": 1_700_000_000,
        "meta": {
            "err": err,
            "fee": fee,
            "preBalances": [2_000_000_000, 100_000_000, 1],
            "postBalances": [2_000_000_000 - lamports - fee, 100_000_000 + lamports, 1],
            "logMessages": ["Program 11111111111111111111111111111111 invoke [1]"],
        },
        "transaction": {
            "signatures": [signature],
            "message": {
                "accountKeys": [
                    {"pubkey": sender, "signer": True, "writable": True},
                    {"pubkey": receiver, "signer": False, "writable": True},
                    {"pubkey": SYSTEM_PROGRAM_ID, "signer": False, "writable": False},
                ],
                "instructions": instructions,
            },
        },
    }


@pytest.fixture
def mock_rpc_client():
    """Create a mock Solana RPC client."""
    client = AsyncMock(spec=SolanaRpcClient)
    client.current_endpoint = RPC_ENDPOINT

    # Common mock responses
    client.get_account_info.return_value = None
    client.get_balance.return_value = 1_500_000_000
    client.get_signatures_for_address.return_value = []
    client.get_transaction.return_value = None
    client.get_token_accounts_by_owner.return_value = []
    return client


@pytest.fixture
def mock_market_client():
    """Create a mock market data client."""
    client = AsyncMock(spec=MarketDataClient)
    client.get_token_market_data.return_value = {
        "mint": TOKEN_MINT,
        "name": "USD Coin",
        "symbol": "USDC",
        "price_usd": 1.0,
        "volume_24h": 25_000_000.0,
        "liquidity_usd": 12_000_000.0,
        "market_cap": 30_000_000_000.0,
        "price_change_24h": 0.01,
        "dex": "orca",
        "pair_address": "pair",
        "pair_count": 12,
        "source": "dexscreener",
    }
    return client


@pytest.fixture
def mock_model_client():
    """Create a mock model client."""
    return AsyncMock(spec=ModelClient)


@pytest.fixture
def entity_classifier(mock_rpc_client):
    return EntityClassifier(mock_rpc_client)


@pytest.fixture
def ledger_tools(mock_rpc_client, entity_classifier, mock_market_client):
    return LedgerTools(mock_rpc_client, entity_classifier, mock_market_client)


@pytest.fixture
def security_tools(ledger_tools):
    return SecurityTools(ledger_tools)


@pytest.fixture
def tool_registry(ledger_tools, security_tools):
    return build_registry(ledger_tools, security_tools)


@pytest.fixture
def tool_dispatcher(tool_registry, entity_classifier):
    return ToolDispatcher(tool_registry, entity_classifier)


def make_query_router(tool_registry, tool_dispatcher, entity_classifier, model_client=None):
    """A router wired from the mocked collaborators."""
    return QueryRouter(
        intent_classifier=IntentClassifier(model_client, entity_classifier),
        dispatcher=tool_dispatcher,
        registry=tool_registry,
        knowledge=KnowledgeService(model_client),
        synthesizer=ResponseSynthesizer(model_client),
        sessions=SessionStore(),
        entity_classifier=entity_classifier,
        model_client=model_client,
    )


@pytest.fixture
def query_router(tool_registry, tool_dispatcher, entity_classifier):
    """Create an offline query router: keyword planner and templates."""
    return make_query_router(tool_registry, tool_dispatcher, entity_classifier)
