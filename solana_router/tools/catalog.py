"""
The static tool catalogue.

Each tool pairs a pydantic argument struct with one ledger or security
operation. Schemas shown to the model are generated from the structs, so
the two cannot drift apart.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from solana_router.models.entities import EntityType
from solana_router.models.tools import ToolDescriptor
from solana_router.services.ledger_tools import LedgerTools
from solana_router.services.security_tools import SecurityTools
from solana_router.tools.registry import ToolRegistry, schema_from_model

TOKEN_TYPES = frozenset({EntityType.TOKEN, EntityType.NFT})
HOLDER_TYPES = frozenset({EntityType.WALLET, EntityType.PDA})


class ToolArgs(BaseModel):
    """Base argument struct: unknown arguments and mistyped values are rejected."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, strict=True)


class AddressArgs(ToolArgs):
    address: str = Field(..., description="Solana account address (base58)")


class MintArgs(ToolArgs):
    mint_address: str = Field(..., alias="mintAddress", description="Token mint address (base58)")


class SignatureArgs(ToolArgs):
    signature: str = Field(..., description="Transaction signature (base58, 87-88 characters)")


class HistoryArgs(ToolArgs):
    address: str = Field(..., description="Solana account address (base58)")
    limit: int = Field(1000, ge=1, le=10000, description="Maximum number of signatures to scan")


class DateRangeArgs(ToolArgs):
    address: str = Field(..., description="Solana account address (base58)")
    start_date: str = Field(..., alias="startDate", description="Start date, YYYY-MM-DD (inclusive)")
    end_date: str = Field(..., alias="endDate", description="End date, YYYY-MM-DD (inclusive)")


class DetailedTransactionsArgs(DateRangeArgs):
    page: int = Field(1, ge=1, description="Page number, starting at 1")
    limit: int = Field(5, ge=1, le=25, description="Transactions per page")


class TokenHoldersArgs(ToolArgs):
    mint_address: str = Field(..., alias="mintAddress", description="Token mint address (base58)")
    limit: int = Field(50, ge=1, le=100, description="Maximum number of holders to return")


def _tool(name: str, description: str, args_model, handler,
          subject_param: Optional[str] = None, subject_kind: str = "address",
          accepts=frozenset(), fallbacks=()) -> ToolDescriptor:
    return ToolDescriptor(
        name=name,
        description=description,
        parameters=schema_from_model(args_model),
        args_model=args_model,
        handler=handler,
        subject_param=subject_param,
        subject_kind=subject_kind,
        accepts=frozenset(accepts),
        fallbacks=tuple(fallbacks),
    )


def build_registry(ledger: LedgerTools, security: SecurityTools) -> ToolRegistry:
    """Register every catalogue tool against concrete services."""
    registry = ToolRegistry()

    registry.register(_tool(
        "getSolBalance",
        "Get the SOL balance of any Solana address.",
        AddressArgs, ledger.get_sol_balance,
        subject_param="address",
    ))
    registry.register(_tool(
        "getAccountInfo",
        "Get the raw account record (owner, lamports, executable flag, size) and the "
        "classified entity type of an address.",
        AddressArgs, ledger.get_account_info,
        subject_param="address",
    ))
    registry.register(_tool(
        "classifyAddress",
        "Classify an address or signature as a wallet, token, NFT, program, PDA or transaction.",
        AddressArgs, ledger.classify_address,
        subject_param="address",
    ))
    registry.register(_tool(
        "getTokenHoldings",
        "List the SPL tokens held by a wallet, with amounts.",
        AddressArgs, ledger.get_token_holdings,
        subject_param="address", accepts=HOLDER_TYPES, fallbacks=("getTokenInfo",),
    ))
    registry.register(_tool(
        "getTransactionHistory",
        "Summarize an address's transaction history: totals, success and failure counts, "
        "first and last activity and the most recent signatures.",
        HistoryArgs, ledger.get_transaction_history,
        subject_param="address",
    ))
    registry.register(_tool(
        "getLastTransaction",
        "Get the most recent transaction involving an address, parsed.",
        AddressArgs, ledger.get_last_transaction,
        subject_param="address",
    ))
    registry.register(_tool(
        "countTransactionsByDateRange",
        "Count an address's transactions between two dates (inclusive).",
        DateRangeArgs, ledger.count_transactions_by_date_range,
        subject_param="address",
    ))
    registry.register(_tool(
        "getDetailedTransactions",
        "Get parsed transactions (instructions, transfers, balance changes) of an address "
        "between two dates, one page at a time.",
        DetailedTransactionsArgs, ledger.get_detailed_transactions,
        subject_param="address",
    ))
    registry.register(_tool(
        "analyzeTransactionSignature",
        "Analyze one transaction by its signature: status, fee, instructions, transfers and logs.",
        SignatureArgs, ledger.analyze_transaction_signature,
        subject_param="signature", subject_kind="signature",
        accepts=frozenset({EntityType.TRANSACTION}),
    ))
    registry.register(_tool(
        "getTokenInfo",
        "Get a token mint's supply, decimals, mint and freeze authorities and market data "
        "(price, liquidity, volume) when available.",
        MintArgs, ledger.get_token_info,
        subject_param="mintAddress", accepts=TOKEN_TYPES, fallbacks=("getAccountInfo",),
    ))
    registry.register(_tool(
        "getTokenHolders",
        "List the largest holders of a token and the supply share of the top 10.",
        TokenHoldersArgs, ledger.get_token_holders,
        subject_param="mintAddress", accepts=TOKEN_TYPES, fallbacks=("getTokenHoldings",),
    ))
    registry.register(_tool(
        "checkForHoneypotPatterns",
        "Score a token for honeypot and rug-pull patterns: active authorities, low liquidity, "
        "holder concentration, round supply and extreme price moves.",
        AddressArgs, security.check_for_honeypot_patterns,
        subject_param="address", accepts=TOKEN_TYPES, fallbacks=("getAccountInfo",),
    ))
    registry.register(_tool(
        "quickSecurityCheck",
        "Quick red-flag check for a token: active authorities and very low liquidity.",
        AddressArgs, security.quick_security_check,
        subject_param="address", accepts=TOKEN_TYPES, fallbacks=("getAccountInfo",),
    ))

    registry.validate_fallbacks()
    return registry
