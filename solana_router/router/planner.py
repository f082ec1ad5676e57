"""Keyword tool planner used when no model collaborator is available."""

import re
from typing import List, Optional, Sequence, Tuple

from solana_router.models.entities import EntityType
from solana_router.models.tools import ToolCall
from solana_router.utils.validation import looks_like_signature

MAX_PLANNED_CALLS = 3

# (pattern, tool) pairs checked in order; the first entity-compatible tools win
KEYWORD_RULES: Sequence[Tuple[re.Pattern, str]] = (
    (re.compile(r"\b(honeypot|rug|rugpull|scam|safe|safety|risk|risky|security)\b"), "checkForHoneypotPatterns"),
    (re.compile(r"\bholders?\b"), "getTokenHolders"),
    (re.compile(r"\b(price|market|liquidity|volume|supply|mint info)\b"), "getTokenInfo"),
    (re.compile(r"\b(balance|how much sol)\b"), "getSolBalance"),
    (re.compile(r"\b(tokens|holdings|portfolio|owns?)\b"), "getTokenHoldings"),
    (re.compile(r"\b(last|latest|most recent)\b"), "getLastTransaction"),
    (re.compile(r"\b(transactions|history|activity|transfers)\b"), "getTransactionHistory"),
)

MINT_TOOLS = frozenset({"getTokenHolders", "getTokenInfo", "checkForHoneypotPatterns"})

DEFAULT_TOOLS = {
    EntityType.TOKEN: "getTokenInfo",
    EntityType.NFT: "getTokenInfo",
    EntityType.WALLET: "getSolBalance",
    EntityType.TRANSACTION: "analyzeTransactionSignature",
}


def _arguments_for(tool_name: str, subject: str) -> dict:
    if tool_name == "analyzeTransactionSignature":
        return {"signature": subject}
    if tool_name in ("getTokenHolders", "getTokenInfo"):
        return {"mintAddress": subject}
    return {"address": subject}


def plan_tool_calls(
    text: str,
    subject: Optional[str],
    entity_type: Optional[EntityType] = None
) -> List[ToolCall]:
    """
    Map a question to tool calls without a model.

    Args:
        text: Question text
        subject: Active address or signature, if any
        entity_type: Classified type of the subject, if known

    Returns:
        Up to three tool calls; empty when there is no subject
    """
    if not subject:
        return []

    if entity_type == EntityType.TRANSACTION or looks_like_signature(subject):
        return [ToolCall("analyzeTransactionSignature", {"signature": subject}, call_id="plan-0")]

    lowered = text.lower()
    names: List[str] = []
    for pattern, tool_name in KEYWORD_RULES:
        if not pattern.search(lowered) or tool_name in names:
            continue
        # Mint-only tools are skipped for subjects known to be something else
        if tool_name in MINT_TOOLS and entity_type not in (None, EntityType.TOKEN, EntityType.NFT, EntityType.UNKNOWN):
            continue
        names.append(tool_name)

    if not names:
        names.append(DEFAULT_TOOLS.get(entity_type, "getAccountInfo"))

    return [
        ToolCall(name, _arguments_for(name, subject), call_id=f"plan-{index}")
        for index, name in enumerate(names[:MAX_PLANNED_CALLS])
    ]
