"""
Response synthesis.

Turns tool results and documentation passages into the final answer and
tags it with where the information came from. With a model collaborator
the answer is generated; otherwise, or when the model fails, it is
assembled from per-tool templates.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from solana_router.clients.llm_client import ModelClient
from solana_router.router.prompts import GENERAL_RESPONSE, KNOWLEDGE_PROMPT, SYNTHESIS_PROMPT
from solana_router.services.base_service import BaseService
from solana_router.services.knowledge_service import KnowledgePassage
from solana_router.models.tools import ToolErr, ToolOk, ToolResult
from solana_router.utils.errors import UpstreamServiceError

MAX_TOOL_OUTPUT_CHARS = 4000
PASSAGE_EXCERPT_CHARS = 400


class Provenance:
    LIVE_DATA = "live_data"
    DOCUMENTATION = "documentation"
    HYBRID = "hybrid"
    NONE = "none"


def provenance(tool_results: Sequence[ToolResult], passages: Sequence[KnowledgePassage]) -> str:
    """Tag an answer by whether tools ran and whether documentation was used."""
    if tool_results and passages:
        return Provenance.HYBRID
    if tool_results:
        return Provenance.LIVE_DATA
    if passages:
        return Provenance.DOCUMENTATION
    return Provenance.NONE


@dataclass(frozen=True)
class SynthesisResult:
    text: str
    provenance: str


def _short(address: Optional[str]) -> str:
    if not address or len(address) < 12:
        return address or "unknown"
    return f"{address[:4]}...{address[-4:]}"


def _number(value: Any, digits: int = 4) -> str:
    if isinstance(value, (int, float)):
        return f"{value:,.{digits}f}".rstrip("0").rstrip(".")
    return str(value)


def _format_balance(data: Dict[str, Any]) -> str:
    return f"The SOL balance of {data.get('address')} is {data.get('formatted') or _number(data.get('sol'), 9) + ' SOL'}."


def _format_holdings(data: Dict[str, Any]) -> str:
    tokens = data.get("tokens") or []
    if not tokens:
        return f"{_short(data.get('address'))} holds no SPL tokens."
    lines = [f"{_short(data.get('address'))} holds {len(tokens)} token(s):"]
    for token in tokens[:10]:
        lines.append(f"- {_number(token.get('amount'))} of mint {token.get('mint')}")
    if len(tokens) > 10:
        lines.append(f"- ...and {len(tokens) - 10} more")
    return "\n".join(lines)


def _format_history(data: Dict[str, Any]) -> str:
    text = (
        f"{_short(data.get('address'))} has {data.get('total', 0)} transaction(s) "
        f"({data.get('successful', 0)} successful, {data.get('failed', 0)} failed)"
    )
    if data.get("truncated"):
        text += ", history truncated at the scan limit"
    if data.get("last_seen"):
        text += f"; most recent at {data['last_seen']}"
    return text + "."


def _format_last_transaction(data: Dict[str, Any]) -> str:
    transaction = data.get("transaction")
    if not transaction:
        return f"No transactions were found for {_short(data.get('address'))}."
    text = f"The latest transaction of {_short(data.get('address'))} is {transaction.get('signature')}"
    if transaction.get("timestamp"):
        text += f" at {transaction['timestamp']}"
    text += f" ({transaction.get('status', 'unknown')})"
    subject = transaction.get("subject")
    if subject:
        text += f"; the address {subject['direction']} {_number(abs(subject['net_change_sol']), 9)} SOL"
    return text + "."


def _format_account(data: Dict[str, Any]) -> str:
    classification = data.get("classification") or {}
    kind = classification.get("type", "unknown")
    if not data.get("exists"):
        return f"{data.get('address')} has no on-chain account (classified as {kind})."
    owner = data.get("owner_name") or data.get("owner")
    return (
        f"{data.get('address')} is a {kind} account holding {_number(data.get('sol'), 9)} SOL, "
        f"owned by {owner}{', executable' if data.get('executable') else ''}."
    )


def _format_classification(data: Dict[str, Any]) -> str:
    return (
        f"{data.get('address')} is classified as {data.get('type')} "
        f"(confidence {_number(data.get('confidence'), 2)})."
    )


def _format_count(data: Dict[str, Any]) -> str:
    return (
        f"{_short(data.get('address'))} made {data.get('count', 0)} transaction(s) between "
        f"{data.get('start')} and {data.get('end')}."
    )


def _format_detailed(data: Dict[str, Any]) -> str:
    lines = [
        f"Showing page {data.get('page')} of {data.get('total_pages')} "
        f"({data.get('total', 0)} transaction(s) in range):"
    ]
    for transaction in data.get("transactions") or []:
        labels = ", ".join(i.get("label", "") for i in transaction.get("instructions") or []) or "no instructions"
        lines.append(f"- {transaction.get('signature')} ({transaction.get('status')}): {labels}")
    return "\n".join(lines)


def _format_signature(data: Dict[str, Any]) -> str:
    if not data.get("found"):
        return f"Transaction {data.get('signature')} was not found."
    labels = ", ".join(i.get("label", "") for i in data.get("instructions") or []) or "no instructions"
    text = (
        f"Transaction {_short(data.get('signature'))} {'failed' if data.get('status') == 'failed' else 'succeeded'}"
        f" in slot {data.get('slot')} with a fee of {_number(data.get('fee_sol'), 9)} SOL. "
        f"Instructions: {labels}."
    )
    if data.get("error"):
        text += f" Error: {json.dumps(data['error'])}."
    return text


def _format_holders(data: Dict[str, Any]) -> str:
    return (
        f"The top 10 holders of {_short(data.get('mint'))} own {_number(data.get('top_10_percentage'), 2)}% "
        f"of a total supply of {_number(data.get('total_supply'))}."
    )


def _format_token_info(data: Dict[str, Any]) -> str:
    market = data.get("market") or {}
    text = f"Token {data.get('mint')} has a supply of {_number(data.get('supply'))} with {data.get('decimals')} decimals."
    if "price_usd" in market:
        text += (
            f" {market.get('symbol') or 'It'} trades at ${_number(market.get('price_usd'), 8)} "
            f"with ${_number(market.get('liquidity_usd'), 0)} liquidity."
        )
    else:
        text += " Market data unavailable."
    return text


def _format_honeypot(data: Dict[str, Any]) -> str:
    text = (
        f"Risk score for {_short(data.get('address'))}: {data.get('risk_score')}/10 "
        f"({data.get('risk_level')})."
    )
    for risk in data.get("risks") or []:
        text += f"\n- [{risk.get('severity')}] {risk.get('message')}"
    return text


def _format_quick_check(data: Dict[str, Any]) -> str:
    if data.get("passed"):
        return f"{_short(data.get('address'))} passed the quick security check."
    return f"{_short(data.get('address'))} raised flags: " + "; ".join(data.get("flags") or []) + "."


FORMATTERS: Dict[str, Callable[[Dict[str, Any]], str]] = {
    "getSolBalance": _format_balance,
    "getTokenHoldings": _format_holdings,
    "getTransactionHistory": _format_history,
    "getLastTransaction": _format_last_transaction,
    "getAccountInfo": _format_account,
    "classifyAddress": _format_classification,
    "countTransactionsByDateRange": _format_count,
    "getDetailedTransactions": _format_detailed,
    "analyzeTransactionSignature": _format_signature,
    "getTokenHolders": _format_holders,
    "getTokenInfo": _format_token_info,
    "checkForHoneypotPatterns": _format_honeypot,
    "quickSecurityCheck": _format_quick_check,
}


def format_tool_result(result: ToolOk) -> str:
    """Render one successful result as a sentence or short list."""
    formatter = FORMATTERS.get(result.tool_name)
    if formatter is not None and isinstance(result.payload, dict):
        try:
            return formatter(result.payload)
        except (KeyError, TypeError, ValueError, AttributeError):
            pass
    return f"{result.tool_name}: {json.dumps(result.payload, default=str)[:MAX_TOOL_OUTPUT_CHARS]}"


class ResponseSynthesizer(BaseService):
    """Builds the final answer text and its provenance tag."""

    def __init__(self, model_client: Optional[ModelClient] = None, logger: Optional[logging.Logger] = None):
        super().__init__(logger=logger)
        self.model_client = model_client

    def synthesis_input(
        self,
        query: str,
        tool_results: Sequence[ToolResult],
        passages: Sequence[KnowledgePassage]
    ) -> str:
        """The user message for the synthesis completion. Errors appear verbatim."""
        sections = [f"Question: {query}"]
        if tool_results:
            lines = []
            for result in tool_results:
                if isinstance(result, ToolErr):
                    lines.append(f"{result.tool_name}: {result.error_text}")
                else:
                    output = json.dumps(result.payload, default=str)
                    lines.append(f"{result.tool_name}: {output[:MAX_TOOL_OUTPUT_CHARS]}")
            sections.append("Tool outputs:\n" + "\n".join(lines))
        if passages:
            sections.append("Documentation:\n" + "\n\n".join(
                f"[{p.source_title}]({p.source_url})\n{p.content}" for p in passages
            ))
        return "\n\n".join(sections)

    def template_answer(
        self,
        tool_results: Sequence[ToolResult],
        passages: Sequence[KnowledgePassage]
    ) -> str:
        """Assemble an answer without a model."""
        parts: List[str] = []
        errors: List[str] = []
        for result in tool_results:
            if isinstance(result, ToolOk):
                parts.append(format_tool_result(result))
            else:
                errors.append(result.error_text)

        if errors:
            parts.append("Some data could not be retrieved:\n" + "\n".join(f"- {e}" for e in errors))

        for passage in passages:
            excerpt = passage.content.strip()
            if len(excerpt) > PASSAGE_EXCERPT_CHARS:
                excerpt = excerpt[:PASSAGE_EXCERPT_CHARS].rsplit(" ", 1)[0] + "..."
            parts.append(f"**{passage.source_title}**: {excerpt}\nSource: {passage.source_url}")

        return "\n\n".join(parts) if parts else GENERAL_RESPONSE

    async def synthesize(
        self,
        query: str,
        tool_results: Sequence[ToolResult] = (),
        passages: Sequence[KnowledgePassage] = (),
        history: Sequence[Dict[str, str]] = ()
    ) -> SynthesisResult:
        """
        Produce the final answer.

        Args:
            query: Original question
            tool_results: Results from every dispatched tool call
            passages: Retrieved documentation passages
            history: Prior chat messages

        Returns:
            Answer text and provenance tag
        """
        tag = provenance(tool_results, passages)
        if self.model_client is None or (not tool_results and not passages):
            return SynthesisResult(self.template_answer(tool_results, passages), tag)

        messages = [{"role": "system", "content": SYNTHESIS_PROMPT if tool_results else KNOWLEDGE_PROMPT}]
        messages.extend(history)
        messages.append({"role": "user", "content": self.synthesis_input(query, tool_results, passages)})
        try:
            reply = await self.model_client.complete(messages, tools=None)
        except UpstreamServiceError as e:
            self.logger.warning(f"Synthesis model unavailable, using templates: {e}")
            return SynthesisResult(self.template_answer(tool_results, passages), tag)

        if not reply.text:
            return SynthesisResult(self.template_answer(tool_results, passages), tag)
        return SynthesisResult(reply.text, tag)
