"""
Token security heuristics.

Risk rules and their severities:

- active mint authority, active freeze authority: CRITICAL
- liquidity below $10k, top-10 concentration above 80%, 24h price change above 500%: HIGH
- top-10 concentration above 60%, round-number supply: MEDIUM

Severity weights add up to a 0-10 score; six or more marks a likely honeypot.
"""

import logging
from typing import Any, Dict, List, Optional

from solana_router.services.base_service import BaseService
from solana_router.services.ledger_tools import LedgerTools
from solana_router.utils.validation import require_address

SEVERITY_WEIGHTS = {"CRITICAL": 4, "HIGH": 3, "MEDIUM": 2, "LOW": 1}
MAX_RISK_SCORE = 10
HONEYPOT_THRESHOLD = 6

LOW_LIQUIDITY_USD = 10_000
QUICK_CHECK_LIQUIDITY_USD = 5_000
HIGH_CONCENTRATION_PCT = 80
MEDIUM_CONCENTRATION_PCT = 60
EXTREME_PRICE_CHANGE_PCT = 500
ROUND_SUPPLY_UNIT = 1_000_000


def _risk(severity: str, category: str, message: str) -> Dict[str, str]:
    return {"severity": severity, "category": category, "message": message}


def is_round_supply(supply: float) -> bool:
    """Supplies like 1,000,000,000 are typical of hastily launched tokens."""
    return supply >= ROUND_SUPPLY_UNIT and float(supply).is_integer() and int(supply) % ROUND_SUPPLY_UNIT == 0


def score_risks(risks: List[Dict[str, str]]) -> int:
    return min(MAX_RISK_SCORE, sum(SEVERITY_WEIGHTS.get(r["severity"], 0) for r in risks))


def risk_level(score: int) -> str:
    if score >= 8:
        return "CRITICAL"
    if score >= HONEYPOT_THRESHOLD:
        return "HIGH"
    if score >= 3:
        return "MEDIUM"
    return "LOW"


class SecurityTools(BaseService):
    """Honeypot pattern detection and quick red-flag checks for tokens."""

    def __init__(self, ledger: LedgerTools, logger: Optional[logging.Logger] = None):
        super().__init__(logger=logger)
        self.ledger = ledger

    def evaluate(
        self,
        token_info: Dict[str, Any],
        holders: Optional[Dict[str, Any]]
    ) -> List[Dict[str, str]]:
        """Apply the risk rules to already fetched token facts."""
        risks = []
        if token_info.get("mint_authority"):
            risks.append(_risk("CRITICAL", "mint_authority",
                               "Mint authority is active; supply can be inflated at any time"))
        if token_info.get("freeze_authority"):
            risks.append(_risk("CRITICAL", "freeze_authority",
                               "Freeze authority is active; holder accounts can be frozen"))

        market = token_info.get("market") or {}
        liquidity = market.get("liquidity_usd")
        if liquidity is not None and liquidity < LOW_LIQUIDITY_USD:
            risks.append(_risk("HIGH", "liquidity", f"Low liquidity: ${liquidity:,.0f}"))

        if is_round_supply(token_info.get("supply") or 0):
            risks.append(_risk("MEDIUM", "supply", f"Round-number supply: {token_info['supply']:,.0f}"))

        if holders:
            concentration = holders.get("top_10_percentage") or 0
            if concentration > HIGH_CONCENTRATION_PCT:
                risks.append(_risk("HIGH", "concentration",
                                   f"Top 10 holders control {concentration:.1f}% of supply"))
            elif concentration > MEDIUM_CONCENTRATION_PCT:
                risks.append(_risk("MEDIUM", "concentration",
                                   f"Top 10 holders control {concentration:.1f}% of supply"))

        price_change = market.get("price_change_24h")
        if price_change is not None and abs(price_change) > EXTREME_PRICE_CHANGE_PCT:
            risks.append(_risk("HIGH", "price", f"Extreme 24h price change: {price_change:+.0f}%"))

        return risks

    async def check_for_honeypot_patterns(self, address: str) -> Dict[str, Any]:
        """Run the full honeypot rule set against a token mint."""
        address = require_address(address, "mint address")
        token_info = await self.ledger.get_token_info(address)
        holders = await self.execute_with_fallback(
            self.ledger.get_token_holders(address, limit=10),
            fallback_value=None,
            error_message=f"Holder lookup failed for {address}"
        )

        risks = self.evaluate(token_info, holders)
        score = score_risks(risks)
        return {
            "address": address,
            "risk_score": score,
            "risk_level": risk_level(score),
            "is_honeypot": score >= HONEYPOT_THRESHOLD,
            "risks": risks,
            "holder_data_available": holders is not None,
            "market_data_available": "status" not in (token_info.get("market") or {}),
        }

    async def quick_security_check(self, address: str) -> Dict[str, Any]:
        """Short list of red flags for a token mint."""
        address = require_address(address, "mint address")
        token_info = await self.ledger.get_token_info(address)
        market = token_info.get("market") or {}

        flags = []
        if token_info.get("mint_authority"):
            flags.append("Mint authority is active")
        if token_info.get("freeze_authority"):
            flags.append("Freeze authority is active")
        liquidity = market.get("liquidity_usd")
        if liquidity is None:
            flags.append("No liquidity data available")
        elif liquidity < QUICK_CHECK_LIQUIDITY_USD:
            flags.append(f"Very low liquidity: ${liquidity:,.0f}")

        return {"address": address, "flags": flags, "passed": not flags}
