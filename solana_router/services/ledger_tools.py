"""
Read-only ledger operations behind the tool catalogue.

Every method validates its address arguments before any network call and
goes through the failover-backed RPC client. Market enrichment is best
effort and never fails a call.
"""

import datetime
import logging
from typing import Any, Dict, List, Optional, Tuple

from solana_router.clients.market_client import MarketDataClient
from solana_router.clients.rpc_client import SolanaRpcClient
from solana_router.constants import KNOWN_PROGRAMS, LAMPORTS_PER_SOL, TOKEN_2022_PROGRAM_ID, TOKEN_PROGRAM_ID
from solana_router.services.base_service import BaseService
from solana_router.services.entity_classifier import EntityClassifier
from solana_router.services.transaction_parser import block_time_to_iso, summarize_transaction
from solana_router.utils.errors import InvalidInputError
from solana_router.utils.validation import require_address, require_signature

SIGNATURE_BATCH_SIZE = 1000
MAX_SIGNATURE_PAGES = 10
RECENT_TRANSACTION_COUNT = 10
MAX_LARGEST_ACCOUNTS = 20

DATA_UNAVAILABLE = {"status": "data unavailable"}


def parse_date_range(start_date: str, end_date: str) -> Tuple[datetime.datetime, datetime.datetime]:
    """Parse an inclusive date range.

    A bare end date covers the whole day, up to 23:59:59.999 UTC.

    Raises:
        InvalidInputError: If either date is malformed or the range is reversed
    """
    def _parse(value: str, end_of_day: bool) -> datetime.datetime:
        try:
            parsed = datetime.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except (AttributeError, ValueError):
            raise InvalidInputError(f"Invalid date: {value!r}; expected YYYY-MM-DD", value=str(value))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=datetime.timezone.utc)
        if end_of_day and len(value.strip()) == 10:
            parsed = parsed.replace(hour=23, minute=59, second=59, microsecond=999000)
        return parsed

    start = _parse(start_date, end_of_day=False)
    end = _parse(end_date, end_of_day=True)
    if end < start:
        raise InvalidInputError(f"End date {end_date} is before start date {start_date}")
    return start, end


def _signature_entry(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "signature": item.get("signature"),
        "slot": item.get("slot"),
        "timestamp": block_time_to_iso(item.get("blockTime")),
        "status": "failed" if item.get("err") else "success",
        "memo": item.get("memo"),
    }


class LedgerTools(BaseService):
    """Balance, holdings, history, transaction and token lookups."""

    def __init__(
        self,
        rpc_client: SolanaRpcClient,
        classifier: EntityClassifier,
        market_client: Optional[MarketDataClient] = None,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(logger=logger)
        self.rpc_client = rpc_client
        self.classifier = classifier
        self.market_client = market_client

    async def get_sol_balance(self, address: str) -> Dict[str, Any]:
        """Get the SOL balance of an account."""
        address = require_address(address)
        lamports = await self.rpc_client.get_balance(address)
        sol = lamports / LAMPORTS_PER_SOL
        return {
            "address": address,
            "lamports": lamports,
            "sol": sol,
            "formatted": f"{sol:,.9f}".rstrip("0").rstrip(".") + " SOL",
        }

    async def get_token_holdings(self, address: str) -> Dict[str, Any]:
        """Get the non-empty SPL Token and Token-2022 balances held by a wallet."""
        address = require_address(address)

        tokens = []
        for program_id in (TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID):
            accounts = await self.rpc_client.get_token_accounts_by_owner(address, program_id=program_id)
            for item in accounts:
                info = (((item.get("account") or {}).get("data") or {}).get("parsed") or {}).get("info") or {}
                amount = info.get("tokenAmount") or {}
                ui_amount = amount.get("uiAmount") or 0
                if ui_amount <= 0:
                    continue
                tokens.append({
                    "mint": info.get("mint"),
                    "amount": ui_amount,
                    "decimals": amount.get("decimals"),
                    "token_account": item.get("pubkey"),
                    "token_program": program_id,
                })
        tokens.sort(key=lambda token: token["amount"], reverse=True)

        return {"address": address, "token_count": len(tokens), "tokens": tokens}

    async def _scan_signatures(
        self,
        address: str,
        limit: int,
        stop_before: Optional[datetime.datetime] = None
    ) -> Tuple[List[Dict[str, Any]], bool]:
        """Page through signatures newest-first.

        Returns:
            Signatures gathered and whether the scan hit the page cap
        """
        collected: List[Dict[str, Any]] = []
        before = None
        for _ in range(MAX_SIGNATURE_PAGES):
            batch_size = min(SIGNATURE_BATCH_SIZE, limit - len(collected))
            if batch_size <= 0:
                return collected, False
            batch = await self.rpc_client.get_signatures_for_address(address, limit=batch_size, before=before)
            if not batch:
                return collected, False
            collected.extend(batch)
            before = batch[-1].get("signature")
            oldest = batch[-1].get("blockTime")
            if stop_before is not None and oldest is not None and oldest < stop_before.timestamp():
                return collected, False
            if len(batch) < batch_size:
                return collected, False
        return collected, True

    async def get_transaction_history(self, address: str, limit: int = 1000) -> Dict[str, Any]:
        """Summarize the transaction history of an address."""
        address = require_address(address)
        if limit < 1:
            raise InvalidInputError("limit must be positive", value=str(limit))

        signatures, truncated = await self._scan_signatures(address, limit)
        failed = sum(1 for item in signatures if item.get("err"))
        times = [item["blockTime"] for item in signatures if item.get("blockTime")]

        return {
            "address": address,
            "total": len(signatures),
            "successful": len(signatures) - failed,
            "failed": failed,
            "first_seen": block_time_to_iso(min(times)) if times else None,
            "last_seen": block_time_to_iso(max(times)) if times else None,
            "truncated": truncated or len(signatures) >= limit,
            "recent": [_signature_entry(item) for item in signatures[:RECENT_TRANSACTION_COUNT]],
        }

    async def get_last_transaction(self, address: str) -> Dict[str, Any]:
        """Get the newest transaction touching an address."""
        address = require_address(address)
        signatures = await self.rpc_client.get_signatures_for_address(address, limit=1)
        if not signatures:
            return {"address": address, "transaction": None, "message": "No transactions found"}

        signature = signatures[0]["signature"]
        transaction = await self.rpc_client.get_transaction(signature)
        if transaction is None:
            return {"address": address, "transaction": _signature_entry(signatures[0])}
        return {"address": address, "transaction": summarize_transaction(transaction, subject=address)}

    async def get_account_info(self, address: str) -> Dict[str, Any]:
        """Get an account record together with its entity classification."""
        address = require_address(address)
        account = await self.rpc_client.get_account_info(address)
        classification = await self.classifier.classify(address)

        result: Dict[str, Any] = {
            "address": address,
            "exists": account is not None,
            "classification": classification.to_dict(),
        }
        if account is not None:
            owner = account.get("owner")
            result.update({
                "lamports": account.get("lamports", 0),
                "sol": account.get("lamports", 0) / LAMPORTS_PER_SOL,
                "owner": owner,
                "owner_name": KNOWN_PROGRAMS.get(owner),
                "executable": account.get("executable", False),
                "space": account.get("space"),
                "rent_epoch": account.get("rentEpoch"),
            })
        return result

    async def _signatures_in_range(
        self,
        address: str,
        start_date: str,
        end_date: str
    ) -> Tuple[List[Dict[str, Any]], bool, datetime.datetime, datetime.datetime]:
        start, end = parse_date_range(start_date, end_date)
        limit = SIGNATURE_BATCH_SIZE * MAX_SIGNATURE_PAGES
        signatures, truncated = await self._scan_signatures(address, limit, stop_before=start)
        in_range = [
            item for item in signatures
            if item.get("blockTime") is not None
            and start.timestamp() <= item["blockTime"] <= end.timestamp()
        ]
        return in_range, truncated, start, end

    async def count_transactions_by_date_range(
        self,
        address: str,
        start_date: str,
        end_date: str
    ) -> Dict[str, Any]:
        """Count transactions of an address between two dates, inclusive."""
        address = require_address(address)
        in_range, truncated, start, end = await self._signatures_in_range(address, start_date, end_date)
        failed = sum(1 for item in in_range if item.get("err"))
        return {
            "address": address,
            "start": start.isoformat(),
            "end": end.isoformat(),
            "count": len(in_range),
            "successful": len(in_range) - failed,
            "failed": failed,
            "truncated": truncated,
        }

    async def get_detailed_transactions(
        self,
        address: str,
        start_date: str,
        end_date: str,
        page: int = 1,
        limit: int = 5
    ) -> Dict[str, Any]:
        """Fetch one page of parsed transactions of an address in a date range."""
        address = require_address(address)
        if page < 1 or limit < 1:
            raise InvalidInputError("page and limit must be positive")

        in_range, truncated, start, end = await self._signatures_in_range(address, start_date, end_date)
        offset = (page - 1) * limit
        page_items = in_range[offset:offset + limit]

        transactions = []
        for item in page_items:
            transaction = await self.rpc_client.get_transaction(item["signature"])
            if transaction is None:
                transactions.append(_signature_entry(item))
            else:
                transactions.append(summarize_transaction(transaction, subject=address))

        total = len(in_range)
        return {
            "address": address,
            "start": start.isoformat(),
            "end": end.isoformat(),
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": (total + limit - 1) // limit,
            "truncated": truncated,
            "transactions": transactions,
        }

    async def analyze_transaction_signature(self, signature: str) -> Dict[str, Any]:
        """Analyze one transaction by signature."""
        signature = require_signature(signature)
        transaction = await self.rpc_client.get_transaction(signature)
        if transaction is None:
            return {"signature": signature, "found": False}
        summary = summarize_transaction(transaction)
        summary["found"] = True
        summary["log_messages"] = ((transaction.get("meta") or {}).get("logMessages") or [])[-20:]
        return summary

    async def get_token_holders(self, mint_address: str, limit: int = 50) -> Dict[str, Any]:
        """List the largest holders of a token and their concentration."""
        mint_address = require_address(mint_address, "mint address")
        supply = await self.rpc_client.get_token_supply(mint_address)
        largest = await self.rpc_client.get_token_largest_accounts(mint_address)

        total_supply = supply.get("uiAmount") or 0
        holders = []
        for rank, account in enumerate(largest[:min(limit, MAX_LARGEST_ACCOUNTS)], start=1):
            amount = account.get("uiAmount") or 0
            holders.append({
                "rank": rank,
                "token_account": account.get("address"),
                "amount": amount,
                "percentage": (amount / total_supply * 100) if total_supply else 0.0,
            })

        top_10 = sum(holder["percentage"] for holder in holders[:10])
        result = {
            "mint": mint_address,
            "total_supply": total_supply,
            "decimals": supply.get("decimals"),
            "holders": holders,
            "top_10_percentage": round(top_10, 4),
            "top_holders_percentage": round(sum(h["percentage"] for h in holders), 4),
        }
        if limit > MAX_LARGEST_ACCOUNTS:
            result["note"] = f"RPC nodes report at most {MAX_LARGEST_ACCOUNTS} largest accounts"
        return result

    async def get_token_info(self, mint_address: str) -> Dict[str, Any]:
        """Get mint facts plus market data when available."""
        mint_address = require_address(mint_address, "mint address")
        account = await self.rpc_client.get_account_info(mint_address, encoding="jsonParsed")
        parsed = ((account or {}).get("data") or {})
        parsed = parsed.get("parsed") if isinstance(parsed, dict) else None
        if not parsed or parsed.get("type") != "mint":
            raise InvalidInputError(f"{mint_address} is not a token mint", value=mint_address)

        info = parsed.get("info") or {}
        decimals = info.get("decimals", 0)
        raw_supply = int(info.get("supply", "0"))

        market = None
        if self.market_client is not None:
            market = await self.execute_with_fallback(
                self.market_client.get_token_market_data(mint_address),
                fallback_value=None,
                error_message=f"Market data lookup failed for {mint_address}"
            )

        return {
            "mint": mint_address,
            "token_program": (account or {}).get("owner"),
            "decimals": decimals,
            "supply": raw_supply / (10 ** decimals) if decimals else raw_supply,
            "raw_supply": raw_supply,
            "mint_authority": info.get("mintAuthority"),
            "freeze_authority": info.get("freezeAuthority"),
            "is_initialized": info.get("isInitialized", True),
            "market": market or dict(DATA_UNAVAILABLE),
        }

    async def classify_address(self, address: str) -> Dict[str, Any]:
        """Expose the entity classification as a tool."""
        result = await self.classifier.classify(address)
        return result.to_dict()
