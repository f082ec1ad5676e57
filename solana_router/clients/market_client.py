"""Best-effort market data enrichment from DexScreener.

Enrichment never fails a query: every error degrades to ``None``, which
callers render as "data unavailable".
"""

from typing import Any, Dict, List, Optional

import httpx
from cachetools import TTLCache

from solana_router.constants import DEXSCREENER_API_URL
from solana_router.logging_config import get_logger

# Get logger
logger = get_logger(__name__)


def _as_float(value: Any) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class MarketDataClient:
    """Client for token market data (price, liquidity, volume)."""

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = DEXSCREENER_API_URL,
        timeout: float = 5.0,
        cache_size: int = 500,
        cache_ttl: int = 60
    ):
        """
        Initialize the market client.

        Args:
            http_client: Shared HTTP client; one is created when omitted
            base_url: DexScreener API base URL
            timeout: Request timeout in seconds
            cache_size: Maximum number of cached tokens
            cache_ttl: Cache lifetime in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient()
        self._cache: TTLCache = TTLCache(maxsize=cache_size, ttl=cache_ttl)

    async def close(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()

    @staticmethod
    def _summarize_pairs(mint: str, pairs: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Reduce DexScreener pairs to the most liquid pair's figures."""
        best = max(pairs, key=lambda p: _as_float((p.get("liquidity") or {}).get("usd")) or 0.0)
        base = best.get("baseToken") or {}
        return {
            "mint": mint,
            "name": base.get("name"),
            "symbol": base.get("symbol"),
            "price_usd": _as_float(best.get("priceUsd")),
            "volume_24h": _as_float((best.get("volume") or {}).get("h24")),
            "liquidity_usd": _as_float((best.get("liquidity") or {}).get("usd")),
            "market_cap": _as_float(best.get("marketCap") or best.get("fdv")),
            "price_change_24h": _as_float((best.get("priceChange") or {}).get("h24")),
            "dex": best.get("dexId"),
            "pair_address": best.get("pairAddress"),
            "pair_count": len(pairs),
            "source": "dexscreener",
        }

    async def get_token_market_data(self, mint: str) -> Optional[Dict[str, Any]]:
        """Get market data for a token mint.

        Args:
            mint: Token mint address

        Returns:
            Market figures, or None when unavailable
        """
        if mint in self._cache:
            return self._cache[mint]

        url = f"{self.base_url}/tokens/{mint}"
        try:
            response = await self._http_client.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Market data unavailable for {mint}: {e}")
            return None

        pairs = [p for p in (data.get("pairs") or []) if isinstance(p, dict)]
        if not pairs:
            logger.info(f"No market pairs found for {mint}")
            return None

        summary = self._summarize_pairs(mint, pairs)
        self._cache[mint] = summary
        return summary
