from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from config import get_settings
from core.domain.errors import TokenPriceNotFoundError


@dataclass
class MarketDataHttpClient:
    base_url: str
    timeout_sec: float = 15.0
    transport: Optional[httpx.AsyncBaseTransport] = None

    @classmethod
    def from_settings(cls) -> "MarketDataHttpClient":
        st = get_settings()
        return cls(base_url=(st.API_MARKET_DATA_URL or "").rstrip("/"))

    async def get_token_price_usd(self, *, network: str, token_address: str) -> float:
        """
        Calls api-market-data:
          GET /api/pricing/tokens/{token_address}/usd?chain=...

        Expected response: {"price_usd": <number>, ...}.

        Raises:
            TokenPriceNotFoundError: the service does not price this token.
            RuntimeError: any other non-2xx answer.
        """
        url = f"{self.base_url}/api/pricing/tokens/{token_address}/usd"
        params = {"chain": (network or "").strip().lower()}

        async with httpx.AsyncClient(timeout=self.timeout_sec, transport=self.transport) as cli:
            res = await cli.get(url, params=params)
            data: Dict[str, Any] = res.json() if res.content else {}

        if res.status_code == 404:
            raise TokenPriceNotFoundError(token_address, network)
        if res.status_code >= 400:
            raise RuntimeError(data.get("detail") or data.get("message") or f"market_data_error_{res.status_code}")

        price = data.get("price_usd")
        if price is None:
            raise TokenPriceNotFoundError(token_address, network)
        return float(price)
