# core/services/token_service.py

from __future__ import annotations

import asyncio
from time import time
from typing import Any, Dict, List, Sequence, Tuple

from core.domain.entities.position_entity import TokenLeg, UnderlyingTokenDefinition

_PRICE_TTL_SEC = 60


class TokenService:
    """
    Resolves underlying token definitions into priced token legs.

    Collaborators:
        meta_reader: object with `async meta(address) -> Erc20Meta`.
        price_client: object with `async get_token_price_usd(network=, token_address=) -> float`.

    Prices are cached for a short TTL so positions sharing a token do not
    each trigger a pricing request.
    """

    def __init__(self, meta_reader: Any, price_client: Any, *, price_ttl_sec: int = _PRICE_TTL_SEC):
        self.meta_reader = meta_reader
        self.price_client = price_client
        self.price_ttl_sec = price_ttl_sec
        self._prices: Dict[Tuple[str, str], Tuple[float, float]] = {}

    async def _price(self, network: str, address: str) -> float:
        key = (network, address)
        now = time()
        hit = self._prices.get(key)
        if hit and (now - hit[0]) < self.price_ttl_sec:
            return hit[1]

        price = await self.price_client.get_token_price_usd(network=network, token_address=address)
        self._prices[key] = (now, price)
        return price

    async def resolve_token(self, definition: UnderlyingTokenDefinition) -> TokenLeg:
        meta, price = await asyncio.gather(
            self.meta_reader.meta(definition.address),
            self._price(definition.network, definition.address),
        )
        return TokenLeg(
            address=definition.address,
            network=definition.network,
            symbol=meta.symbol,
            decimals=meta.decimals,
            price=price,
            meta_type=definition.meta_type,
        )

    async def resolve_tokens(self, definitions: Sequence[UnderlyingTokenDefinition]) -> List[TokenLeg]:
        return list(await asyncio.gather(*(self.resolve_token(d) for d in definitions)))
