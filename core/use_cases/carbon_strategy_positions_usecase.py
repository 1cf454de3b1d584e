from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional, Sequence

from adapters.chain.carbon_controller import CarbonControllerAdapter
from adapters.chain.erc20 import Erc20MetaReader
from adapters.external.pricing.market_data_http_client import MarketDataHttpClient
from config import get_settings

from core.domain.entities.position_entity import (
    ContractPosition,
    StrategyDataProps,
    StrategyDefinition,
    UnderlyingTokenDefinition,
)
from core.domain.enums.position_enums import BalanceMode, MetaType
from core.domain.errors import StrategyNotFoundError
from core.services.normalize import normalize_token_address
from core.services.token_service import TokenService
from core.services.web3_cache import get_web3
from core.use_cases.position_source import ContractPositionSource

logger = logging.getLogger(__name__)


class CarbonStrategyPositionSource(ContractPositionSource):
    """
    Carbon DeFi strategies as contract positions.

    Definitions are discovered from CarbonController (every active strategy of
    every pair) and are owner-agnostic. Ownership is applied when balances are
    resolved:

    - BalanceMode.CACHED: owner and reserves come from the latest discovery
      snapshot. A strategy transferred after that snapshot keeps showing up for
      its former owner until the next refresh.
    - BalanceMode.LIVE: candidates are picked from the snapshot, then every one
      is re-read with `strategy(id)`; reserves are taken from that read and the
      candidate is dropped if its current owner differs or it was
      emptied or deleted.

    Args:
        controller: object exposing async `pairs()`, `strategies_by_pair(t0, t1, start, end)`,
            `strategy(id)` and an `address` attribute (see CarbonControllerAdapter).
    """

    app_id = "carbon-defi"
    group_id = "strategy"
    group_label = "Carbon Defi"

    def __init__(
        self,
        *,
        controller: Any,
        network: str,
        token_service: TokenService,
        balance_mode: BalanceMode = BalanceMode.CACHED,
        definition_cache: Optional[Any] = None,
    ):
        super().__init__(network=network, token_service=token_service, definition_cache=definition_cache)
        self.controller = controller
        self.balance_mode = balance_mode

    @classmethod
    def from_settings(cls) -> "CarbonStrategyPositionSource":
        st = get_settings()
        w3 = get_web3(st.RPC_URL_DEFAULT, timeout_sec=st.RPC_TIMEOUT_SEC)
        token_service = TokenService(Erc20MetaReader(w3), MarketDataHttpClient.from_settings())
        return cls(
            controller=CarbonControllerAdapter(w3, st.CARBON_CONTROLLER_ADDRESS),
            network=st.NETWORK,
            token_service=token_service,
            balance_mode=BalanceMode(st.BALANCE_MODE),
        )

    # ------------------------------------------------------------------ #
    # Discovery
    # ------------------------------------------------------------------ #

    async def list_definitions(self) -> List[StrategyDefinition]:
        """
        Enumerate every active strategy of every pair.

        All per-pair reads run concurrently; if any of them fails the whole
        discovery fails and nothing is returned.
        """
        pairs = await self.controller.pairs()
        batches = await asyncio.gather(
            *(self.controller.strategies_by_pair(token0, token1, 0, 0) for token0, token1 in pairs)
        )
        strategies = [s for batch in batches for s in batch]
        active = [s for s in strategies if s.is_active()]

        logger.info(
            "Carbon discovery: %d pairs, %d strategies, %d active",
            len(pairs),
            len(strategies),
            len(active),
        )

        address = self.controller.address
        return [StrategyDefinition(address=address, network=self.network, strategy=s) for s in active]

    def get_token_definitions(self, definition: StrategyDefinition) -> List[UnderlyingTokenDefinition]:
        return [
            UnderlyingTokenDefinition(
                address=normalize_token_address(address),
                meta_type=MetaType.SUPPLIED,
                network=definition.network,
            )
            for address in definition.tokens
        ]

    def get_label(self, position: ContractPosition) -> str:
        tokens = position.tokens
        return f"{tokens[0].symbol} / {tokens[1].symbol}"

    # ------------------------------------------------------------------ #
    # Balances
    # ------------------------------------------------------------------ #

    async def _refresh_position(self, position: ContractPosition) -> Optional[ContractPosition]:
        try:
            strategy = await self.controller.strategy(position.strategy.id)
        except StrategyNotFoundError:
            # deleted since discovery: no current owner
            return None
        return position.model_copy(update={"data_props": StrategyDataProps(strategy=strategy)})

    async def resolve_current_positions(
        self, address: str, positions: Sequence[ContractPosition]
    ) -> List[ContractPosition]:
        if self.balance_mode == BalanceMode.CACHED:
            return list(positions)
        if self.balance_mode != BalanceMode.LIVE:
            raise NotImplementedError(f"Unsupported balance mode: {self.balance_mode}")

        refreshed = await asyncio.gather(*(self._refresh_position(p) for p in positions))
        owned = self.filter_positions_for_address(address, [p for p in refreshed if p is not None])
        current = [p for p in owned if p.strategy.is_active()]

        dropped = len(positions) - len(current)
        if dropped:
            logger.info("Carbon live balances for %s: %d stale candidates dropped", address, dropped)
        return current

    def get_token_balances_per_position(self, position: ContractPosition) -> List[int]:
        # Empty orders are kept: a strategy can hold a zero budget on one side
        return list(position.strategy.order_balances())
