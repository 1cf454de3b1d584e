"""
Generic contract-position source.

A protocol plugs in by implementing discovery (`list_definitions`), token
mapping (`get_token_definitions`), labelling and the per-position balance
read. This base class owns the shared pipeline:

    definitions -> owned definitions -> positions -> current positions
                -> balances per position -> (display, raw)

Display and raw balances are always derived from the same balance read.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

from core.domain.entities.position_entity import (
    ContractPosition,
    ContractPositionBalance,
    DisplayProps,
    PositionBalances,
    RawContractPositionBalance,
    RawTokenBalance,
    StrategyDataProps,
    StrategyDefinition,
    UnderlyingTokenDefinition,
)
from core.domain.enums.position_enums import MetaType
from core.domain.errors import TokenPriceNotFoundError
from core.services.drill_balance import drill_balance
from core.services.normalize import is_zero_address
from core.services.position_key import position_key, token_key
from core.services.token_service import TokenService

logger = logging.getLogger(__name__)


class ContractPositionSource(ABC):
    app_id: str = ""
    group_id: str = ""
    group_label: str = ""

    def __init__(
        self,
        *,
        network: str,
        token_service: TokenService,
        definition_cache: Optional[Any] = None,
    ):
        self.network = network
        self.token_service = token_service
        # object with `async get() -> List[StrategyDefinition]`; discovery runs per call when unset
        self.definition_cache = definition_cache

    # ------------------------------------------------------------------ #
    # Protocol hooks
    # ------------------------------------------------------------------ #

    @abstractmethod
    async def list_definitions(self) -> List[StrategyDefinition]:
        raise NotImplementedError

    @abstractmethod
    def get_token_definitions(self, definition: StrategyDefinition) -> List[UnderlyingTokenDefinition]:
        raise NotImplementedError

    @abstractmethod
    def get_label(self, position: ContractPosition) -> str:
        raise NotImplementedError

    def get_token_balances_per_position(self, position: ContractPosition) -> List[int]:
        """
        Raw balance of every token leg of `position`, in leg order.
        """
        raise NotImplementedError(f"{type(self).__name__} does not read balances per position")

    async def resolve_current_positions(
        self, address: str, positions: Sequence[ContractPosition]
    ) -> List[ContractPosition]:
        """
        Bring owned positions up to date before balances are read. The default keeps the cached snapshot.
        """
        return list(positions)

    # ------------------------------------------------------------------ #
    # Pipeline
    # ------------------------------------------------------------------ #

    def filter_definitions_for_address(
        self, address: str, definitions: Sequence[StrategyDefinition]
    ) -> List[StrategyDefinition]:
        return [d for d in definitions if d.strategy.owned_by(address)]

    def filter_positions_for_address(
        self, address: str, positions: Sequence[ContractPosition]
    ) -> List[ContractPosition]:
        return [p for p in positions if p.strategy.owned_by(address)]

    async def get_definitions(self) -> List[StrategyDefinition]:
        if self.definition_cache is not None:
            return await self.definition_cache.get()
        return await self.list_definitions()

    async def _build_position(self, definition: StrategyDefinition) -> Optional[ContractPosition]:
        token_definitions = self.get_token_definitions(definition)
        try:
            tokens = await self.token_service.resolve_tokens(token_definitions)
        except TokenPriceNotFoundError as exc:
            logger.warning("Skipping %s #%s: %s", self.app_id, definition.strategy_id, exc)
            return None

        position = ContractPosition(
            app_id=self.app_id,
            group_id=self.group_id,
            network=definition.network,
            address=definition.address,
            tokens=tokens,
            data_props=StrategyDataProps(strategy=definition.strategy),
        )
        position.display_props = DisplayProps(label=self.get_label(position))
        return position

    async def get_positions(self, definitions: Sequence[StrategyDefinition]) -> List[ContractPosition]:
        built = await asyncio.gather(*(self._build_position(d) for d in definitions))
        return [p for p in built if p is not None]

    def to_display(self, position: ContractPosition, balances: Sequence[int]) -> ContractPositionBalance:
        tokens = [
            drill_balance(leg, str(balances[idx]), is_debt=leg.meta_type == MetaType.BORROWED)
            for idx, leg in enumerate(position.tokens)
        ]
        return ContractPositionBalance(
            key=position_key(position),
            type=position.type,
            app_id=position.app_id,
            group_id=position.group_id,
            network=position.network,
            address=position.address,
            data_props=position.data_props.strategy.to_dict(),
            display_props=position.display_props,
            tokens=tokens,
            balance_usd=sum(t.balance_usd for t in tokens),
        )

    def to_raw(self, position: ContractPosition, balances: Sequence[int]) -> RawContractPositionBalance:
        return RawContractPositionBalance(
            key=position_key(position),
            tokens=[
                RawTokenBalance(key=token_key(leg), balance=str(int(balances[idx])))
                for idx, leg in enumerate(position.tokens)
            ],
        )

    async def get_balances(self, address: str) -> PositionBalances:
        if is_zero_address(address):
            return PositionBalances()

        definitions = await self.get_definitions()
        owned = self.filter_definitions_for_address(address, definitions)
        positions = await self.get_positions(owned)
        positions = await self.resolve_current_positions(address, positions)

        result = PositionBalances()
        for position in positions:
            balances = self.get_token_balances_per_position(position)
            result.display.append(self.to_display(position, balances))
            result.raw.append(self.to_raw(position, balances))
        return result

    async def get_display_balances(self, address: str) -> List[ContractPositionBalance]:
        return (await self.get_balances(address)).display

    async def get_raw_balances(self, address: str) -> List[RawContractPositionBalance]:
        return (await self.get_balances(address)).raw
