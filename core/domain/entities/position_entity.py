from __future__ import annotations

from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from core.domain.entities.strategy_entity import Strategy
from core.domain.enums.position_enums import MetaType


class StrategyDefinition(BaseModel):
    """
    Discovered, owner-tagged description of one active strategy.

    The full strategy snapshot is kept so cached balance resolution can read
    order reserves without another contract call. A definition only lives for
    one discovery cycle and is replaced, never merged, by the next one.
    """

    address: str  # CarbonController contract
    network: str
    strategy: Strategy

    model_config = ConfigDict(frozen=True)

    @property
    def strategy_id(self) -> int:
        return self.strategy.id

    @property
    def owner(self) -> str:
        return self.strategy.owner

    @property
    def tokens(self) -> Tuple[str, str]:
        return self.strategy.tokens


class UnderlyingTokenDefinition(BaseModel):
    address: str
    meta_type: MetaType
    network: str

    model_config = ConfigDict(frozen=True, use_enum_values=True)


class TokenLeg(BaseModel):
    """
    Priced token metadata for one leg of a position.
    """

    address: str
    network: str
    symbol: str
    decimals: int
    price: float
    meta_type: MetaType = MetaType.SUPPLIED

    model_config = ConfigDict(use_enum_values=True)


class StrategyDataProps(BaseModel):
    strategy: Strategy


class DisplayProps(BaseModel):
    label: str = ""


class ContractPosition(BaseModel):
    type: str = "contract-position"
    app_id: str
    group_id: str
    network: str
    address: str
    tokens: List[TokenLeg]
    data_props: StrategyDataProps
    display_props: DisplayProps = Field(default_factory=DisplayProps)

    @property
    def strategy(self) -> Strategy:
        return self.data_props.strategy


class DisplayTokenBalance(TokenLeg):
    balance_raw: str
    balance: float
    balance_usd: float


class ContractPositionBalance(BaseModel):
    """
    UI-facing balance of one position: USD-valued legs and their sum.
    """

    key: str
    type: str = "contract-position"
    app_id: str
    group_id: str
    network: str
    address: str
    data_props: Dict[str, Any]
    display_props: DisplayProps
    tokens: List[DisplayTokenBalance]
    balance_usd: float


class RawTokenBalance(BaseModel):
    key: str
    balance: str


class RawContractPositionBalance(BaseModel):
    """
    Index-facing balance of one position: identity keys and integer strings only.
    """

    key: str
    tokens: List[RawTokenBalance]


class PositionBalances(BaseModel):
    """
    Display and raw balances built from the same order reads.
    """

    display: List[ContractPositionBalance] = Field(default_factory=list)
    raw: List[RawContractPositionBalance] = Field(default_factory=list)
