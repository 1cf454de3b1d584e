from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from core.domain.entities.position_entity import (
    ContractPositionBalance,
    RawContractPositionBalance,
    UnderlyingTokenDefinition,
)


class StrategyDefinitionOut(BaseModel):
    address: str
    network: str
    strategy_id: str
    owner: str
    tokens: List[str]


class DefinitionsResponse(BaseModel):
    ok: bool = True
    message: str = "OK"
    refreshed_at: Optional[float] = Field(default=None, description="Unix time of the snapshot, if cached")
    data: List[StrategyDefinitionOut]


class TokenDefinitionsResponse(BaseModel):
    ok: bool = True
    message: str = "OK"
    data: List[UnderlyingTokenDefinition]


class DisplayBalancesResponse(BaseModel):
    ok: bool = True
    message: str = "OK"
    balance_usd: float
    data: List[ContractPositionBalance]


class RawBalancesResponse(BaseModel):
    ok: bool = True
    message: str = "OK"
    data: List[RawContractPositionBalance]
