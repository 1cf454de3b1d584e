from __future__ import annotations

from typing import Any, Dict, List

from pydantic import ConfigDict

from core.domain.entities.base_entity import MongoEntity
from core.domain.entities.position_entity import StrategyDefinition
from core.domain.entities.strategy_entity import Strategy


class StrategyDefinitionDocument(MongoEntity):
    """
    Mongo document (collection: carbon_strategy_definitions).
    One record per discovered strategy of the latest discovery cycle.

    Strategy integers are stored as strings (uint128 does not fit int64).
    """

    network: str
    contract: str
    strategy_id: str
    owner: str
    strategy: Dict[str, Any]

    model_config = ConfigDict(extra="allow")

    @classmethod
    def from_definition(cls, definition: StrategyDefinition) -> "StrategyDefinitionDocument":
        return cls(
            network=definition.network,
            contract=definition.address.lower(),
            strategy_id=str(definition.strategy_id),
            owner=definition.owner.lower(),
            strategy=definition.strategy.to_dict(),
        )

    def to_definition(self) -> StrategyDefinition:
        return StrategyDefinition(
            address=self.contract,
            network=self.network,
            strategy=Strategy.from_dict(self.strategy),
        )


def definitions_to_documents(definitions: List[StrategyDefinition]) -> List[StrategyDefinitionDocument]:
    return [StrategyDefinitionDocument.from_definition(d) for d in definitions]
