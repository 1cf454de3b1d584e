from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from core.domain.entities.position_entity import StrategyDefinition


class StrategyDefinitionRepository(ABC):
    @abstractmethod
    def replace_all(self, *, network: str, contract: str, definitions: Sequence[StrategyDefinition]) -> int:
        raise NotImplementedError

    @abstractmethod
    def list_latest(self, *, network: str, contract: str) -> Sequence[StrategyDefinition]:
        raise NotImplementedError

    @abstractmethod
    def ensure_indexes(self) -> None:
        raise NotImplementedError
