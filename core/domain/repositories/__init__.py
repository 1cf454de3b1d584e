from .strategy_definition_repository_interface import StrategyDefinitionRepository

__all__ = [
    "StrategyDefinitionRepository",
]
