from __future__ import annotations


class StrategyDataIntegrityError(RuntimeError):
    """
    Raised when contract data does not have the shape the position pipeline expects.

    Never coerce such data into empty results: doing so would report real
    holdings as absent.
    """


class TokenPriceNotFoundError(LookupError):
    """
    Raised by the pricing client when the market data service has no USD price for a token.
    """

    def __init__(self, token_address: str, network: str):
        super().__init__(f"No USD price for token {token_address} on {network}")
        self.token_address = token_address
        self.network = network


class StrategyNotFoundError(LookupError):
    """
    Raised when CarbonController reverts a `strategy(id)` read, i.e. the strategy was deleted.
    """

    def __init__(self, strategy_id: int):
        super().__init__(f"Strategy {strategy_id} does not exist")
        self.strategy_id = strategy_id
