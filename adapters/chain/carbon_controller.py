# adapters/chain/carbon_controller.py
from __future__ import annotations

from typing import Any, List, Sequence, Tuple

from web3 import AsyncWeb3, Web3
from web3.contract import AsyncContract
from web3.exceptions import ContractLogicError

from core.domain.entities.strategy_entity import Order, Strategy
from core.domain.errors import StrategyDataIntegrityError, StrategyNotFoundError

_ORDER_COMPONENTS = [
    {"internalType": "uint128", "name": "y", "type": "uint128"},
    {"internalType": "uint128", "name": "z", "type": "uint128"},
    {"internalType": "uint64", "name": "A", "type": "uint64"},
    {"internalType": "uint64", "name": "B", "type": "uint64"},
]

_STRATEGY_COMPONENTS = [
    {"internalType": "uint256", "name": "id", "type": "uint256"},
    {"internalType": "address", "name": "owner", "type": "address"},
    {"internalType": "Token[2]", "name": "tokens", "type": "address[2]"},
    {"internalType": "struct Order[2]", "name": "orders", "type": "tuple[2]", "components": _ORDER_COMPONENTS},
]

ABI_CARBON_CONTROLLER = [
    {
        "name": "pairs",
        "inputs": [],
        "outputs": [{"internalType": "Token[2][]", "name": "", "type": "address[2][]"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "name": "strategiesByPair",
        "inputs": [
            {"internalType": "Token", "name": "token0", "type": "address"},
            {"internalType": "Token", "name": "token1", "type": "address"},
            {"internalType": "uint256", "name": "startIndex", "type": "uint256"},
            {"internalType": "uint256", "name": "endIndex", "type": "uint256"},
        ],
        "outputs": [
            {"internalType": "struct Strategy[]", "name": "", "type": "tuple[]", "components": _STRATEGY_COMPONENTS}
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "name": "strategy",
        "inputs": [{"internalType": "uint256", "name": "id", "type": "uint256"}],
        "outputs": [
            {"internalType": "struct Strategy", "name": "", "type": "tuple", "components": _STRATEGY_COMPONENTS}
        ],
        "stateMutability": "view",
        "type": "function",
    },
]


def decode_pair(raw: Any) -> Tuple[str, str]:
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise StrategyDataIntegrityError(f"pairs(): expected two token addresses per pair, got {raw!r}")
    return (str(raw[0]), str(raw[1]))


def decode_strategy(raw: Any) -> Strategy:
    """
    Decode the ABI tuple (id, owner, tokens[2], orders[2]) returned by the controller.
    """
    if not isinstance(raw, (list, tuple)) or len(raw) != 4:
        raise StrategyDataIntegrityError(f"strategy: expected (id, owner, tokens, orders), got {raw!r}")

    sid, owner, tokens, orders = raw
    if len(tokens) != 2:
        raise StrategyDataIntegrityError(f"strategy {sid}: expected 2 tokens, got {len(tokens)}")
    if len(orders) != 2:
        raise StrategyDataIntegrityError(f"strategy {sid}: expected 2 orders, got {len(orders)}")

    decoded_orders = []
    for o in orders:
        if len(o) != 4:
            raise StrategyDataIntegrityError(f"strategy {sid}: malformed order {o!r}")
        y, z, a, b = o
        decoded_orders.append(Order(y=int(y), z=int(z), A=int(a), B=int(b)))

    return Strategy(
        id=int(sid),
        owner=str(owner),
        tokens=(str(tokens[0]), str(tokens[1])),
        orders=(decoded_orders[0], decoded_orders[1]),
    )


class CarbonControllerAdapter:
    """
    Async read-only wrapper for the on-chain CarbonController.

    - pairs(): every token pair that has a strategy book
    - strategiesByPair(t0, t1, start, end): strategies of a pair (0/0 = all)
    - strategy(id): one strategy by id
    """

    def __init__(self, w3: AsyncWeb3, address: str):
        if not address:
            raise RuntimeError("CarbonControllerAdapter: address not configured")
        self.w3: AsyncWeb3 = w3
        self.address = Web3.to_checksum_address(address)
        self.contract: AsyncContract = w3.eth.contract(
            address=self.address,
            abi=ABI_CARBON_CONTROLLER,
        )

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    async def pairs(self) -> List[Tuple[str, str]]:
        raw = await self.contract.functions.pairs().call()
        return [decode_pair(p) for p in raw]

    async def strategies_by_pair(
        self, token0: str, token1: str, start_index: int = 0, end_index: int = 0
    ) -> List[Strategy]:
        raw: Sequence[Any] = await self.contract.functions.strategiesByPair(
            Web3.to_checksum_address(token0),
            Web3.to_checksum_address(token1),
            int(start_index),
            int(end_index),
        ).call()
        return [decode_strategy(s) for s in raw]

    async def strategy(self, strategy_id: int) -> Strategy:
        # deleted strategies revert; transport errors are not ContractLogicError and propagate
        try:
            raw = await self.contract.functions.strategy(int(strategy_id)).call()
        except ContractLogicError as exc:
            raise StrategyNotFoundError(int(strategy_id)) from exc
        s = decode_strategy(raw)
        if s.id != int(strategy_id):
            raise StrategyDataIntegrityError(f"strategy({strategy_id}) returned strategy {s.id}")
        return s
