# core/domain/entities/strategy_entity.py
from __future__ import annotations

from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field

from core.services.normalize import same_address


class Order(BaseModel):
    """
    One side of a Carbon strategy.

    Attributes:
        y: Liquidity currently available in the order (token units, raw).
        z: Order capacity (highest liquidity the order has held).
        A: Encoded price-range width coefficient.
        B: Encoded lowest-price coefficient.
    """

    y: int = Field(..., ge=0)
    z: int
    A: int
    B: int

    model_config = ConfigDict(frozen=True)


class Strategy(BaseModel):
    """
    Point-in-time snapshot of a CarbonController strategy.

    tokens[i] is the token held by orders[i]: orders[0] sells tokens[0] for
    tokens[1], orders[1] is the complementary order.
    """

    id: int
    owner: str
    tokens: Tuple[str, str]
    orders: Tuple[Order, Order]

    model_config = ConfigDict(frozen=True)

    def is_active(self) -> bool:
        """
        A strategy is active while at least one order still carries a price curve.
        Withdrawn strategies have both orders zeroed out.
        """
        buy, sell = self.orders
        return bool(buy.A or buy.B or sell.A or sell.B)

    def owned_by(self, address: str) -> bool:
        return same_address(self.owner, address)

    def order_balances(self) -> Tuple[int, int]:
        buy, sell = self.orders
        return (int(buy.y), int(sell.y))

    def to_dict(self) -> Dict[str, Any]:
        # uint128 values do not fit in JSON numbers everywhere; keep them as strings
        return {
            "id": str(self.id),
            "owner": self.owner,
            "tokens": list(self.tokens),
            "orders": [
                {"y": str(o.y), "z": str(o.z), "A": str(o.A), "B": str(o.B)}
                for o in self.orders
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Strategy":
        return cls(
            id=int(data["id"]),
            owner=str(data["owner"]),
            tokens=tuple(data["tokens"]),
            orders=tuple(
                Order(y=int(o["y"]), z=int(o["z"]), A=int(o["A"]), B=int(o["B"]))
                for o in data["orders"]
            ),
        )
