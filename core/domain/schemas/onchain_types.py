from __future__ import annotations

from pydantic import BaseModel


class Erc20Meta(BaseModel):
    address: str
    symbol: str
    decimals: int
