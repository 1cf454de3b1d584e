from __future__ import annotations

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Placeholder address used by Carbon (and most aggregators) for native ETH
ETH_ADDR_ALIAS = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"


def _norm(a: str | None) -> str:
    return (a or "").strip()


def _norm_lower(a: str | None) -> str:
    return _norm(a).lower()


def is_zero_address(addr: str | None) -> bool:
    return _norm_lower(addr) == ZERO_ADDRESS


def same_address(a: str | None, b: str | None) -> bool:
    return _norm_lower(a) == _norm_lower(b)


def normalize_token_address(addr: str | None) -> str:
    """
    Lower-case a token address and map the native ETH alias to the zero address.
    """
    addr = _norm_lower(addr)
    return ZERO_ADDRESS if addr == ETH_ADDR_ALIAS else addr
