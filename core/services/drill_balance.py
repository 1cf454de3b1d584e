from __future__ import annotations

from decimal import Decimal, getcontext

from core.domain.entities.position_entity import DisplayTokenBalance, TokenLeg

getcontext().prec = 60


def drill_balance(token: TokenLeg, balance_raw: str, *, is_debt: bool = False) -> DisplayTokenBalance:
    """
    Turn a raw integer balance into a display balance for one token leg.

    Args:
        token: Priced token metadata (decimals, USD price).
        balance_raw: Integer amount in the token's smallest unit, as a string.
        is_debt: Debt legs are reported with a negative sign.

    Returns:
        The leg with `balance_raw`, human `balance` and `balance_usd` attached.
    """
    raw = int(balance_raw or "0")
    amount = Decimal(raw) / (Decimal(10) ** int(token.decimals))
    if is_debt:
        amount = -amount

    balance = float(amount)
    balance_usd = float(amount * Decimal(str(token.price)))

    return DisplayTokenBalance(
        **token.model_dump(),
        balance_raw=str(raw),
        balance=balance,
        balance_usd=balance_usd,
    )
