from __future__ import annotations

from enum import StrEnum


class MetaType(StrEnum):
    """
    Role of a token leg inside a contract position.

    Carbon strategies only hold owner-supplied liquidity, so every leg is SUPPLIED.
    """

    SUPPLIED = "supplied"
    BORROWED = "borrowed"
    CLAIMABLE = "claimable"


class BalanceMode(StrEnum):
    """
    Where balance resolution reads order reserves from.

    CACHED: reuse the strategy snapshot stored on the cached definition.
    LIVE: re-read each owned strategy from the contract at call time.
    """

    CACHED = "cached"
    LIVE = "live"
