from __future__ import annotations

import json
from typing import Any, Dict

from web3 import Web3

from core.domain.entities.position_entity import ContractPosition, TokenLeg
from core.services.normalize import _norm_lower


def _hash(payload: Dict[str, Any]) -> str:
    blob = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return Web3.to_hex(Web3.keccak(text=blob))


def position_key(position: ContractPosition) -> str:
    """
    Stable identity of a contract position: same strategy on the same contract => same key,
    whatever its balances, owner or prices are.
    """
    return _hash(
        {
            "type": position.type,
            "appId": position.app_id,
            "groupId": position.group_id,
            "network": position.network,
            "address": _norm_lower(position.address),
            "strategyId": str(position.strategy.id),
        }
    )


def token_key(token: TokenLeg) -> str:
    return _hash(
        {
            "type": "base-token",
            "network": token.network,
            "address": _norm_lower(token.address),
        }
    )
