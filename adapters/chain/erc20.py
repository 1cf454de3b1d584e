from __future__ import annotations

import asyncio
from typing import Dict

from web3 import AsyncWeb3, Web3
from web3.contract import AsyncContract
from web3.exceptions import BadFunctionCallOutput

from core.domain.schemas.onchain_types import Erc20Meta
from core.services.normalize import ZERO_ADDRESS, _norm_lower

ABI_ERC20_META = [
    {"name": "symbol", "inputs": [], "outputs": [{"type": "string"}], "stateMutability": "view", "type": "function"},
    {"name": "decimals", "inputs": [], "outputs": [{"type": "uint8"}], "stateMutability": "view", "type": "function"},
]

# pre-standard tokens (e.g. MKR) return symbol as bytes32
ABI_ERC20_SYMBOL_BYTES32 = [
    {"name": "symbol", "inputs": [], "outputs": [{"type": "bytes32"}], "stateMutability": "view", "type": "function"},
]

NATIVE_ETH = Erc20Meta(address=ZERO_ADDRESS, symbol="ETH", decimals=18)


def decode_bytes32_symbol(raw: bytes) -> str:
    return bytes(raw).rstrip(b"\x00").decode("utf-8", errors="replace")


class Erc20MetaReader:
    """
    Reads symbol/decimals of ERC20 tokens; results are cached per address for the process lifetime.
    """

    def __init__(self, w3: AsyncWeb3):
        self.w3 = w3
        self._cache: Dict[str, Erc20Meta] = {}

    async def _symbol(self, contract: AsyncContract, address: str) -> str:
        try:
            return str(await contract.functions.symbol().call())
        except BadFunctionCallOutput:
            legacy = self.w3.eth.contract(address=address, abi=ABI_ERC20_SYMBOL_BYTES32)
            return decode_bytes32_symbol(await legacy.functions.symbol().call())

    async def meta(self, address: str) -> Erc20Meta:
        key = _norm_lower(address)
        if key == ZERO_ADDRESS:
            return NATIVE_ETH

        hit = self._cache.get(key)
        if hit is not None:
            return hit

        checksum = Web3.to_checksum_address(key)
        contract = self.w3.eth.contract(address=checksum, abi=ABI_ERC20_META)
        symbol, decimals = await asyncio.gather(
            self._symbol(contract, checksum),
            contract.functions.decimals().call(),
        )

        meta = Erc20Meta(address=key, symbol=symbol, decimals=int(decimals))
        self._cache[key] = meta
        return meta
