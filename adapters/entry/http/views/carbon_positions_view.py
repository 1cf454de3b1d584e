from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from web3 import Web3

from adapters.entry.http.dtos.carbon_positions_dtos import (
    DefinitionsResponse,
    DisplayBalancesResponse,
    RawBalancesResponse,
    StrategyDefinitionOut,
    TokenDefinitionsResponse,
)
from core.use_cases.carbon_strategy_positions_usecase import CarbonStrategyPositionSource


router = APIRouter(prefix="/carbon", tags=["carbon-positions"])


def get_position_source(request: Request) -> CarbonStrategyPositionSource:
    return request.app.state.carbon_positions


def _validate_address(address: str) -> str:
    address = (address or "").strip()
    if not Web3.is_address(address):
        raise ValueError("Invalid address (expected 0x...).")
    return address


@router.get("/definitions", response_model=DefinitionsResponse)
async def list_definitions(source: CarbonStrategyPositionSource = Depends(get_position_source)):
    try:
        definitions = await source.get_definitions()
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to list strategy definitions: {exc}") from exc

    cache = source.definition_cache
    return DefinitionsResponse(
        refreshed_at=cache.refreshed_at if cache is not None else None,
        data=[
            StrategyDefinitionOut(
                address=d.address,
                network=d.network,
                strategy_id=str(d.strategy_id),
                owner=d.owner,
                tokens=list(d.tokens),
            )
            for d in definitions
        ],
    )


@router.get("/definitions/{strategy_id}/tokens", response_model=TokenDefinitionsResponse)
async def list_underlying_tokens(
    strategy_id: int,
    source: CarbonStrategyPositionSource = Depends(get_position_source),
):
    try:
        definitions = await source.get_definitions()
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to list strategy definitions: {exc}") from exc

    definition = next((d for d in definitions if d.strategy_id == strategy_id), None)
    if definition is None:
        raise HTTPException(status_code=404, detail=f"Strategy {strategy_id} not found")
    return TokenDefinitionsResponse(data=source.get_token_definitions(definition))


@router.get("/balances/{address}", response_model=DisplayBalancesResponse)
async def get_display_balances(
    address: str,
    source: CarbonStrategyPositionSource = Depends(get_position_source),
):
    try:
        balances = await source.get_display_balances(_validate_address(address))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to get balances: {exc}") from exc

    return DisplayBalancesResponse(balance_usd=sum(b.balance_usd for b in balances), data=balances)


@router.get("/balances/{address}/raw", response_model=RawBalancesResponse)
async def get_raw_balances(
    address: str,
    source: CarbonStrategyPositionSource = Depends(get_position_source),
):
    try:
        balances = await source.get_raw_balances(_validate_address(address))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to get raw balances: {exc}") from exc

    return RawBalancesResponse(data=balances)
