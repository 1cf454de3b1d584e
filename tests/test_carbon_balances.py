from unittest.mock import AsyncMock

import pytest

from core.domain.entities.position_entity import StrategyDefinition, UnderlyingTokenDefinition
from core.domain.enums.position_enums import BalanceMode, MetaType
from core.services.definition_cache import DefinitionCache
from core.services.normalize import ZERO_ADDRESS
from core.use_cases.carbon_strategy_positions_usecase import CarbonStrategyPositionSource
from core.use_cases.position_source import ContractPositionSource
from tests.fakes import (
    CONTROLLER,
    ETH_ALIAS,
    OWNER_A,
    OWNER_B,
    T0,
    T1,
    T2,
    FakeController,
    make_strategy,
    make_token_service,
)


def _source(controller, mode=BalanceMode.CACHED):
    return CarbonStrategyPositionSource(
        controller=controller,
        network="ethereum",
        token_service=make_token_service(),
        balance_mode=mode,
    )


def _strategy_reads(controller):
    return [c for c in controller.calls if c[0] == "strategy"]


@pytest.mark.asyncio
async def test_display_balances_for_owner():
    controller = FakeController({(T0, T1): [make_strategy(5, owner=OWNER_A)]})

    balances = await _source(controller).get_display_balances(OWNER_A)

    assert len(balances) == 1
    b = balances[0]
    assert b.app_id == "carbon-defi"
    assert b.group_id == "strategy"
    assert b.address == CONTROLLER
    assert b.display_props.label == "TKA / TKB"
    assert b.data_props["id"] == "5"

    leg0, leg1 = b.tokens
    assert (leg0.symbol, leg0.balance_raw, leg0.balance, leg0.balance_usd) == ("TKA", "100", 1.0, 3.0)
    assert (leg1.symbol, leg1.balance_raw, leg1.balance, leg1.balance_usd) == ("TKB", "0", 0.0, 0.0)
    assert leg0.meta_type == MetaType.SUPPLIED
    assert b.balance_usd == pytest.approx(3.0)


@pytest.mark.asyncio
async def test_other_address_gets_nothing():
    controller = FakeController({(T0, T1): [make_strategy(5, owner=OWNER_A)]})

    assert await _source(controller).get_display_balances(OWNER_B) == []


@pytest.mark.asyncio
async def test_owner_match_is_case_insensitive():
    controller = FakeController({(T0, T1): [make_strategy(5, owner=OWNER_A), make_strategy(6, owner=OWNER_B)]})
    source = _source(controller)

    lower = await source.get_raw_balances(OWNER_A.lower())
    upper = await source.get_raw_balances("0x" + OWNER_A[2:].upper())

    assert len(lower) == 1
    assert lower == upper


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", [BalanceMode.CACHED, BalanceMode.LIVE])
async def test_zero_address_never_reads_the_contract(mode):
    controller = FakeController({(T0, T1): [make_strategy(5, owner=ZERO_ADDRESS)]})
    source = _source(controller, mode)

    assert await source.get_display_balances(ZERO_ADDRESS) == []
    assert await source.get_raw_balances(ZERO_ADDRESS) == []
    assert controller.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", [BalanceMode.CACHED, BalanceMode.LIVE])
async def test_display_and_raw_come_from_the_same_read(mode):
    controller = FakeController(
        {
            (T0, T1): [
                make_strategy(5, orders=((100, 100, 0, 0), (2_500_000, 3_000_000, 1, 0))),
                make_strategy(6, orders=((12_345, 20_000, 5, 6), (0, 0, 0, 0))),
            ]
        }
    )

    result = await _source(controller, mode).get_balances(OWNER_A)

    assert len(result.display) == len(result.raw) == 2
    for display, raw in zip(result.display, result.raw):
        assert display.key == raw.key
        assert [t.balance_raw for t in display.tokens] == [t.balance for t in raw.tokens]
        assert display.balance_usd == pytest.approx(sum(t.balance_usd for t in display.tokens))


@pytest.mark.asyncio
async def test_raw_balances_are_keyed_integer_strings():
    controller = FakeController({(T0, T1): [make_strategy(5, orders=((2**100, 2**100, 1, 0), (7, 7, 0, 0)))]})

    raw = await _source(controller).get_raw_balances(OWNER_A)

    assert len(raw) == 1
    assert [t.balance for t in raw[0].tokens] == [str(2**100), "7"]
    assert raw[0].key.startswith("0x")
    assert raw[0].tokens[0].key != raw[0].tokens[1].key


@pytest.mark.asyncio
async def test_cached_mode_uses_discovered_reserves():
    controller = FakeController({(T0, T1): [make_strategy(5)]})
    controller.live[5] = make_strategy(5, orders=((250, 250, 0, 0), (40, 40, 1, 0)))

    raw = await _source(controller).get_raw_balances(OWNER_A)

    assert [t.balance for t in raw[0].tokens] == ["100", "0"]
    assert _strategy_reads(controller) == []


@pytest.mark.asyncio
async def test_cached_mode_keeps_transferred_strategy_until_next_discovery():
    controller = FakeController({(T0, T1): [make_strategy(5, owner=OWNER_A)]})
    controller.live[5] = make_strategy(5, owner=OWNER_B)

    assert len(await _source(controller).get_raw_balances(OWNER_A)) == 1


@pytest.mark.asyncio
async def test_live_mode_reads_current_reserves():
    controller = FakeController({(T0, T1): [make_strategy(5)]})
    controller.live[5] = make_strategy(5, orders=((250, 250, 0, 0), (40, 40, 1, 0)))

    result = await _source(controller, BalanceMode.LIVE).get_balances(OWNER_A)

    assert [t.balance for t in result.raw[0].tokens] == ["250", "40"]
    assert [t.balance_raw for t in result.display[0].tokens] == ["250", "40"]
    assert result.display[0].balance_usd == pytest.approx(7.5 + 0.00004)
    assert _strategy_reads(controller) == [("strategy", 5)]


@pytest.mark.asyncio
async def test_live_mode_drops_strategy_transferred_away():
    controller = FakeController({(T0, T1): [make_strategy(5, owner=OWNER_A)]})
    controller.live[5] = make_strategy(5, owner=OWNER_B)

    assert await _source(controller, BalanceMode.LIVE).get_display_balances(OWNER_A) == []


@pytest.mark.asyncio
async def test_live_mode_drops_strategy_emptied_since_discovery():
    controller = FakeController({(T0, T1): [make_strategy(5)]})
    controller.live[5] = make_strategy(5, orders=((0, 0, 0, 0), (0, 0, 0, 0)))

    assert await _source(controller, BalanceMode.LIVE).get_raw_balances(OWNER_A) == []


@pytest.mark.asyncio
async def test_live_mode_reads_positions_concurrently():
    controller = FakeController({(T0, T1): [make_strategy(5), make_strategy(6), make_strategy(7, owner=OWNER_B)]})

    await _source(controller, BalanceMode.LIVE).get_raw_balances(OWNER_A)

    assert sorted(c[1] for c in _strategy_reads(controller)) == [5, 6]
    assert controller.max_in_flight == 2


@pytest.mark.asyncio
async def test_live_read_failure_fails_the_call():
    controller = FakeController({(T0, T1): [make_strategy(5), make_strategy(6)]})
    controller.strategy = AsyncMock(side_effect=ConnectionError("rpc timeout"))

    with pytest.raises(ConnectionError):
        await _source(controller, BalanceMode.LIVE).get_display_balances(OWNER_A)


@pytest.mark.asyncio
async def test_unknown_balance_mode_is_not_implemented():
    controller = FakeController({(T0, T1): [make_strategy(5)]})
    source = _source(controller, mode="snapshot")

    with pytest.raises(NotImplementedError):
        await source.get_display_balances(OWNER_A)


@pytest.mark.asyncio
async def test_unpriced_tokens_skip_the_position():
    controller = FakeController(
        {
            (T0, T1): [make_strategy(5)],
            (T0, T2): [make_strategy(6, tokens=(T0, T2))],
        }
    )

    balances = await _source(controller).get_display_balances(OWNER_A)

    assert [b.data_props["id"] for b in balances] == ["5"]


@pytest.mark.asyncio
async def test_native_eth_leg_is_priced_as_eth():
    controller = FakeController({(ETH_ALIAS, T1): [make_strategy(5, tokens=(ETH_ALIAS, T1), orders=((10**18, 10**18, 1, 0), (0, 0, 0, 0)))]})

    balances = await _source(controller).get_display_balances(OWNER_A)

    assert balances[0].display_props.label == "ETH / TKB"
    assert balances[0].tokens[0].address == ZERO_ADDRESS
    assert balances[0].balance_usd == pytest.approx(2000.0)


@pytest.mark.asyncio
async def test_cached_definitions_are_reused_across_calls():
    controller = FakeController({(T0, T1): [make_strategy(5), make_strategy(6, owner=OWNER_B)]})
    source = _source(controller)
    source.definition_cache = DefinitionCache(source.list_definitions)

    await source.get_display_balances(OWNER_A)
    await source.get_raw_balances(OWNER_B)

    assert controller.calls.count(("pairs",)) == 1


@pytest.mark.asyncio
async def test_base_source_without_balance_reader_is_not_implemented():
    class NoBalanceReader(ContractPositionSource):
        app_id = "test"
        group_id = "test"

        async def list_definitions(self):
            return [StrategyDefinition(address=CONTROLLER, network="ethereum", strategy=make_strategy(5))]

        def get_token_definitions(self, definition):
            return [
                UnderlyingTokenDefinition(address=t.lower(), meta_type=MetaType.SUPPLIED, network="ethereum")
                for t in definition.tokens
            ]

        def get_label(self, position):
            return "test"

    source = NoBalanceReader(network="ethereum", token_service=make_token_service())

    with pytest.raises(NotImplementedError):
        await source.get_balances(OWNER_A)


@pytest.mark.asyncio
async def test_live_mode_drops_strategy_deleted_since_discovery():
    controller = FakeController({(T0, T1): [make_strategy(5), make_strategy(6)]})
    source = _source(controller, BalanceMode.LIVE)
    source.definition_cache = DefinitionCache(source.list_definitions)
    await source.definition_cache.refresh()

    controller.books[(T0, T1)] = [make_strategy(5)]

    balances = await source.get_display_balances(OWNER_A)

    assert [b.data_props["id"] for b in balances] == ["5"]
    assert sorted(c[1] for c in _strategy_reads(controller)) == [5, 6]
