from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from b3vault.core.errors import InsufficientQuantityError, MergeTargetNotFoundError, StateError
from b3vault.core.models import EarningType, TradeSide
from b3vault.flows.assets import (
    assets_overview,
    convert_subscription,
    mark_subscription,
    merge_fractional,
    set_classification,
    sold_assets,
)
from b3vault.flows.events import apply_grouping_event, apply_split_event
from b3vault.flows.trade import (
    add_earning,
    add_trade,
    annual_earnings_report,
    earnings_summary,
    import_earnings,
    import_trades,
    list_trades,
    monthly_earnings_report,
)
from b3vault.flows.wallet import create_wallet, lock_wallet, open_wallet, wallet_status
from factories import PASSWORD, make_earning, make_trade


@pytest.fixture
def deps(store, cache):
    create_wallet(password=PASSWORD, vault_store=store, session_cache=cache)
    return {"vault_store": store, "session_cache": cache}


def test_create_opens_session(deps, cache):
    assert cache.exists() and cache.has_key()
    status = wallet_status(**deps)
    assert status.exists and status.session_open
    assert status.trades == 0


def test_add_trade_persists_through_session(deps, store, cache):
    stored = add_trade(trade=make_trade(), **deps)
    assert stored.id == 1

    reopened = store.open(PASSWORD)
    assert reopened.wallet.get_asset("ITSA4").quantity == 100

    cached, _ = cache.load()
    assert len(cached.transactions) == 1


def test_sell_preflight_blocks_oversell(deps, store):
    add_trade(trade=make_trade(quantity="10"), **deps)
    before = (store.path / "vault.enc").read_bytes()

    with pytest.raises(InsufficientQuantityError):
        add_trade(trade=make_trade(quantity="11", side=TradeSide.SELL, day=date(2024, 2, 1)), **deps)
    assert (store.path / "vault.enc").read_bytes() == before


def test_locked_wallet_requires_password(deps, store, cache):
    assert lock_wallet(session_cache=cache)
    assert not cache.exists()

    with pytest.raises(StateError):
        add_trade(trade=make_trade(), **deps)

    add_trade(trade=make_trade(), password=PASSWORD, **deps)
    assert not cache.exists()
    assert len(store.open(PASSWORD).wallet.transactions) == 1


def test_open_wallet_restores_session(deps, cache):
    lock_wallet(session_cache=cache)
    vault = open_wallet(password=PASSWORD, **deps)
    assert cache.has_key()
    assert bytes(vault.key) == bytes(cache.load()[1])


def test_import_and_list(deps):
    trades = [make_trade(day=date(2024, 1, d)) for d in (3, 1, 2)]
    result = import_trades(trades=trades + trades[:1], **deps)
    assert (result.added, result.duplicates) == (3, 1)

    listed = list_trades(**deps)
    assert [t.date.day for t in listed] == [1, 2, 3]
    assert list_trades(ticker="PETR4", **deps) == []


def test_earnings_flow(deps):
    add_trade(trade=make_trade(), **deps)
    add_earning(earning=make_earning(total="10"), **deps)
    result = import_earnings(
        earnings=[make_earning(total="10"), make_earning(total="2", type=EarningType.INCOME, day=date(2024, 7, 1))],
        **deps,
    )
    assert (result.added, result.duplicates) == (1, 1)

    summary = earnings_summary(year=2024, **deps)
    assert summary[EarningType.DIVIDEND] == Decimal("10.0000")
    assert summary[EarningType.INCOME] == Decimal("2.0000")


def test_grouping_event_flow(deps, store):
    add_trade(trade=make_trade("MGLU3", "1000", "2.80", day=date(2024, 1, 10)), **deps)
    result = apply_grouping_event(ticker="MGLU3", ratio="10:1", event_date=date(2024, 5, 1), **deps)
    assert result.quantity_after == 100
    assert store.open(PASSWORD).wallet.get_asset("MGLU3").average_cost == Decimal("28.0000")

    result = apply_split_event(ticker="MGLU3", ratio="1:2", event_date=date(2024, 5, 1), **deps)
    assert result.quantity_after == 200


def test_merge_and_classification_flows(deps, store):
    add_trade(trade=make_trade("KLBN3F", "5", "4.00"), **deps)
    set_classification(ticker="KLBN3F", subtype="ações", segment="papel", **deps)

    with pytest.raises(MergeTargetNotFoundError):
        merge_fractional(ticker="KLBN3F", **deps)

    result = merge_fractional(ticker="KLBN3F", create_target=True, **deps)
    assert result.target_created

    wallet = store.open(PASSWORD).wallet
    assert not wallet.has_asset("KLBN3F")
    assert wallet.get_asset("KLBN3").segment == "papel"


def test_subscription_flows(deps):
    add_trade(trade=make_trade("MXRF11", "100", "9.50"), **deps)
    add_trade(trade=make_trade("MXRF12", "10", "10.00"), **deps)
    assert mark_subscription(ticker="MXRF12", parent_ticker="MXRF11", **deps).is_subscription

    result = convert_subscription(ticker="MXRF12", parent_ticker="MXRF11", **deps)
    assert result.parent_quantity_after == 110

    groups = assets_overview(**deps)
    assert [a.ticker for assets in groups.values() for a in assets] == ["MXRF11"]


def test_sold_assets_flow(deps):
    add_trade(trade=make_trade("PETR4", "10", "30"), **deps)
    add_trade(trade=make_trade("PETR4", "10", "35", side=TradeSide.SELL, day=date(2024, 3, 1)), **deps)
    assert [a.ticker for a in sold_assets(**deps)] == ["PETR4"]
    assert assets_overview(**deps) == {}
    assert len(assets_overview(include_sold=True, **deps)) == 1


def test_status_without_vault(store, cache):
    status = wallet_status(vault_store=store, session_cache=cache)
    assert not status.exists
    assert status.metadata is None


def test_damaged_plaintext_cache_does_not_block_session(deps, store, cache):
    cache.unlocked_path.write_bytes(b"transactions: [unclosed\n")

    add_trade(trade=make_trade(), **deps)

    assert len(store.open(PASSWORD).wallet.transactions) == 1
    cached, _ = cache.load()
    assert len(cached.transactions) == 1


def test_earnings_reports(deps):
    add_earning(earning=make_earning(total="10", day=date(2023, 5, 1)), **deps)
    add_earning(earning=make_earning(total="3", day=date(2024, 2, 10)), **deps)
    add_earning(earning=make_earning(total="2", type=EarningType.INCOME, day=date(2024, 2, 20)), **deps)
    add_earning(earning=make_earning(total="1", day=date(2024, 9, 1)), **deps)

    annual = annual_earnings_report(**deps)
    assert annual.year is None
    assert annual.periods == {2023: Decimal("10.0000"), 2024: Decimal("6.0000")}
    assert annual.total == Decimal("16.0000")
    assert annual.average == Decimal("8.0000")

    monthly = monthly_earnings_report(year=2024, **deps)
    assert monthly.periods == {2: Decimal("5.0000"), 9: Decimal("1.0000")}
    assert monthly.total == Decimal("6.0000")
    assert monthly.average == Decimal("3.0000")

    empty = monthly_earnings_report(year=2020, **deps)
    assert (empty.periods, empty.total, empty.average) == ({}, Decimal("0"), Decimal("0"))
