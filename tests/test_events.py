from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from b3vault.core.errors import NotFoundError, ValidationError
from b3vault.core.events import (
    apply_grouping,
    apply_split,
    format_ratio,
    parse_grouping_ratio,
    parse_ratio,
    parse_split_ratio,
)
from b3vault.core.models import Ratio
from factories import make_trade

EVENT_DATE = date(2024, 5, 1)


@pytest.fixture
def grouped_wallet(wallet):
    wallet.add_trade(make_trade("MGLU3", "1000", "2.80", day=date(2024, 1, 10)))
    wallet.add_trade(make_trade("MGLU3", "50", "28.00", day=date(2024, 6, 10)))
    wallet.add_trade(make_trade("ITSA4", "10", "9.00", day=date(2024, 1, 10)))
    return wallet


def test_grouping_adjusts_trades_before_event_date(grouped_wallet):
    w = grouped_wallet
    before_ids = [t.id for t in w.transactions]
    old_pre, post, other = w.transactions

    result = apply_grouping(w, "MGLU3", Ratio(10, 1), EVENT_DATE)

    pre, post_after, other_after = w.transactions
    assert [t.id for t in w.transactions] == before_ids
    assert pre.quantity == Decimal("100")
    assert pre.price == Decimal("28.0000")
    assert pre.amount == Decimal("2800.0000")
    assert pre.fingerprint != old_pre.fingerprint
    assert post_after == post
    assert other_after == other

    assert old_pre.fingerprint not in w.trade_index
    assert w.trade_index[pre.fingerprint] == pre
    assert len(w.trade_index) == 3

    asset = w.get_asset("MGLU3")
    assert asset.quantity == 150
    assert asset.average_cost == Decimal("28.0000")
    assert asset.trades == [pre, post_after]

    assert result.trades_adjusted == 1
    assert (result.quantity_before, result.quantity_after) == (1050, 150)
    assert result.average_cost_before == Decimal("4.0000")
    assert result.average_cost_after == Decimal("28.0000")
    assert result.ratio == Ratio(10, 1)
    assert result.event_date == EVENT_DATE


def test_split_multiplies_quantity(wallet):
    wallet.add_trade(make_trade("BBAS3", "100", "28.00", day=date(2024, 1, 10)))
    result = apply_split(wallet, "BBAS3", Ratio(1, 2), EVENT_DATE)

    (t,) = wallet.transactions
    assert (t.quantity, t.price, t.amount) == (Decimal("200"), Decimal("14"), Decimal("2800"))
    assert result.quantity_after == 200
    assert result.average_cost_after == Decimal("14.0000")
    assert wallet.get_asset("BBAS3").invested_capital == Decimal("2800.0000")


def test_trade_on_event_date_is_untouched(wallet):
    wallet.add_trade(make_trade("BBAS3", "100", "28.00", day=EVENT_DATE))
    result = apply_split(wallet, "BBAS3", Ratio(1, 2), EVENT_DATE)
    assert result.trades_adjusted == 0
    assert wallet.get_asset("BBAS3").quantity == 100


def test_split_corrects_negative_quantity(wallet):
    # 券商记录拆股后卖出，但未登记拆股
    wallet.add_trade(make_trade("BBAS3", "100", "28.00", day=date(2024, 1, 10)))
    wallet.add_trade(make_trade("BBAS3", "150", "15.00", day=date(2024, 6, 1), side="Sell"))
    assert wallet.get_asset("BBAS3").quantity == -50

    apply_split(wallet, "BBAS3", Ratio(1, 2), EVENT_DATE)
    assert wallet.get_asset("BBAS3").quantity == 50


@pytest.mark.parametrize("ratio", [Ratio(1, 1), Ratio(10, 2), Ratio(1, 10)])
def test_grouping_rejects_invalid_ratio(grouped_wallet, ratio):
    snapshot = grouped_wallet.transactions
    with pytest.raises(ValidationError):
        apply_grouping(grouped_wallet, "MGLU3", ratio, EVENT_DATE)
    assert grouped_wallet.transactions == snapshot


@pytest.mark.parametrize("ratio", [Ratio(1, 1), Ratio(2, 1), Ratio(2, 4)])
def test_split_rejects_invalid_ratio(grouped_wallet, ratio):
    with pytest.raises(ValidationError):
        apply_split(grouped_wallet, "MGLU3", ratio, EVENT_DATE)


def test_unknown_ticker(wallet):
    with pytest.raises(NotFoundError):
        apply_grouping(wallet, "XXXX3", Ratio(10, 1), EVENT_DATE)
    with pytest.raises(NotFoundError):
        apply_split(wallet, "XXXX3", Ratio(1, 2), EVENT_DATE)


def test_parse_ratio():
    assert parse_ratio("10:1") == Ratio(10, 1)
    assert parse_ratio(" 1 : 4 ") == Ratio(1, 4)
    assert parse_grouping_ratio("20:1") == Ratio(20, 1)
    assert parse_split_ratio("1:3") == Ratio(1, 3)
    assert format_ratio(Ratio(10, 1)) == "10:1"
    assert str(Ratio(1, 2)) == "1:2"


@pytest.mark.parametrize("text", ["10", "10-1", "a:1", "0:1", "1:-2", "1:2:3"])
def test_parse_ratio_rejects_bad_input(text):
    with pytest.raises(ValidationError):
        parse_ratio(text)


def test_parse_grouping_ratio_checks_constraints():
    with pytest.raises(ValidationError):
        parse_grouping_ratio("1:2")
    with pytest.raises(ValidationError):
        parse_split_ratio("10:1")
