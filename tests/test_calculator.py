from __future__ import annotations

from decimal import Decimal

from b3vault.core.models import Asset, TradeSide
from b3vault.core.rules.calculator import (
    calc_average_cost,
    calc_invested_capital,
    calc_quantity,
    calc_total_earnings,
    recalculate_asset,
)
from b3vault.core.rules.precision import fixed4, round_quantity
from factories import make_earning, make_trade


def test_sells_only_affect_quantity():
    trades = [
        make_trade(quantity="100", price="10.00"),
        make_trade(quantity="50", price="13.00"),
        make_trade(quantity="30", price="15.00", side=TradeSide.SELL),
    ]
    assert calc_quantity(trades) == 120
    assert calc_average_cost(trades) == Decimal("11.0000")
    assert calc_invested_capital(trades) == Decimal("1650.0000")


def test_average_cost_independent_of_buy_order():
    a = make_trade(quantity="7", price="31.17")
    b = make_trade(quantity="13", price="29.03")
    c = make_trade(quantity="101", price="30.5")
    assert calc_average_cost([a, b, c]) == calc_average_cost([c, a, b]) == calc_average_cost([b, c, a])


def test_average_cost_rounds_to_four_places():
    trades = [make_trade(quantity="1", price="1"), make_trade(quantity="2", price="2")]
    assert calc_average_cost(trades) == Decimal("1.6667")


def test_no_buys_gives_zero_cost_and_negative_quantity():
    trades = [make_trade(quantity="10", side=TradeSide.SELL)]
    assert calc_average_cost(trades) == Decimal("0")
    assert calc_invested_capital(trades) == Decimal("0")
    assert calc_quantity(trades) == -10


def test_quantity_rounds_half_away_from_zero():
    assert round_quantity(Decimal("10.5")) == 11
    assert round_quantity(Decimal("10.4")) == 10
    assert round_quantity(Decimal("-2.5")) == -3


def test_total_earnings_sum():
    assert calc_total_earnings([make_earning(total="1.10"), make_earning(total="2.205")]) == Decimal("3.3050")


def test_recalculate_asset_is_idempotent_and_keeps_tags():
    asset = Asset(
        ticker="ITSA4",
        trades=[make_trade(quantity="100", price="10.00")],
        earnings=[make_earning(total="5")],
        subtype="ações",
        segment="bancos",
    )
    recalculate_asset(asset)
    first = (asset.average_cost, asset.invested_capital, asset.quantity, asset.total_earnings)
    recalculate_asset(asset)
    assert (asset.average_cost, asset.invested_capital, asset.quantity, asset.total_earnings) == first
    assert first == (Decimal("10.0000"), Decimal("1000.0000"), 100, Decimal("5.0000"))
    assert (asset.subtype, asset.segment) == ("ações", "bancos")


def test_fixed4_never_uses_exponent():
    assert fixed4(Decimal("1E+2")) == "100.0000"
    assert fixed4(Decimal("0.00005")) == "0.0001"
