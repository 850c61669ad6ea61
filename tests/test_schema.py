from __future__ import annotations

from datetime import date
from decimal import Decimal

import pydantic
import pytest
import yaml

from b3vault.core.models import EarningType
from b3vault.core.rules.fingerprint import trade_fingerprint
from b3vault.core.wallet import Wallet
from b3vault.data.vault.schema import dump_wallet, load_wallet
from factories import make_earning, make_trade


def _records():
    trades = [
        make_trade("PETR4", "10", "30.10", day=date(2024, 3, 1)),
        make_trade("ITSA4", "100", "10.123456", day=date(2024, 1, 1)),
        make_trade("ITSA4", "20", "11", day=date(2024, 2, 1), side="Sell"),
    ]
    earnings = [
        make_earning("ITSA4", "12.50"),
        make_earning("PETR4", "3.3", type=EarningType.TAX_ADVANTAGED_INTEREST, quantity="10", unit_value="0.33"),
    ]
    return trades, earnings


def _wallet(trades, earnings) -> Wallet:
    w = Wallet()
    w.add_trades(trades)
    w.add_earnings(earnings)
    w.set_classification("ITSA4", subtype="ações", segment="holding")
    return w


def test_repeated_dumps_are_byte_identical():
    w = _wallet(*_records())
    assert dump_wallet(w) == dump_wallet(w)


def test_dump_is_independent_of_ingestion_order():
    trades, earnings = _records()
    a = _wallet(trades, earnings)
    b = _wallet(list(reversed(trades)), list(reversed(earnings)))
    assert dump_wallet(a) == dump_wallet(b)


def test_document_layout():
    doc = yaml.safe_load(dump_wallet(_wallet(*_records())))

    assert [t["date"] for t in doc["transactions"]] == ["2024-01-01", "2024-02-01", "2024-03-01"]
    first = doc["transactions"][0]
    assert list(first) == ["date", "side", "institution", "ticker", "quantity", "price", "amount", "fingerprint"]
    assert first["side"] == "Buy"
    assert first["price"] == "10.1235"
    assert isinstance(first["quantity"], str)

    assert [a["ticker"] for a in doc["assets"]] == ["ITSA4", "PETR4"]
    itsa = doc["assets"][0]
    assert itsa["quantity"] == 80
    assert itsa["segment"] == "holding"
    assert itsa["total_earnings"] == "12.5000"
    assert itsa["earnings"][0]["type"] == "Dividend"


def test_round_trip_preserves_records_and_derived_fields():
    original = _wallet(*_records())
    loaded = load_wallet(dump_wallet(original))

    assert len(loaded.transactions) == 3
    assert len(loaded.earnings) == 2
    assert set(loaded.trade_index) == set(original.trade_index)
    for ticker, asset in original.assets.items():
        other = loaded.get_asset(ticker)
        assert other.quantity == asset.quantity
        assert other.average_cost == asset.average_cost
        assert other.invested_capital == asset.invested_capital
        assert other.total_earnings == asset.total_earnings
        assert (other.type, other.subtype, other.segment) == (asset.type, asset.subtype, asset.segment)
    assert dump_wallet(loaded) == dump_wallet(original)


def test_subscription_link_round_trips():
    w = Wallet()
    w.add_trade(make_trade("MXRF12"))
    w.mark_subscription("MXRF12", "MXRF11")
    assert load_wallet(dump_wallet(w)).get_asset("MXRF12").subscription_of == "MXRF11"


def test_empty_wallet():
    assert load_wallet(dump_wallet(Wallet())).transactions == ()
    assert load_wallet(b"").transactions == ()


def test_rejects_unknown_fields():
    with pytest.raises(pydantic.ValidationError):
        load_wallet(b"transactions: []\nassets: []\nextra: 1\n")


def test_rejects_float_like_garbage():
    bad = b"transactions:\n- {date: '2024-01-01', side: Buy, institution: X, ticker: A, quantity: abc, price: '1', amount: '1', fingerprint: f}\n"
    with pytest.raises(pydantic.ValidationError):
        load_wallet(bad)


def test_decimal_values_survive_as_decimals():
    w = Wallet()
    w.add_trade(make_trade("ITSA4", "3", "10.1"))
    (t,) = load_wallet(dump_wallet(w)).transactions
    assert t.price == Decimal("10.1000")
    assert isinstance(t.quantity, Decimal)


def test_round_trip_with_values_finer_than_four_places():
    w = Wallet()
    w.add_trades(
        [
            make_trade("ITSA4", "1", "1.00004", day=date(2024, 1, 1)),
            make_trade("ITSA4", "1", "1.00004", day=date(2024, 1, 2)),
            make_trade("PETR4", "0.49996", "10", amount="4.9996"),
        ]
    )
    loaded = load_wallet(dump_wallet(w))

    for ticker in ("ITSA4", "PETR4"):
        before, after = w.get_asset(ticker), loaded.get_asset(ticker)
        assert (after.quantity, after.invested_capital, after.average_cost) == (
            before.quantity,
            before.invested_capital,
            before.average_cost,
        )
    assert w.get_asset("ITSA4").invested_capital == Decimal("2.0000")
    assert w.get_asset("PETR4").quantity == 1
    assert all(t.fingerprint == trade_fingerprint(t) for t in loaded.transactions)
    assert dump_wallet(loaded) == dump_wallet(w)
