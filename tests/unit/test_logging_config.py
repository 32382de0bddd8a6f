"""Tests for the structlog processors."""

from tradeledger.config.logging import add_app_context, round_money


def test_round_money_rounds_amount_fields_only():
    event = {"event": "payment_recorded", "amount": 333.3333333, "order_id": 7, "ratio": 0.123456}

    result = round_money(None, "info", event)

    assert result["amount"] == 333.33
    assert result["order_id"] == 7
    assert result["ratio"] == 0.123456


def test_round_money_leaves_non_floats():
    event = {"event": "balance_audit", "drift": None, "total": 1000}

    assert round_money(None, "info", event) == {"event": "balance_audit", "drift": None, "total": 1000}


def test_app_context_added():
    event = add_app_context(None, "info", {"event": "x"})

    assert event["app"] == "TradeLedger"
    assert event["environment"] == "development"
