"""Unit tests for the Braintree wrapper."""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from fastapi import HTTPException

import config
import payments


def test_charge_submits_for_settlement():
    gateway = MagicMock()
    gateway.transaction.sale.return_value = SimpleNamespace(
        is_success=True, transaction=SimpleNamespace(id="txn123", status="submitted_for_settlement")
    )

    summary = payments.charge(gateway, Decimal("25.00"), "fake-nonce")

    gateway.transaction.sale.assert_called_once_with({
        "amount": "25.00",
        "payment_method_nonce": "fake-nonce",
        "options": {"submit_for_settlement": True},
    })
    assert summary == {
        "success": True,
        "message": None,
        "transaction_id": "txn123",
        "amount": 25.0,
        "status": "submitted_for_settlement",
    }


def test_charge_declined():
    gateway = MagicMock()
    gateway.transaction.sale.return_value = SimpleNamespace(is_success=False, transaction=None, message="Declined")

    summary = payments.charge(gateway, Decimal("10.00"), "nonce")

    assert summary["success"] is False
    assert summary["message"] == "Declined"
    assert summary["transaction_id"] is None


def test_generate_client_token():
    gateway = MagicMock()
    gateway.client_token.generate.return_value = "token"

    assert payments.generate_client_token(gateway) == "token"


def test_get_gateway_unconfigured(monkeypatch):
    monkeypatch.setattr(config, "BRAINTREE_MERCHANT_ID", "")

    with pytest.raises(HTTPException) as exc:
        payments.get_gateway()
    assert exc.value.status_code == 503


def test_get_gateway_configured(monkeypatch):
    monkeypatch.setattr(config, "BRAINTREE_MERCHANT_ID", "merchantId")
    monkeypatch.setattr(config, "BRAINTREE_PUBLIC_KEY", "publicKey")
    monkeypatch.setattr(config, "BRAINTREE_PRIVATE_KEY", "privateKey")
    payments._build_gateway.cache_clear()

    with patch.object(payments.braintree, "BraintreeGateway") as gateway_cls:
        gateway = payments.get_gateway()

    assert gateway is gateway_cls.return_value
    configuration = gateway_cls.call_args.args[0]
    assert configuration.merchant_id == "merchantId"
    payments._build_gateway.cache_clear()
