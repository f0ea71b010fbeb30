"""
Braintree payment gateway wrapper.

Tokenization and settlement happen inside Braintree; this module only builds
the gateway from configuration and flattens SDK results into plain dicts that
can be stored on an order.
"""
import logging
from decimal import Decimal
from functools import lru_cache

import braintree
from fastapi import HTTPException

import config

logger = logging.getLogger(__name__)

ENVIRONMENTS = {
    "sandbox": braintree.Environment.Sandbox,
    "production": braintree.Environment.Production,
}


@lru_cache(maxsize=1)
def _build_gateway(environment: str, merchant_id: str, public_key: str, private_key: str):
    return braintree.BraintreeGateway(
        braintree.Configuration(
            environment=ENVIRONMENTS.get(environment, braintree.Environment.Sandbox),
            merchant_id=merchant_id,
            public_key=public_key,
            private_key=private_key,
        )
    )


def get_gateway():
    if not (config.BRAINTREE_MERCHANT_ID and config.BRAINTREE_PUBLIC_KEY and config.BRAINTREE_PRIVATE_KEY):
        raise HTTPException(status_code=503, detail="Payment gateway not configured")
    return _build_gateway(
        config.BRAINTREE_ENVIRONMENT,
        config.BRAINTREE_MERCHANT_ID,
        config.BRAINTREE_PUBLIC_KEY,
        config.BRAINTREE_PRIVATE_KEY,
    )


def generate_client_token(gateway) -> str:
    return gateway.client_token.generate()


def charge(gateway, amount: Decimal, nonce: str) -> dict:
    """Submit a sale for settlement and return a summary of the result."""
    result = gateway.transaction.sale({
        "amount": str(amount),
        "payment_method_nonce": nonce,
        "options": {"submit_for_settlement": True},
    })

    transaction = getattr(result, "transaction", None)
    summary = {
        "success": bool(result.is_success),
        "message": getattr(result, "message", None),
        "transaction_id": getattr(transaction, "id", None),
        "amount": float(amount),
        "status": getattr(transaction, "status", None),
    }
    if summary["success"]:
        logger.info("Transaction %s settled for %s", summary["transaction_id"], amount)
    else:
        logger.warning("Transaction declined: %s", summary["message"])
    return summary
