"""Payment endpoints: mobile-money request/verify and card intents.

Responses keep the ``{"status": "success" | "error", ...}`` envelope the
mobile client reads.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from safecircle.core.config import settings
from safecircle.core.deps import get_card_gateway, get_money_unify
from safecircle.core.errors import PersistenceError, UpstreamProviderError, ValidationError
from safecircle.db.session import get_db
from safecircle.schemas.payment import CardIntentRequest, MobileMoneyRequest, VerifyRequest
from safecircle.services.card_gateway import CardGatewayClient
from safecircle.services.moneyunify import MoneyUnifyClient
from safecircle.services.payment_service import create_card_intent, create_mobile_money_intent, verify_intent

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


@router.post("/requestMobileMoneyPayment")
def request_mobile_money_payment(
    body: MobileMoneyRequest,
    db: Session = Depends(get_db),
    provider: MoneyUnifyClient = Depends(get_money_unify),
):
    """Start a mobile-money charge; the ledger row is PENDING once this returns."""
    try:
        transaction_id = create_mobile_money_intent(db, provider, body.phone, body.amount)
    except ValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, str(e))
    except (UpstreamProviderError, PersistenceError):
        logger.exception("Payment initiation failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Payment initiation failed")
    return {"status": "success", "transaction_id": transaction_id}


@router.post("/verifyMobileMoneyPayment")
def verify_mobile_money_payment(
    body: VerifyRequest,
    db: Session = Depends(get_db),
    provider: MoneyUnifyClient = Depends(get_money_unify),
):
    """Manually check a transaction with the provider and store the result."""
    try:
        data = verify_intent(db, provider, body.transaction_id)
    except ValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, str(e))
    except (UpstreamProviderError, PersistenceError):
        logger.exception("Verification failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Verification failed")
    return {"status": "success", "data": data}


@router.post("/createPaymentIntent")
def create_payment_intent(
    body: CardIntentRequest,
    db: Session = Depends(get_db),
    gateway: CardGatewayClient = Depends(get_card_gateway),
):
    """Create a card payment intent and hand its client secret to the device."""
    currency = body.currency or settings.payment_currency
    try:
        result = create_card_intent(db, gateway, body.amount, currency)
    except ValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, str(e))
    except (UpstreamProviderError, PersistenceError):
        logger.exception("Card intent creation failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Payment intent creation failed")
    return {"status": "success", **result}
