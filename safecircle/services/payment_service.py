"""Payment intent lifecycle: creation, manual verification, webhook reconciliation.

Verify and webhook are two independent channels writing the same ledger
row. Neither is ordered against the other; the last write wins on
``status`` and ``updated_at``. Each channel keeps its own payload column.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from safecircle.core.errors import PersistenceError, ValidationError
from safecircle.models.payment import PaymentLedgerEntry
from safecircle.services.card_gateway import CardGatewayClient
from safecircle.services.moneyunify import MoneyUnifyClient

logger = logging.getLogger(__name__)

PENDING = "PENDING"
UNKNOWN = "UNKNOWN"
PROVIDER_MOBILE_MONEY = "MobileMoney"
PROVIDER_CARD = "Card"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return value == 0


def _parse_amount(raw: Any) -> Decimal:
    try:
        amount = Decimal(str(raw).strip())
    except InvalidOperation as exc:
        raise ValidationError("amount must be a number") from exc
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("amount must be positive")
    return amount


def _write(
    db: Session,
    transaction_id: str,
    provider: str,
    apply: Callable[[PaymentLedgerEntry, bool], None],
) -> PaymentLedgerEntry:
    """Load-or-create the ledger row, apply one channel's change and commit.

    A concurrent insert of the same transaction id surfaces as an
    IntegrityError; the write is then retried once as an update.
    """
    last_error: Exception | None = None
    for _ in range(2):
        now = _utcnow()
        try:
            entry = db.get(PaymentLedgerEntry, transaction_id)
            created = entry is None
            if entry is None:
                entry = PaymentLedgerEntry(
                    transaction_id=transaction_id,
                    provider=provider,
                    status=PENDING,
                    created_at=now,
                    updated_at=now,
                )
                db.add(entry)
            apply(entry, created)
            previous = _as_utc(entry.updated_at)
            entry.updated_at = now if now >= previous else previous
            db.commit()
            db.refresh(entry)
            return entry
        except IntegrityError as exc:
            db.rollback()
            last_error = exc
            logger.info("Concurrent insert for transaction %s, retrying as update", transaction_id)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Ledger write for transaction %s failed: %s", transaction_id, exc)
            raise PersistenceError(f"Ledger write failed for {transaction_id}") from exc
    raise PersistenceError(f"Ledger write failed for {transaction_id}") from last_error


def _record_new_intent(
    db: Session,
    transaction_id: str,
    provider: str,
    amount: Decimal,
    raw_response: dict[str, Any],
    phone: str | None = None,
) -> PaymentLedgerEntry:
    def apply(entry: PaymentLedgerEntry, created: bool) -> None:
        if not created:
            # a webhook or verify beat us here; its status is newer than PENDING
            logger.warning(
                "Ledger row %s already exists with status %s; keeping it",
                transaction_id,
                entry.status,
            )
        entry.phone = phone
        entry.amount = amount
        entry.raw_response = raw_response

    return _write(db, transaction_id, provider, apply)


def create_mobile_money_intent(db: Session, provider: MoneyUnifyClient, phone: Any, amount: Any) -> str:
    """Start a mobile-money charge and record it as PENDING. Returns the transaction id."""
    if _is_blank(phone) or _is_blank(amount):
        raise ValidationError("phone and amount required")
    phone = str(phone).strip()
    value = _parse_amount(amount)

    data = provider.request_payment(phone, format(value, "f"))
    transaction_id = str(data["transaction_id"])
    _record_new_intent(db, transaction_id, PROVIDER_MOBILE_MONEY, value, data, phone=phone)
    logger.info("Mobile money intent %s created for %s", transaction_id, phone)
    return transaction_id


def verify_intent(db: Session, provider: MoneyUnifyClient, transaction_id: Any) -> dict[str, Any]:
    """Pull the provider's view of a transaction and store it. Returns the raw provider body."""
    if _is_blank(transaction_id):
        raise ValidationError("transaction_id required")
    transaction_id = str(transaction_id).strip()

    data = provider.verify_payment(transaction_id)
    status = str(data.get("status") or UNKNOWN)

    def apply(entry: PaymentLedgerEntry, created: bool) -> None:
        if created:
            logger.warning("Verify for unseen transaction %s; creating ledger row", transaction_id)
        entry.status = status
        entry.verification_response = data

    _write(db, transaction_id, PROVIDER_MOBILE_MONEY, apply)
    logger.info("Transaction %s verified with status %s", transaction_id, status)
    return data


def apply_webhook(db: Session, payload: dict[str, Any]) -> PaymentLedgerEntry:
    """Apply a provider callback. Replaying the same payload leaves the row in the same status."""
    transaction_id = payload.get("transaction_id")
    status = payload.get("status")
    if _is_blank(transaction_id) or _is_blank(status):
        raise ValidationError("Invalid webhook payload")
    transaction_id = str(transaction_id).strip()

    def apply(entry: PaymentLedgerEntry, created: bool) -> None:
        if created:
            logger.warning("Webhook for unseen transaction %s; creating ledger row", transaction_id)
        entry.status = str(status)
        entry.webhook_payload = dict(payload)

    return _write(db, transaction_id, PROVIDER_MOBILE_MONEY, apply)


def create_card_intent(
    db: Session,
    gateway: CardGatewayClient,
    amount: Any,
    currency: str,
) -> dict[str, str]:
    """Create a card payment intent and record it as PENDING."""
    if _is_blank(amount):
        raise ValidationError("amount required")
    value = _parse_amount(amount)

    data = gateway.create_payment_intent(value, currency)
    transaction_id = str(data["id"])
    # the client secret goes to the device only
    stored = {k: v for k, v in data.items() if k != "client_secret"}
    _record_new_intent(db, transaction_id, PROVIDER_CARD, value, stored)
    return {"clientSecret": data["client_secret"], "transaction_id": transaction_id}
