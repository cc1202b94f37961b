"""MoneyUnify webhook receiver."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import parse_qsl

from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from safecircle.core.errors import PersistenceError, ValidationError
from safecircle.db.session import get_db
from safecircle.services.payment_service import apply_webhook

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhook"])


def _parse_body(raw: bytes, content_type: str) -> dict[str, Any]:
    """Webhook bodies arrive as JSON or as a urlencoded form."""
    if not raw:
        return {}
    if "application/x-www-form-urlencoded" in content_type:
        try:
            return dict(parse_qsl(raw.decode("utf-8"), keep_blank_values=True))
        except UnicodeDecodeError:
            return {}
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


@router.post("/moneyUnifyWebhook", response_class=PlainTextResponse)
async def money_unify_webhook(request: Request, db: Session = Depends(get_db)):
    """Apply a provider status push to the ledger. Safe to replay."""
    payload = _parse_body(await request.body(), request.headers.get("content-type", ""))
    try:
        entry = await run_in_threadpool(apply_webhook, db, payload)
    except ValidationError:
        logger.warning("Rejected webhook payload: %s", payload)
        return PlainTextResponse("Invalid webhook payload", status_code=status.HTTP_400_BAD_REQUEST)
    except PersistenceError:
        logger.exception("Webhook error")
        return PlainTextResponse("Webhook failed", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info("Webhook applied: %s -> %s", entry.transaction_id, entry.status)
    return PlainTextResponse("Webhook received", status_code=status.HTTP_200_OK)
