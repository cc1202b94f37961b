"""FastAPI dependencies for provider clients."""

from __future__ import annotations

from safecircle.core.config import settings
from safecircle.services.card_gateway import CardGatewayClient
from safecircle.services.moneyunify import MoneyUnifyClient


def get_money_unify() -> MoneyUnifyClient:
    return MoneyUnifyClient(
        auth_id=settings.moneyunify_auth_id,
        base_url=settings.moneyunify_base_url,
        timeout=settings.provider_timeout_seconds,
    )


def get_card_gateway() -> CardGatewayClient:
    return CardGatewayClient(
        secret_key=settings.card_gateway_secret_key,
        base_url=settings.card_gateway_base_url,
        timeout=settings.provider_timeout_seconds,
    )
