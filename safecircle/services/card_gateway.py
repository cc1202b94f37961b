"""Card gateway client (payment intents)."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import httpx

from safecircle.core.errors import UpstreamProviderError

logger = logging.getLogger(__name__)


def to_minor_units(amount: Decimal) -> int:
    """Decimal major units -> integer minor units (cents)."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class CardGatewayClient:
    """Creates card payment intents. The device confirms them with the gateway SDK."""

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.stripe.com",
        timeout: float = 30.0,
        http: httpx.Client | None = None,
    ) -> None:
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = http

    def create_payment_intent(self, amount: Decimal, currency: str) -> dict[str, Any]:
        """Return the gateway's intent object; must carry ``id`` and ``client_secret``."""
        if not self.secret_key:
            raise UpstreamProviderError("CARD_GATEWAY_SECRET_KEY is not configured")

        url = self.base_url + "/v1/payment_intents"
        form = {
            "amount": str(to_minor_units(amount)),
            "currency": currency.lower(),
            "automatic_payment_methods[enabled]": "true",
        }
        headers = {"Authorization": f"Bearer {self.secret_key}"}
        try:
            if self._http is not None:
                response = self._http.post(url, data=form, headers=headers, timeout=self.timeout)
            else:
                response = httpx.post(url, data=form, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            logger.error("Card gateway intent creation failed: %s", exc)
            raise UpstreamProviderError(f"Card gateway request failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamProviderError("Card gateway returned a non-JSON body") from exc

        if not isinstance(data, dict) or not data.get("id") or not data.get("client_secret"):
            raise UpstreamProviderError("Card gateway response has no client secret")
        return data
