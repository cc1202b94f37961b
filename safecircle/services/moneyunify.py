"""MoneyUnify mobile-money provider client."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from safecircle.core.errors import UpstreamProviderError

logger = logging.getLogger(__name__)


class MoneyUnifyClient:
    """Form-encoded client for the MoneyUnify payments API.

    Calls are not retried here; a failure surfaces to the caller as
    UpstreamProviderError.
    """

    def __init__(
        self,
        auth_id: str,
        base_url: str = "https://api.moneyunify.one",
        timeout: float = 30.0,
        http: httpx.Client | None = None,
    ) -> None:
        self.auth_id = auth_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = http

    def request_payment(self, phone: str, amount: str) -> dict[str, Any]:
        """Ask the payer's wallet to approve a charge. Returns the provider JSON."""
        data = self._post("/payments/request", {"auth_id": self.auth_id, "from_payer": phone, "amount": amount})
        if not data.get("transaction_id"):
            raise UpstreamProviderError("MoneyUnify response has no transaction_id")
        return data

    def verify_payment(self, transaction_id: str) -> dict[str, Any]:
        return self._post("/payments/verify", {"auth_id": self.auth_id, "transaction_id": transaction_id})

    def _post(self, path: str, form: dict[str, str]) -> dict[str, Any]:
        if not self.auth_id:
            raise UpstreamProviderError("MONEYUNIFY_AUTH_ID is not configured")
        url = self.base_url + path
        try:
            if self._http is not None:
                response = self._http.post(url, data=form, timeout=self.timeout)
            else:
                response = httpx.post(url, data=form, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            logger.error("MoneyUnify call %s failed: %s", path, exc)
            raise UpstreamProviderError(f"MoneyUnify request failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamProviderError("MoneyUnify returned a non-JSON body") from exc

        if not isinstance(data, dict):
            raise UpstreamProviderError("MoneyUnify returned an unexpected body")
        return data
