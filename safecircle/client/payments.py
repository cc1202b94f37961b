"""Client-side payment confirmation.

Premium is granted only after the card confirmation reports
``status == "succeeded"``. Any error or other status leaves the profile
untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from safecircle.client.context import ClientContext
from safecircle.core.errors import PersistenceError, UpstreamProviderError, ValidationError

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"


@dataclass
class ConfirmationResult:
    """What the card SDK's confirm call returns: ``{error?, paymentIntent: {status}}``."""

    status: str | None = None
    error: str | None = None


@dataclass
class PaymentOutcome:
    succeeded: bool
    message: str
    status: str | None = None


class CardConfirmer(Protocol):
    async def confirm_payment(self, client_secret: str, billing_name: str) -> ConfirmationResult: ...


class ProfileStore(Protocol):
    async def grant_premium(self, user_id: str, plan_id: str, amount: Decimal, paid_at: datetime) -> None: ...


class PaymentBackend:
    """Calls the payment endpoints of the backend."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def create_card_intent(self, amount: Decimal, currency: str | None = None) -> str:
        """Return the client secret for a new card payment intent."""
        body: dict[str, Any] = {"amount": str(amount)}
        if currency:
            body["currency"] = currency
        data = await self._post("/createPaymentIntent", body)
        secret = data.get("clientSecret")
        if not secret:
            raise UpstreamProviderError("No clientSecret returned")
        return secret

    async def request_mobile_money(self, phone: str, amount: Decimal) -> str:
        data = await self._post("/requestMobileMoneyPayment", {"phone": phone, "amount": str(amount)})
        return data["transaction_id"]

    async def verify_mobile_money(self, transaction_id: str) -> dict[str, Any]:
        data = await self._post("/verifyMobileMoneyPayment", {"transaction_id": transaction_id})
        return data.get("data") or {}

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._http.post(path, json=body)
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamProviderError(f"{path} failed: {exc}") from exc

        if response.status_code == 400:
            raise ValidationError(data.get("message", "invalid request"))
        if response.is_error or data.get("status") != "success":
            raise UpstreamProviderError(data.get("message", f"{path} failed"))
        return data


class HttpProfileStore:
    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def grant_premium(self, user_id: str, plan_id: str, amount: Decimal, paid_at: datetime) -> None:
        url = f"/users/{quote(user_id, safe='')}/premium"
        body = {"plan_id": plan_id, "amount": str(amount), "paid_at": paid_at.isoformat()}
        try:
            response = await self._http.post(url, json=body)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise PersistenceError(f"Could not record premium for {user_id}: {exc}") from exc


class PaymentConfirmationFlow:
    def __init__(
        self,
        backend: PaymentBackend,
        confirmer: CardConfirmer,
        profiles: ProfileStore,
        user_id: str | None = None,
    ) -> None:
        self.backend = backend
        self.confirmer = confirmer
        self.profiles = profiles
        self.user_id = user_id

    @classmethod
    def from_context(cls, ctx: ClientContext, confirmer: CardConfirmer) -> "PaymentConfirmationFlow":
        return cls(
            backend=PaymentBackend(ctx.http),
            confirmer=confirmer,
            profiles=HttpProfileStore(ctx.http),
            user_id=ctx.user_id,
        )

    async def pay(self, plan_id: str, plan_name: str, amount: Decimal, cardholder_name: str) -> PaymentOutcome:
        """Run one card payment end to end.

        Raises ValidationError for a blank cardholder name and
        UpstreamProviderError when no client secret could be obtained. A
        declined or incomplete confirmation is returned as a failed outcome.
        """
        name = (cardholder_name or "").strip()
        if not name:
            raise ValidationError("Please enter the cardholder name")

        client_secret = await self.backend.create_card_intent(amount)
        result = await self.confirmer.confirm_payment(client_secret, name)

        if result.error:
            logger.info("Card payment failed for plan %s: %s", plan_id, result.error)
            return PaymentOutcome(succeeded=False, message=result.error, status=result.status)
        if result.status != SUCCEEDED:
            logger.info("Card payment for plan %s ended with status %s", plan_id, result.status)
            return PaymentOutcome(succeeded=False, message="Payment not completed", status=result.status)

        if self.user_id:
            await self.profiles.grant_premium(self.user_id, plan_id, amount, datetime.now(timezone.utc))
        return PaymentOutcome(
            succeeded=True,
            message=f"You are now a premium member! Plan: {plan_name}, Amount: K{amount}",
            status=result.status,
        )
