"""Explicit client context handed to every device-side component."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from safecircle.core.config import ClientSettings
from safecircle.core.sos_policies import ANONYMOUS_USER_ID


@dataclass
class ClientContext:
    settings: ClientSettings
    http: httpx.AsyncClient
    user_id: str | None = None

    @property
    def owner_id(self) -> str:
        return self.user_id or ANONYMOUS_USER_ID

    @classmethod
    def create(
        cls,
        settings: ClientSettings | None = None,
        user_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ClientContext":
        settings = settings or ClientSettings()
        http = httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.http_timeout_seconds,
            transport=transport,
        )
        return cls(settings=settings, http=http, user_id=user_id)

    async def aclose(self) -> None:
        await self.http.aclose()
