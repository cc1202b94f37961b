"""Location provider seam."""

from __future__ import annotations

from typing import Any, Protocol

from safecircle.schemas.sos import Location


class LocationProvider(Protocol):
    """Best-effort current position. May raise or hang; callers bound the wait."""

    async def get_current_location(self) -> Location | dict[str, Any]: ...


def coerce_location(raw: Location | dict[str, Any]) -> Location:
    if isinstance(raw, Location):
        return raw
    return Location.model_validate(raw)
