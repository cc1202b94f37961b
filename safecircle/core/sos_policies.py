"""SOS alert policy constants."""

from __future__ import annotations

# userId recorded when nobody is signed in
ANONYMOUS_USER_ID = "anonymous"

# Sentinel coordinates meaning "no location obtained"
SENTINEL_LAT = 0.0
SENTINEL_LNG = 0.0

# Statuses listPending() returns
PENDING_STATUSES = ("queued", "failed")

LOCATION_UNAVAILABLE_WARNING = "Location unavailable, sending anyway."
