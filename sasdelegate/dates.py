"""Wire date format for the signing protocol."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

WIRE_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
_WIRE_DATE_RE = re.compile(r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.\d{1,7})?Z$")


def utcnow() -> datetime:
    """Default clock: current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def az_iso_date(moment: datetime) -> str:
    """Format ``moment`` as an ISO-8601 UTC timestamp without fractional seconds.

    The storage service accepts either zero or seven fractional digits; we
    always emit zero. Naive datetimes are assumed to already be in UTC.
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.replace(microsecond=0).strftime(WIRE_DATE_FORMAT)


def parse_wire_date(text: str) -> Optional[datetime]:
    """Parse a wire timestamp (zero to seven fractional digits) or return None."""
    match = _WIRE_DATE_RE.match(text.strip())
    if not match:
        return None
    return datetime.strptime(match.group(1), "%Y-%m-%dT%H:%M:%S").replace(
        tzinfo=timezone.utc
    )
