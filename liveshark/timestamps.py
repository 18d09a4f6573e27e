"""Capture timestamp helpers: RFC 3339 formatting and time bounds."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NANOS_PER_SECOND = 1_000_000_000

Number = Union[int, float]


def _to_nanos(ts: Number) -> Optional[int]:
    if isinstance(ts, int) and not isinstance(ts, bool):
        return ts * _NANOS_PER_SECOND
    value = float(ts)
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return None
    return int(value * _NANOS_PER_SECOND)


def ts_to_rfc3339(ts: Optional[Number]) -> Optional[str]:
    """Format seconds since the Unix epoch as an RFC 3339 UTC string.

    Returns None when no timestamp is given or it lies outside years 0-9999.
    Sub-second digits are printed without trailing zeros.
    """
    if ts is None:
        return None
    nanos = _to_nanos(ts)
    if nanos is None:
        return None
    seconds, subsec = divmod(nanos, _NANOS_PER_SECOND)
    try:
        moment = _EPOCH + timedelta(seconds=seconds)
    except (OverflowError, ValueError):
        return None
    if not 0 <= moment.year <= 9999:
        return None
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if subsec:
        text += "." + f"{subsec:09d}".rstrip("0")
    return text + "Z"


@dataclass
class TimeBounds:
    """Earliest and latest timestamp seen so far."""

    first: Optional[float] = None
    last: Optional[float] = None

    def update(self, ts: Optional[float]) -> None:
        """Widen the bounds to include ``ts``; missing timestamps are ignored."""
        if ts is None:
            return
        if self.first is None or ts < self.first:
            self.first = ts
        if self.last is None or ts > self.last:
            self.last = ts

    def duration(self) -> Optional[float]:
        """Span between the bounds, or None when it is not strictly positive."""
        if self.first is None or self.last is None:
            return None
        if self.last > self.first:
            return self.last - self.first
        return None