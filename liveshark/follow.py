"""Decisions for following a capture file that is still being written."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

WARNING_INTERVAL_S = 5.0

_TRANSIENT_MARKERS = (
    "incomplete",
    "unexpected end",
    "eof",
    "too short",
    "failed to fill whole buffer",
)


@dataclass(frozen=True)
class FollowSeen:
    """Size and modification time of the followed file at one look."""

    size_bytes: int
    modified: Optional[float] = None


def follow_should_analyze(
    current: FollowSeen, last: Optional[FollowSeen]
) -> Tuple[bool, bool]:
    """Return ``(changed, rotated)`` for the current look at the file.

    A shrinking file counts as rotated; a growing one as changed; an equal
    size is a change only when the modification time moved forward.
    """
    if last is None:
        return True, False
    if current.size_bytes < last.size_bytes:
        return True, True
    if current.size_bytes > last.size_bytes:
        return True, False
    if current.modified is not None and last.modified is not None:
        return current.modified > last.modified, False
    return False, False


def is_transient_error(err: object) -> bool:
    """Whether an error looks like a capture that is only partly written."""
    message = str(err).lower()
    return any(marker in message for marker in _TRANSIENT_MARKERS)


class WarningThrottle:
    """Lets a warning through at most once per interval."""

    def __init__(
        self,
        interval_s: float = WARNING_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.interval_s = interval_s
        self._clock = clock
        self._last: Optional[float] = None

    def should_warn(self) -> bool:
        """True for the first call and whenever the interval has passed since the last warning."""
        now = self._clock()
        if self._last is not None and now - self._last < self.interval_s:
            return False
        self._last = now
        return True