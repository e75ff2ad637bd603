"""Reference Clock — "current year" in the organization's fixed timezone.

Invariants:
    - The year never depends on server or client local time
    - Timezone name resolved once per clock (invalid names fail at construction)

Design Decisions:
    - zoneinfo over pytz: stdlib IANA database, tzdata package covers slim images
    - now_fn injectable: tests pin the wall clock without monkeypatching datetime
"""

from datetime import datetime, timezone
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class ReferenceClock:
    """Callable returning the calendar year in the reference timezone."""

    def __init__(
        self,
        tz_name: str,
        now_fn: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        try:
            self.tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown reference timezone: {tz_name!r}") from e
        self._now_fn = now_fn

    def now(self) -> datetime:
        return self._now_fn().astimezone(self.tz)

    def __call__(self) -> int:
        return self.now().year
