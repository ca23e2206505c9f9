"""Race-day rules: compute a race date for any year.

Marathons are scheduled as "the N-th <weekday> of <month>" or "the last
<weekday> of <month>". Rules are pure: the same year always yields the
same date.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta

from .errors import RegistryError

WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}


@dataclass(frozen=True)
class DateRule:
    """N-th weekday of a month. ``nth=-1`` means the last one."""

    month: int  # 1..12
    weekday: int  # 0=Monday .. 6=Sunday
    nth: int  # 1..5 or -1

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise RegistryError(f"Invalid month in date rule: {self.month}")
        if not 0 <= self.weekday <= 6:
            raise RegistryError(f"Invalid weekday in date rule: {self.weekday}")
        if self.nth != -1 and not 1 <= self.nth <= 5:
            raise RegistryError(f"Invalid occurrence in date rule: {self.nth}")

    def date_for(self, year: int) -> date:
        """Race date for ``year``."""
        if self.nth == -1:
            last_day = calendar.monthrange(year, self.month)[1]
            d = date(year, self.month, last_day)
            return d - timedelta(days=(d.weekday() - self.weekday) % 7)

        first = date(year, self.month, 1)
        offset = (self.weekday - first.weekday()) % 7
        d = first + timedelta(days=offset + 7 * (self.nth - 1))
        if d.month != self.month:
            # 5th occurrence does not exist this year
            raise ValueError(
                f"No occurrence #{self.nth} of weekday {self.weekday} "
                f"in {year}-{self.month:02d}"
            )
        return d

    @classmethod
    def from_dict(cls, raw: dict) -> "DateRule":
        """Build from YAML: ``{month: 10, weekday: sunday, nth: 2}``.

        ``nth`` also accepts ``last``.
        """
        try:
            weekday_raw = raw["weekday"]
            if isinstance(weekday_raw, str):
                weekday = WEEKDAYS[weekday_raw.strip().lower()]
            else:
                weekday = int(weekday_raw)
            nth_raw = raw.get("nth", 1)
            nth = -1 if str(nth_raw).lower() == "last" else int(nth_raw)
            return cls(month=int(raw["month"]), weekday=weekday, nth=nth)
        except (KeyError, TypeError, ValueError) as e:
            raise RegistryError(f"Invalid date rule {raw!r}: {e}") from e
