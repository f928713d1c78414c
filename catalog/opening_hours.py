from collections import defaultdict
from dataclasses import dataclass
from datetime import time

from .exceptions import ValidationError


@dataclass(frozen=True)
class OpeningHours:
    day: int
    open_at: time
    close_at: time

    def __str__(self):
        return f"{self.open_at:%H:%M}-{self.close_at:%H:%M}"


def _overlaps(earlier, later) -> bool:
    # Touching intervals (close == next open) count as overlapping.
    return not earlier.close_at < later.open_at


def validate_opening_hours(opening_hours) -> None:
    """
    Raise ValidationError on the first pair of same-day entries that overlap.

    Entries are grouped by day and sorted by open time. The sort is stable,
    so entries sharing an open time are compared in input order.
    """
    by_day = defaultdict(list)
    for entry in opening_hours:
        by_day[entry.day].append(entry)

    for day in sorted(by_day):
        ordered = sorted(by_day[day], key=lambda entry: entry.open_at)
        for current, following in zip(ordered, ordered[1:]):
            if _overlaps(current, following):
                raise ValidationError(
                    f"Overlapping hours on day {day}: {current} and {following}"
                )
