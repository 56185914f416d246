from dataclasses import dataclass
from datetime import date
from typing import Iterable


class InvalidRangeError(ValueError):
    pass


@dataclass(frozen=True)
class DateRange:
    """Closed range of whole days; both ends are part of the range."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start is None or self.end is None:
            raise InvalidRangeError("Start date and end date cannot be None.")
        if self.start > self.end:
            raise InvalidRangeError("Start date cannot be after end date.")

    def overlaps(self, other: "DateRange | None") -> bool:
        if other is None:
            return False
        return has_date_overlap(self.start, self.end, other.start, other.end)

    def contains(self, other: "date | DateRange | None") -> bool:
        if other is None:
            return False
        if isinstance(other, DateRange):
            return other.start >= self.start and other.end <= self.end
        return self.start <= other <= self.end

    def length_in_days(self) -> int:
        return (self.end - self.start).days + 1

    def is_in_past(self, today: date | None = None) -> bool:
        return self.end < (today or date.today())

    def is_in_future(self, today: date | None = None) -> bool:
        return self.start > (today or date.today())

    def is_currently_active(self, today: date | None = None) -> bool:
        return self.contains(today or date.today())

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}

    def __str__(self) -> str:
        return f"{self.start.isoformat()} to {self.end.isoformat()}"


def has_date_overlap(new_start: date, new_end: date, exist_start: date, exist_end: date) -> bool:
    """Return True when two day ranges share at least one day.

    Ranges are inclusive on both ends: [start, end]
    so 04-01~04-10 and 04-10~04-20 overlap, while 04-01~04-10 and 04-11~04-20 do not.
    """
    if new_start > new_end:
        raise InvalidRangeError("new_start must not be after new_end.")
    if exist_start > exist_end:
        raise InvalidRangeError("exist_start must not be after exist_end.")

    return not (new_end < exist_start or new_start > exist_end)


def can_reserve(date_range: DateRange, existing_ranges: Iterable[DateRange]) -> bool:
    """Return True if the requested range does not overlap any existing range."""
    for existing in existing_ranges:
        if date_range.overlaps(existing):
            return False
    return True
