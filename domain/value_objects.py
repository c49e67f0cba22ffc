"""Domain Value Objects"""
import math
from datetime import date, datetime, timedelta
from typing import List, Tuple, Union

from pydantic import BaseModel, field_validator, ValidationInfo

ONE_DAY = timedelta(days=1)


class DateRange(BaseModel):
    """Half-open stay window [check_in, check_out).

    The check-out day is not occupied, so a stay ending on a given day never
    collides with another stay starting that day.
    """
    check_in: date
    check_out: date

    @field_validator('check_out')
    @classmethod
    def check_out_after_check_in(cls, v: date, info: ValidationInfo) -> date:
        check_in = info.data.get('check_in')
        if check_in is not None and v <= check_in:
            raise ValueError('Check-out date must be after check-in date')
        return v

    def nights(self) -> int:
        """Number of nights, rounded up to whole days"""
        return math.ceil((self.check_out - self.check_in) / ONE_DAY)

    def overlaps(self, other: "DateRange") -> bool:
        """True iff both windows share at least one night"""
        return self.check_in < other.check_out and other.check_in < self.check_out

    def conflicts_with(self, existing: "DateRange") -> bool:
        """Overlap spelled as the three front-desk cases.

        Gives the same answer as ``overlaps`` for every pair of valid ranges.
        """
        starts_inside = existing.check_in <= self.check_in < existing.check_out
        ends_inside = existing.check_in < self.check_out <= existing.check_out
        swallows_existing = (
            self.check_in <= existing.check_in and existing.check_out <= self.check_out
        )
        return starts_inside or ends_inside or swallows_existing

    def clip(self, start: date, end: date) -> Tuple[date, date]:
        """Inclusive (first, last) days of this range inside [start, end].

        Reporting counts the check-out day, so ``last`` may equal check_out.
        """
        return max(self.check_in, start), min(self.check_out, end)

    def __str__(self) -> str:
        return f"{self.check_in.isoformat()} to {self.check_out.isoformat()}"

    class Config:
        frozen = True


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def days_between(start: Union[date, datetime], end: Union[date, datetime]) -> List[date]:
    """Every calendar day from start to end, both inclusive, ascending.

    Datetimes are truncated to their day. Used for report windows only.
    """
    first = _as_date(start)
    last = _as_date(end)
    # Offsets from ``first`` never step past ``last``, so date.max is safe
    return [first + timedelta(days=i) for i in range((last - first).days + 1)]
