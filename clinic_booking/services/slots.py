"""
Slot generation.

Builds the fixed grid of candidate appointment slots for one working day,
09:00 to 17:00 every 30 minutes by default.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterator, Union

from ..core.config import settings
from ..core.exceptions import InvalidInput


@dataclass(frozen=True)
class Slot:
    start_time: datetime
    end_time: datetime
    display_label: str

    @property
    def hour(self) -> int:
        return self.start_time.hour

    @property
    def minute(self) -> int:
        return self.start_time.minute


def parse_day(value: Union[date, str]) -> date:
    """Accept a date or a ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), "%Y-%m-%d").date()
        except ValueError:
            pass
    raise InvalidInput(f"Invalid date '{value}', expected YYYY-MM-DD")


class SlotGrid:
    """
    Lazy, restartable sequence of the slots of one day.

    Every iteration starts again from the first slot; nothing is computed
    until the grid is iterated.
    """

    def __init__(
        self,
        day: date,
        start_hour: int = 9,
        end_hour: int = 17,
        stride_minutes: int = 30,
        label_format: str = "%H:%M",
    ):
        if not 0 <= start_hour < end_hour <= 24:
            raise InvalidInput("Workday start must be before workday end")
        if stride_minutes <= 0:
            raise InvalidInput("Slot length must be positive")

        self.day = day
        self.start_hour = start_hour
        self.end_hour = end_hour
        self.stride = timedelta(minutes=stride_minutes)
        self.label_format = label_format

    @property
    def opens_at(self) -> datetime:
        return datetime.combine(self.day, time(hour=self.start_hour))

    @property
    def closes_at(self) -> datetime:
        return datetime.combine(self.day, time()) + timedelta(hours=self.end_hour)

    def __iter__(self) -> Iterator[Slot]:
        current = self.opens_at
        closes_at = self.closes_at
        while current < closes_at:
            end = current + self.stride
            yield Slot(
                start_time=current,
                end_time=end,
                display_label=(
                    f"{current.strftime(self.label_format)} - "
                    f"{end.strftime(self.label_format)}"
                ),
            )
            current = end

    def __len__(self) -> int:
        span = self.closes_at - self.opens_at
        return -(-span // self.stride)

    def __repr__(self):
        return f"<SlotGrid(day={self.day}, slots={len(self)})>"


def generate_slots(day: Union[date, str]) -> SlotGrid:
    """Slot grid for ``day`` using the configured working hours."""
    return SlotGrid(
        parse_day(day),
        start_hour=settings.WORKDAY_START_HOUR,
        end_hour=settings.WORKDAY_END_HOUR,
        stride_minutes=settings.SLOT_MINUTES,
        label_format=settings.SLOT_LABEL_FORMAT,
    )
