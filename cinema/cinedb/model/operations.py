"""
Operations: cleaning shifts.

A shift is part of the cleaner's role (composition) and points at the hall
being cleaned.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from ..errors import ArgumentError, ValidationError
from ..extent import ModelContext
from ..links import LinkKind, One, assign
from .entity import Entity

MAX_SHIFT_LENGTH = timedelta(hours=4)


def _check_times(start_time: Any, end_time: Any) -> None:
    if not isinstance(start_time, datetime) or not isinstance(end_time, datetime):
        raise ValidationError("Shift times must be datetimes", field_name="start_time")
    if end_time <= start_time:
        raise ValidationError("end_time must be after start_time", field_name="end_time")
    if end_time - start_time > MAX_SHIFT_LENGTH:
        raise ValidationError(
            f"A shift cannot last longer than {MAX_SHIFT_LENGTH}",
            field_name="end_time",
        )


class Shift(Entity):
    record_fields = ("start_time", "end_time")

    cleaner = One("CleanerRole", back="shifts", kind=LinkKind.COMPOSITION, exclusive=True)
    hall = One("Hall", back="shifts", lower=1)

    def __init__(
        self,
        cleaner: Any,
        hall: Any,
        start_time: datetime,
        end_time: datetime,
        *,
        context: ModelContext | None = None,
    ) -> None:
        super().__init__(context=context)
        if cleaner is None:
            raise ArgumentError("Shift requires a cleaner", argument="cleaner")
        if hall is None:
            raise ArgumentError("Shift requires a hall", argument="hall")
        self.start_time = start_time
        self.end_time = end_time
        self._validate()
        self._join((Shift.cleaner, cleaner), (Shift.hall, hall))

    def _validate(self) -> None:
        _check_times(self.start_time, self.end_time)

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    def edit(self, start_time: datetime | None = None, end_time: datetime | None = None) -> None:
        self._require_live()
        start = self.start_time if start_time is None else start_time
        end = self.end_time if end_time is None else end_time
        _check_times(start, end)
        self.start_time, self.end_time = start, end

    def set_hall(self, hall: Any) -> bool:
        self._require_live()
        return assign(Shift.hall, self, hall)

    def _summary(self) -> str:
        return f"{self.start_time.isoformat(timespec='minutes')} +{self.duration}"
