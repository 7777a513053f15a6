"""
Venue: halls, their seats and their equipment.

Associations:
    - Hall.seats <-> Seat.hall (qualified by seat number, capacity-bound)
    - Hall.equipment <-> Equipment.hall (aggregation)
    - Hall.movies <-> Movie.halls (many-to-many)

Invariants:
    - Seat numbers are unique within one hall; halls reuse numbers freely
    - A hall never holds more seats than its capacity
    - A seat sits in at most one hall; move it by removing it first
    - Equipment outlives the hall it is attached to
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any

from ..errors import ArgumentError, CapacityError, ValidationError
from ..extent import ModelContext
from ..links import Keyed, LinkKind, Many, One, assign, link, unlink
from .entity import Entity
from .validators import require_choice, require_money, require_not_future, require_range, require_text
from .values import EquipmentType, SeatType

logger = logging.getLogger(__name__)

DEFAULT_VIP_MULTIPLIER = Decimal("1.8")


def _require_seat_number(number: Any) -> int:
    if isinstance(number, bool) or not isinstance(number, int) or number < 1:
        raise ArgumentError(f"Seat number must be a positive integer, got {number!r}", argument="number")
    return number


class Hall(Entity):
    """Screening hall."""

    record_fields = ("name", "capacity")

    seats = Keyed("Seat", back="hall", capacity="capacity")
    equipment = Many("Equipment", back="hall", kind=LinkKind.AGGREGATION)
    movies = Many("Movie", back="halls", kind=LinkKind.MANY_TO_MANY)
    sessions = Many("Session", back="hall")
    shifts = Many("Shift", back="hall")

    def __init__(self, name: str, capacity: int, *, context: ModelContext | None = None) -> None:
        super().__init__(context=context)
        self.name = name
        self.capacity = capacity
        self._validate()
        self._join()

    def _validate(self) -> None:
        require_text(self.name, "name")
        if isinstance(self.capacity, bool) or not isinstance(self.capacity, int):
            raise ValidationError("capacity must be an integer", field_name="capacity")
        require_range(self.capacity, "capacity", 1, self._context.settings.hall_max_capacity)

    def _summary(self) -> str:
        return self.name

    def rename(self, name: str) -> None:
        self._require_live()
        self.name = require_text(name, "name")

    def resize(self, capacity: int) -> None:
        """Change the capacity; never below the number of seats already placed."""
        self._require_live()
        if isinstance(capacity, bool) or not isinstance(capacity, int):
            raise ValidationError("capacity must be an integer", field_name="capacity")
        require_range(capacity, "capacity", 1, self._context.settings.hall_max_capacity)
        placed = Hall.seats.count(self)
        if capacity < placed:
            raise CapacityError(
                f"{self!r} already holds {placed} seats; cannot shrink to {capacity}",
                capacity=capacity,
            )
        self.capacity = capacity

    # Seats

    def add_seat(self, number: int, seat: Seat) -> bool:
        """Place a seat under a number.

        Raises:
            DuplicateKeyError: Number already taken in this hall
            CapacityError: Hall is full
            StateError: Seat already sits in another hall
        """
        self._require_live()
        return link(Hall.seats, self, seat, key=_require_seat_number(number))

    def get_seat(self, number: int) -> Seat | None:
        return Hall.seats.get(self, number)

    def remove_seat(self, number: int) -> Seat | None:
        """Take the seat out of the hall; None if the number is free."""
        self._require_live()
        seat = Hall.seats.get(self, number)
        if seat is None:
            return None
        unlink(Hall.seats, self, seat)
        return seat

    def seat_numbers(self) -> list[int]:
        return [number for number, _ in Hall.seats.items(self)]

    @property
    def free_places(self) -> int:
        return self.capacity - Hall.seats.count(self)

    # Equipment

    def add_equipment(self, item: Equipment) -> bool:
        self._require_live()
        return link(Hall.equipment, self, item)

    def remove_equipment(self, item: Equipment) -> bool:
        """Detach equipment; it stays live without a hall."""
        self._require_live()
        return unlink(Hall.equipment, self, item)

    # Movies

    def add_movie(self, movie: Any) -> bool:
        self._require_live()
        return link(Hall.movies, self, movie)

    def remove_movie(self, movie: Any) -> bool:
        self._require_live()
        return unlink(Hall.movies, self, movie)


class Seat(Entity):
    """Seat; priced by type, numbered by the hall that holds it."""

    record_fields = ("seat_type", "normal_price", "is_accessible", "ticket_multiplier")

    hall = One("Hall", back="seats", kind=LinkKind.QUALIFIED, exclusive=True)
    tickets = Many("Ticket", back="seat")

    def __init__(
        self,
        seat_type: SeatType,
        normal_price: Decimal,
        is_accessible: bool = False,
        ticket_multiplier: Decimal = DEFAULT_VIP_MULTIPLIER,
        *,
        hall: Hall | None = None,
        number: int | None = None,
        context: ModelContext | None = None,
    ) -> None:
        super().__init__(context=context)
        self.seat_type = seat_type
        self.normal_price = normal_price
        self.is_accessible = is_accessible
        self.ticket_multiplier = ticket_multiplier
        self._validate()
        if hall is not None:
            _require_seat_number(number)
        elif number is not None:
            raise ArgumentError("A seat number needs a hall to hold it", argument="number")
        self._join((Seat.hall, hall, number))

    def _validate(self) -> None:
        require_choice(self.seat_type, "seat_type", SeatType)
        require_money(self.normal_price, "normal_price", Decimal("0"))
        if not isinstance(self.ticket_multiplier, Decimal) or self.ticket_multiplier <= 0:
            raise ValidationError("ticket_multiplier must be a positive Decimal", field_name="ticket_multiplier")

    @property
    def number(self) -> int | None:
        """Number under which the seat's hall holds it."""
        hall = self.hall
        return None if hall is None else Hall.seats.key_of(hall, self)

    @property
    def final_price(self) -> Decimal:
        """Normal price, times the multiplier for VIP seats."""
        if self.seat_type is SeatType.VIP:
            return (self.normal_price * self.ticket_multiplier).quantize(Decimal("0.01"))
        return self.normal_price

    def change_price(self, normal_price: Decimal) -> None:
        self._require_live()
        self.normal_price = require_money(normal_price, "normal_price", Decimal("0"))

    def _summary(self) -> str:
        number = self.number
        where = f"{self.hall.name}#{number}" if number is not None else "unplaced"
        return f"{self.seat_type.value}, {where}"


class Equipment(Entity):
    """Hall equipment (aggregated: survives its hall)."""

    record_fields = ("equipment_type", "last_check_up")

    hall = One("Hall", back="equipment", kind=LinkKind.AGGREGATION)

    def __init__(
        self,
        equipment_type: EquipmentType,
        last_check_up: date,
        *,
        hall: Hall | None = None,
        context: ModelContext | None = None,
    ) -> None:
        super().__init__(context=context)
        self.equipment_type = equipment_type
        self.last_check_up = last_check_up
        self._validate()
        self._join((Equipment.hall, hall))

    def _validate(self) -> None:
        require_choice(self.equipment_type, "equipment_type", EquipmentType)
        require_not_future(self.last_check_up, "last_check_up")

    def update_last_check_up(self, on: date | None = None) -> None:
        self._require_live()
        self.last_check_up = require_not_future(on or date.today(), "last_check_up")
        logger.info("Equipment checked", extra={"equipment": repr(self), "on": self.last_check_up.isoformat()})

    def move_to(self, hall: Hall | None) -> bool:
        """Reattach to another hall (None detaches)."""
        self._require_live()
        return assign(Equipment.hall, self, hall)

    def _summary(self) -> str:
        return self.equipment_type.value
