"""
Screening: movies, sessions and tickets.

Associations:
    - Movie.sessions <-> Session.movie, Hall.sessions <-> Session.hall
    - Session.technicians <-> TechnicianRole.sessions (many-to-many, at
      least one technician once any is assigned)
    - Session.promotions / Ticket.promotions <-> Promotion (many-to-many)
    - Order.tickets <-> Ticket.order (composition; a ticket never moves
      between orders without being removed first)
    - Session.tickets <-> Ticket.session, Seat.tickets <-> Ticket.seat

Invariants:
    - A session always has a hall and a movie
    - A ticket's seat sits in the hall of the ticket's session
    - One seat is sold at most once per session (refunded orders excepted)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from ..errors import ArgumentError, StateError, ValidationError
from ..extent import ModelContext, get_context
from ..links import LinkKind, Many, One, assign, link, unlink
from .entity import Entity
from .validators import require_choice, require_money, require_range, require_text
from .values import OrderStatus
from .venue import Seat

logger = logging.getLogger(__name__)


class Movie(Entity):
    """Movie in the programme."""

    record_fields = ("title", "duration", "genres", "age_restriction")

    sessions = Many("Session", back="movie")
    halls = Many("Hall", back="movies", kind=LinkKind.MANY_TO_MANY)

    def __init__(
        self,
        title: str,
        duration: timedelta,
        genres: Iterable[str],
        age_restriction: int = 0,
        *,
        context: ModelContext | None = None,
    ) -> None:
        super().__init__(context=context)
        self.title = title
        self.duration = duration
        self.genres = list(genres)
        self.age_restriction = age_restriction
        self._validate()
        self._join()

    def _validate(self) -> None:
        require_text(self.title, "title")
        if not isinstance(self.duration, timedelta) or self.duration <= timedelta():
            raise ValidationError("duration must be a positive timedelta", field_name="duration")
        if not self.genres:
            raise ValidationError("At least one genre is required", field_name="genres")
        for genre in self.genres:
            require_text(genre, "genres")
        require_range(self.age_restriction, "age_restriction", 0)

    def _summary(self) -> str:
        return self.title

    @classmethod
    def search_by_title(cls, text: str, context: ModelContext | None = None) -> list[Movie]:
        """Movies whose title contains text, ignoring case."""
        if not isinstance(text, str) or not text.strip():
            return []
        needle = text.strip().lower()
        return [m for m in (context or get_context()).extent(cls) if needle in m.title.lower()]

    def add_hall(self, hall: Any) -> bool:
        self._require_live()
        return link(Movie.halls, self, hall)

    def remove_hall(self, hall: Any) -> bool:
        self._require_live()
        return unlink(Movie.halls, self, hall)


class Session(Entity):
    """One screening of a movie in a hall."""

    record_fields = ("start_at", "language")

    hall = One("Hall", back="sessions", lower=1)
    movie = One("Movie", back="sessions", lower=1)
    technicians = Many("TechnicianRole", back="sessions", kind=LinkKind.MANY_TO_MANY, lower=1)
    promotions = Many("Promotion", back="sessions", kind=LinkKind.MANY_TO_MANY)
    tickets = Many("Ticket", back="session")
    reviews = Many("Review", back="session")

    def __init__(
        self,
        hall: Any,
        movie: Movie,
        start_at: datetime,
        language: str,
        *,
        technicians: Iterable[Any] = (),
        context: ModelContext | None = None,
    ) -> None:
        super().__init__(context=context)
        if hall is None:
            raise ArgumentError("Session requires a hall", argument="hall")
        if movie is None:
            raise ArgumentError("Session requires a movie", argument="movie")
        self.start_at = start_at
        self.language = language
        self._validate()
        self._join(
            (Session.hall, hall),
            (Session.movie, movie),
            *((Session.technicians, technician) for technician in technicians),
        )

    def _validate(self) -> None:
        if not isinstance(self.start_at, datetime):
            raise ValidationError("start_at must be a datetime", field_name="start_at")
        require_text(self.language, "language")

    def _summary(self) -> str:
        movie = self.movie
        title = movie.title if movie is not None else "?"
        return f"{title} @ {self.start_at.isoformat(timespec='minutes')}"

    @property
    def end_at(self) -> datetime | None:
        """Start plus the movie's duration; None once the movie is gone."""
        movie = self.movie
        return None if movie is None else self.start_at + movie.duration

    def overlaps(self, other: Session) -> bool:
        """Whether the two sessions run at the same time.

        Raises:
            StateError: If either session has lost its movie
        """
        for session in (self, other):
            if session.movie is None:
                raise StateError(f"{session!r} has no movie, so its running time is unknown")
        return self.start_at < other.end_at and other.start_at < self.end_at

    def edit(self, start_at: datetime | None = None, language: str | None = None) -> None:
        """Change the start time and/or language; both are checked before either is set."""
        self._require_live()
        new_start = self.start_at if start_at is None else start_at
        new_language = self.language if language is None else language
        if not isinstance(new_start, datetime):
            raise ValidationError("start_at must be a datetime", field_name="start_at")
        require_text(new_language, "language")
        self.start_at = new_start
        self.language = new_language

    def set_hall(self, hall: Any) -> bool:
        self._require_live()
        return assign(Session.hall, self, hall)

    def set_movie(self, movie: Movie) -> bool:
        self._require_live()
        return assign(Session.movie, self, movie)

    def add_technician(self, technician: Any) -> bool:
        self._require_live()
        return link(Session.technicians, self, technician)

    def remove_technician(self, technician: Any) -> bool:
        """Remove a technician.

        Raises:
            MultiplicityError: If it is the session's last technician
        """
        self._require_live()
        return unlink(Session.technicians, self, technician)

    def add_promotion(self, promotion: Any) -> bool:
        self._require_live()
        return link(Session.promotions, self, promotion)

    def remove_promotion(self, promotion: Any) -> bool:
        self._require_live()
        return unlink(Session.promotions, self, promotion)


class Ticket(Entity):
    """Ticket for one seat at one session; part of exactly one order."""

    record_fields = ("discount_amount", "bonus_points_used", "is_booked")

    order = One("Order", back="tickets", kind=LinkKind.COMPOSITION, exclusive=True)
    session = One("Session", back="tickets", lower=1, guard="_guard_editable")
    seat = One("Seat", back="tickets", lower=1, guard="_guard_editable")
    promotions = Many("Promotion", back="tickets", kind=LinkKind.MANY_TO_MANY, guard="_guard_editable")

    def __init__(
        self,
        order: Any,
        session: Session,
        seat: Any,
        discount_amount: Decimal = Decimal("0"),
        bonus_points_used: int = 0,
        *,
        context: ModelContext | None = None,
    ) -> None:
        super().__init__(context=context)
        for name, value in (("order", order), ("session", session), ("seat", seat)):
            if value is None:
                raise ArgumentError(f"Ticket requires a {name}", argument=name)
        self.discount_amount = discount_amount
        self.bonus_points_used = bonus_points_used
        self.is_booked = False
        self._validate()
        _check_seat_free(session, seat)
        self._join(
            (Ticket.order, order),
            (Ticket.session, session),
            (Ticket.seat, seat),
        )

    def _validate(self) -> None:
        require_money(self.discount_amount, "discount_amount", Decimal("0"))
        require_range(self.bonus_points_used, "bonus_points_used", 0)
        require_choice(self.is_booked, "is_booked", bool)

    def _guard_editable(self, target: Any, attach: bool) -> None:
        order = self.order
        if order is not None and order.status is not OrderStatus.PENDING:
            raise StateError(f"{self!r} belongs to {order.status.value} {order!r} and cannot be changed")

    @property
    def final_price(self) -> Decimal:
        """Seat price less discount and bonus points, never below zero.

        Raises:
            StateError: If the ticket's seat was deleted
        """
        seat = self.seat
        if seat is None:
            raise StateError(f"{self!r} has no seat to price")
        price = seat.final_price - self.discount_amount - Decimal(self.bonus_points_used)
        return max(price, Decimal("0"))

    def book(self) -> None:
        self._require_live()
        if self.is_booked:
            raise StateError(f"{self!r} is already booked")
        self.is_booked = True

    def add_promotion(self, promotion: Any) -> bool:
        self._require_live()
        return link(Ticket.promotions, self, promotion)

    def remove_promotion(self, promotion: Any) -> bool:
        self._require_live()
        return unlink(Ticket.promotions, self, promotion)

    def _summary(self) -> str:
        seat = self.seat
        number = seat.number if seat is not None else None
        return f"seat {number}" if number is not None else "unseated"


def _check_seat_free(session: Session, seat: Seat) -> None:
    if not isinstance(session, Session) or not isinstance(seat, Seat):
        return
    if seat.hall is not session.hall:
        raise StateError(f"{seat!r} is not in the hall of {session!r}")
    for ticket in session.tickets:
        if ticket.seat is seat and (ticket.order is None or ticket.order.status is not OrderStatus.REFUNDED):
            raise StateError(f"{seat!r} is already sold for {session!r}")
