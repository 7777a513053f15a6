"""
Sales: orders, promotions and reviews.

Order is the exclusive-pair entity: its kind decides which of the customer
and cashier ends must be populated.

    PENDING --finalize()--> PAID --request_refund()--> REFUNDED

Rules:
    - ONLINE orders never have a cashier (rejected as soon as one is set)
      and need a customer by the time they are finalized
    - BOX_OFFICE orders need a cashier when finalized; a customer may be
      linked too, for bonus points
    - Tickets, customer, cashier and kind only change while PENDING
    - finalize() first tries to link a customer by the order's email
      (case-insensitive); a miss is not an error
    - Deletes that would change a PAID or REFUNDED order are refused: its
      tickets, its customer, its cashier and the seats, sessions and
      promotions its tickets use

Invariants:
    - A PAID or REFUNDED order satisfies the kind rule and has tickets,
      each with a session and a seat
    - Every check of finalize() runs before anything is changed
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from ..errors import ArgumentError, DiscriminatorError, MultiplicityError, StateError, ValidationError
from ..extent import ModelContext
from ..links import LinkKind, Many, One, assign, check_link, link, unlink
from .entity import Entity
from .people import Customer
from .screening import Ticket
from .validators import require_choice, require_email, require_money, require_not_future, require_range, require_text
from .values import OrderKind, OrderStatus

logger = logging.getLogger(__name__)

POINTS_PER_TICKET = 10


class Order(Entity):
    """Ticket order placed online or at the box office."""

    record_fields = ("created_at", "kind", "status", "email_for_bonus_points")

    tickets = Many(
        "Ticket",
        back="order",
        kind=LinkKind.COMPOSITION,
        lower=1,
        cascade=True,
        guard="_guard_tickets",
    )
    customer = One("Customer", back="orders", guard="_guard_customer")
    cashier = One("CashierRole", back="orders", guard="_guard_cashier")

    def __init__(
        self,
        kind: OrderKind,
        *,
        customer: Customer | None = None,
        cashier: Any = None,
        email_for_bonus_points: str | None = None,
        created_at: datetime | None = None,
        context: ModelContext | None = None,
    ) -> None:
        super().__init__(context=context)
        self.kind = kind
        self.status = OrderStatus.PENDING
        self.created_at = created_at or datetime.now()
        self.email_for_bonus_points = email_for_bonus_points
        self._validate()
        self._join((Order.customer, customer), (Order.cashier, cashier))

    def _validate(self) -> None:
        require_choice(self.kind, "kind", OrderKind)
        require_choice(self.status, "status", OrderStatus)
        require_not_future(self.created_at, "created_at")
        if self.email_for_bonus_points is not None:
            require_email(self.email_for_bonus_points, "email_for_bonus_points")

    def _summary(self) -> str:
        return f"{self.kind.value}, {self.status.value}"

    @property
    def is_editable(self) -> bool:
        return self.status is OrderStatus.PENDING

    @property
    def points(self) -> int:
        return POINTS_PER_TICKET * len(self.tickets)

    @property
    def total_price(self) -> Decimal:
        return sum((ticket.final_price for ticket in self.tickets), Decimal("0"))

    # Guards, called by the link protocol

    def _require_editable(self) -> None:
        if not self.is_editable:
            raise StateError(f"{self!r} is {self.status.value} and can no longer be changed")

    def _guard_tickets(self, ticket: Any, attach: bool) -> None:
        self._require_editable()

    def _guard_customer(self, customer: Any, attach: bool) -> None:
        self._require_editable()

    def _guard_cashier(self, cashier: Any, attach: bool) -> None:
        self._require_editable()
        if attach and self.kind is OrderKind.ONLINE:
            raise DiscriminatorError(
                f"Online {self!r} cannot have a cashier",
                discriminator=self.kind.value,
            )

    # Tickets

    def add_ticket(self, ticket: Any) -> bool:
        """Attach a detached ticket.

        Raises:
            StateError: Ticket belongs to another order, or order not editable
        """
        self._require_live()
        return link(Order.tickets, self, ticket)

    def remove_ticket(self, ticket: Any) -> bool:
        """Detach a ticket; it stays live without an order.

        Raises:
            MultiplicityError: If it is the order's last ticket
        """
        self._require_live()
        return unlink(Order.tickets, self, ticket)

    def delete_ticket(self, ticket: Any) -> int:
        """Delete one of this order's tickets.

        Raises:
            StateError: Ticket not in this order, or order not editable
            MultiplicityError: If it is the order's last ticket
        """
        self._require_live()
        if not Order.tickets.contains(self, ticket):
            raise StateError(f"{ticket!r} is not part of {self!r}")
        self._require_editable()
        if len(self.tickets) <= Order.tickets.lower:
            raise MultiplicityError(
                f"Order.tickets requires at least {Order.tickets.lower} Ticket; "
                f"cannot delete the last one from {self!r}",
                end=Order.tickets.label,
                bound=Order.tickets.lower,
            )
        return ticket.delete()

    # Customer / cashier

    def set_customer(self, customer: Customer | None) -> bool:
        self._require_live()
        return assign(Order.customer, self, customer)

    def set_cashier(self, cashier: Any) -> bool:
        self._require_live()
        return assign(Order.cashier, self, cashier)

    def change_kind(self, kind: OrderKind, *, customer: Customer | None = None, cashier: Any = None) -> None:
        """Switch the kind together with both pair ends.

        The new customer and cashier replace the current ones (None clears).
        """
        self._require_live()
        self._require_editable()
        require_choice(kind, "kind", OrderKind)
        if kind is OrderKind.ONLINE and cashier is not None:
            raise DiscriminatorError(f"Online {self!r} cannot have a cashier", discriminator=kind.value)
        if customer is not None:
            check_link(Order.customer, self, customer, guarded=False)
        if cashier is not None:
            check_link(Order.cashier, self, cashier, guarded=False)

        previous = self.kind
        self.kind = kind
        assign(Order.cashier, self, cashier)
        assign(Order.customer, self, customer)
        logger.info(
            "Order kind changed",
            extra={"order": repr(self), "from": previous.value, "to": kind.value},
        )

    # Lifecycle

    def finalize(self) -> None:
        """Mark the order PAID.

        Raises:
            StateError: Order is not PENDING
            MultiplicityError: Order has no tickets, or a ticket lost its
                session or seat
            DiscriminatorError: Customer/cashier do not fit the order kind
        """
        self._require_live()
        if self.status is not OrderStatus.PENDING:
            raise StateError(f"Only pending orders can be finalized; {self!r} is {self.status.value}")
        if not self.tickets:
            raise MultiplicityError(
                f"{self!r} has no tickets",
                end=Order.tickets.label,
                bound=Order.tickets.lower,
            )
        for ticket in self.tickets:
            for end in (Ticket.session, Ticket.seat):
                if end.view(ticket) is None:
                    raise MultiplicityError(
                        f"{ticket!r} of {self!r} has no {end.name}",
                        end=end.label,
                        bound=end.lower,
                    )

        match = self._match_customer_by_email()
        customer = self.customer or match
        if self.kind is OrderKind.ONLINE:
            if customer is None:
                raise DiscriminatorError(f"Online {self!r} requires a customer", discriminator=self.kind.value)
            if self.cashier is not None:
                raise DiscriminatorError(f"Online {self!r} cannot have a cashier", discriminator=self.kind.value)
        elif self.cashier is None:
            raise DiscriminatorError(f"Box office {self!r} requires a cashier", discriminator=self.kind.value)

        if match is not None and self.customer is None:
            link(Order.customer, self, match)
            self.email_for_bonus_points = match.email
            logger.info("Order linked to customer by email", extra={"order": repr(self), "customer": repr(match)})
        self.status = OrderStatus.PAID
        logger.info(
            "Order finalized",
            extra={"order": repr(self), "tickets": len(self.tickets), "points": self.points},
        )

    def _match_customer_by_email(self) -> Customer | None:
        if self.customer is not None or not self.email_for_bonus_points:
            return None
        match = Customer.find_by_email(self.email_for_bonus_points, context=self._context)
        if match is None:
            logger.info(
                "No customer for order email",
                extra={"order": repr(self), "email": self.email_for_bonus_points},
            )
        return match

    def request_refund(self) -> None:
        self._require_live()
        if self.status is not OrderStatus.PAID:
            raise StateError(f"Only paid orders can be refunded; {self!r} is {self.status.value}")
        self.status = OrderStatus.REFUNDED
        logger.info("Order refunded", extra={"order": repr(self)})


class Promotion(Entity):
    """Discount campaign attached to sessions and tickets."""

    record_fields = ("description", "valid_from", "valid_to", "discount_amount")

    sessions = Many("Session", back="promotions", kind=LinkKind.MANY_TO_MANY)
    tickets = Many("Ticket", back="promotions", kind=LinkKind.MANY_TO_MANY)

    def __init__(
        self,
        description: str,
        valid_from: date,
        valid_to: date,
        discount_amount: Decimal = Decimal("0"),
        *,
        context: ModelContext | None = None,
    ) -> None:
        super().__init__(context=context)
        self.description = description
        self.valid_from = valid_from
        self.valid_to = valid_to
        self.discount_amount = discount_amount
        self._validate()
        self._join()

    def _validate(self) -> None:
        require_text(self.description, "description")
        if not isinstance(self.valid_from, date) or not isinstance(self.valid_to, date):
            raise ValidationError("Promotion dates are required", field_name="valid_from")
        if self.valid_from > self.valid_to:
            raise ValidationError("valid_from cannot be after valid_to", field_name="valid_from")
        require_money(self.discount_amount, "discount_amount", Decimal("0"))

    def _summary(self) -> str:
        return self.description

    def is_active(self, on: date | None = None) -> bool:
        day = on or date.today()
        return self.valid_from <= day <= self.valid_to

    def add_session(self, session: Any) -> bool:
        self._require_live()
        return link(Promotion.sessions, self, session)

    def remove_session(self, session: Any) -> bool:
        self._require_live()
        return unlink(Promotion.sessions, self, session)

    def add_ticket(self, ticket: Any) -> bool:
        self._require_live()
        return link(Promotion.tickets, self, ticket)

    def remove_ticket(self, ticket: Any) -> bool:
        self._require_live()
        return unlink(Promotion.tickets, self, ticket)


class Review(Entity):
    """Customer review of a session; owned by its author."""

    MIN_RATING = 1
    MAX_RATING = 5

    record_fields = ("rating_of_movie", "rating_of_hall", "comment", "posted_on")

    author = One("Customer", back="reviews", kind=LinkKind.COMPOSITION, exclusive=True)
    session = One("Session", back="reviews", lower=1)

    def __init__(
        self,
        author: Customer,
        session: Any,
        rating_of_movie: int,
        rating_of_hall: int,
        comment: str = "",
        posted_on: date | None = None,
        *,
        context: ModelContext | None = None,
    ) -> None:
        super().__init__(context=context)
        if author is None:
            raise ArgumentError("Review requires an author", argument="author")
        if session is None:
            raise ArgumentError("Review requires a session", argument="session")
        self.rating_of_movie = rating_of_movie
        self.rating_of_hall = rating_of_hall
        self.comment = comment
        self.posted_on = posted_on or date.today()
        self._validate()
        self._join((Review.author, author), (Review.session, session))

    def _validate(self) -> None:
        require_range(self.rating_of_movie, "rating_of_movie", self.MIN_RATING, self.MAX_RATING)
        require_range(self.rating_of_hall, "rating_of_hall", self.MIN_RATING, self.MAX_RATING)
        if not isinstance(self.comment, str):
            raise ValidationError("comment must be a string", field_name="comment")
        require_not_future(self.posted_on, "posted_on")

    def edit(
        self,
        rating_of_movie: int | None = None,
        rating_of_hall: int | None = None,
        comment: str | None = None,
    ) -> None:
        """Change ratings and/or comment; all are checked before any is set."""
        self._require_live()
        movie = self.rating_of_movie if rating_of_movie is None else rating_of_movie
        hall = self.rating_of_hall if rating_of_hall is None else rating_of_hall
        text = self.comment if comment is None else comment
        require_range(movie, "rating_of_movie", self.MIN_RATING, self.MAX_RATING)
        require_range(hall, "rating_of_hall", self.MIN_RATING, self.MAX_RATING)
        if not isinstance(text, str):
            raise ValidationError("comment must be a string", field_name="comment")
        self.rating_of_movie, self.rating_of_hall, self.comment = movie, hall, text

    def _summary(self) -> str:
        return f"{self.rating_of_movie}/{self.rating_of_hall}"
