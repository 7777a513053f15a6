"""
Shared fixtures for CineDB tests.

Every test runs against its own ModelContext, activated for the duration of
the test, so extents never leak between tests.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from cinema.cinedb.config import Settings
from cinema.cinedb.extent import ModelContext, use_context
from cinema.cinedb.model import (
    CashierRole,
    Customer,
    Employee,
    FullTimeContract,
    Hall,
    Movie,
    Order,
    OrderKind,
    Seat,
    SeatType,
    Session,
    TechnicianRole,
    Ticket,
)


@pytest.fixture
def settings(tmp_path):
    """Settings with the data directory inside tmp_path."""
    return Settings(data_dir=str(tmp_path), hall_max_capacity=150, compression="none")


@pytest.fixture
def context(settings):
    """Fresh model context, active for the test."""
    ctx = ModelContext(settings)
    with use_context(ctx):
        yield ctx


@pytest.fixture
def document_path(tmp_path):
    return tmp_path / "cinema-extents.json"


@pytest.fixture
def make_employee(context):
    """Factory for employees with valid defaults."""
    counter = iter(range(1, 1000))

    def _make(first_name=None, **kwargs):
        n = next(counter)
        return Employee(
            first_name or f"Worker{chr(64 + n)}",
            kwargs.pop("last_name", "Kowalski"),
            kwargs.pop("date_of_birth", date(1985, 3, 2)),
            kwargs.pop("hiring_date", date(2020, 1, 15)),
            kwargs.pop("phone_number", "+48 600 100 200"),
            kwargs.pop("contract", FullTimeContract(Decimal("2500.00"))),
            **kwargs,
        )

    return _make


@pytest.fixture
def employee(make_employee):
    return make_employee("Jan")


@pytest.fixture
def cashier(employee):
    return CashierRole(employee, "cash01", "Secret1")


@pytest.fixture
def make_technician(make_employee):
    def _make():
        return TechnicianRole(make_employee(), "Film Engineering")

    return _make


@pytest.fixture
def technician(make_technician):
    return make_technician()


@pytest.fixture
def customer(context):
    return Customer("Alice", "Smith", date(1990, 5, 1), "Alice@Example.com", "secret1")


@pytest.fixture
def hall(context):
    return Hall("Main", 10)


@pytest.fixture
def make_seat(hall):
    """Factory placing a normal seat in the hall under the given number."""

    def _make(number, seat_type=SeatType.NORMAL, price=Decimal("20.00")):
        return Seat(seat_type, price, hall=hall, number=number)

    return _make


@pytest.fixture
def seat(make_seat):
    return make_seat(1)


@pytest.fixture
def movie(context):
    return Movie("Dune", timedelta(minutes=155), ["sci-fi"], 12)


@pytest.fixture
def session(hall, movie, technician):
    return Session(hall, movie, datetime(2024, 5, 1, 18, 0), "EN", technicians=[technician])


@pytest.fixture
def order(cashier):
    """Pending box-office order without tickets."""
    return Order(OrderKind.BOX_OFFICE, cashier=cashier)


@pytest.fixture
def ticket(order, session, seat):
    return Ticket(order, session, seat)
