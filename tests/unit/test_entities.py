"""
Unit tests for entity behaviour beyond links.

Tests cover:
- Derived values (age, prices, durations, session end)
- Searches over extents (customer email, movie title)
- Edits that validate before changing anything
- Promotions, reviews, shifts and cleaner statistics
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from cinema.cinedb.errors import StateError, ValidationError
from cinema.cinedb.model import (
    CleanerRole,
    Customer,
    Equipment,
    EquipmentType,
    FullTimeContract,
    Hall,
    Movie,
    PartTimeContract,
    Promotion,
    Review,
    Seat,
    SeatType,
    Session,
    Shift,
    Ticket,
)


class TestPeople:
    """Tests for customers and employees."""

    def test_age(self, context):
        """Age counts whole years."""
        today = date.today()
        born = date(today.year - 30, 1, 1)
        customer = Customer("Ann", "Lee", born, "ann@example.com", "secret1")

        assert customer.age == 30

    def test_password_is_hashed(self, customer):
        """Only the digest is kept."""
        assert customer.password_hash != "secret1"
        assert customer.check_password("secret1")
        assert not customer.check_password("wrong")

    def test_invalid_email_rejected(self, context):
        """Malformed emails fail validation."""
        with pytest.raises(ValidationError) as exc_info:
            Customer("Ann", "Lee", date(1990, 1, 1), "not-an-email", "secret1")

        assert exc_info.value.field_name == "email"
        assert Customer.all() == ()

    def test_find_by_email_ignores_case(self, customer):
        """Lookup is case-insensitive and exact."""
        assert Customer.find_by_email("alice@example.COM") is customer
        assert Customer.find_by_email("alice@example") is None
        assert Customer.find_by_email("") is None

    def test_change_contract(self, employee):
        """Contracts are replaced as values."""
        contract = PartTimeContract(Decimal("12.50"), 20)

        employee.change_contract(contract)

        assert employee.contract == contract

    def test_change_contract_type_checked(self, employee):
        """Only contracts are accepted."""
        with pytest.raises(ValidationError):
            employee.change_contract("full time")

    def test_contract_bounds(self):
        """Contracts validate their terms."""
        with pytest.raises(ValidationError):
            FullTimeContract(Decimal("499.99"))
        with pytest.raises(ValidationError):
            FullTimeContract(Decimal("1000.001"))
        with pytest.raises(ValidationError):
            PartTimeContract(Decimal("12.00"), 31)

    def test_future_hiring_date_rejected(self, make_employee):
        """Hiring dates cannot be in the future."""
        with pytest.raises(ValidationError):
            make_employee(hiring_date=date.today() + timedelta(days=1))


class TestVenue:
    """Tests for halls, seats and equipment."""

    def test_vip_price(self, hall):
        """VIP seats cost the normal price times the multiplier."""
        seat = Seat(SeatType.VIP, Decimal("20.00"), hall=hall, number=1)

        assert seat.final_price == Decimal("36.00")

    def test_normal_price(self, seat):
        """Normal seats cost the normal price."""
        assert seat.final_price == Decimal("20.00")

    def test_hall_capacity_bounded_by_settings(self, context):
        """Capacity cannot exceed the configured maximum."""
        with pytest.raises(ValidationError):
            Hall("Huge", context.settings.hall_max_capacity + 1)

    def test_hall_capacity_positive(self, context):
        """Capacity must be at least one."""
        with pytest.raises(ValidationError):
            Hall("Empty", 0)

    def test_update_last_check_up(self, context):
        """Check-ups cannot be dated in the future."""
        item = Equipment(EquipmentType.LIGHTING, date(2024, 1, 1))

        item.update_last_check_up()
        assert item.last_check_up == date.today()

        with pytest.raises(ValidationError):
            item.update_last_check_up(date.today() + timedelta(days=1))


class TestScreening:
    """Tests for movies, sessions and tickets."""

    def test_search_by_title(self, context, movie):
        """Title search is a case-insensitive substring match."""
        other = Movie("Dune: Part Two", timedelta(minutes=166), ["sci-fi"])
        Movie("Alien", timedelta(minutes=117), ["horror"])

        assert Movie.search_by_title("dune") == [movie, other]
        assert Movie.search_by_title("  ") == []

    def test_movie_requires_genre(self, context):
        """At least one genre is required."""
        with pytest.raises(ValidationError):
            Movie("Dune", timedelta(minutes=155), [])

    def test_session_end(self, session):
        """A session ends when the movie does."""
        assert session.end_at == datetime(2024, 5, 1, 20, 35)

    def test_session_edit_validates_first(self, session):
        """A bad value changes nothing."""
        with pytest.raises(ValidationError):
            session.edit(start_at=datetime(2024, 5, 2, 18), language=" ")

        assert session.start_at == datetime(2024, 5, 1, 18)
        assert session.language == "EN"

    def test_session_promotions(self, session):
        """Promotions link both ways."""
        promotion = Promotion("Spring", date(2024, 3, 1), date(2024, 5, 31))

        session.add_promotion(promotion)

        assert promotion.sessions == (session,)
        assert session.remove_promotion(promotion) is True
        assert promotion.sessions == ()

    def test_ticket_price(self, order, session, hall):
        """Discount and points reduce the price, never below zero."""
        cheap = Seat(SeatType.NORMAL, Decimal("10.00"), hall=hall, number=5)
        pricey = Seat(SeatType.NORMAL, Decimal("20.00"), hall=hall, number=6)

        discounted = Ticket(order, session, pricey, Decimal("2.50"), 3)
        free = Ticket(order, session, cheap, Decimal("8.00"), 5)

        assert discounted.final_price == Decimal("14.50")
        assert free.final_price == Decimal("0")

    def test_ticket_seat_must_be_in_session_hall(self, context, order, session):
        """Seats from other halls are rejected."""
        other = Hall("Side", 5)
        foreign = Seat(SeatType.NORMAL, Decimal("10.00"), hall=other, number=1)

        with pytest.raises(StateError, match="not in the hall"):
            Ticket(order, session, foreign)

    def test_book_once(self, ticket):
        """A ticket is booked once."""
        ticket.book()

        assert ticket.is_booked
        with pytest.raises(StateError):
            ticket.book()


class TestSalesExtras:
    """Tests for promotions and reviews."""

    def test_promotion_active(self, context):
        """is_active() checks the inclusive date range."""
        promotion = Promotion("Spring", date(2024, 3, 1), date(2024, 5, 31))

        assert promotion.is_active(date(2024, 3, 1))
        assert promotion.is_active(date(2024, 5, 31))
        assert not promotion.is_active(date(2024, 6, 1))

    def test_promotion_dates_ordered(self, context):
        """valid_from cannot follow valid_to."""
        with pytest.raises(ValidationError):
            Promotion("Broken", date(2024, 6, 1), date(2024, 5, 1))

    def test_review_edit(self, customer, session):
        """Ratings stay within 1..5."""
        review = Review(customer, session, 4, 4, "Good")

        review.edit(rating_of_movie=5, comment="Great")
        assert (review.rating_of_movie, review.rating_of_hall, review.comment) == (5, 4, "Great")

        with pytest.raises(ValidationError):
            review.edit(rating_of_hall=6)
        assert review.rating_of_hall == 4

    def test_review_links(self, customer, session):
        """Reviews belong to their author and point at the session."""
        review = Review(customer, session, 3, 5)

        assert customer.reviews == (review,)
        assert session.reviews == (review,)


class TestShifts:
    """Tests for shifts and cleaner statistics."""

    def test_shift_duration_and_edit(self, employee, hall):
        """Shifts last at most four hours."""
        cleaner = CleanerRole(employee)
        shift = Shift(cleaner, hall, datetime(2024, 5, 1, 8), datetime(2024, 5, 1, 11))

        assert shift.duration == timedelta(hours=3)
        with pytest.raises(ValidationError):
            shift.edit(end_time=datetime(2024, 5, 1, 12, 30))
        assert shift.end_time == datetime(2024, 5, 1, 11)

    def test_average_cleaning_time(self, employee, hall):
        """The mean covers all of the cleaner's shifts."""
        cleaner = CleanerRole(employee)
        Shift(cleaner, hall, datetime(2024, 5, 1, 8), datetime(2024, 5, 1, 10))
        Shift(cleaner, hall, datetime(2024, 5, 2, 8), datetime(2024, 5, 2, 12))

        assert cleaner.average_cleaning_time() == timedelta(hours=3)

    def test_average_without_shifts(self, employee):
        """No shifts, no average."""
        cleaner = CleanerRole(employee)

        with pytest.raises(StateError):
            cleaner.average_cleaning_time()

    def test_training_up_to_date(self, employee):
        """Training is valid for a year."""
        cleaner = CleanerRole(employee, True, date(2024, 1, 10))

        assert cleaner.is_training_up_to_date(date(2024, 6, 1))
        assert not cleaner.is_training_up_to_date(date(2025, 2, 1))
