"""
Unit tests for composition and aggregation.

Tests cover:
- Parts require a live whole and attach on construction
- Exclusivity: a part is never shared or silently moved
- One role per kind for employees
- Deleting parts, and the minimum on order tickets
- Aggregated parts surviving detachment
"""

from datetime import date

import pytest

from cinema.cinedb.errors import (
    ArgumentError,
    EntityDeletedError,
    MultiplicityError,
    StateError,
)
from cinema.cinedb.links import unlink
from cinema.cinedb.model import (
    CashierRole,
    CleanerRole,
    EmployeeRole,
    Equipment,
    EquipmentType,
    Hall,
    Order,
    OrderKind,
    TechnicianRole,
    Ticket,
)


class TestTicketComposition:
    """Tests for Order.tickets <-> Ticket.order."""

    def test_ticket_attaches_on_construction(self, order, ticket):
        """A new ticket is part of its order."""
        assert order.tickets == (ticket,)
        assert ticket.order is order

    def test_ticket_requires_order(self, session, seat):
        """A part cannot be created without its whole."""
        with pytest.raises(ArgumentError):
            Ticket(None, session, seat)

        assert Ticket.all() == ()

    def test_ticket_requires_live_order(self, order, session, seat):
        """A deleted whole cannot take new parts."""
        order.delete()

        with pytest.raises(EntityDeletedError):
            Ticket(order, session, seat)

    def test_attach_to_second_order_rejected(self, cashier, order, ticket):
        """A part attached elsewhere must be detached first."""
        other = Order(OrderKind.BOX_OFFICE, cashier=cashier)

        with pytest.raises(StateError, match="detach it first"):
            other.add_ticket(ticket)

        assert order.tickets == (ticket,)
        assert ticket.order is order
        assert other.tickets == ()

    def test_move_after_detach(self, cashier, order, ticket, session, make_seat):
        """Detaching first allows the move."""
        Ticket(order, session, make_seat(2))
        other = Order(OrderKind.BOX_OFFICE, cashier=cashier)

        order.remove_ticket(ticket)
        other.add_ticket(ticket)

        assert ticket.order is other
        assert ticket not in order.tickets

    def test_remove_last_ticket_rejected(self, order, ticket):
        """An order that has tickets keeps at least one."""
        with pytest.raises(MultiplicityError):
            order.remove_ticket(ticket)

        assert order.tickets == (ticket,)

    def test_delete_ticket(self, order, ticket, session, make_seat):
        """delete_ticket() removes the part from the model."""
        second = Ticket(order, session, make_seat(2))

        assert order.delete_ticket(ticket) == 1

        assert order.tickets == (second,)
        assert ticket.is_deleted
        assert ticket not in Ticket.all()

    def test_delete_last_ticket_rejected(self, order, ticket):
        """The last ticket cannot be deleted through the order."""
        with pytest.raises(MultiplicityError):
            order.delete_ticket(ticket)

        assert ticket.is_live

    def test_delete_foreign_ticket_rejected(self, cashier, ticket):
        """Only the order's own tickets can be deleted through it."""
        other = Order(OrderKind.BOX_OFFICE, cashier=cashier)

        with pytest.raises(StateError, match="not part of"):
            other.delete_ticket(ticket)


class TestRoleComposition:
    """Tests for Employee.roles <-> EmployeeRole.employee."""

    def test_role_attaches_to_employee(self, employee, cashier):
        """The role is part of its employee."""
        assert employee.roles == (cashier,)
        assert cashier.employee is employee
        assert employee.role_of(CashierRole) is cashier
        assert employee.role_of(CleanerRole) is None

    def test_role_requires_employee(self, context):
        """Roles cannot exist without an employee."""
        with pytest.raises(ArgumentError):
            TechnicianRole(None, "Film Engineering")

        assert TechnicianRole.all() == ()

    def test_one_role_per_kind(self, employee, cashier):
        """A second role of the same kind is rejected."""
        with pytest.raises(MultiplicityError):
            CashierRole(employee, "cash02", "Secret2")

        assert CashierRole.all() == (cashier,)

    def test_roles_of_different_kinds(self, employee, cashier):
        """Different role kinds can be combined."""
        cleaner = CleanerRole(employee)
        technician = TechnicianRole(employee, "Film Engineering")

        assert set(employee.roles) == {cashier, cleaner, technician}

    def test_role_cannot_move(self, make_employee, cashier):
        """Roles stay with their employee."""
        other = make_employee()

        with pytest.raises(StateError):
            other.add_role(cashier)

    def test_role_cannot_be_detached(self, employee, cashier):
        """A role has exactly one employee."""
        with pytest.raises(MultiplicityError):
            unlink(EmployeeRole.employee, cashier, employee)

    def test_delete_role(self, employee, cashier):
        """delete_role() removes the role from the model."""
        employee.delete_role(cashier)

        assert employee.roles == ()
        assert cashier.is_deleted
        assert CashierRole.all() == ()

    def test_delete_foreign_role_rejected(self, make_employee, cashier):
        """Only the employee's own roles can be deleted through it."""
        other = make_employee()

        with pytest.raises(StateError):
            other.delete_role(cashier)


class TestAggregation:
    """Tests for Hall.equipment <-> Equipment.hall."""

    def test_equipment_outlives_detach(self, hall):
        """Detached equipment stays live."""
        speaker = Equipment(EquipmentType.AUDIO, date(2024, 2, 1), hall=hall)

        hall.remove_equipment(speaker)

        assert speaker.is_live
        assert speaker.hall is None
        assert Equipment.all() == (speaker,)

    def test_equipment_moves_between_halls(self, context, hall):
        """Aggregated parts may be reassigned directly."""
        other = Hall("Side", 5)
        speaker = Equipment(EquipmentType.AUDIO, date(2024, 2, 1), hall=hall)

        speaker.move_to(other)

        assert hall.equipment == ()
        assert other.equipment == (speaker,)
