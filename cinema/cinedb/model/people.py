"""
People of the cinema: customers and employees.

Person is abstract and has no extent of its own; Customer and Employee
each keep theirs.

Associations:
    - Customer.orders <-> Order.customer (optional)
    - Customer.reviews <-> Review.author (composition, reviews cascade)
    - Employee.roles <-> EmployeeRole.employee (composition, one role per kind)
    - Employee.supervisor <-> Employee.subordinates (reflexive hierarchy)

Invariants:
    - An employee holds at most one role of each concrete role type
    - The supervisor chain never contains a cycle
    - Passwords are stored as base64 SHA-256 digests only
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from ..errors import ArgumentError, MultiplicityError, StateError
from ..extent import ModelContext, get_context
from ..links import LinkKind, Many, One, assign, link, unlink
from .contracts import EmploymentContract
from .entity import Entity
from .validators import (
    hash_password,
    require_birth_date,
    require_choice,
    require_email,
    require_not_future,
    require_password,
    require_text,
)
from .values import OrderStatus

logger = logging.getLogger(__name__)


class Person(Entity, abstract=True):
    """Common identity of customers and employees."""

    record_fields = ("first_name", "last_name", "date_of_birth")

    def _init_person(self, first_name: str, last_name: str, date_of_birth: date) -> None:
        self.first_name = first_name
        self.last_name = last_name
        self.date_of_birth = date_of_birth

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def age(self) -> int:
        """Age in whole years as of today."""
        today = date.today()
        born = self.date_of_birth
        return today.year - born.year - ((today.month, today.day) < (born.month, born.day))

    def _validate(self) -> None:
        require_text(self.first_name, "first_name")
        require_text(self.last_name, "last_name")
        require_birth_date(self.date_of_birth)

    def _summary(self) -> str:
        return self.full_name


class Customer(Person):
    """Registered customer.

    Example:
        >>> alice = Customer("Alice", "Smith", date(1990, 5, 1), "alice@example.com", "secret1")
        >>> alice.bonus_points
        0
    """

    record_fields = Person.record_fields + ("email", "password_hash")

    orders = Many("Order", back="customer")
    reviews = Many("Review", back="author", kind=LinkKind.COMPOSITION, cascade=True)

    def __init__(
        self,
        first_name: str,
        last_name: str,
        date_of_birth: date,
        email: str,
        password: str,
        *,
        context: ModelContext | None = None,
    ) -> None:
        super().__init__(context=context)
        self._init_person(first_name, last_name, date_of_birth)
        self.email = email
        self.password_hash = hash_password(require_password(password))
        self._validate()
        self._join()

    def _validate(self) -> None:
        super()._validate()
        require_email(self.email)
        require_text(self.password_hash, "password_hash")

    def check_password(self, raw: str) -> bool:
        return isinstance(raw, str) and hash_password(raw) == self.password_hash

    def change_password(self, raw: str) -> None:
        self._require_live()
        self.password_hash = hash_password(require_password(raw))

    def change_email(self, email: str) -> None:
        self._require_live()
        self.email = require_email(email)

    @property
    def bonus_points(self) -> int:
        """Points earned by paid orders."""
        return sum(order.points for order in self.orders if order.status is OrderStatus.PAID)

    def add_order(self, order: Any) -> bool:
        self._require_live()
        return link(Customer.orders, self, order)

    def remove_order(self, order: Any) -> bool:
        self._require_live()
        return unlink(Customer.orders, self, order)

    @classmethod
    def find_by_email(cls, email: str, context: ModelContext | None = None) -> Customer | None:
        """Customer whose email matches, ignoring case; None if there is none."""
        if not isinstance(email, str) or not email.strip():
            return None
        wanted = email.strip().lower()
        for customer in (context or get_context()).extent(cls):
            if customer.email.lower() == wanted:
                return customer
        return None


class Employee(Person):
    """Cinema employee holding one contract and any number of roles."""

    record_fields = Person.record_fields + ("hiring_date", "phone_number", "contract")

    roles = Many(
        "EmployeeRole",
        back="employee",
        kind=LinkKind.COMPOSITION,
        cascade=True,
        guard="_guard_role",
    )
    supervisor = One("Employee", back="subordinates", kind=LinkKind.HIERARCHY)
    subordinates = Many("Employee", back="supervisor", kind=LinkKind.HIERARCHY)

    def __init__(
        self,
        first_name: str,
        last_name: str,
        date_of_birth: date,
        hiring_date: date,
        phone_number: str,
        contract: EmploymentContract,
        *,
        supervisor: Employee | None = None,
        context: ModelContext | None = None,
    ) -> None:
        super().__init__(context=context)
        self._init_person(first_name, last_name, date_of_birth)
        self.hiring_date = hiring_date
        self.phone_number = phone_number
        self.contract = contract
        self._validate()
        self._join((Employee.supervisor, supervisor))

    def _validate(self) -> None:
        super()._validate()
        require_not_future(self.hiring_date, "hiring_date")
        require_text(self.phone_number, "phone_number")
        require_choice(self.contract, "contract", EmploymentContract)

    def _guard_role(self, role: Any, attach: bool) -> None:
        if not attach:
            return
        held = self.role_of(type(role))
        if held is not None and held is not role:
            raise MultiplicityError(
                f"{self!r} already has a {type(role).__name__}",
                end=f"Employee.roles[{type(role).__name__}]",
                bound=1,
            )

    def change_contract(self, contract: EmploymentContract) -> None:
        self._require_live()
        self.contract = require_choice(contract, "contract", EmploymentContract)
        logger.info(
            "Contract changed",
            extra={"employee": repr(self), "contract": type(contract).__name__},
        )

    # Roles

    def role_of(self, role_type: type) -> Any:
        """Held role of exactly role_type, or None."""
        for role in self.roles:
            if type(role) is role_type:
                return role
        return None

    def add_role(self, role: Any) -> bool:
        """Attach a role created for this employee (no-op if already held)."""
        self._require_live()
        return link(Employee.roles, self, role)

    def delete_role(self, role: Any) -> int:
        """Delete one of this employee's roles.

        Raises:
            StateError: If the role belongs to someone else
        """
        self._require_live()
        if not Employee.roles.contains(self, role):
            raise StateError(f"{role!r} is not a role of {self!r}")
        return role.delete()

    # Hierarchy

    def set_supervisor(self, supervisor: Employee) -> bool:
        self._require_live()
        if supervisor is None:
            raise ArgumentError("supervisor cannot be None; use remove_supervisor()", argument="supervisor")
        return assign(Employee.supervisor, self, supervisor)

    def remove_supervisor(self) -> None:
        self._require_live()
        if self.supervisor is None:
            raise StateError(f"{self!r} does not have a supervisor")
        assign(Employee.supervisor, self, None)

    def add_subordinate(self, employee: Employee) -> bool:
        self._require_live()
        return link(Employee.subordinates, self, employee)

    def remove_subordinate(self, employee: Employee) -> bool:
        self._require_live()
        return unlink(Employee.subordinates, self, employee)
