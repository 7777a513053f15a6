"""
Employee roles.

A role is a part of exactly one Employee (composition); deleting the
employee deletes its roles, and a role cannot move to another employee.
An employee holds at most one role of each concrete type.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

from ..errors import ArgumentError, StateError, ValidationError
from ..extent import ModelContext
from ..links import LinkKind, Many, One, link, unlink
from .entity import Entity
from .people import Employee
from .validators import (
    hash_password,
    require_degree,
    require_not_future,
    require_pos_login,
    require_pos_password,
)

logger = logging.getLogger(__name__)

SAFETY_TRAINING_VALIDITY = timedelta(days=365)


class EmployeeRole(Entity, abstract=True):
    """Base of all roles; owned by one employee."""

    employee = One(
        "Employee",
        back="roles",
        kind=LinkKind.COMPOSITION,
        lower=1,
        exclusive=True,
    )

    def _join_employee(self, employee: Employee | None, *extra: tuple[Any, ...]) -> None:
        if employee is None:
            raise ArgumentError(f"{type(self).__name__} requires an employee", argument="employee")
        self._join((EmployeeRole.employee, employee), *extra)

    def _summary(self) -> str:
        owner = self.employee
        return owner.full_name if owner is not None else "unassigned"


class CashierRole(EmployeeRole):
    """Box-office cashier with point-of-sale credentials."""

    record_fields = ("pos_login", "pos_password_hash")

    orders = Many("Order", back="cashier")

    def __init__(
        self,
        employee: Employee,
        pos_login: str,
        pos_password: str,
        *,
        context: ModelContext | None = None,
    ) -> None:
        super().__init__(context=context)
        self.pos_login = pos_login
        self.pos_password_hash = hash_password(require_pos_password(pos_password))
        self._validate()
        self._join_employee(employee)

    def _validate(self) -> None:
        require_pos_login(self.pos_login)

    def check_pos_password(self, raw: str) -> bool:
        return isinstance(raw, str) and hash_password(raw) == self.pos_password_hash

    def change_pos_credentials(self, pos_login: str, pos_password: str) -> None:
        self._require_live()
        require_pos_login(pos_login)
        digest = hash_password(require_pos_password(pos_password))
        self.pos_login = pos_login
        self.pos_password_hash = digest


class CleanerRole(EmployeeRole):
    """Cleaner; owns the shifts they work."""

    record_fields = ("has_safety_training", "last_safety_training_date")

    shifts = Many("Shift", back="cleaner", kind=LinkKind.COMPOSITION, cascade=True)

    def __init__(
        self,
        employee: Employee,
        has_safety_training: bool = False,
        last_safety_training_date: date | None = None,
        *,
        context: ModelContext | None = None,
    ) -> None:
        super().__init__(context=context)
        self.has_safety_training = has_safety_training
        self.last_safety_training_date = last_safety_training_date
        self._validate()
        self._join_employee(employee)

    def _validate(self) -> None:
        if not isinstance(self.has_safety_training, bool):
            raise ValidationError("has_safety_training must be a bool", field_name="has_safety_training")
        if self.last_safety_training_date is not None:
            require_not_future(self.last_safety_training_date, "last_safety_training_date")
        elif self.has_safety_training:
            raise ValidationError(
                "last_safety_training_date is required when training was taken",
                field_name="last_safety_training_date",
            )

    def record_safety_training(self, on: date | None = None) -> None:
        self._require_live()
        on = on or date.today()
        require_not_future(on, "last_safety_training_date")
        self.has_safety_training = True
        self.last_safety_training_date = on

    def is_training_up_to_date(self, today: date | None = None) -> bool:
        """Safety training taken within the last year."""
        if not self.has_safety_training or self.last_safety_training_date is None:
            return False
        return (today or date.today()) - self.last_safety_training_date <= SAFETY_TRAINING_VALIDITY

    def average_cleaning_time(self) -> timedelta:
        """Mean duration of this cleaner's shifts.

        Raises:
            StateError: If the cleaner has no shifts
        """
        shifts = self.shifts
        if not shifts:
            raise StateError(f"{self!r} has no shifts")
        total = sum((shift.duration for shift in shifts), timedelta())
        return total / len(shifts)


class TechnicianRole(EmployeeRole):
    """Projection technician assigned to sessions."""

    record_fields = ("degree", "is_on_call")

    sessions = Many("Session", back="technicians", kind=LinkKind.MANY_TO_MANY)

    def __init__(
        self,
        employee: Employee,
        degree: str,
        is_on_call: bool = False,
        *,
        context: ModelContext | None = None,
    ) -> None:
        super().__init__(context=context)
        self.degree = degree
        self.is_on_call = is_on_call
        self._validate()
        self._join_employee(employee)

    def _validate(self) -> None:
        require_degree(self.degree)
        if not isinstance(self.is_on_call, bool):
            raise ValidationError("is_on_call must be a bool", field_name="is_on_call")

    def set_on_call(self, value: bool) -> None:
        self._require_live()
        self.is_on_call = bool(value)

    def assign_session(self, session: Any) -> bool:
        self._require_live()
        return link(TechnicianRole.sessions, self, session)

    def unassign_session(self, session: Any) -> bool:
        """Leave a session; rejected if this is the session's last technician."""
        self._require_live()
        return unlink(TechnicianRole.sessions, self, session)
