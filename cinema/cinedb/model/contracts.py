"""
Employment contracts.

Contracts are immutable value objects held by an Employee; they have no
extent and no links of their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .validators import require_money, require_range
from .values import persisted_value


@dataclass(frozen=True)
class EmploymentContract:
    """Base class of employment contracts."""


@persisted_value
@dataclass(frozen=True)
class FullTimeContract(EmploymentContract):
    """Salaried contract.

    Attributes:
        salary: Monthly salary (500-3500, two decimals at most)
        has_benefits_plan: Whether the benefits plan applies
    """

    MIN_SALARY = Decimal("500")
    MAX_SALARY = Decimal("3500")

    salary: Decimal
    has_benefits_plan: bool = False

    def __post_init__(self) -> None:
        """Validate contract terms."""
        require_money(self.salary, "salary", self.MIN_SALARY, self.MAX_SALARY)


@persisted_value
@dataclass(frozen=True)
class PartTimeContract(EmploymentContract):
    """Hourly contract.

    Attributes:
        hourly_rate: Rate per hour (5-50)
        max_week_hours: Weekly hour cap (1-30)
    """

    MIN_HOURLY_RATE = Decimal("5.00")
    MAX_HOURLY_RATE = Decimal("50.00")
    MIN_WEEKLY_HOURS = 1
    MAX_WEEKLY_HOURS = 30

    hourly_rate: Decimal
    max_week_hours: int

    def __post_init__(self) -> None:
        """Validate contract terms."""
        require_money(self.hourly_rate, "hourly_rate", self.MIN_HOURLY_RATE, self.MAX_HOURLY_RATE)
        require_range(self.max_week_hours, "max_week_hours", self.MIN_WEEKLY_HOURS, self.MAX_WEEKLY_HOURS)
