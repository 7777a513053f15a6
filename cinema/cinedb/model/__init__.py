"""
CineDB domain model.

Importing this package registers every entity type, so link ends can
resolve their counterparts by name.
"""

from .contracts import EmploymentContract, FullTimeContract, PartTimeContract
from .entity import Entity
from .operations import Shift
from .people import Customer, Employee, Person
from .roles import CashierRole, CleanerRole, EmployeeRole, TechnicianRole
from .sales import Order, Promotion, Review
from .screening import Movie, Session, Ticket
from .values import VALUE_TYPES, EquipmentType, OrderKind, OrderStatus, SeatType, persisted_value
from .venue import Equipment, Hall, Seat

__all__ = [
    "CashierRole",
    "CleanerRole",
    "Customer",
    "Employee",
    "EmployeeRole",
    "EmploymentContract",
    "Entity",
    "Equipment",
    "EquipmentType",
    "FullTimeContract",
    "Hall",
    "Movie",
    "Order",
    "OrderKind",
    "OrderStatus",
    "PartTimeContract",
    "Person",
    "Promotion",
    "Review",
    "Seat",
    "SeatType",
    "Session",
    "Shift",
    "Ticket",
    "TechnicianRole",
    "VALUE_TYPES",
    "persisted_value",
]
