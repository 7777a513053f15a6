"""
Unit tests for the association catalogue and model fingerprint.

Tests cover:
- Every association is declared consistently on both ends
- Entity type registration by name
- Fingerprint format and stability
"""

import pytest

from cinema.cinedb.errors import ArgumentError
from cinema.cinedb.links import (
    LinkKind,
    association_catalogue,
    catalogue_dict,
    model_fingerprint,
    resolve_entity_type,
)
from cinema.cinedb.model import CashierRole, Employee, Hall, Order


class TestCatalogue:
    """Tests for association_catalogue()."""

    def test_all_associations_listed(self):
        """The cinema model declares nineteen associations."""
        names = [a.name for a in association_catalogue()]

        assert len(names) == 19
        assert "Hall.seats<->Seat.hall" in names
        assert "Order.tickets<->Ticket.order" in names

    def test_kinds(self):
        """Association kinds match their declarations."""
        by_name = {a.name: a for a in association_catalogue()}

        assert by_name["Employee.roles<->EmployeeRole.employee"].kind is LinkKind.COMPOSITION
        assert by_name["Equipment.hall<->Hall.equipment"].kind is LinkKind.AGGREGATION
        assert by_name["Employee.subordinates<->Employee.supervisor"].kind is LinkKind.HIERARCHY
        assert by_name["Employee.subordinates<->Employee.supervisor"].reflexive

    def test_opposites_point_back(self):
        """Each end's opposite names it as its opposite."""
        for association in association_catalogue():
            assert association.first.opposite is association.second
            assert association.second.opposite is association.first

    def test_catalogue_dict_lists_types(self):
        """Abstract types are marked."""
        types = {t["name"]: t for t in catalogue_dict()["entity_types"]}

        assert types["Person"]["abstract"] is True
        assert types["Hall"]["fields"] == ["name", "capacity"]


class TestEntityTypes:
    """Tests for the entity type registry."""

    def test_resolve_by_name(self):
        """Types resolve by class name."""
        assert resolve_entity_type("Hall") is Hall
        assert resolve_entity_type("Order") is Order

    def test_unknown_type_raises(self):
        """Unknown names are argument errors."""
        with pytest.raises(ArgumentError):
            resolve_entity_type("Popcorn")

    def test_link_ends_include_inherited(self):
        """Concrete roles inherit the employee end."""
        names = [end.name for end in CashierRole.link_ends()]

        assert names == ["employee", "orders"]
        assert [end.name for end in Employee.link_ends()] == ["roles", "supervisor", "subordinates"]


class TestFingerprint:
    """Tests for model_fingerprint()."""

    def test_format(self):
        """Fingerprints are prefixed SHA-256 hex digests."""
        fingerprint = model_fingerprint()

        assert fingerprint.startswith("sha256:")
        assert len(fingerprint) == len("sha256:") + 64

    def test_stable(self):
        """The same model gives the same fingerprint."""
        assert model_fingerprint() == model_fingerprint()
