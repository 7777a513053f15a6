"""
Unit tests for the generic link protocol.

Tests cover:
- Symmetry of forward and reverse slots
- Idempotent link/unlink (no extra slot mutations)
- Reassignment of single-valued ends
- Argument, type, self-link and deleted-entity errors
- Validate-then-mutate on failure
"""

from datetime import date

import pytest

from cinema.cinedb.errors import ArgumentError, EntityDeletedError
from cinema.cinedb.links import assign, check_link, link, unlink
from cinema.cinedb.model import Equipment, EquipmentType, Hall


@pytest.fixture
def projector(context):
    return Equipment(EquipmentType.PROJECTION, date(2024, 1, 10))


class TestSymmetry:
    """Tests for the two-sided update."""

    def test_link_updates_both_ends(self, hall, projector):
        """Linking from the collection side sets the single side."""
        link(Hall.equipment, hall, projector)

        assert hall.equipment == (projector,)
        assert projector.hall is hall

    def test_link_from_single_side(self, hall, projector):
        """Linking from the single side fills the collection."""
        link(Equipment.hall, projector, hall)

        assert hall.equipment == (projector,)

    def test_unlink_clears_both_ends(self, hall, projector):
        """Unlinking removes the back-reference too."""
        link(Hall.equipment, hall, projector)

        assert unlink(Equipment.hall, projector, hall) is True

        assert hall.equipment == ()
        assert projector.hall is None

    def test_many_to_many_symmetry(self, hall, movie):
        """Both collections hold each other."""
        link(Hall.movies, hall, movie)

        assert hall.movies == (movie,)
        assert movie.halls == (hall,)

    def test_reassign_moves_between_holders(self, context, hall, projector):
        """Assigning a new target detaches the old one on both sides."""
        other = Hall("Side", 5)
        link(Hall.equipment, hall, projector)

        assign(Equipment.hall, projector, other)

        assert projector.hall is other
        assert hall.equipment == ()
        assert other.equipment == (projector,)

    def test_assign_none_unlinks(self, hall, projector):
        """assign(None) clears the slot."""
        assign(Equipment.hall, projector, hall)

        assert assign(Equipment.hall, projector, None) is True
        assert hall.equipment == ()
        assert assign(Equipment.hall, projector, None) is False

    def test_assign_requires_single_end(self, hall, projector):
        """assign() on a collection end is a programming error."""
        with pytest.raises(TypeError):
            assign(Hall.equipment, hall, projector)


class TestIdempotence:
    """Tests for repeated calls."""

    def test_second_link_is_noop(self, context, hall, projector):
        """Repeating a link mutates nothing."""
        assert link(Hall.equipment, hall, projector) is True
        attached = context.stats.attached

        assert link(Hall.equipment, hall, projector) is False
        assert link(Equipment.hall, projector, hall) is False

        assert context.stats.attached == attached
        assert hall.equipment == (projector,)

    def test_one_link_touches_each_side_once(self, context, hall, projector):
        """A new link writes exactly two slots."""
        context.stats.reset()

        link(Hall.equipment, hall, projector)

        assert context.stats.attached == 2
        assert context.stats.detached == 0

    def test_reassign_detaches_exactly_twice(self, context, hall, projector):
        """Moving a part clears the two old slots and writes two new ones."""
        other = Hall("Side", 5)
        link(Hall.equipment, hall, projector)
        context.stats.reset()

        assign(Equipment.hall, projector, other)

        assert context.stats.detached == 2
        assert context.stats.attached == 2

    def test_unlink_absent_is_noop(self, context, hall, projector):
        """Unlinking a missing link returns False."""
        context.stats.reset()

        assert unlink(Hall.equipment, hall, projector) is False
        assert context.stats.detached == 0


class TestErrors:
    """Tests for rejected links."""

    def test_none_target_raises(self, hall):
        """None is never a valid target."""
        with pytest.raises(ArgumentError):
            link(Hall.equipment, hall, None)

    def test_wrong_target_type_raises(self, hall, movie):
        """Targets must have the end's target type."""
        with pytest.raises(ArgumentError, match="expects Equipment"):
            link(Hall.equipment, hall, movie)

    def test_holder_must_declare_end(self, movie, projector):
        """The holder must own the end."""
        with pytest.raises(ArgumentError):
            link(Hall.equipment, movie, projector)

    def test_deleted_target_raises(self, hall, projector):
        """Deleted entities cannot be linked."""
        projector.delete()

        with pytest.raises(EntityDeletedError):
            link(Hall.equipment, hall, projector)

    def test_check_link_does_not_mutate(self, context, hall, projector):
        """check_link() validates only."""
        context.stats.reset()

        assert check_link(Hall.equipment, hall, projector) is True

        assert hall.equipment == ()
        assert context.stats.attached == 0

    def test_descriptors_are_read_only(self, hall):
        """Slots cannot be assigned directly."""
        with pytest.raises(AttributeError):
            hall.equipment = ()

    def test_views_are_immutable(self, hall, projector):
        """Collection views are tuples."""
        link(Hall.equipment, hall, projector)

        assert isinstance(hall.equipment, tuple)
