"""
Unit tests for the supervisor/subordinate hierarchy.

Tests cover:
- Symmetric parent/child links
- Reassigning a supervisor
- Rejection of self-supervision and cycles of any length
"""

import pytest

from cinema.cinedb.errors import ArgumentError, StateError


class TestSupervisor:
    """Tests for Employee.supervisor / subordinates."""

    def test_set_supervisor(self, make_employee):
        """Both sides see the link."""
        boss = make_employee()
        clerk = make_employee()

        clerk.set_supervisor(boss)

        assert clerk.supervisor is boss
        assert boss.subordinates == (clerk,)

    def test_supervisor_in_constructor(self, make_employee):
        """The constructor links the supervisor."""
        boss = make_employee()
        clerk = make_employee(supervisor=boss)

        assert boss.subordinates == (clerk,)

    def test_add_subordinate(self, make_employee):
        """Linking from the parent side works the same."""
        boss = make_employee()
        clerk = make_employee()

        boss.add_subordinate(clerk)

        assert clerk.supervisor is boss

    def test_reassign_supervisor(self, make_employee):
        """A new supervisor replaces the old one on both sides."""
        first = make_employee()
        second = make_employee()
        clerk = make_employee(supervisor=first)

        clerk.set_supervisor(second)

        assert first.subordinates == ()
        assert second.subordinates == (clerk,)

    def test_remove_supervisor(self, make_employee):
        """remove_supervisor() makes the employee a root."""
        boss = make_employee()
        clerk = make_employee(supervisor=boss)

        clerk.remove_supervisor()

        assert clerk.supervisor is None
        assert boss.subordinates == ()

    def test_remove_missing_supervisor_raises(self, employee):
        """Removing a supervisor that is not there is a state error."""
        with pytest.raises(StateError, match="does not have a supervisor"):
            employee.remove_supervisor()

    def test_set_supervisor_none_raises(self, employee):
        """None is not a supervisor."""
        with pytest.raises(ArgumentError):
            employee.set_supervisor(None)

    def test_remove_subordinate_absent_is_noop(self, make_employee):
        """Removing someone who is not a subordinate returns False."""
        boss = make_employee()
        other = make_employee()

        assert boss.remove_subordinate(other) is False


class TestCycles:
    """Tests for cycle rejection."""

    def test_self_supervision_rejected(self, employee):
        """An employee cannot supervise themselves."""
        with pytest.raises(StateError, match="its own supervisor"):
            employee.set_supervisor(employee)

        assert employee.supervisor is None

    def test_two_cycle_rejected(self, make_employee):
        """A subordinate cannot supervise their supervisor."""
        boss = make_employee()
        clerk = make_employee(supervisor=boss)

        with pytest.raises(StateError, match="cycle"):
            boss.set_supervisor(clerk)

        assert boss.supervisor is None
        assert boss.subordinates == (clerk,)

    def test_long_cycle_rejected(self, make_employee):
        """Cycles through several levels are rejected too."""
        top = make_employee()
        middle = make_employee(supervisor=top)
        bottom = make_employee(supervisor=middle)

        with pytest.raises(StateError, match="cycle"):
            top.set_supervisor(bottom)
        with pytest.raises(StateError, match="cycle"):
            bottom.add_subordinate(top)

        assert top.supervisor is None

    def test_sibling_link_allowed(self, make_employee):
        """Moving within a tree without closing a loop is fine."""
        top = make_employee()
        left = make_employee(supervisor=top)
        right = make_employee(supervisor=top)

        right.set_supervisor(left)

        assert top.subordinates == (left,)
        assert left.subordinates == (right,)
