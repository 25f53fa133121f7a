"""
Unit tests for waitlist promotion and roster membership changes.
"""

from gatherly.models.event import Roster
from gatherly.services.capacity_manager import add_member, fill_vacancies, remove_member


class TestFillVacancies:
    def test_promotes_in_fifo_order(self):
        roster = Roster(members=list("abcde"), in_=["a"], waitlist=["b", "c", "d"])
        updated, promoted = fill_vacancies(roster, capacity=3)
        assert promoted == ["b", "c"]
        assert updated.in_ == ["a", "b", "c"]
        assert updated.waitlist == ["d"]

    def test_full_event_returns_same_roster(self):
        roster = Roster(members=list("abc"), in_=["a", "b"], waitlist=["c"])
        updated, promoted = fill_vacancies(roster, capacity=2)
        assert promoted == []
        assert updated is roster

    def test_unlimited_capacity_drains_waitlist(self):
        roster = Roster(members=list("abc"), in_=["a"], waitlist=["b", "c"])
        updated, promoted = fill_vacancies(roster, capacity=0)
        assert promoted == ["b", "c"]
        assert updated.waitlist == []

    def test_over_capacity_keeps_existing_attendees(self):
        roster = Roster(members=list("abcd"), in_=["a", "b", "c"], waitlist=["d"])
        updated, promoted = fill_vacancies(roster, capacity=2)
        assert promoted == []
        assert updated.in_ == ["a", "b", "c"]


class TestMembership:
    def test_remove_attendee_promotes_head_of_waitlist(self):
        roster = Roster(members=list("abc"), in_=["a", "b"], waitlist=["c"])
        updated, promoted = remove_member(roster, "a", capacity=2)
        assert promoted == ["c"]
        assert updated.members == ["b", "c"]
        assert updated.in_ == ["b", "c"]

    def test_remove_undecided_member(self):
        roster = Roster(members=list("ab"), undecided=["a"], out=["b"])
        updated, promoted = remove_member(roster, "a", capacity=0)
        assert promoted == []
        assert updated.members == ["b"]
        assert updated.undecided == []

    def test_add_member_starts_undecided(self):
        roster = Roster(members=["a"], in_=["a"])
        updated = add_member(roster, "b")
        assert updated.members == ["a", "b"]
        assert updated.undecided == ["b"]
        assert updated.status_of("b").value == "undecided"

    def test_add_existing_member_is_noop(self):
        roster = Roster(members=["a"], out=["a"])
        assert add_member(roster, "a") is roster
