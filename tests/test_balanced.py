"""Tests for the CP-SAT distributor."""

import pytest

from hkplanner.config import DistributorType, EngineConfig
from hkplanner.domain.models import Room, StaffMember, Weekday
from hkplanner.scheduling.balanced import BalancedDistributor, build_distributor
from hkplanner.scheduling.distributor import AssignmentDistributor, AssignmentOutcome, Workload


def make_staff(staff_id: str, skills=(), capacity: int = 10) -> StaffMember:
    return StaffMember(
        id=staff_id,
        name=staff_id,
        skills=set(skills),
        max_rooms_per_day=capacity,
        working_days={Weekday.MONDAY},
    )


def make_rooms(room_types: list[str]) -> list[Room]:
    return [
        Room(id=f"r{i}", number=str(100 + i), room_type=room_type)
        for i, room_type in enumerate(room_types)
    ]


class TestBalancedDistributor:
    """Tests for BalancedDistributor."""

    @pytest.fixture
    def distributor(self):
        return BalancedDistributor(time_limit_seconds=5.0)

    def test_spreads_suites_across_equally_skilled_staff(self, distributor):
        staff = [
            make_staff("A", skills={"advanced_cleaning"}),
            make_staff("B", skills={"advanced_cleaning"}),
        ]
        assignments = distributor.distribute(make_rooms(["suite"] * 4), staff)

        counts = {}
        for a in assignments:
            counts[a.staff_member.id] = counts.get(a.staff_member.id, 0) + 1
        assert counts == {"A": 2, "B": 2}

    def test_prefers_specialists(self, distributor):
        staff = [make_staff("A"), make_staff("B", skills={"accessibility_cleaning"})]

        assignments = distributor.distribute(make_rooms(["accessible"]), staff)

        assert assignments[0].staff_member.id == "B"

    def test_respects_capacity_when_possible(self, distributor):
        staff = [make_staff("A", skills={"advanced_cleaning"}, capacity=1), make_staff("B")]

        assignments = distributor.distribute(make_rooms(["suite", "suite"]), staff)

        assert all(a.outcome == AssignmentOutcome.ASSIGNED for a in assignments)
        assert sorted(a.staff_member.id for a in assignments) == ["A", "B"]

    def test_overflow_is_tagged(self, distributor):
        staff = [make_staff("A", capacity=1)]

        assignments = distributor.distribute(make_rooms(["standard"] * 2), staff)

        assert [a.outcome for a in assignments] == [
            AssignmentOutcome.ASSIGNED,
            AssignmentOutcome.ASSIGNED_OVER_CAPACITY,
        ]
        assert [a.ordinal for a in assignments] == [1, 2]

    def test_updates_shared_workload(self, distributor):
        staff = [make_staff("A"), make_staff("B")]
        workload = Workload()

        distributor.distribute(make_rooms(["standard"] * 4), staff, workload)

        assert sum(workload.counts.values()) == 4

    def test_no_staff(self, distributor):
        assignments = distributor.distribute(make_rooms(["standard"]), [])
        assert assignments[0].outcome == AssignmentOutcome.UNASSIGNED


class TestBuildDistributor:
    """Tests for distributor selection."""

    def test_greedy_by_default(self):
        assert isinstance(build_distributor(EngineConfig()), AssignmentDistributor)

    def test_balanced(self):
        distributor = build_distributor(EngineConfig(distributor=DistributorType.BALANCED))
        assert isinstance(distributor, BalancedDistributor)
        assert distributor.fallback is None

    def test_hybrid_has_greedy_fallback(self):
        distributor = build_distributor(EngineConfig(distributor=DistributorType.HYBRID))
        assert isinstance(distributor.fallback, AssignmentDistributor)
