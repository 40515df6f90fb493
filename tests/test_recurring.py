"""Tests for the recurring rule engine."""

from datetime import date, datetime, time, timedelta

import pytest

from hkplanner.config import EngineConfig
from hkplanner.domain.catalog import TemplateCatalog
from hkplanner.domain.models import (
    Frequency,
    Priority,
    Room,
    RoomStatus,
    ScheduleRule,
    StaffMember,
    TaskSource,
    Weekday,
)
from hkplanner.domain.policies import EventOccupancy
from hkplanner.domain.roster import StaffRoster
from hkplanner.exceptions import ConfigurationError
from hkplanner.scheduling.frequency import FrequencyEvaluator
from hkplanner.scheduling.recurring import RecurringRuleEngine, default_rules
from hkplanner.storage.task_store import InMemoryTaskStore
from hkplanner.validation.validator import ConflictValidator, ScheduleValidator, ValidationErrorType


MONDAY = date(2024, 1, 15)
TUESDAY = date(2024, 1, 16)


def make_engine(catalog=None, roster=None, rules=None, store=None) -> RecurringRuleEngine:
    return RecurringRuleEngine(
        catalog if catalog is not None else TemplateCatalog.default(),
        roster if roster is not None else StaffRoster.default(),
        rules=rules,
        config=EngineConfig(),
        store=store if store is not None else InMemoryTaskStore(),
        evaluator=FrequencyEvaluator(EventOccupancy()),
    )


@pytest.fixture
def rooms():
    return [Room(id=f"r{n}", number=str(n), room_type="standard") for n in (101, 102, 103)]


class TestDefaultRules:
    """Tests for the built-in rule set."""

    def test_four_rules(self):
        rules = default_rules()
        assert [r.task_type for r in rules] == [
            "daily_inspection",
            "checkout_cleaning",
            "maintenance_check",
            "deep_clean",
        ]
        assert rules[1].time_of_day is None

    def test_monday_run(self, rooms):
        store = InMemoryTaskStore()
        result = make_engine(store=store).run(rooms, MONDAY)

        by_type = {}
        for task in result.tasks:
            by_type.setdefault(task.task_type, []).append(task)

        assert set(by_type) == {"daily_inspection", "maintenance_check"}
        assert {t.assigned_to for t in by_type["daily_inspection"]} == {"staff-1", "staff-2", "staff-3"}
        assert all(t.scheduled_time.time() == time(9, 0) for t in by_type["daily_inspection"])
        assert {t.assigned_to for t in by_type["maintenance_check"]} == {"staff-6"}
        assert sorted(t.scheduled_time.time() for t in by_type["maintenance_check"]) == [
            time(10, 0),
            time(10, 45),
            time(11, 30),
        ]
        assert result.to_dict() == {"scheduledCount": 6, "warnings": []}
        assert store.count() == 6

    def test_tasks_are_tagged_with_rule(self, rooms):
        result = make_engine().run(rooms, MONDAY)

        task = result.tasks[0]
        assert task.source == TaskSource.RECURRING_RULE
        assert task.rule_name == "Daily Room Inspections"
        assert task.description == "Daily visual inspections for all rooms"

    def test_no_conflicts(self, rooms):
        result = make_engine().run(rooms, MONDAY)
        assert ConflictValidator().find_conflicts(result.tasks, as_of=MONDAY) == []

    def test_monthly_rule_on_first_of_month(self, rooms):
        # 2024-04-01 is a Monday
        result = make_engine().run(rooms, date(2024, 4, 1))

        deep = [t for t in result.tasks if t.task_type == "deep_clean"]
        assert len(deep) == 3
        assert {t.assigned_to for t in deep} <= {"staff-2", "staff-3", "staff-5"}


class TestRecurringRuleEngine:
    """Tests for rule evaluation details."""

    def test_checkout_rule_starts_at_shift_start(self):
        room = Room(id="r1", number="101", room_type="standard", status=RoomStatus.CLEANING)
        rule = default_rules()[1]

        result = make_engine(rules=[rule]).run([room], MONDAY)

        assert len(result.tasks) == 1
        task = result.tasks[0]
        assert task.assigned_to == "staff-1"
        assert task.priority == Priority.HIGH
        assert task.scheduled_time.time() == time(8, 0)

    def test_missing_template_synthesizes_bare_task(self, rooms):
        rule = ScheduleRule(
            name="Minibar Restock",
            frequency=Frequency.DAILY,
            task_type="minibar_restock",
            time_of_day=time(11, 0),
        )

        result = make_engine(rules=[rule]).run(rooms, MONDAY)

        assert result.scheduled_count == 3
        assert result.tasks[0].title == "Minibar Restock - Room 101"
        assert result.tasks[0].checklist == []
        assert len(result.warnings) == 1

    def test_room_type_filter(self):
        rule = ScheduleRule(
            name="Suite Turndown",
            frequency=Frequency.DAILY,
            task_type="daily_inspection",
            room_types=frozenset({"suite"}),
        )
        rooms = [
            Room(id="r1", number="101", room_type="standard"),
            Room(id="r2", number="201", room_type="suite"),
        ]

        result = make_engine(rules=[rule]).run(rooms, MONDAY)

        assert [t.room_number for t in result.tasks] == ["201"]

    def test_inactive_rules_are_ignored(self, rooms):
        rule = ScheduleRule(
            name="Disabled",
            frequency=Frequency.DAILY,
            task_type="daily_inspection",
            is_active=False,
        )
        assert make_engine(rules=[rule]).run(rooms, MONDAY).scheduled_count == 0

    def test_duplicate_task_type_is_skipped(self, rooms):
        rule = ScheduleRule(name="Inspect", frequency=Frequency.DAILY, task_type="daily_inspection")
        again = ScheduleRule(name="Inspect Again", frequency=Frequency.DAILY, task_type="daily_inspection")

        result = make_engine(rules=[rule, again]).run(rooms, MONDAY)

        assert result.scheduled_count == 3
        assert len(result.warnings) == 3

    def test_no_staff_available(self, rooms):
        roster = StaffRoster([StaffMember(id="A", name="A", working_days={Weekday.SUNDAY})])
        result = make_engine(roster=roster).run(rooms, MONDAY)

        assert result.to_dict() == {"scheduledCount": 0, "warnings": []}

    def test_empty_roster_is_fatal(self, rooms):
        with pytest.raises(ConfigurationError):
            make_engine(roster=StaffRoster([])).run(rooms, MONDAY)

    def test_rule_from_dict(self):
        rule = ScheduleRule.from_dict(
            {
                "name": "Checkout Cleaning",
                "frequency": "on_checkout",
                "time": "immediate",
                "roomTypes": ["all"],
                "taskType": "checkout_cleaning",
                "priority": "high",
                "assignmentRule": "skill_based",
                "isActive": True,
            }
        )

        assert rule.frequency == Frequency.CHECKOUT
        assert rule.time_of_day is None
        assert rule.assignment_rule == default_rules()[1].assignment_rule
        assert rule.applies_to("suite")


class TestRecurringWorkload:
    """Tests for per-staff timelines and capacity across rules."""

    @pytest.fixture
    def rooms_after_checkout(self):
        return [
            Room(id=f"r{n}", number=str(n), room_type="standard", status=RoomStatus.CLEANING)
            for n in range(101, 113)
        ]

    def test_staff_tasks_never_overlap(self, rooms_after_checkout):
        result = make_engine().run(rooms_after_checkout, MONDAY)

        times_by_staff: dict[str, list[datetime]] = {}
        for task in result.tasks:
            times_by_staff.setdefault(task.assigned_to, []).append(task.scheduled_time)

        assert {t.task_type for t in result.tasks} == {
            "daily_inspection",
            "checkout_cleaning",
            "maintenance_check",
        }
        for staff_id, times in times_by_staff.items():
            times.sort()
            gaps = [later - earlier for earlier, later in zip(times, times[1:])]
            assert all(gap >= timedelta(minutes=45) for gap in gaps), staff_id

    def test_capacity_counts_distinct_rooms_across_rules(self, rooms_after_checkout):
        roster = StaffRoster.default()
        result = make_engine(roster=roster).run(rooms_after_checkout, MONDAY)

        rooms_by_staff: dict[str, set[str]] = {}
        for task in result.tasks:
            rooms_by_staff.setdefault(task.assigned_to, set()).add(task.room_id)

        for staff_id, room_ids in rooms_by_staff.items():
            assert len(room_ids) <= roster.get(staff_id).max_rooms_per_day
        assert not any("over capacity" in w for w in result.warnings)
        validation = ScheduleValidator(roster).validate(result.tasks)
        assert validation.errors_of(ValidationErrorType.CAPACITY_EXCEEDED) == []

    def test_second_rule_on_same_room_is_not_over_capacity(self):
        roster = StaffRoster(
            [StaffMember(id="A", name="A", max_rooms_per_day=3, working_days={Weekday.TUESDAY})]
        )
        rooms = [
            Room(id=f"r{n}", number=str(n), room_type="standard", status=RoomStatus.CLEANING)
            for n in (101, 102, 103)
        ]

        result = make_engine(roster=roster, rules=default_rules()[:2]).run(rooms, TUESDAY)

        assert result.scheduled_count == 6
        assert result.warnings == []

    def test_room_stays_with_its_assignee(self):
        roster = StaffRoster(
            [
                StaffMember(id="A", name="A", max_rooms_per_day=1, working_days={Weekday.TUESDAY}),
                StaffMember(id="B", name="B", max_rooms_per_day=1, working_days={Weekday.TUESDAY}),
            ]
        )
        room = Room(id="r1", number="101", room_type="standard", status=RoomStatus.CLEANING)

        result = make_engine(roster=roster, rules=default_rules()[:2]).run([room], TUESDAY)

        assert [(t.task_type, t.assigned_to) for t in result.tasks] == [
            ("daily_inspection", "A"),
            ("checkout_cleaning", "A"),
        ]
