"""Tests for the rolling-window schedule generator."""

from datetime import date, time

import pytest

from hkplanner.config import EngineConfig
from hkplanner.domain.catalog import TemplateCatalog
from hkplanner.domain.models import (
    Frequency,
    Priority,
    Room,
    RoomStatus,
    ScheduleTemplate,
    StaffMember,
    TaskTemplate,
    Weekday,
)
from hkplanner.domain.policies import EventOccupancy
from hkplanner.domain.roster import StaffRoster
from hkplanner.exceptions import ConfigurationError, PersistenceError
from hkplanner.scheduling.frequency import FrequencyEvaluator
from hkplanner.scheduling.generator import ScheduleGenerator, run_initial_setup
from hkplanner.storage.task_store import InMemoryTaskStore
from hkplanner.validation.validator import ConflictValidator, ScheduleValidator


MONDAY = date(2024, 1, 15)


def daily_catalog() -> TemplateCatalog:
    template = TaskTemplate(
        task_type="daily_inspection",
        priority=Priority.MEDIUM,
        estimated_duration_minutes=10,
        frequency=Frequency.DAILY,
    )
    return TemplateCatalog(
        [ScheduleTemplate("Daily Care", "Daily inspection", frozenset({"all"}), (template,))]
    )


def make_generator(catalog, roster, store=None, window_days=1) -> ScheduleGenerator:
    return ScheduleGenerator(
        catalog,
        roster,
        config=EngineConfig(window_days=window_days),
        store=store if store is not None else InMemoryTaskStore(),
        evaluator=FrequencyEvaluator(EventOccupancy()),
    )


def make_rooms(count: int, room_type: str = "standard") -> list[Room]:
    return [Room(id=f"r{100 + i}", number=str(100 + i), room_type=room_type) for i in range(count)]


class FailingStore(InMemoryTaskStore):
    """Store that rejects the batch for one day."""

    def __init__(self, failing_date: date):
        super().__init__()
        self.failing_date = failing_date

    def upsert_many(self, tasks):
        if tasks and tasks[0].scheduled_date == self.failing_date:
            raise PersistenceError("disk full", scheduled_date=self.failing_date)
        return super().upsert_many(tasks)


class TestReferenceScenario:
    """Three rooms, two specialists, one Monday."""

    @pytest.fixture
    def roster(self):
        return StaffRoster(
            [
                StaffMember(
                    id="A",
                    name="A",
                    skills={"advanced_cleaning"},
                    max_rooms_per_day=2,
                    working_days={Weekday.MONDAY},
                ),
                StaffMember(
                    id="B",
                    name="B",
                    skills={"accessibility_cleaning"},
                    max_rooms_per_day=2,
                    working_days={Weekday.MONDAY},
                ),
            ]
        )

    @pytest.fixture
    def rooms(self):
        return [
            Room(id="101", number="101", room_type="standard"),
            Room(id="102", number="102", room_type="suite"),
            Room(id="103", number="103", room_type="accessible"),
        ]

    def test_assignments_and_times(self, roster, rooms):
        result = make_generator(daily_catalog(), roster).generate(rooms, MONDAY)

        placed = {t.room_number: (t.assigned_to, t.scheduled_time.time()) for t in result.tasks}
        assert placed == {
            "101": ("A", time(8, 0)),
            "102": ("A", time(8, 45)),
            "103": ("B", time(8, 0)),
        }
        assert result.scheduled_count == 3
        assert result.over_capacity == []

    def test_no_conflicts(self, roster, rooms):
        result = make_generator(daily_catalog(), roster).generate(rooms, MONDAY)

        assert ConflictValidator().find_conflicts(result.tasks, as_of=MONDAY) == []

    def test_no_staff_day_is_skipped(self, roster, rooms):
        tuesday = date(2024, 1, 16)
        result = make_generator(daily_catalog(), roster).generate(rooms, tuesday)

        assert result.scheduled_count == 0
        assert result.days[0].skipped is True
        assert result.skipped_days == [tuesday]


class TestScheduleGenerator:
    """Tests for ScheduleGenerator."""

    def test_empty_catalog_is_fatal(self):
        store = InMemoryTaskStore()
        generator = make_generator(TemplateCatalog([]), StaffRoster.default(), store)

        with pytest.raises(ConfigurationError):
            generator.generate(make_rooms(3), MONDAY)
        assert store.count() == 0

    def test_empty_roster_is_fatal(self):
        store = InMemoryTaskStore()
        generator = make_generator(daily_catalog(), StaffRoster([]), store)

        with pytest.raises(ConfigurationError):
            generator.generate(make_rooms(3), MONDAY)
        assert store.count() == 0

    def test_deterministic_for_calendar_frequencies(self):
        rooms = make_rooms(15)

        def run():
            result = make_generator(daily_catalog(), StaffRoster.default(), window_days=7).generate(
                rooms, MONDAY
            )
            return [
                (t.room_id, t.assigned_to, t.task_type, t.scheduled_date, t.scheduled_time)
                for t in result.tasks
            ]

        first = run()
        assert first == run()
        assert len(first) == 15 * 7

    def test_capacity_availability_and_spacing_hold(self):
        roster = StaffRoster.default()
        result = make_generator(daily_catalog(), roster, window_days=7).generate(
            make_rooms(20), MONDAY
        )

        validation = ScheduleValidator(roster, slot_minutes=45).validate(
            result.tasks, result.over_capacity
        )

        assert validation.is_valid, [str(e) for e in validation.errors]

    def test_over_capacity_is_recorded_and_excused(self):
        roster = StaffRoster(
            [StaffMember(id="A", name="A", max_rooms_per_day=1, working_days={Weekday.MONDAY})]
        )
        result = make_generator(daily_catalog(), roster).generate(make_rooms(3), MONDAY)

        assert result.scheduled_count == 3
        assert len(result.over_capacity) == 2
        assert any("over capacity" in w for w in result.warnings)

        validation = ScheduleValidator(roster).validate(result.tasks, result.over_capacity)
        assert validation.is_valid
        assert validation.warnings

    def test_persistence_failure_does_not_abort_later_days(self):
        failing = date(2024, 1, 16)
        store = FailingStore(failing)
        result = make_generator(daily_catalog(), StaffRoster.default(), store, window_days=3).generate(
            make_rooms(4), MONDAY
        )

        assert result.failed_days == [failing]
        assert result.scheduled_count == 8
        assert {t.scheduled_date for t in store.all_tasks()} == {MONDAY, date(2024, 1, 17)}
        assert result.get_summary()["failed_days"] == ["2024-01-16"]

    def test_rerun_upserts_instead_of_duplicating(self):
        store = InMemoryTaskStore()
        generator = make_generator(daily_catalog(), StaffRoster.default(), store, window_days=2)

        generator.generate(make_rooms(5), MONDAY)
        generator.generate(make_rooms(5), MONDAY)

        assert store.count() == 10

    def test_out_of_order_rooms_are_ignored(self):
        rooms = make_rooms(2) + [
            Room(id="broken", number="999", room_type="standard", status=RoomStatus.OUT_OF_ORDER)
        ]
        result = make_generator(daily_catalog(), StaffRoster.default()).generate(rooms, MONDAY)

        assert "broken" not in {t.room_id for t in result.tasks}
        assert result.scheduled_count == 2

    def test_every_template_of_the_group_is_evaluated(self):
        """A room being cleaned on a Monday gets checkout and weekly maintenance."""
        room = Room(id="r1", number="101", room_type="standard", status=RoomStatus.CLEANING)
        result = make_generator(TemplateCatalog.default(), StaffRoster.default()).generate(
            [room], MONDAY
        )

        assert sorted(t.task_type for t in result.tasks) == ["checkout_cleaning", "maintenance_check"]
        times = sorted(t.scheduled_time for t in result.tasks)
        assert (times[1] - times[0]).total_seconds() == 45 * 60

    def test_plan_day_does_not_persist(self):
        store = InMemoryTaskStore()
        generator = make_generator(daily_catalog(), StaffRoster.default(), store)

        plan = generator.plan_day(MONDAY, make_rooms(3), StaffRoster.default().available_on(MONDAY))

        assert len(plan.tasks) == 3
        assert store.count() == 0


class TestRunInitialSetup:
    """Tests for the initial setup entry point."""

    def test_summary_counts(self):
        store = InMemoryTaskStore()
        summary = run_initial_setup(
            make_rooms(6),
            catalog=daily_catalog(),
            config=EngineConfig(window_days=2),
            store=store,
            start_date=MONDAY,
        )
        data = summary.to_dict()

        assert data["templatesCreated"] == 1
        assert data["staffCreated"] == 6
        assert data["schedulesCreated"] == 12
        assert data["summary"]["scheduled_count"] == 12
        assert store.count() == 12

    def test_no_working_staff_creates_nothing(self):
        roster = StaffRoster(
            [StaffMember(id="A", name="A", working_days={Weekday.SATURDAY})]
        )
        summary = run_initial_setup(
            make_rooms(3),
            catalog=daily_catalog(),
            roster=roster,
            config=EngineConfig(window_days=1),
            start_date=MONDAY,
        )

        assert summary.schedules_created == 0
