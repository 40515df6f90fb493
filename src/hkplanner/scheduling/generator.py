"""Schedule generator: orchestrates the rolling-window bulk generation.

For each day of the window the generator filters the roster down to the
staff working that day, distributes the day's rooms across them, evaluates
every task template of the room's schedule template, and materializes the
tasks that fire. A day is computed completely in memory and then written to
the task store as one batch, so a failed write never leaves a partial day.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from hkplanner.config import EngineConfig, validate_config
from hkplanner.domain.catalog import TemplateCatalog
from hkplanner.domain.models import GeneratedTask, Room, StaffMember
from hkplanner.domain.roster import StaffRoster
from hkplanner.exceptions import ConfigurationError, PersistenceError
from hkplanner.scheduling.balanced import build_distributor
from hkplanner.scheduling.distributor import RoomAssignment, Workload
from hkplanner.scheduling.frequency import FrequencyEvaluator
from hkplanner.scheduling.materializer import TaskMaterializer
from hkplanner.scheduling.timing import ScheduledTimeCalculator
from hkplanner.storage.task_store import InMemoryTaskStore, TaskStore
from hkplanner.utils.logger import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class OverCapacityRecord:
    """An assignment made through the over-capacity escape hatch."""

    scheduled_date: date
    room_id: str
    room_number: str
    staff_id: str


@dataclass
class DayPlan:
    """Everything computed for one day of the window.

    Attributes:
        scheduled_date: The day.
        assignments: Room assignments from the distributor.
        tasks: Tasks materialized for the day.
        skipped: True when nobody was available and the day was skipped.
        persisted: True once the day's batch has been written.
    """

    scheduled_date: date
    assignments: list[RoomAssignment] = field(default_factory=list)
    tasks: list[GeneratedTask] = field(default_factory=list)
    skipped: bool = False
    persisted: bool = False

    @property
    def over_capacity(self) -> list[OverCapacityRecord]:
        return [
            OverCapacityRecord(
                scheduled_date=self.scheduled_date,
                room_id=a.room.id,
                room_number=a.room.number,
                staff_id=a.staff_member.id,
            )
            for a in self.assignments
            if a.is_over_capacity
        ]


@dataclass
class GenerationResult:
    """Outcome of a rolling-window run.

    Only tasks from persisted days are counted as scheduled.
    """

    start_date: date
    window_days: int
    days: list[DayPlan] = field(default_factory=list)
    failed_days: list[date] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def tasks(self) -> list[GeneratedTask]:
        return [task for day in self.days if day.persisted for task in day.tasks]

    @property
    def scheduled_count(self) -> int:
        return len(self.tasks)

    @property
    def over_capacity(self) -> list[OverCapacityRecord]:
        return [record for day in self.days for record in day.over_capacity]

    @property
    def skipped_days(self) -> list[date]:
        return [day.scheduled_date for day in self.days if day.skipped]

    def get_summary(self) -> dict:
        """Get a summary of the run."""
        active_days = [d for d in self.days if not d.skipped]
        return {
            "start_date": self.start_date.isoformat(),
            "window_days": self.window_days,
            "scheduled_count": self.scheduled_count,
            "active_days": len(active_days),
            "skipped_days": [d.isoformat() for d in self.skipped_days],
            "failed_days": [d.isoformat() for d in self.failed_days],
            "over_capacity_assignments": len(self.over_capacity),
            "tasks_by_staff": self._tasks_by_staff(),
            "warnings": list(self.warnings),
        }

    def _tasks_by_staff(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for task in self.tasks:
            counts[task.assigned_to_name] = counts.get(task.assigned_to_name, 0) + 1
        return counts


class ScheduleGenerator:
    """High-level generator for the rolling scheduling window.

    Example:
        >>> generator = ScheduleGenerator(TemplateCatalog.default(), StaffRoster.default())
        >>> result = generator.generate(rooms, start_date=date(2024, 1, 15))
        >>> result.scheduled_count
        42
    """

    def __init__(
        self,
        catalog: TemplateCatalog,
        roster: StaffRoster,
        config: Optional[EngineConfig] = None,
        store: Optional[TaskStore] = None,
        evaluator: Optional[FrequencyEvaluator] = None,
        distributor=None,
        materializer: Optional[TaskMaterializer] = None,
        time_calculator: Optional[ScheduledTimeCalculator] = None,
    ):
        """Initialize the generator.

        Args:
            catalog: Template catalog, loaded once for the run.
            roster: Staff directory.
            config: Engine configuration.
            store: Task store receiving one batch per day.
            evaluator: Frequency evaluator (defaults to the configured
                probabilistic occupancy fallback).
            distributor: Room-to-staff distributor (defaults to the configured one).
            materializer: Task materializer.
            time_calculator: Scheduled-time calculator (defaults to the
                configured slot policy).
        """
        self.config = config or EngineConfig()
        validate_config(self.config)
        self.catalog = catalog
        self.roster = roster
        self.store = store if store is not None else InMemoryTaskStore()
        self.evaluator = evaluator or FrequencyEvaluator(self.config.build_occupancy())
        self.distributor = distributor or build_distributor(self.config)
        self.materializer = materializer or TaskMaterializer()
        self.time_calculator = time_calculator or ScheduledTimeCalculator(
            self.config.build_slot_policy()
        )

    def generate(self, rooms: list[Room], start_date: Optional[date] = None) -> GenerationResult:
        """Generate and persist tasks for every day of the window.

        Args:
            rooms: Room directory entries; out-of-order rooms are ignored.
            start_date: First day of the window (today if None).

        Returns:
            GenerationResult with per-day plans and the run summary.

        Raises:
            ConfigurationError: If the catalog or roster is empty. Raised
                before anything is persisted.
        """
        self._check_inputs()

        start = start_date or date.today()
        result = GenerationResult(start_date=start, window_days=self.config.window_days)
        eligible = self._eligible_rooms(rooms, result)

        for offset in range(self.config.window_days):
            on_date = start + timedelta(days=offset)
            plan = self.plan_day(on_date, eligible, self.roster.available_on(on_date))
            result.days.append(plan)

            for record in plan.over_capacity:
                result.warnings.append(
                    f"{on_date.isoformat()}: room {record.room_number} assigned to "
                    f"{record.staff_id} over capacity"
                )

            if plan.skipped:
                continue
            self._persist(plan, result)

        logger.info(
            "Generated %d tasks over %d days starting %s (%d skipped, %d failed)",
            result.scheduled_count,
            self.config.window_days,
            start.isoformat(),
            len(result.skipped_days),
            len(result.failed_days),
        )
        return result

    def plan_day(
        self,
        on_date: date,
        rooms: list[Room],
        staff: list[StaffMember],
    ) -> DayPlan:
        """Compute one day's assignments and tasks without touching the store.

        Args:
            on_date: The day.
            rooms: Eligible rooms, in processing order.
            staff: Staff available on the day, in roster order.

        Returns:
            DayPlan for the day; ``skipped`` if ``staff`` is empty.
        """
        if not staff:
            logger.info("No staff available on %s; skipping day", on_date.isoformat())
            return DayPlan(scheduled_date=on_date, skipped=True)

        workload = Workload()
        assignments = self.distributor.distribute(rooms, staff, workload)
        timeline = self.time_calculator.new_timeline(on_date)
        tasks = []

        for assignment in assignments:
            if assignment.staff_member is None:
                continue
            room = assignment.room
            schedule_template = self.catalog.template_for_room(room)
            if schedule_template is None:
                logger.debug("No schedule template for room type %s", room.room_type)
                continue

            for template in schedule_template.tasks:
                if not self.evaluator.should_fire(template, on_date, room):
                    continue
                _, scheduled_time = timeline.next_slot(
                    assignment.staff_member, template.estimated_duration_minutes
                )
                tasks.append(
                    self.materializer.materialize(
                        template,
                        room,
                        assignment.staff_member,
                        on_date,
                        scheduled_time,
                        schedule_template=schedule_template,
                    )
                )

        return DayPlan(scheduled_date=on_date, assignments=assignments, tasks=tasks)

    def _check_inputs(self) -> None:
        if self.catalog.is_empty:
            raise ConfigurationError("Template catalog is empty; nothing to schedule")
        if self.roster.is_empty:
            raise ConfigurationError("Staff roster is empty; nobody to assign")

    def _eligible_rooms(self, rooms: list[Room], result: GenerationResult) -> list[Room]:
        """Schedulable rooms, first occurrence of each id only."""
        seen = set()
        eligible = []
        for room in rooms:
            if not room.is_schedulable:
                continue
            if room.id in seen:
                result.warnings.append(f"Duplicate room {room.id} in room directory ignored")
                continue
            seen.add(room.id)
            eligible.append(room)
        return eligible

    def _persist(self, plan: DayPlan, result: GenerationResult) -> None:
        if not plan.tasks:
            plan.persisted = True
            return
        try:
            self.store.upsert_many(plan.tasks)
        except PersistenceError as exc:
            logger.error("Persisting %s failed: %s", plan.scheduled_date.isoformat(), exc)
            result.failed_days.append(plan.scheduled_date)
            result.warnings.append(f"{plan.scheduled_date.isoformat()}: persistence failed ({exc})")
            return
        plan.persisted = True


@dataclass
class SetupSummary:
    """Summary returned by the initial property setup.

    Attributes:
        templates_created: Schedule templates in the catalog used.
        schedules_created: Tasks scheduled across the window.
        staff_created: Staff members in the roster.
        result: Full generation result.
    """

    templates_created: int
    schedules_created: int
    staff_created: int
    result: GenerationResult

    def to_dict(self) -> dict:
        return {
            "templatesCreated": self.templates_created,
            "schedulesCreated": self.schedules_created,
            "staffCreated": self.staff_created,
            "summary": self.result.get_summary(),
        }


def run_initial_setup(
    rooms: list[Room],
    catalog: Optional[TemplateCatalog] = None,
    roster: Optional[StaffRoster] = None,
    config: Optional[EngineConfig] = None,
    store: Optional[TaskStore] = None,
    start_date: Optional[date] = None,
) -> SetupSummary:
    """Run the bulk initial setup for a property.

    Uses the built-in catalog and roster when none are given.
    """
    catalog = catalog if catalog is not None else TemplateCatalog.default()
    roster = roster if roster is not None else StaffRoster.default()

    generator = ScheduleGenerator(catalog, roster, config=config, store=store)
    result = generator.generate(rooms, start_date=start_date)

    return SetupSummary(
        templates_created=len(catalog),
        schedules_created=result.scheduled_count,
        staff_created=len(roster),
        result=result,
    )
