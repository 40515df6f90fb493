"""Recurring rule engine for steady-state scheduling.

Where the generator bulk-creates a whole window from the template catalog,
the rule engine runs once per day against a small set of schedule rules
(daily inspections, checkout cleaning, weekly maintenance, monthly deep
cleaning). Each rule selects rooms by type, decides whether it is due, picks
staff by its assignment strategy and schedules from its own time of day.
"""

from dataclasses import dataclass, field, replace
from datetime import date, time
from typing import Optional

from hkplanner.config import EngineConfig, validate_config
from hkplanner.domain.catalog import TemplateCatalog
from hkplanner.domain.models import (
    AssignmentRule,
    Frequency,
    GeneratedTask,
    Priority,
    Room,
    ScheduleRule,
    TaskSource,
    TaskTemplate,
    Weekday,
)
from hkplanner.domain.roster import StaffRoster
from hkplanner.exceptions import ConfigurationError, PersistenceError
from hkplanner.scheduling.balanced import build_distributor
from hkplanner.scheduling.distributor import Workload, candidates_for_rule
from hkplanner.scheduling.frequency import FrequencyEvaluator
from hkplanner.scheduling.materializer import TaskMaterializer
from hkplanner.scheduling.timing import ScheduledTimeCalculator
from hkplanner.storage.task_store import InMemoryTaskStore, TaskStore
from hkplanner.utils.logger import get_logger


logger = get_logger(__name__)


def default_rules() -> list[ScheduleRule]:
    """The recurring rules created during initial property setup."""
    return [
        ScheduleRule(
            name="Daily Room Inspections",
            description="Daily visual inspections for all rooms",
            frequency=Frequency.DAILY,
            time_of_day=time(9, 0),
            task_type="daily_inspection",
            priority=Priority.MEDIUM,
            assignment_rule=AssignmentRule.ROUND_ROBIN,
        ),
        ScheduleRule(
            name="Checkout Cleaning",
            description="Clean rooms after guest checkout",
            frequency=Frequency.CHECKOUT,
            time_of_day=None,
            task_type="checkout_cleaning",
            priority=Priority.HIGH,
            assignment_rule=AssignmentRule.SKILL_BASED,
        ),
        ScheduleRule(
            name="Weekly Maintenance Check",
            description="Weekly maintenance inspection for all rooms",
            frequency=Frequency.WEEKLY,
            time_of_day=time(10, 0),
            day_of_week=Weekday.MONDAY,
            task_type="maintenance_check",
            priority=Priority.MEDIUM,
            assignment_rule=AssignmentRule.MAINTENANCE_STAFF,
        ),
        ScheduleRule(
            name="Deep Clean Schedule",
            description="Monthly deep cleaning for all rooms",
            frequency=Frequency.MONTHLY,
            time_of_day=time(8, 0),
            day_of_month=1,
            task_type="deep_clean",
            priority=Priority.MEDIUM,
            assignment_rule=AssignmentRule.EXPERIENCED_STAFF,
        ),
    ]


@dataclass
class RecurringRunResult:
    """Outcome of one rule-engine run.

    Attributes:
        on_date: The day the rules were evaluated for.
        tasks: Tasks generated by the run.
        warnings: Non-fatal issues encountered.
        persisted: False if the batch could not be written.
    """

    on_date: date
    tasks: list[GeneratedTask] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    persisted: bool = True

    @property
    def scheduled_count(self) -> int:
        return len(self.tasks) if self.persisted else 0

    def to_dict(self) -> dict:
        return {"scheduledCount": self.scheduled_count, "warnings": list(self.warnings)}


class RecurringRuleEngine:
    """Applies schedule rules to the room directory for a single day."""

    def __init__(
        self,
        catalog: TemplateCatalog,
        roster: StaffRoster,
        rules: Optional[list[ScheduleRule]] = None,
        config: Optional[EngineConfig] = None,
        store: Optional[TaskStore] = None,
        evaluator: Optional[FrequencyEvaluator] = None,
        distributor=None,
        time_calculator: Optional[ScheduledTimeCalculator] = None,
    ):
        self.config = config or EngineConfig()
        validate_config(self.config)
        self.catalog = catalog
        self.roster = roster
        self.rules = default_rules() if rules is None else list(rules)
        self.store = store if store is not None else InMemoryTaskStore()
        self.evaluator = evaluator or FrequencyEvaluator(self.config.build_occupancy())
        self.distributor = distributor or build_distributor(self.config)
        self.time_calculator = time_calculator or ScheduledTimeCalculator(
            self.config.build_slot_policy()
        )
        self.materializer = TaskMaterializer(source=TaskSource.RECURRING_RULE)

    def run(self, rooms: list[Room], on_date: Optional[date] = None) -> RecurringRunResult:
        """Evaluate every active rule for a day and persist the resulting tasks.

        Args:
            rooms: Room directory entries; out-of-order rooms are ignored.
            on_date: The day (today if None).

        Returns:
            RecurringRunResult with the scheduled count and warnings.

        Raises:
            ConfigurationError: If the roster is empty.
        """
        if self.roster.is_empty:
            raise ConfigurationError("Staff roster is empty; nobody to assign")

        on_date = on_date or date.today()
        result = RecurringRunResult(on_date=on_date)
        staff = self.roster.available_on(on_date)
        if not staff:
            logger.info("No staff available on %s; no recurring tasks", on_date.isoformat())
            return result

        eligible = [room for room in rooms if room.is_schedulable]
        workload = Workload()
        timeline = self.time_calculator.new_timeline(on_date)
        seen_keys = set()

        for rule in self.rules:
            if not rule.is_active:
                continue

            due = [
                room
                for room in eligible
                if rule.applies_to(room.room_type)
                and self.evaluator.is_due(
                    rule.frequency, on_date, room, rule.day_of_week, rule.day_of_month
                )
            ]
            if not due:
                continue

            template, description = self._resolve_template(rule, result)
            candidates = candidates_for_rule(rule.assignment_rule, staff, template)

            for assignment in self.distributor.distribute(due, candidates, workload):
                room = assignment.room
                key = (room.id, template.task_type, on_date)
                if key in seen_keys:
                    result.warnings.append(
                        f"{rule.name}: {template.task_type} already scheduled for room {room.number}"
                    )
                    continue
                if assignment.is_over_capacity:
                    result.warnings.append(
                        f"{rule.name}: room {room.number} assigned to "
                        f"{assignment.staff_member.name} over capacity"
                    )

                _, scheduled_time = timeline.next_slot(
                    assignment.staff_member,
                    template.estimated_duration_minutes,
                    anchor=rule.time_of_day,
                )
                task = self.materializer.materialize(
                    template,
                    room,
                    assignment.staff_member,
                    on_date,
                    scheduled_time,
                    rule_name=rule.name,
                    description=description,
                )
                seen_keys.add(key)
                result.tasks.append(task)

        self._persist(result)
        logger.info(
            "Recurring rules scheduled %d tasks for %s", result.scheduled_count, on_date.isoformat()
        )
        return result

    def _resolve_template(
        self, rule: ScheduleRule, result: RecurringRunResult
    ) -> tuple[TaskTemplate, str]:
        """Catalog template for the rule's task type, with the rule's priority."""
        found = self.catalog.find_task(rule.task_type)
        if found is None:
            result.warnings.append(
                f"{rule.name}: no template for task type '{rule.task_type}'; using a bare task"
            )
            template = TaskTemplate(
                task_type=rule.task_type,
                priority=rule.priority,
                estimated_duration_minutes=self.config.slot_minutes,
                frequency=rule.frequency,
            )
            return template, rule.description

        schedule_template, template = found
        return (
            replace(template, priority=rule.priority),
            rule.description or schedule_template.description,
        )

    def _persist(self, result: RecurringRunResult) -> None:
        if not result.tasks:
            return
        try:
            self.store.upsert_many(result.tasks)
        except PersistenceError as exc:
            logger.error("Persisting recurring tasks for %s failed: %s", result.on_date, exc)
            result.persisted = False
            result.warnings.append(f"{result.on_date.isoformat()}: persistence failed ({exc})")
