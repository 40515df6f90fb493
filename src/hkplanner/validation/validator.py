"""Validation module for verifying generated schedules.

This module provides the post-run checks: the conflict validator that looks
for double-booked staff, the schedule validator that asserts the capacity,
availability, duplicate-firing and timing properties of a run, and the setup
report summarizing a property's scheduling state.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Optional

from hkplanner.domain.catalog import TemplateCatalog
from hkplanner.domain.models import GeneratedTask, TaskStatus
from hkplanner.domain.roster import StaffRoster
from hkplanner.storage.task_store import TaskStore


class ValidationErrorType(Enum):
    """Types of validation errors."""

    UNKNOWN_STAFF = "unknown_staff"
    STAFF_UNAVAILABLE = "staff_unavailable"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    DUPLICATE_TASK = "duplicate_task"
    SCHEDULING_CONFLICT = "scheduling_conflict"
    UNEVEN_SPACING = "uneven_spacing"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    staff_id: Optional[str] = None
    scheduled_date: Optional[date] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.staff_id:
            parts.append(f"Staff {self.staff_id}:")
        parts.append(self.message)
        if self.scheduled_date is not None:
            parts.append(f"({self.scheduled_date.isoformat()})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating a schedule."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    def errors_of(self, error_type: ValidationErrorType) -> list[ValidationError]:
        return [e for e in self.errors if e.error_type == error_type]


@dataclass
class ConflictGroup:
    """Two or more scheduled tasks sharing an assignee and start time."""

    assigned_to: str
    scheduled_time: datetime
    tasks: list[GeneratedTask]

    @property
    def size(self) -> int:
        return len(self.tasks)

    def to_dict(self) -> dict:
        return {
            "_id": {"assignedTo": self.assigned_to, "scheduledTime": self.scheduled_time.isoformat()},
            "tasks": [t.id for t in self.tasks],
            "count": self.size,
        }


class ConflictValidator:
    """Finds staff double-bookings among upcoming scheduled tasks."""

    def find_conflicts(
        self,
        tasks: Iterable[GeneratedTask],
        as_of: Optional[date] = None,
    ) -> list[ConflictGroup]:
        """Group scheduled tasks by (assignee, start time) and keep groups of 2+.

        Args:
            tasks: Candidate tasks.
            as_of: Earliest scheduled date considered, inclusive (today if None).
        """
        as_of = as_of or date.today()
        groups: dict[tuple[str, datetime], list[GeneratedTask]] = defaultdict(list)
        for task in tasks:
            if task.status != TaskStatus.SCHEDULED or task.scheduled_date < as_of:
                continue
            groups[(task.assigned_to, task.scheduled_time)].append(task)

        return [
            ConflictGroup(assigned_to=staff_id, scheduled_time=when, tasks=group)
            for (staff_id, when), group in sorted(groups.items())
            if len(group) > 1
        ]


class ScheduleValidator:
    """Validates generated tasks against the scheduling constraints.

    Example:
        >>> validator = ScheduleValidator(roster)
        >>> result = validator.validate(generation.tasks, generation.over_capacity)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def __init__(self, roster: StaffRoster, slot_minutes: Optional[int] = None):
        """Initialize the validator.

        Args:
            roster: Staff directory the tasks were assigned from.
            slot_minutes: If set, consecutive tasks of a staff member must
                start exactly this many minutes apart.
        """
        self.roster = roster
        self.slot_minutes = slot_minutes
        self.conflict_validator = ConflictValidator()

    def validate(
        self,
        tasks: list[GeneratedTask],
        over_capacity: Optional[Iterable] = None,
    ) -> ValidationResult:
        """Validate a set of generated tasks.

        Args:
            tasks: Tasks to validate.
            over_capacity: Records of assignments made through the
                over-capacity escape hatch (anything with ``scheduled_date``
                and ``staff_id``); capacity overruns covered by one are
                reported as warnings only.

        Returns:
            ValidationResult with is_valid flag and any errors.
        """
        result = ValidationResult(is_valid=True)
        excused = {(r.scheduled_date, r.staff_id) for r in (over_capacity or ())}

        self._validate_availability(tasks, result)
        self._validate_capacity(tasks, excused, result)
        self._validate_duplicates(tasks, result)
        self._validate_spacing(tasks, result)

        as_of = min((t.scheduled_date for t in tasks), default=None)
        for group in self.conflict_validator.find_conflicts(tasks, as_of=as_of):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.SCHEDULING_CONFLICT,
                    message=f"{group.size} tasks start at {group.scheduled_time.isoformat()}",
                    staff_id=group.assigned_to,
                    scheduled_date=group.scheduled_time.date(),
                    details={"tasks": [t.id for t in group.tasks]},
                )
            )

        return result

    def _validate_availability(self, tasks: list[GeneratedTask], result: ValidationResult) -> None:
        for task in tasks:
            member = self.roster.get(task.assigned_to)
            if member is None:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.UNKNOWN_STAFF,
                        message=f"Unknown staff ID on task {task.title}",
                        staff_id=task.assigned_to,
                        scheduled_date=task.scheduled_date,
                    )
                )
            elif not member.is_available_on(task.scheduled_date):
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.STAFF_UNAVAILABLE,
                        message=f"{member.name} does not work on this day ({task.title})",
                        staff_id=member.id,
                        scheduled_date=task.scheduled_date,
                    )
                )

    def _validate_capacity(
        self,
        tasks: list[GeneratedTask],
        excused: set[tuple[date, str]],
        result: ValidationResult,
    ) -> None:
        rooms_per_day: dict[tuple[date, str], set[str]] = defaultdict(set)
        for task in tasks:
            rooms_per_day[(task.scheduled_date, task.assigned_to)].add(task.room_id)

        for (day, staff_id), rooms in sorted(rooms_per_day.items()):
            member = self.roster.get(staff_id)
            if member is None or len(rooms) <= member.max_rooms_per_day:
                continue
            message = f"{len(rooms)} rooms exceeds capacity of {member.max_rooms_per_day}"
            if (day, staff_id) in excused:
                result.add_warning(f"{member.name} on {day.isoformat()}: {message} (recorded fallback)")
                continue
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.CAPACITY_EXCEEDED,
                    message=message,
                    staff_id=staff_id,
                    scheduled_date=day,
                )
            )

    def _validate_duplicates(self, tasks: list[GeneratedTask], result: ValidationResult) -> None:
        counts: dict[tuple, int] = defaultdict(int)
        for task in tasks:
            counts[task.idempotency_key] += 1
        for (room_id, task_type, day), count in counts.items():
            if count > 1:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.DUPLICATE_TASK,
                        message=f"{task_type} fired {count} times for room {room_id}",
                        scheduled_date=day,
                    )
                )

    def _validate_spacing(self, tasks: list[GeneratedTask], result: ValidationResult) -> None:
        if self.slot_minutes is None:
            return
        expected = timedelta(minutes=self.slot_minutes)
        queues: dict[tuple[date, str], list[datetime]] = defaultdict(list)
        for task in tasks:
            queues[(task.scheduled_date, task.assigned_to)].append(task.scheduled_time)

        for (day, staff_id), times in sorted(queues.items()):
            times.sort()
            for earlier, later in zip(times, times[1:]):
                if later - earlier != expected:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.UNEVEN_SPACING,
                            message=(
                                f"tasks at {earlier.strftime('%H:%M')} and "
                                f"{later.strftime('%H:%M')} are not {self.slot_minutes} minutes apart"
                            ),
                            staff_id=staff_id,
                            scheduled_date=day,
                        )
                    )


@dataclass
class SetupValidationReport:
    """Post-setup health report for a property."""

    is_valid: bool
    issues: list[str]
    statistics: dict[str, int]

    def to_dict(self) -> dict:
        return {"isValid": self.is_valid, "issues": list(self.issues), "statistics": dict(self.statistics)}


def validate_setup(
    catalog: TemplateCatalog,
    roster: StaffRoster,
    store: TaskStore,
    as_of: Optional[date] = None,
) -> SetupValidationReport:
    """Check that a property has templates, staff and conflict-free upcoming tasks."""
    as_of = as_of or date.today()
    issues = []

    if len(catalog) == 0:
        issues.append("No schedule templates found")

    active_staff = roster.active_members()
    if not active_staff:
        issues.append("No active staff members found")

    upcoming = store.tasks_for(status=TaskStatus.SCHEDULED, from_date=as_of)
    if not upcoming:
        issues.append("No scheduled tasks found")

    conflicts = ConflictValidator().find_conflicts(upcoming, as_of=as_of)
    if conflicts:
        issues.append(f"Found {len(conflicts)} scheduling conflicts")

    return SetupValidationReport(
        is_valid=not issues,
        issues=issues,
        statistics={
            "totalTemplates": len(catalog),
            "totalStaff": len(active_staff),
            "totalScheduledTasks": len(upcoming),
            "activeDays": len({t.scheduled_date for t in upcoming}),
        },
    )
