"""Domain models for the housekeeping scheduling engine.

This module contains the core data structures used throughout the engine:
task templates and their catalog groupings, staff members, rooms, the
generated task records handed to the task store, and the lighter recurring
schedule rules.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional


# Namespace for deterministic task ids derived from the idempotency key
TASK_ID_NAMESPACE = uuid.UUID("5f0c3a9e-1d2b-4c7a-9e61-8a4b2f7d6c10")

ALL_ROOM_TYPES = "all"


class Priority(Enum):
    """Task priority level."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Frequency(Enum):
    """How often a task type should be materialized."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CHECKOUT = "checkout"  # After a guest checks out
    CHECKIN = "checkin"  # Before a guest checks in
    AS_NEEDED = "as_needed"

    @classmethod
    def parse(cls, value: str) -> "Frequency":
        """Parse a frequency string, accepting the ``on_checkout`` alias."""
        normalized = value.strip().lower()
        if normalized == "on_checkout":
            return cls.CHECKOUT
        if normalized == "on_checkin":
            return cls.CHECKIN
        return cls(normalized)


class StaffRole(Enum):
    """Job role of a staff member."""

    HOUSEKEEPER = "housekeeper"
    SUPERVISOR = "supervisor"
    MAINTENANCE = "maintenance"


class Shift(Enum):
    """Working shift of a staff member."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


class Weekday(Enum):
    """Day of the week, in ``date.weekday()`` order."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, d: date) -> "Weekday":
        """Get the weekday of a calendar date."""
        return list(cls)[d.weekday()]

    @property
    def index(self) -> int:
        """Zero-based index matching ``date.weekday()``."""
        return list(Weekday).index(self)


class RoomStatus(Enum):
    """Operational status of a room as reported by the room directory."""

    AVAILABLE = "available"
    OCCUPIED = "occupied"
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"
    OUT_OF_ORDER = "out_of_order"


class TaskStatus(Enum):
    """Lifecycle status of a generated task."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskSource(Enum):
    """Which part of the engine produced a task."""

    INITIAL_SETUP = "initial_setup"
    RECURRING_RULE = "recurring_rule"


class AssignmentRule(Enum):
    """Staff selection strategy used by a recurring schedule rule."""

    ROUND_ROBIN = "round_robin"
    SKILL_BASED = "skill_based"
    MAINTENANCE_STAFF = "maintenance_staff"
    EXPERIENCED_STAFF = "experienced_staff"


def _get(data: dict, *keys: str, default: Any = None) -> Any:
    """Return the first present key, so snake_case and camelCase both parse."""
    for key in keys:
        if key in data:
            return data[key]
    return default


@dataclass(frozen=True)
class ChecklistItemTemplate:
    """One entry of a task template's checklist.

    Attributes:
        item: Description of the step.
        required: Whether the step must be completed.
        estimated_minutes: Expected time for the step.
    """

    item: str
    required: bool = True
    estimated_minutes: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "ChecklistItemTemplate":
        return cls(
            item=data["item"],
            required=bool(data.get("required", True)),
            estimated_minutes=int(
                _get(data, "estimated_minutes", "estimatedTime", "estimatedTimeMinutes", default=0)
            ),
        )


@dataclass(frozen=True)
class TaskTemplate:
    """Definition of a task type that can be materialized for a room.

    Attributes:
        task_type: Identifier of the task type (e.g. ``checkout_cleaning``).
        priority: Priority of tasks built from this template.
        estimated_duration_minutes: Expected duration of the whole task.
        frequency: Frequency policy deciding on which days the task fires.
        instructions: Ordered free-text instructions.
        checklist: Ordered checklist entries.
        required_skills: Skills expected from the assignee.
        tools: Tools the assignee needs.
        supplies: Supplies consumed by the task.
    """

    task_type: str
    priority: Priority
    estimated_duration_minutes: int
    frequency: Frequency
    instructions: tuple[str, ...] = ()
    checklist: tuple[ChecklistItemTemplate, ...] = ()
    required_skills: frozenset[str] = frozenset()
    tools: frozenset[str] = frozenset()
    supplies: frozenset[str] = frozenset()

    @property
    def humanized_type(self) -> str:
        """Task type as a display label (``deep_clean`` -> ``Deep Clean``)."""
        return " ".join(word.capitalize() for word in self.task_type.split("_") if word)

    @classmethod
    def from_dict(cls, data: dict) -> "TaskTemplate":
        return cls(
            task_type=_get(data, "task_type", "type"),
            priority=Priority(data.get("priority", "medium")),
            estimated_duration_minutes=int(
                _get(
                    data,
                    "estimated_duration_minutes",
                    "estimatedDuration",
                    "estimatedDurationMinutes",
                    default=45,
                )
            ),
            frequency=Frequency.parse(data["frequency"]),
            instructions=tuple(data.get("instructions", ())),
            checklist=tuple(
                ChecklistItemTemplate.from_dict(item) for item in data.get("checklist", ())
            ),
            required_skills=frozenset(_get(data, "required_skills", "requiredSkills", default=())),
            tools=frozenset(data.get("tools", ())),
            supplies=frozenset(data.get("supplies", ())),
        )


@dataclass(frozen=True)
class ScheduleTemplate:
    """A named group of task templates for a set of room types.

    Attributes:
        name: Display name of the template group.
        description: Longer description, copied onto generated tasks.
        room_types: Room categories this group applies to; ``"all"`` matches any.
        tasks: Task templates in the group.
    """

    name: str
    description: str
    room_types: frozenset[str]
    tasks: tuple[TaskTemplate, ...] = ()

    @property
    def is_wildcard(self) -> bool:
        """Whether this group applies to every room type."""
        return ALL_ROOM_TYPES in self.room_types

    def applies_to(self, room_type: str) -> bool:
        """Check if this group covers a room type (wildcard included)."""
        return room_type in self.room_types or self.is_wildcard

    @classmethod
    def from_dict(cls, data: dict) -> "ScheduleTemplate":
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            room_types=frozenset(_get(data, "room_types", "roomTypes", default=(ALL_ROOM_TYPES,))),
            tasks=tuple(TaskTemplate.from_dict(t) for t in data.get("tasks", ())),
        )


@dataclass
class StaffMember:
    """A member of the operational workforce who can be assigned rooms.

    Attributes:
        id: Unique identifier for the staff member.
        name: Display name.
        role: Job role.
        shift: Working shift, which fixes the start of their task queue.
        skills: Skill tags used by skill-aware assignment.
        max_rooms_per_day: Daily room capacity.
        working_days: Weekdays the staff member works.
        is_active: Soft-disable flag; inactive staff are never assigned.
        employee_id: Optional HR employee number.
    """

    id: str
    name: str
    role: StaffRole = StaffRole.HOUSEKEEPER
    shift: Shift = Shift.MORNING
    skills: set[str] = field(default_factory=set)
    max_rooms_per_day: int = 10
    working_days: set[Weekday] = field(
        default_factory=lambda: {
            Weekday.MONDAY,
            Weekday.TUESDAY,
            Weekday.WEDNESDAY,
            Weekday.THURSDAY,
            Weekday.FRIDAY,
        }
    )
    is_active: bool = True
    employee_id: Optional[str] = None

    def is_available_on(self, d: date) -> bool:
        """Check if the staff member is active and works on a date."""
        return self.is_active and Weekday.from_date(d) in self.working_days

    def has_any_skill(self, skills) -> bool:
        """Check if the staff member has at least one of the given skills."""
        return bool(self.skills.intersection(skills))

    @classmethod
    def from_dict(cls, data: dict) -> "StaffMember":
        working_days = _get(data, "working_days", "workingDays")
        member = cls(
            id=str(_get(data, "id", "_id")),
            name=data["name"],
            role=StaffRole(data.get("role", "housekeeper")),
            shift=Shift(data.get("shift", "morning")),
            skills=set(data.get("skills", ())),
            max_rooms_per_day=int(_get(data, "max_rooms_per_day", "maxRoomsPerDay", default=10)),
            is_active=bool(_get(data, "is_active", "isActive", default=True)),
            employee_id=_get(data, "employee_id", "employeeId"),
        )
        if working_days is not None:
            member.working_days = {Weekday(d.lower()) for d in working_days}
        return member


@dataclass(frozen=True)
class Room:
    """A room from the room directory. Read-only to the engine.

    Attributes:
        id: Unique identifier of the room.
        number: Room number shown on task titles.
        room_type: Room category (standard, deluxe, suite, family, accessible, ...).
        status: Operational status.
        property_id: Identifier of the property the room belongs to.
    """

    id: str
    number: str
    room_type: str
    status: RoomStatus = RoomStatus.AVAILABLE
    property_id: Optional[str] = None

    @property
    def is_schedulable(self) -> bool:
        """Rooms that are out of order never receive tasks."""
        return self.status != RoomStatus.OUT_OF_ORDER

    @classmethod
    def from_dict(cls, data: dict) -> "Room":
        return cls(
            id=str(_get(data, "id", "_id")),
            number=str(data["number"]),
            room_type=_get(data, "room_type", "type"),
            status=RoomStatus(data.get("status", "available")),
            property_id=_get(data, "property_id", "propertyId"),
        )


@dataclass
class ChecklistItem:
    """An instantiated checklist entry on a generated task.

    Only the completion fields change after creation, and only through the
    execution-tracking collaborator.
    """

    id: str
    item: str
    required: bool
    estimated_minutes: int
    completed: bool = False
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item": self.item,
            "required": self.required,
            "estimatedTime": self.estimated_minutes,
            "completed": self.completed,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "completedBy": self.completed_by,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChecklistItem":
        completed_at = _get(data, "completed_at", "completedAt")
        return cls(
            id=data["id"],
            item=data["item"],
            required=bool(data.get("required", True)),
            estimated_minutes=int(_get(data, "estimated_minutes", "estimatedTime", default=0)),
            completed=bool(data.get("completed", False)),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
            completed_by=_get(data, "completed_by", "completedBy"),
        )


def task_id_for(room_id: str, task_type: str, scheduled_date: date) -> str:
    """Derive the stable task id for an idempotency key."""
    return str(uuid.uuid5(TASK_ID_NAMESPACE, f"{room_id}|{task_type}|{scheduled_date.isoformat()}"))


@dataclass
class GeneratedTask:
    """A materialized work item: one task template firing on one room on one day.

    Attributes:
        id: Stable identifier derived from the idempotency key.
        room_id: Room the task is for.
        room_number: Room number, for display.
        property_id: Property of the room.
        task_type: Task type of the source template.
        title: ``"{Task Type} - Room {number}"``.
        description: Description of the schedule template group.
        priority: Priority of the source template.
        status: Lifecycle status; ``scheduled`` at creation.
        estimated_duration_minutes: Duration estimate of the source template.
        assigned_to: Id of the assigned staff member.
        assigned_to_name: Name of the assigned staff member.
        scheduled_date: Calendar day of the task.
        scheduled_time: Start timestamp of the task.
        checklist: Instantiated, independently trackable checklist.
        instructions: Instructions copied from the template.
        required_skills: Skills copied from the template.
        tools: Tools copied from the template.
        supplies: Supplies copied from the template.
        source: Which part of the engine produced the task.
        rule_name: Name of the recurring rule, for rule-engine output.
        created_at: Creation timestamp.
    """

    id: str
    room_id: str
    room_number: str
    property_id: Optional[str]
    task_type: str
    title: str
    description: str
    priority: Priority
    status: TaskStatus
    estimated_duration_minutes: int
    assigned_to: str
    assigned_to_name: str
    scheduled_date: date
    scheduled_time: datetime
    checklist: list[ChecklistItem] = field(default_factory=list)
    instructions: list[str] = field(default_factory=list)
    required_skills: list[str] = field(default_factory=list)
    tools: list[str] = field(default_factory=list)
    supplies: list[str] = field(default_factory=list)
    source: TaskSource = TaskSource.INITIAL_SETUP
    rule_name: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def idempotency_key(self) -> tuple[str, str, date]:
        """Key under which reruns upsert instead of duplicating."""
        return (self.room_id, self.task_type, self.scheduled_date)

    @property
    def required_item_count(self) -> int:
        """Number of required checklist items."""
        return sum(1 for item in self.checklist if item.required)

    def to_dict(self) -> dict:
        """Serialize to the task store record shape."""
        return {
            "id": self.id,
            "propertyId": self.property_id,
            "roomId": self.room_id,
            "roomNumber": self.room_number,
            "type": self.task_type,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "status": self.status.value,
            "estimatedDuration": self.estimated_duration_minutes,
            "assignedTo": self.assigned_to,
            "assignedToName": self.assigned_to_name,
            "scheduledDate": self.scheduled_date.isoformat(),
            "scheduledTime": self.scheduled_time.isoformat(),
            "instructions": list(self.instructions),
            "checklist": [item.to_dict() for item in self.checklist],
            "requiredSkills": list(self.required_skills),
            "tools": list(self.tools),
            "supplies": list(self.supplies),
            "source": self.source.value,
            "ruleName": self.rule_name,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class ScheduleRule:
    """A recurring policy for steady-state scheduling.

    Attributes:
        name: Rule name.
        description: Rule description.
        frequency: When the rule fires.
        time_of_day: Preferred start time; None means "immediate", i.e. the
            assignee's shift start.
        day_of_week: Weekday for weekly rules (Monday when unset).
        day_of_month: Day of month for monthly rules (1 when unset).
        room_types: Room categories the rule covers; ``"all"`` matches any.
        task_type: Task type to materialize, looked up in the catalog.
        priority: Priority of generated tasks.
        assignment_rule: Staff selection strategy.
        is_active: Inactive rules are ignored.
    """

    name: str
    frequency: Frequency
    task_type: str
    description: str = ""
    time_of_day: Optional[time] = None
    day_of_week: Optional[Weekday] = None
    day_of_month: Optional[int] = None
    room_types: frozenset[str] = frozenset({ALL_ROOM_TYPES})
    priority: Priority = Priority.MEDIUM
    assignment_rule: AssignmentRule = AssignmentRule.ROUND_ROBIN
    is_active: bool = True

    def applies_to(self, room_type: str) -> bool:
        """Check if the rule covers a room type (wildcard included)."""
        return room_type in self.room_types or ALL_ROOM_TYPES in self.room_types

    @classmethod
    def from_dict(cls, data: dict) -> "ScheduleRule":
        raw_time = _get(data, "time_of_day", "time")
        time_of_day = None
        if raw_time and raw_time != "immediate":
            time_of_day = time.fromisoformat(raw_time)
        day_of_week = _get(data, "day_of_week", "dayOfWeek")
        day_of_month = _get(data, "day_of_month", "dayOfMonth")
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            frequency=Frequency.parse(data["frequency"]),
            time_of_day=time_of_day,
            day_of_week=Weekday(day_of_week.lower()) if day_of_week else None,
            day_of_month=int(day_of_month) if day_of_month is not None else None,
            room_types=frozenset(_get(data, "room_types", "roomTypes", default=(ALL_ROOM_TYPES,))),
            task_type=_get(data, "task_type", "taskType"),
            priority=Priority(data.get("priority", "medium")),
            assignment_rule=AssignmentRule(
                _get(data, "assignment_rule", "assignmentRule", default="round_robin")
            ),
            is_active=bool(_get(data, "is_active", "isActive", default=True)),
        )
