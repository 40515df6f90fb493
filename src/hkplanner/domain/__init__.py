"""Domain models, catalogs and policies for housekeeping scheduling."""

from hkplanner.domain.catalog import TemplateCatalog, load_catalog
from hkplanner.domain.models import (
    AssignmentRule,
    ChecklistItem,
    ChecklistItemTemplate,
    Frequency,
    GeneratedTask,
    Priority,
    Room,
    RoomStatus,
    ScheduleRule,
    ScheduleTemplate,
    Shift,
    StaffMember,
    StaffRole,
    TaskSource,
    TaskStatus,
    TaskTemplate,
    Weekday,
)
from hkplanner.domain.policies import (
    DurationCursorPolicy,
    EventOccupancy,
    FixedSlotPolicy,
    OccupancySource,
    ProbabilisticOccupancy,
    SlotPolicy,
)
from hkplanner.domain.roster import StaffRoster, load_rooms, load_roster

__all__ = [
    # Models
    "AssignmentRule",
    "ChecklistItem",
    "ChecklistItemTemplate",
    "Frequency",
    "GeneratedTask",
    "Priority",
    "Room",
    "RoomStatus",
    "ScheduleRule",
    "ScheduleTemplate",
    "Shift",
    "StaffMember",
    "StaffRole",
    "TaskSource",
    "TaskStatus",
    "TaskTemplate",
    "Weekday",
    # Catalog and roster
    "TemplateCatalog",
    "StaffRoster",
    "load_catalog",
    "load_roster",
    "load_rooms",
    # Policies
    "OccupancySource",
    "ProbabilisticOccupancy",
    "EventOccupancy",
    "SlotPolicy",
    "FixedSlotPolicy",
    "DurationCursorPolicy",
]
