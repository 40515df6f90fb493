"""Staff roster and directory loaders."""

import json
from datetime import date
from pathlib import Path
from typing import Optional, Union

from hkplanner.domain.models import Room, Shift, StaffMember, StaffRole, Weekday


WEEKDAYS = {
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
}


class StaffRoster:
    """The staff directory as seen by one scheduling run."""

    def __init__(self, members: list[StaffMember]):
        self.members = list(members)
        self._by_id = {m.id: m for m in self.members}

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self):
        return iter(self.members)

    @property
    def is_empty(self) -> bool:
        return not self.members

    def get(self, staff_id: str) -> Optional[StaffMember]:
        return self._by_id.get(staff_id)

    def active_members(self) -> list[StaffMember]:
        return [m for m in self.members if m.is_active]

    def available_on(self, on_date: date) -> list[StaffMember]:
        """Active staff whose working days include the date, in roster order."""
        return [m for m in self.members if m.is_available_on(on_date)]

    @classmethod
    def from_dicts(cls, records: list[dict]) -> "StaffRoster":
        return cls([StaffMember.from_dict(r) for r in records])

    @classmethod
    def default(cls) -> "StaffRoster":
        """The onboarding roster created during initial property setup."""
        return cls(
            [
                StaffMember(
                    id="staff-1",
                    name="Maria Rodriguez",
                    role=StaffRole.HOUSEKEEPER,
                    shift=Shift.MORNING,
                    skills={"basic_cleaning", "bed_making", "bathroom_sanitization", "inventory_management"},
                    max_rooms_per_day=12,
                    working_days=set(WEEKDAYS),
                ),
                StaffMember(
                    id="staff-2",
                    name="James Chen",
                    role=StaffRole.HOUSEKEEPER,
                    shift=Shift.MORNING,
                    skills={"advanced_cleaning", "kitchen_cleaning", "upholstery_care", "window_cleaning"},
                    max_rooms_per_day=10,
                    working_days=set(WEEKDAYS),
                ),
                StaffMember(
                    id="staff-3",
                    name="Sarah Johnson",
                    role=StaffRole.SUPERVISOR,
                    shift=Shift.MORNING,
                    skills={"quality_control", "staff_management", "advanced_cleaning", "training"},
                    max_rooms_per_day=8,
                    working_days=WEEKDAYS | {Weekday.SATURDAY},
                ),
                StaffMember(
                    id="staff-4",
                    name="Ahmed Hassan",
                    role=StaffRole.HOUSEKEEPER,
                    shift=Shift.AFTERNOON,
                    skills={"basic_cleaning", "maintenance_check", "accessibility_cleaning", "ada_compliance"},
                    max_rooms_per_day=11,
                    working_days=(WEEKDAYS - {Weekday.MONDAY}) | {Weekday.SATURDAY, Weekday.SUNDAY},
                ),
                StaffMember(
                    id="staff-5",
                    name="Lisa Park",
                    role=StaffRole.HOUSEKEEPER,
                    shift=Shift.AFTERNOON,
                    skills={"basic_cleaning", "bed_making", "bathroom_sanitization", "deep_cleaning"},
                    max_rooms_per_day=10,
                    working_days={
                        Weekday.MONDAY,
                        Weekday.WEDNESDAY,
                        Weekday.FRIDAY,
                        Weekday.SATURDAY,
                        Weekday.SUNDAY,
                    },
                ),
                StaffMember(
                    id="staff-6",
                    name="Roberto Silva",
                    role=StaffRole.MAINTENANCE,
                    shift=Shift.MORNING,
                    skills={"basic_maintenance", "equipment_inspection", "electrical_check", "plumbing_check"},
                    max_rooms_per_day=20,
                    working_days=set(WEEKDAYS),
                ),
            ]
        )


def _read_records(path: Union[str, Path], key: str) -> list[dict]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get(key, [])
    return list(data)


def load_roster(path: Union[str, Path]) -> StaffRoster:
    """Load the staff directory from a JSON file (a list, or ``{"staff": [...]}``)."""
    return StaffRoster.from_dicts(_read_records(path, "staff"))


def load_rooms(path: Union[str, Path]) -> list[Room]:
    """Load the room directory from a JSON file (a list, or ``{"rooms": [...]}``)."""
    return [Room.from_dict(r) for r in _read_records(path, "rooms")]
