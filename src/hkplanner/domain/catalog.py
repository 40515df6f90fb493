"""Template catalog: task templates grouped by room type."""

import json
from pathlib import Path
from typing import Optional, Union

from hkplanner.domain.models import (
    ALL_ROOM_TYPES,
    ChecklistItemTemplate,
    Frequency,
    Priority,
    Room,
    ScheduleTemplate,
    TaskTemplate,
)


class TemplateCatalog:
    """Versioned set of schedule templates, loaded once per run.

    Room lookup takes the first group that names the room type explicitly;
    a wildcard (``"all"``) group is only used when no explicit group exists.
    """

    def __init__(self, templates: list[ScheduleTemplate], version: str = "1"):
        self.templates = list(templates)
        self.version = version

    def __len__(self) -> int:
        return len(self.templates)

    def __iter__(self):
        return iter(self.templates)

    @property
    def is_empty(self) -> bool:
        """True when the catalog holds no task templates at all."""
        return not any(t.tasks for t in self.templates)

    def template_for_room(self, room: Room) -> Optional[ScheduleTemplate]:
        """Find the schedule template governing a room."""
        for template in self.templates:
            if room.room_type in template.room_types:
                return template
        for template in self.templates:
            if template.is_wildcard:
                return template
        return None

    def task_templates(self) -> list[TaskTemplate]:
        """All task templates across groups, in catalog order."""
        return [task for template in self.templates for task in template.tasks]

    def find_task(self, task_type: str) -> Optional[tuple[ScheduleTemplate, TaskTemplate]]:
        """Find the first task template of a type and the group holding it."""
        for template in self.templates:
            for task in template.tasks:
                if task.task_type == task_type:
                    return template, task
        return None

    def to_summary(self) -> dict:
        return {
            "version": self.version,
            "templates": len(self.templates),
            "task_templates": len(self.task_templates()),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TemplateCatalog":
        return cls(
            templates=[ScheduleTemplate.from_dict(t) for t in data.get("templates", ())],
            version=str(data.get("version", "1")),
        )

    @classmethod
    def default(cls) -> "TemplateCatalog":
        """The built-in catalog used for initial property setup."""
        return cls(DEFAULT_TEMPLATES, version="default")


def load_catalog(path: Union[str, Path]) -> TemplateCatalog:
    """Load a template catalog from a JSON file.

    The file holds ``{"version": ..., "templates": [...]}``; a bare list of
    templates is also accepted.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, list):
        data = {"templates": data}
    return TemplateCatalog.from_dict(data)


def _checklist(*items: tuple[str, bool, int]) -> tuple[ChecklistItemTemplate, ...]:
    return tuple(ChecklistItemTemplate(item, required, minutes) for item, required, minutes in items)


DEFAULT_TEMPLATES: list[ScheduleTemplate] = [
    ScheduleTemplate(
        name="Standard Room Cleaning",
        description="Regular cleaning routine for standard guest rooms",
        room_types=frozenset({"standard", "deluxe"}),
        tasks=(
            TaskTemplate(
                task_type="checkout_cleaning",
                priority=Priority.HIGH,
                estimated_duration_minutes=45,
                frequency=Frequency.CHECKOUT,
                instructions=(
                    "Strip and replace all bed linens",
                    "Clean and sanitize bathroom thoroughly",
                    "Vacuum carpets and mop hard floors",
                    "Dust all surfaces and furniture",
                    "Restock amenities and supplies",
                    "Check all equipment and report issues",
                ),
                checklist=_checklist(
                    ("Remove used linens and towels", True, 3),
                    ("Make beds with fresh linens", True, 8),
                    ("Clean bathroom (sink, toilet, shower/tub)", True, 12),
                    ("Vacuum carpet/mop floors", True, 10),
                    ("Dust furniture and surfaces", True, 8),
                    ("Clean windows and mirrors", False, 4),
                    ("Restock toilet paper, towels, amenities", True, 3),
                    ("Empty trash and replace liners", True, 2),
                    ("Check TV, AC, lighting functionality", True, 2),
                    ("Final inspection and quality check", True, 3),
                ),
                required_skills=frozenset({"basic_cleaning", "bed_making", "bathroom_sanitization"}),
                tools=frozenset({"vacuum", "mop", "cleaning_cart", "microfiber_cloths"}),
                supplies=frozenset(
                    {"all_purpose_cleaner", "bathroom_cleaner", "glass_cleaner", "fresh_linens", "towels"}
                ),
            ),
            TaskTemplate(
                task_type="maintenance_check",
                priority=Priority.MEDIUM,
                estimated_duration_minutes=15,
                frequency=Frequency.WEEKLY,
                instructions=(
                    "Inspect all room equipment and fixtures",
                    "Test electrical outlets and lighting",
                    "Check plumbing for leaks or issues",
                    "Report any maintenance needs",
                ),
                checklist=_checklist(
                    ("Test all light switches and bulbs", True, 3),
                    ("Check electrical outlets", True, 2),
                    ("Inspect bathroom fixtures", True, 4),
                    ("Check furniture condition", True, 3),
                    ("Test TV and remote", True, 2),
                    ("Document any issues found", True, 1),
                ),
                required_skills=frozenset({"basic_maintenance", "equipment_inspection"}),
                tools=frozenset({"flashlight", "basic_tools", "inspection_checklist"}),
            ),
        ),
    ),
    ScheduleTemplate(
        name="Suite Deep Cleaning",
        description="Comprehensive cleaning for suites and premium rooms",
        room_types=frozenset({"suite", "family"}),
        tasks=(
            TaskTemplate(
                task_type="deep_clean",
                priority=Priority.HIGH,
                estimated_duration_minutes=75,
                frequency=Frequency.CHECKOUT,
                instructions=(
                    "Complete standard cleaning plus additional suite areas",
                    "Clean kitchen area (if applicable)",
                    "Deep clean living area",
                    "Clean multiple bedrooms/bathrooms",
                    "Extra attention to high-touch surfaces",
                ),
                checklist=_checklist(
                    ("Clean all bedrooms (beds, linens)", True, 15),
                    ("Clean all bathrooms thoroughly", True, 20),
                    ("Clean living/sitting area", True, 15),
                    ("Clean kitchen area (if present)", False, 10),
                    ("Vacuum/clean all floor areas", True, 12),
                    ("Dust and polish all furniture", True, 10),
                    ("Clean windows and balcony (if present)", False, 8),
                    ("Restock all amenities and supplies", True, 5),
                ),
                required_skills=frozenset({"advanced_cleaning", "kitchen_cleaning", "upholstery_care"}),
                tools=frozenset({"vacuum", "steam_cleaner", "upholstery_cleaner", "window_squeegee"}),
                supplies=frozenset({"premium_cleaners", "luxury_linens", "enhanced_amenities"}),
            ),
        ),
    ),
    ScheduleTemplate(
        name="Accessible Room Care",
        description="Specialized cleaning for accessible rooms with specific requirements",
        room_types=frozenset({"accessible"}),
        tasks=(
            TaskTemplate(
                task_type="accessible_cleaning",
                priority=Priority.HIGH,
                estimated_duration_minutes=50,
                frequency=Frequency.CHECKOUT,
                instructions=(
                    "Follow ADA compliance cleaning procedures",
                    "Pay special attention to grab bars and accessibility features",
                    "Ensure clear pathways and proper equipment placement",
                    "Use appropriate cleaning products safe for sensitive users",
                ),
                checklist=_checklist(
                    ("Clean and sanitize grab bars", True, 5),
                    ("Ensure wheelchair accessibility paths", True, 3),
                    ("Check accessibility equipment function", True, 7),
                    ("Standard room cleaning procedures", True, 35),
                ),
                required_skills=frozenset({"accessibility_cleaning", "ada_compliance"}),
                tools=frozenset({"specialized_cleaning_tools", "accessibility_checklist"}),
                supplies=frozenset({"hypoallergenic_cleaners", "specialized_amenities"}),
            ),
        ),
    ),
    ScheduleTemplate(
        name="Daily Maintenance Tasks",
        description="Routine daily maintenance and inspection tasks",
        room_types=frozenset({ALL_ROOM_TYPES}),
        tasks=(
            TaskTemplate(
                task_type="daily_inspection",
                priority=Priority.MEDIUM,
                estimated_duration_minutes=10,
                frequency=Frequency.DAILY,
                instructions=(
                    "Visual inspection of room condition",
                    "Check for any obvious maintenance needs",
                    "Verify room status accuracy",
                    "Report any issues immediately",
                ),
                checklist=_checklist(
                    ("Check room status matches system", True, 1),
                    ("Visual inspection for damages", True, 3),
                    ("Check temperature and lighting", True, 2),
                    ("Verify inventory completeness", True, 3),
                    ("Update room status if needed", True, 1),
                ),
                required_skills=frozenset({"visual_inspection", "system_operation"}),
                tools=frozenset({"mobile_device", "inspection_form"}),
            ),
        ),
    ),
]
