"""Task materialization: turns a template firing into a concrete task record."""

import uuid
from datetime import date, datetime
from typing import Callable, Optional

from hkplanner.domain.models import (
    ChecklistItem,
    GeneratedTask,
    Room,
    ScheduleTemplate,
    StaffMember,
    TaskSource,
    TaskStatus,
    TaskTemplate,
    task_id_for,
)
from hkplanner.exceptions import MaterializationError


class TaskMaterializer:
    """Builds GeneratedTask records from (template, room, staff, date, time).

    Args:
        source: Source tag stamped on every task.
        clock: Returns the creation timestamp; injectable for tests.
    """

    def __init__(
        self,
        source: TaskSource = TaskSource.INITIAL_SETUP,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.source = source
        self.clock = clock or datetime.now

    def materialize(
        self,
        template: Optional[TaskTemplate],
        room: Optional[Room],
        staff_member: Optional[StaffMember],
        scheduled_date: date,
        scheduled_time: datetime,
        schedule_template: Optional[ScheduleTemplate] = None,
        rule_name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> GeneratedTask:
        """Build a task in ``scheduled`` status.

        The checklist is copied item by item with fresh ids and cleared
        completion state, so tasks never share checklist entries. The
        description defaults to the schedule template's.

        Raises:
            MaterializationError: If template, room or staff member is missing.
        """
        if template is None:
            raise MaterializationError("Cannot materialize a task without a template")
        if room is None:
            raise MaterializationError(f"Cannot materialize {template.task_type}: room is missing")
        if staff_member is None:
            raise MaterializationError(
                f"Cannot materialize {template.task_type} for room {room.number}: no assignee"
            )

        checklist = [
            ChecklistItem(
                id=str(uuid.uuid4()),
                item=entry.item,
                required=entry.required,
                estimated_minutes=entry.estimated_minutes,
            )
            for entry in template.checklist
        ]
        if description is None:
            description = schedule_template.description if schedule_template else ""

        return GeneratedTask(
            id=task_id_for(room.id, template.task_type, scheduled_date),
            room_id=room.id,
            room_number=room.number,
            property_id=room.property_id,
            task_type=template.task_type,
            title=f"{template.humanized_type} - Room {room.number}",
            description=description,
            priority=template.priority,
            status=TaskStatus.SCHEDULED,
            estimated_duration_minutes=template.estimated_duration_minutes,
            assigned_to=staff_member.id,
            assigned_to_name=staff_member.name,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            checklist=checklist,
            instructions=list(template.instructions),
            required_skills=sorted(template.required_skills),
            tools=sorted(template.tools),
            supplies=sorted(template.supplies),
            source=self.source,
            rule_name=rule_name,
            created_at=self.clock(),
        )
