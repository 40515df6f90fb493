"""Assignment distribution: maps a day's rooms onto available staff.

The greedy distributor processes rooms in input order. A round-robin index
seeds the candidate for each room, skill overrides redirect special room
types to staff with the matching skills, and a capacity check reassigns the
room to the first staff member with remaining capacity. When nobody has
capacity left the room still goes to the original candidate and the outcome
is tagged as over capacity.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from hkplanner.domain.models import (
    AssignmentRule,
    Room,
    StaffMember,
    StaffRole,
    TaskTemplate,
)
from hkplanner.utils.logger import get_logger


logger = get_logger(__name__)


class AssignmentOutcome(Enum):
    """How a room ended up with (or without) an assignee."""

    ASSIGNED = "assigned"
    ASSIGNED_OVER_CAPACITY = "assigned_over_capacity"
    UNASSIGNED = "unassigned"


@dataclass(frozen=True)
class RoomAssignment:
    """Result of distributing one room.

    Attributes:
        room: The room.
        staff_member: Assignee, or None when unassigned.
        ordinal: 1-based position of the room in the assignee's day (0 if unassigned).
        outcome: Tagged outcome of the assignment.
    """

    room: Room
    staff_member: Optional[StaffMember]
    ordinal: int
    outcome: AssignmentOutcome

    @property
    def is_over_capacity(self) -> bool:
        return self.outcome == AssignmentOutcome.ASSIGNED_OVER_CAPACITY


@dataclass
class Workload:
    """Running per-staff room counter for a single day's distribution pass.

    Capacity is counted in distinct rooms: a room already on a staff member's
    day keeps its position and does not count again.

    Attributes:
        counts: Distinct rooms per staff id.
        rooms: Room id to 1-based position, per staff id.
    """

    counts: dict[str, int] = field(default_factory=dict)
    rooms: dict[str, dict[str, int]] = field(default_factory=dict)

    def get(self, staff_member: StaffMember) -> int:
        return self.counts.get(staff_member.id, 0)

    def holds(self, staff_member: StaffMember, room: Room) -> bool:
        """Whether the room is already on the staff member's day."""
        return room.id in self.rooms.get(staff_member.id, {})

    def has_capacity(self, staff_member: StaffMember, room: Optional[Room] = None) -> bool:
        """Whether the staff member can take ``room`` (or any new room if None)."""
        if room is not None and self.holds(staff_member, room):
            return True
        return self.get(staff_member) < staff_member.max_rooms_per_day

    def assign(self, staff_member: StaffMember, room: Room) -> int:
        """Put a room on a staff member's day and return its position."""
        held = self.rooms.setdefault(staff_member.id, {})
        if room.id not in held:
            count = self.get(staff_member) + 1
            self.counts[staff_member.id] = count
            held[room.id] = count
        return held[room.id]


@dataclass(frozen=True)
class SkillOverride:
    """Prefer staff with any of ``skills`` for rooms of the given types."""

    room_types: frozenset[str]
    skills: frozenset[str]

    def applies_to(self, room: Room) -> bool:
        return room.room_type in self.room_types


DEFAULT_SKILL_OVERRIDES: tuple[SkillOverride, ...] = (
    SkillOverride(
        room_types=frozenset({"suite", "family"}),
        skills=frozenset({"advanced_cleaning", "kitchen_cleaning"}),
    ),
    SkillOverride(
        room_types=frozenset({"accessible"}),
        skills=frozenset({"accessibility_cleaning", "ada_compliance"}),
    ),
)

EXPERIENCED_SKILLS = frozenset({"advanced_cleaning", "deep_cleaning", "quality_control"})


class AssignmentDistributor:
    """Greedy room-to-staff distributor with skill overrides.

    Tie-breaking is always first match in staff order; there is no load
    balancing beyond the round-robin seed.
    """

    def __init__(self, skill_overrides: Optional[tuple[SkillOverride, ...]] = None):
        self.skill_overrides = (
            DEFAULT_SKILL_OVERRIDES if skill_overrides is None else tuple(skill_overrides)
        )

    def distribute(
        self,
        rooms: list[Room],
        staff: list[StaffMember],
        workload: Optional[Workload] = None,
    ) -> list[RoomAssignment]:
        """Assign each room to a staff member.

        Args:
            rooms: Rooms to assign, processed in order.
            staff: Staff available for the day, in preference order.
            workload: Running counters for the day; a fresh one is used if None.
                Pass the same instance across calls to share capacity.

        Returns:
            One RoomAssignment per room, in input order.
        """
        if workload is None:
            workload = Workload()

        if not staff:
            return [
                RoomAssignment(room, None, 0, AssignmentOutcome.UNASSIGNED)
                for room in rooms
            ]

        assignments = []
        for staff_index, room in enumerate(rooms):
            candidate = self._skill_candidate(room, staff) or staff[staff_index % len(staff)]
            selected = candidate
            outcome = AssignmentOutcome.ASSIGNED

            if not workload.has_capacity(candidate, room):
                alternative = next((m for m in staff if workload.has_capacity(m, room)), None)
                if alternative is not None:
                    selected = alternative
                else:
                    outcome = AssignmentOutcome.ASSIGNED_OVER_CAPACITY
                    logger.warning(
                        "All staff at capacity; room %s assigned to %s over capacity (%d/%d)",
                        room.number,
                        candidate.name,
                        workload.get(candidate) + 1,
                        candidate.max_rooms_per_day,
                    )

            ordinal = workload.assign(selected, room)
            assignments.append(RoomAssignment(room, selected, ordinal, outcome))

        return assignments

    def _skill_candidate(self, room: Room, staff: list[StaffMember]) -> Optional[StaffMember]:
        """First staff member matching the first applicable skill override."""
        for override in self.skill_overrides:
            if override.applies_to(room):
                return next((m for m in staff if m.has_any_skill(override.skills)), None)
        return None


def candidates_for_rule(
    rule: AssignmentRule,
    staff: list[StaffMember],
    template: Optional[TaskTemplate] = None,
) -> list[StaffMember]:
    """Filter available staff by a recurring rule's assignment strategy.

    An empty result falls back to all available staff so a due task is never
    dropped for lack of a specialist.
    """
    if rule == AssignmentRule.SKILL_BASED and template is not None and template.required_skills:
        selected = [m for m in staff if m.has_any_skill(template.required_skills)]
    elif rule == AssignmentRule.MAINTENANCE_STAFF:
        selected = [m for m in staff if m.role == StaffRole.MAINTENANCE]
    elif rule == AssignmentRule.EXPERIENCED_STAFF:
        selected = [
            m for m in staff
            if m.role == StaffRole.SUPERVISOR or m.has_any_skill(EXPERIENCED_SKILLS)
        ]
    else:
        selected = list(staff)

    return selected or list(staff)
