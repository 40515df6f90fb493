"""Scheduled-time calculation for a staff member's daily task queue."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from hkplanner.domain.models import Shift, StaffMember
from hkplanner.domain.policies import (
    DEFAULT_SLOT_MINUTES,
    FixedSlotPolicy,
    SlotPolicy,
    shift_start_time,
)


def compute_time(
    shift: Optional[Shift],
    ordinal: int,
    on_date: date,
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> datetime:
    """Start time of the ``ordinal``-th task of a staff member's day.

    The queue starts at the shift start on ``on_date`` and each earlier task
    occupies ``slot_minutes``.

    Example:
        >>> compute_time(Shift.AFTERNOON, 3, date(2024, 1, 15))
        datetime.datetime(2024, 1, 15, 15, 30)
    """
    return ScheduledTimeCalculator(FixedSlotPolicy(slot_minutes)).compute_time(
        shift, ordinal, on_date
    )


class ScheduledTimeCalculator:
    """Turns (shift, ordinal, date) into a start timestamp via a slot policy."""

    def __init__(self, slot_policy: Optional[SlotPolicy] = None):
        self.slot_policy = slot_policy or FixedSlotPolicy()

    def shift_start(self, shift: Optional[Shift], on_date: date) -> datetime:
        return datetime.combine(on_date, shift_start_time(shift))

    def compute_time(
        self,
        shift: Optional[Shift],
        ordinal: int,
        on_date: date,
        elapsed_minutes: int = 0,
        anchor: Optional[time] = None,
    ) -> datetime:
        """Compute the start time of a queued task.

        Args:
            shift: Shift of the assignee (None uses the 09:00 default).
            ordinal: 1-based position of the task in the assignee's day.
            on_date: Calendar day of the task.
            elapsed_minutes: Duration already queued ahead of this task.
            anchor: Queue start overriding the shift start.
        """
        queue_start = (
            datetime.combine(on_date, anchor) if anchor else self.shift_start(shift, on_date)
        )
        return self.slot_policy.start_at(queue_start, ordinal, elapsed_minutes)

    def new_timeline(self, on_date: date) -> "StaffTimeline":
        return StaffTimeline(on_date=on_date, calculator=self)


@dataclass
class _Queue:
    count: int = 0
    elapsed_minutes: int = 0
    free_at: Optional[datetime] = None


class StaffTimeline:
    """Per-day task queues, one per staff member.

    Every task materialized for a staff member on the day takes the next
    ordinal in that member's queue. A task never starts before the previous
    one ends, so one staff member's tasks never overlap even when an anchor
    points earlier than the queue.
    """

    def __init__(self, on_date: date, calculator: Optional[ScheduledTimeCalculator] = None):
        self.on_date = on_date
        self.calculator = calculator or ScheduledTimeCalculator()
        self._queues: dict[str, _Queue] = {}

    def count(self, staff_member: StaffMember) -> int:
        """Number of tasks queued so far for a staff member."""
        queue = self._queues.get(staff_member.id)
        return queue.count if queue else 0

    def next_slot(
        self,
        staff_member: StaffMember,
        duration_minutes: int,
        anchor: Optional[time] = None,
    ) -> tuple[int, datetime]:
        """Reserve the next slot in a staff member's queue.

        Args:
            staff_member: The assignee.
            duration_minutes: Estimated duration of the task being queued.
            anchor: Preferred earliest start (e.g. a rule's time of day).

        Returns:
            Tuple of (ordinal, start time).
        """
        queue = self._queues.setdefault(staff_member.id, _Queue())
        ordinal = queue.count + 1
        start = self.calculator.compute_time(
            staff_member.shift,
            ordinal,
            self.on_date,
            elapsed_minutes=queue.elapsed_minutes,
            anchor=anchor,
        )
        if queue.free_at is not None and start < queue.free_at:
            start = queue.free_at

        length = self.calculator.slot_policy.slot_length(duration_minutes)
        queue.count = ordinal
        queue.elapsed_minutes += max(1, duration_minutes)
        queue.free_at = start + timedelta(minutes=length)
        return ordinal, start
