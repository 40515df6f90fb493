"""Frequency evaluation: decides whether a task is due on a given day."""

from datetime import date
from typing import Optional

from hkplanner.domain.models import Frequency, Room, RoomStatus, TaskTemplate, Weekday
from hkplanner.domain.policies import OccupancySource, ProbabilisticOccupancy


class FrequencyEvaluator:
    """Applies a frequency policy to a room and a calendar date.

    Calendar frequencies (daily, weekly, monthly) are deterministic.
    Event frequencies (checkout, checkin) fire when the room status already
    signals the need, and otherwise ask the occupancy source. Ad-hoc tasks
    only ever come from the occupancy source.

    Example:
        >>> evaluator = FrequencyEvaluator(ProbabilisticOccupancy(seed=7))
        >>> evaluator.should_fire(template, date(2024, 1, 15), room)
        True
    """

    def __init__(self, occupancy: Optional[OccupancySource] = None):
        self.occupancy = occupancy or ProbabilisticOccupancy()

    def should_fire(self, template: TaskTemplate, on_date: date, room: Room) -> bool:
        """Decide whether a task template is materialized for a room on a date."""
        return self.is_due(template.frequency, on_date, room)

    def is_due(
        self,
        frequency: Frequency,
        on_date: date,
        room: Room,
        day_of_week: Optional[Weekday] = None,
        day_of_month: Optional[int] = None,
    ) -> bool:
        """Decide whether a frequency fires for a room on a date.

        Args:
            frequency: The frequency policy.
            on_date: The calendar date.
            room: The room the task would be for.
            day_of_week: Weekday on which weekly tasks fire (Monday if None).
            day_of_month: Day of month on which monthly tasks fire (1 if None).
        """
        if frequency == Frequency.DAILY:
            return True

        if frequency == Frequency.WEEKLY:
            return Weekday.from_date(on_date) == (day_of_week or Weekday.MONDAY)

        if frequency == Frequency.MONTHLY:
            return on_date.day == (day_of_month or 1)

        if frequency == Frequency.CHECKOUT:
            if room.status == RoomStatus.CLEANING:
                return True
            return self.occupancy.checkout_due(room, on_date)

        if frequency == Frequency.CHECKIN:
            if room.status == RoomStatus.AVAILABLE:
                return True
            return self.occupancy.checkin_due(room, on_date)

        if frequency == Frequency.AS_NEEDED:
            return self.occupancy.as_needed_due(room, on_date)

        return False
