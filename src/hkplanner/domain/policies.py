"""Policy definitions for scheduling rules.

This module contains the pluggable policies the engine consults when it
needs information it does not own: whether a room has a checkout, checkin or
ad-hoc need on a given day, and how a staff member's task queue is laid out
in time. Policies are kept separate from the engine so they can be tested
and swapped independently.
"""

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Optional

from hkplanner.domain.models import Room, Shift


SHIFT_START_TIMES: dict[Shift, time] = {
    Shift.MORNING: time(8, 0),
    Shift.AFTERNOON: time(14, 0),
    Shift.EVENING: time(18, 0),
    Shift.NIGHT: time(22, 0),
}

DEFAULT_SHIFT_START = time(9, 0)

DEFAULT_SLOT_MINUTES = 45


def shift_start_time(shift: Optional[Shift]) -> time:
    """Get the start time of a shift, falling back to 09:00."""
    if shift is None:
        return DEFAULT_SHIFT_START
    return SHIFT_START_TIMES.get(shift, DEFAULT_SHIFT_START)


class OccupancySource(ABC):
    """Abstract source of occupancy signals for event-driven frequencies."""

    @abstractmethod
    def checkout_due(self, room: Room, on_date: date) -> bool:
        """Whether the room needs checkout service on a date."""
        pass

    @abstractmethod
    def checkin_due(self, room: Room, on_date: date) -> bool:
        """Whether the room needs pre-arrival preparation on a date."""
        pass

    @abstractmethod
    def as_needed_due(self, room: Room, on_date: date) -> bool:
        """Whether an ad-hoc task is needed for the room on a date."""
        pass


@dataclass
class ProbabilisticOccupancy(OccupancySource):
    """Occupancy approximation used when no live event feed exists.

    Each signal fires with a fixed probability, which approximates the
    expected daily load during bulk initial setup.

    Attributes:
        checkout_probability: Chance a room needs checkout service.
        checkin_probability: Chance a room needs checkin preparation.
        as_needed_probability: Chance of an ad-hoc task.
        seed: Seed for the random generator; None draws from system entropy.
    """

    checkout_probability: float = 0.3
    checkin_probability: float = 0.2
    as_needed_probability: float = 0.1
    seed: Optional[int] = None
    _rng: random.Random = field(init=False, repr=False)

    def __post_init__(self):
        self._rng = random.Random(self.seed)

    def checkout_due(self, room: Room, on_date: date) -> bool:
        return self._rng.random() < self.checkout_probability

    def checkin_due(self, room: Room, on_date: date) -> bool:
        return self._rng.random() < self.checkin_probability

    def as_needed_due(self, room: Room, on_date: date) -> bool:
        return self._rng.random() < self.as_needed_probability


@dataclass
class EventOccupancy(OccupancySource):
    """Occupancy backed by explicit checkout/checkin/ad-hoc events.

    Events are ``(room_id, date)`` pairs, typically fed from the booking
    system. This is the steady-state replacement for the probabilistic
    approximation.
    """

    checkouts: set[tuple[str, date]] = field(default_factory=set)
    checkins: set[tuple[str, date]] = field(default_factory=set)
    as_needed: set[tuple[str, date]] = field(default_factory=set)

    def checkout_due(self, room: Room, on_date: date) -> bool:
        return (room.id, on_date) in self.checkouts

    def checkin_due(self, room: Room, on_date: date) -> bool:
        return (room.id, on_date) in self.checkins

    def as_needed_due(self, room: Room, on_date: date) -> bool:
        return (room.id, on_date) in self.as_needed

    def record_checkout(self, room_id: str, on_date: date) -> None:
        """Record a guest checkout event."""
        self.checkouts.add((room_id, on_date))

    def record_checkin(self, room_id: str, on_date: date) -> None:
        """Record an upcoming guest arrival."""
        self.checkins.add((room_id, on_date))


class SlotPolicy(ABC):
    """Abstract policy laying out a staff member's task queue in time."""

    @abstractmethod
    def offset_minutes(self, ordinal: int, elapsed_minutes: int) -> int:
        """Minutes after the queue start at which a task begins.

        Args:
            ordinal: 1-based position of the task in the staff member's day.
            elapsed_minutes: Sum of the estimated durations of the tasks
                already queued for the staff member that day.

        Returns:
            Offset in minutes from the start of the queue.
        """
        pass

    def start_at(self, queue_start: datetime, ordinal: int, elapsed_minutes: int = 0) -> datetime:
        """Start timestamp of a task in the queue."""
        return queue_start + timedelta(minutes=self.offset_minutes(ordinal, elapsed_minutes))

    def slot_length(self, duration_minutes: int) -> int:
        """Minutes a task occupies in the queue, never less than one."""
        return max(1, duration_minutes)


@dataclass
class FixedSlotPolicy(SlotPolicy):
    """Back-to-back queue with a fixed average task duration.

    A task at ordinal ``n`` starts ``(n - 1) * slot_minutes`` after the
    queue start, regardless of the template's own duration estimate.
    """

    slot_minutes: int = DEFAULT_SLOT_MINUTES

    def offset_minutes(self, ordinal: int, elapsed_minutes: int) -> int:
        if ordinal < 1:
            raise ValueError(f"ordinal must be >= 1, got {ordinal}")
        return (ordinal - 1) * self.slot_minutes

    def slot_length(self, duration_minutes: int) -> int:
        return self.slot_minutes


@dataclass
class DurationCursorPolicy(SlotPolicy):
    """Queue advanced by each task's own estimated duration.

    Produces a non-overlapping timeline as long as the estimates hold.
    """

    def offset_minutes(self, ordinal: int, elapsed_minutes: int) -> int:
        if ordinal < 1:
            raise ValueError(f"ordinal must be >= 1, got {ordinal}")
        return elapsed_minutes
