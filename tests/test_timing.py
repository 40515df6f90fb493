"""Tests for scheduled-time calculation."""

from datetime import date, datetime, time

import pytest

from hkplanner.domain.models import Shift, StaffMember
from hkplanner.domain.policies import DurationCursorPolicy, FixedSlotPolicy
from hkplanner.scheduling.timing import ScheduledTimeCalculator, StaffTimeline, compute_time


DAY = date(2024, 1, 15)


class TestComputeTime:
    """Tests for the fixed-slot time formula."""

    @pytest.mark.parametrize(
        "shift,expected",
        [
            (Shift.MORNING, time(8, 0)),
            (Shift.AFTERNOON, time(14, 0)),
            (Shift.EVENING, time(18, 0)),
            (Shift.NIGHT, time(22, 0)),
            (None, time(9, 0)),
        ],
    )
    def test_first_task_starts_at_shift_start(self, shift, expected):
        assert compute_time(shift, 1, DAY) == datetime.combine(DAY, expected)

    def test_later_ordinals_are_45_minutes_apart(self):
        assert compute_time(Shift.AFTERNOON, 3, DAY) == datetime(2024, 1, 15, 15, 30)

    def test_uses_scheduled_date_not_today(self):
        assert compute_time(Shift.MORNING, 1, date(2030, 6, 1)).date() == date(2030, 6, 1)

    def test_ordinal_must_be_positive(self):
        with pytest.raises(ValueError):
            compute_time(Shift.MORNING, 0, DAY)

    def test_custom_slot_length(self):
        assert compute_time(Shift.MORNING, 2, DAY, slot_minutes=30) == datetime(2024, 1, 15, 8, 30)


class TestStaffTimeline:
    """Tests for per-staff daily queues."""

    @pytest.fixture
    def member(self):
        return StaffMember(id="A", name="A", shift=Shift.MORNING)

    def test_fixed_slots_ignore_duration(self, member):
        timeline = StaffTimeline(DAY)

        slots = [timeline.next_slot(member, minutes) for minutes in (90, 10, 45)]

        assert [ordinal for ordinal, _ in slots] == [1, 2, 3]
        assert [when.time() for _, when in slots] == [time(8, 0), time(8, 45), time(9, 30)]

    def test_queues_are_per_staff_member(self, member):
        other = StaffMember(id="B", name="B", shift=Shift.AFTERNOON)
        timeline = StaffTimeline(DAY)

        timeline.next_slot(member, 45)
        ordinal, when = timeline.next_slot(other, 45)

        assert ordinal == 1
        assert when == datetime(2024, 1, 15, 14, 0)
        assert timeline.count(member) == 1

    def test_duration_cursor_advances_by_duration(self, member):
        timeline = StaffTimeline(DAY, ScheduledTimeCalculator(DurationCursorPolicy()))

        times = [timeline.next_slot(member, minutes)[1].time() for minutes in (75, 10, 30)]

        assert times == [time(8, 0), time(9, 15), time(9, 25)]

    def test_zero_duration_still_moves_cursor(self, member):
        timeline = StaffTimeline(DAY, ScheduledTimeCalculator(DurationCursorPolicy()))

        first = timeline.next_slot(member, 0)[1]
        second = timeline.next_slot(member, 0)[1]

        assert second > first

    def test_anchor_overrides_shift_start(self, member):
        timeline = StaffTimeline(DAY, ScheduledTimeCalculator(FixedSlotPolicy()))

        _, when = timeline.next_slot(member, 30, anchor=time(10, 0))

        assert when == datetime(2024, 1, 15, 10, 0)

    def test_earlier_anchor_waits_for_previous_slot_to_end(self, member):
        timeline = StaffTimeline(DAY)

        _, first = timeline.next_slot(member, 30, anchor=time(10, 0))
        _, second = timeline.next_slot(member, 30, anchor=time(8, 0))
        _, third = timeline.next_slot(member, 30)

        assert first == datetime(2024, 1, 15, 10, 0)
        assert second == datetime(2024, 1, 15, 10, 45)
        assert third == datetime(2024, 1, 15, 11, 30)

    def test_earlier_anchor_waits_for_previous_duration(self, member):
        timeline = StaffTimeline(DAY, ScheduledTimeCalculator(DurationCursorPolicy()))

        _, first = timeline.next_slot(member, 60, anchor=time(10, 0))
        _, second = timeline.next_slot(member, 30)
        _, third = timeline.next_slot(member, 30)

        assert [first.time(), second.time(), third.time()] == [
            time(10, 0),
            time(11, 0),
            time(11, 30),
        ]
