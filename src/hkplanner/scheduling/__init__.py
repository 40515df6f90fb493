"""Scheduling engine components."""

from hkplanner.scheduling.balanced import BalancedDistributor, BalancedResult, build_distributor
from hkplanner.scheduling.distributor import (
    AssignmentDistributor,
    AssignmentOutcome,
    RoomAssignment,
    SkillOverride,
    Workload,
    candidates_for_rule,
)
from hkplanner.scheduling.frequency import FrequencyEvaluator
from hkplanner.scheduling.generator import (
    DayPlan,
    GenerationResult,
    ScheduleGenerator,
    SetupSummary,
    run_initial_setup,
)
from hkplanner.scheduling.materializer import TaskMaterializer
from hkplanner.scheduling.recurring import RecurringRuleEngine, RecurringRunResult, default_rules
from hkplanner.scheduling.timing import ScheduledTimeCalculator, StaffTimeline, compute_time

__all__ = [
    # Frequency and timing
    "FrequencyEvaluator",
    "ScheduledTimeCalculator",
    "StaffTimeline",
    "compute_time",
    # Distribution
    "AssignmentDistributor",
    "AssignmentOutcome",
    "BalancedDistributor",
    "BalancedResult",
    "RoomAssignment",
    "SkillOverride",
    "Workload",
    "build_distributor",
    "candidates_for_rule",
    # Generation
    "TaskMaterializer",
    "ScheduleGenerator",
    "DayPlan",
    "GenerationResult",
    "SetupSummary",
    "run_initial_setup",
    # Recurring rules
    "RecurringRuleEngine",
    "RecurringRunResult",
    "default_rules",
]
