"""Engine configuration."""

import json
import logging
from dataclasses import asdict, dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from hkplanner.domain.policies import (
    DEFAULT_SLOT_MINUTES,
    DurationCursorPolicy,
    FixedSlotPolicy,
    ProbabilisticOccupancy,
    SlotPolicy,
)
from hkplanner.exceptions import ConfigurationError


class SlottingMode(Enum):
    """How a staff member's task queue is laid out in time."""

    FIXED = "fixed"  # Fixed average slot per task
    DURATION = "duration"  # Cursor advanced by each template's own duration


class DistributorType(Enum):
    """Which room-to-staff distributor to use."""

    GREEDY = "greedy"  # Round-robin with skill overrides and capacity fallback
    BALANCED = "balanced"  # OR-Tools CP-SAT load balancing
    HYBRID = "hybrid"  # Try CP-SAT, fall back to greedy


@dataclass
class EngineConfig:
    """Configuration for a scheduling run.

    Attributes:
        window_days: Number of days in the rolling window.
        checkout_probability: Fallback chance a room needs checkout service.
        checkin_probability: Fallback chance a room needs checkin preparation.
        as_needed_probability: Chance of an ad-hoc task.
        random_seed: Seed for the probabilistic fallback (None = unseeded).
        slot_minutes: Average task duration used by fixed slotting.
        slotting: Queue layout mode.
        distributor: Room-to-staff distributor.
        solver_time_limit_seconds: CP-SAT time limit per day.
        database_url: SQLAlchemy URL of the task store (None = in memory).
        log_level: Logging level name.
    """

    window_days: int = 7
    checkout_probability: float = 0.3
    checkin_probability: float = 0.2
    as_needed_probability: float = 0.1
    random_seed: Optional[int] = None
    slot_minutes: int = DEFAULT_SLOT_MINUTES
    slotting: SlottingMode = SlottingMode.FIXED
    distributor: DistributorType = DistributorType.GREEDY
    solver_time_limit_seconds: float = 10.0
    database_url: Optional[str] = None
    log_level: str = "INFO"

    def build_occupancy(self) -> ProbabilisticOccupancy:
        """Occupancy fallback using the configured probabilities."""
        return ProbabilisticOccupancy(
            checkout_probability=self.checkout_probability,
            checkin_probability=self.checkin_probability,
            as_needed_probability=self.as_needed_probability,
            seed=self.random_seed,
        )

    def build_slot_policy(self) -> SlotPolicy:
        if self.slotting == SlottingMode.DURATION:
            return DurationCursorPolicy()
        return FixedSlotPolicy(slot_minutes=self.slot_minutes)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["slotting"] = self.slotting.value
        data["distributor"] = self.distributor.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "EngineConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")

        values = dict(data)
        try:
            if "slotting" in values:
                values["slotting"] = SlottingMode(values["slotting"])
            if "distributor" in values:
                values["distributor"] = DistributorType(values["distributor"])
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        config = cls(**values)
        validate_config(config)
        return config


def validate_config(config: EngineConfig) -> None:
    """Raise ConfigurationError if any value is out of range."""
    if config.window_days < 1:
        raise ConfigurationError("window_days must be >= 1")
    for name in ("checkout_probability", "checkin_probability", "as_needed_probability"):
        value = getattr(config, name)
        if not 0.0 <= value <= 1.0:
            raise ConfigurationError(f"{name} must be between 0 and 1")
    if config.slot_minutes <= 0:
        raise ConfigurationError("slot_minutes must be > 0")
    if config.solver_time_limit_seconds <= 0:
        raise ConfigurationError("solver_time_limit_seconds must be > 0")
    if not isinstance(logging.getLevelName(str(config.log_level).upper()), int):
        raise ConfigurationError(f"Unknown log_level: {config.log_level}")


def load_config(path: Union[str, Path]) -> EngineConfig:
    """Load and validate configuration from a JSON file."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return EngineConfig.from_dict(data)
