"""Exception types raised by the scheduling engine."""

from datetime import date
from typing import Optional


class HKPlannerError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(HKPlannerError):
    """Raised when a run cannot start because its inputs are unusable.

    Examples are an empty template catalog, an empty staff roster or an
    out-of-range configuration value. Always raised before anything is
    persisted.
    """


class MaterializationError(HKPlannerError):
    """Raised when a task cannot be built because a required reference is missing."""


class PersistenceError(HKPlannerError):
    """Raised by a task store when a batch could not be written.

    Attributes:
        scheduled_date: The day whose batch failed, if known.
    """

    def __init__(self, message: str, scheduled_date: Optional[date] = None):
        super().__init__(message)
        self.scheduled_date = scheduled_date


class SolverError(HKPlannerError):
    """Raised when the CP-SAT distributor finds no feasible assignment."""
