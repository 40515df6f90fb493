"""Validation module for verifying schedule correctness."""

from hkplanner.validation.validator import (
    ConflictGroup,
    ConflictValidator,
    ScheduleValidator,
    SetupValidationReport,
    ValidationError,
    ValidationErrorType,
    ValidationResult,
    validate_setup,
)

__all__ = [
    "ConflictGroup",
    "ConflictValidator",
    "ScheduleValidator",
    "SetupValidationReport",
    "ValidationError",
    "ValidationErrorType",
    "ValidationResult",
    "validate_setup",
]
