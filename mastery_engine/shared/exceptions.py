"""Shared exceptions for the mastery engine.

This module defines a consistent exception hierarchy used across all modules
to standardize error handling and provide clear error semantics.
"""

from typing import Any


class MasteryEngineError(Exception):
    """Base exception for all engine errors.

    All domain-specific exceptions should inherit from this class
    to enable consistent error handling at the caller boundary.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for presentation layers."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# ===================
# Validation Errors
# ===================

class ValidationError(MasteryEngineError):
    """Raised when input validation fails.

    The offending event or request is rejected as a whole; no state is mutated.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(
            f"Validation error for '{field}': {message}",
            {"field": field}
        )


class UnknownEventTypeError(ValidationError):
    """Raised when a performance event carries an unsupported type."""

    def __init__(self, event_type: str) -> None:
        super().__init__("type", f"Unknown event type: {event_type!r}")
        self.details["event_type"] = event_type


class InvalidStepIndexError(ValidationError):
    """Raised when a step index is outside the module's step sequence."""

    def __init__(self, step_index: int, total_steps: int) -> None:
        super().__init__(
            "step_index",
            f"Step index must be between 0 and {total_steps - 1}, got {step_index}"
        )


# ===================
# Resource Errors
# ===================

class ResourceNotFoundError(MasteryEngineError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: Any) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            {"resource_type": resource_type, "resource_id": str(resource_id)}
        )


class ModuleNotFoundInCatalogError(ResourceNotFoundError):
    """Raised when a module id is not part of the active catalog."""

    def __init__(self, module_id: str) -> None:
        super().__init__("Module", module_id)


class EnrollmentNotFoundError(ResourceNotFoundError):
    """Raised when a learner has no enrollment for a module."""

    def __init__(self, learner_id: Any, module_id: str) -> None:
        super().__init__("Enrollment", f"{learner_id}/{module_id}")
        self.details["learner_id"] = str(learner_id)
        self.details["module_id"] = module_id


# ===================
# State Errors
# ===================

class InvalidStateError(MasteryEngineError):
    """Raised when an operation is invalid for the current state."""
    pass


class OutOfOrderError(InvalidStateError):
    """Raised when completing a step that is not the current one.

    Indicates the caller's view has drifted from the authoritative state
    and must be resynchronised from the store.
    """

    def __init__(self, step_index: int, current_index: int | None) -> None:
        super().__init__(
            f"Step {step_index} is locked (current step: {current_index})",
            {"step_index": step_index, "current_index": current_index}
        )


class AlreadyCompletedError(InvalidStateError):
    """Raised when completing a step that is already completed.

    Recoverable: callers may treat it as an idempotent success.
    """

    def __init__(self, step_index: int) -> None:
        super().__init__(
            f"Step {step_index} is already completed",
            {"step_index": step_index}
        )


class ConcurrencyConflictError(InvalidStateError):
    """Raised when a versioned write finds a newer record in the store."""

    def __init__(self, record: str, expected_version: int, actual_version: int | None) -> None:
        super().__init__(
            f"Version conflict on {record}: expected {expected_version}, found {actual_version}",
            {
                "record": record,
                "expected_version": expected_version,
                "actual_version": actual_version,
            }
        )


# ===================
# Integration Errors
# ===================

class ExternalServiceError(MasteryEngineError):
    """Raised when an external collaborator call fails."""

    def __init__(self, service: str, message: str) -> None:
        super().__init__(
            f"External service error ({service}): {message}",
            {"service": service}
        )


class StoreUnavailableError(ExternalServiceError):
    """Raised when the durable store cannot be read or written."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__("ProgressStore", f"{operation} failed: {message}")
        self.details["operation"] = operation


# ===================
# Configuration Errors
# ===================

class ConfigurationError(MasteryEngineError):
    """Raised when there's a configuration problem."""
    pass


class InvalidCatalogError(ConfigurationError):
    """Raised when a catalog definition cannot be loaded."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(
            f"Invalid catalog ({source}): {reason}",
            {"source": source}
        )
