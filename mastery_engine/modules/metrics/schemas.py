"""Pydantic schemas for the performance event interchange format.

An event arrives as ``{learner_id, module_id, type, payload, timestamp}``.
The payload shape depends on ``type``; each shape is validated by its own
schema so a malformed event is rejected before any state is touched.
"""

from datetime import datetime
from typing import Any, Union
from uuid import UUID

from pydantic import (
    Field,
    SkipValidation,
    ValidationError as PydanticValidationError,
    field_validator,
    model_validator,
)

from mastery_engine.shared.datetime_utils import ensure_utc, utc_now
from mastery_engine.shared.exceptions import UnknownEventTypeError, ValidationError
from mastery_engine.shared.models import BaseSchema, EventType


class LessonCompletePayload(BaseSchema):
    """Payload of a ``lesson_complete`` event."""

    module_id: str | None = None
    time_spent_minutes: int = Field(default=0, ge=0)


class QuizAttemptPayload(BaseSchema):
    """Payload of a ``quiz_attempt`` event."""

    score: float = Field(ge=0, le=100)
    passed: bool
    time_taken_minutes: float = Field(ge=0)
    is_perfect: bool = False
    topic: str | None = None
    correct_answers: int | None = Field(default=None, ge=0)
    total_questions: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_answer_counts(self) -> "QuizAttemptPayload":
        if (self.correct_answers is None) != (self.total_questions is None):
            raise ValueError("correct_answers and total_questions must be given together")
        if self.correct_answers is not None and self.correct_answers > self.total_questions:
            raise ValueError("correct_answers cannot exceed total_questions")
        return self


class TimeLogPayload(BaseSchema):
    """Payload of a ``time_log`` event."""

    minutes: int = Field(ge=0)


class EmptyPayload(BaseSchema):
    """Payload of ``note_created`` and ``bookmark_created`` events."""

    pass


EventPayload = Union[LessonCompletePayload, QuizAttemptPayload, TimeLogPayload, EmptyPayload]

PAYLOAD_SCHEMAS: dict[EventType, type[BaseSchema]] = {
    EventType.LESSON_COMPLETE: LessonCompletePayload,
    EventType.QUIZ_ATTEMPT: QuizAttemptPayload,
    EventType.TIME_LOG: TimeLogPayload,
    EventType.NOTE_CREATED: EmptyPayload,
    EventType.BOOKMARK_CREATED: EmptyPayload,
}


class PerformanceEvent(BaseSchema):
    """A validated raw performance signal."""

    learner_id: UUID
    module_id: str | None = None
    type: EventType
    # Validated against the schema for ``type`` in payload_matches_type
    payload: SkipValidation[EventPayload]
    timestamp: datetime = Field(default_factory=utc_now)

    @model_validator(mode="before")
    @classmethod
    def payload_matches_type(cls, data: Any) -> Any:
        """Validate the payload with the schema for ``type``.

        Left to the union, an empty payload would pass as any event type.
        """
        if not isinstance(data, dict):
            return data
        try:
            event_type = EventType(data.get("type"))
        except ValueError:
            return data

        schema = PAYLOAD_SCHEMAS[event_type]
        payload = data.get("payload")
        if isinstance(payload, schema):
            return data
        if isinstance(payload, BaseSchema):
            payload = payload.model_dump()
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise ValidationError("payload", "Payload must be a JSON object")
        try:
            validated = schema.model_validate(payload)
        except PydanticValidationError as e:
            field, message = _first_error(e)
            raise ValidationError(f"payload.{field}", f"invalid {event_type.value} payload: {message}")
        return {**data, "payload": validated}

    @model_validator(mode="after")
    def check_payload_type(self) -> "PerformanceEvent":
        if not isinstance(self.payload, PAYLOAD_SCHEMAS[self.type]):
            raise ValidationError(
                "payload",
                f"{type(self.payload).__name__} does not match event type {self.type.value}",
            )
        return self

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)


def _first_error(exc: PydanticValidationError) -> tuple[str, str]:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ())) or "payload"
    return field, error.get("msg", "invalid value")


def parse_event(raw: dict[str, Any]) -> PerformanceEvent:
    """Validate a raw interchange record into a PerformanceEvent.

    Args:
        raw: Decoded JSON record

    Returns:
        Validated event with a typed payload

    Raises:
        UnknownEventTypeError: If ``type`` is not a supported event type
        ValidationError: If any field or the payload is malformed
    """
    if not isinstance(raw, dict):
        raise ValidationError("event", "Event must be a JSON object")

    raw_type = raw.get("type")
    try:
        event_type = EventType(raw_type)
    except ValueError:
        raise UnknownEventTypeError(str(raw_type))

    raw_payload = raw.get("payload") or {}
    if not isinstance(raw_payload, dict):
        raise ValidationError("payload", "Payload must be a JSON object")

    try:
        payload = PAYLOAD_SCHEMAS[event_type].model_validate(raw_payload)
    except PydanticValidationError as e:
        field, message = _first_error(e)
        raise ValidationError(f"payload.{field}", message)

    if isinstance(payload, LessonCompletePayload) and payload.module_id is None:
        if not raw.get("module_id"):
            raise ValidationError("payload.module_id", "lesson_complete requires a module id")
        payload = payload.model_copy(update={"module_id": raw["module_id"]})

    fields = {
        "learner_id": raw.get("learner_id"),
        "module_id": raw.get("module_id"),
        "type": event_type,
        "payload": payload,
    }
    if raw.get("timestamp") is not None:
        fields["timestamp"] = raw["timestamp"]

    try:
        return PerformanceEvent.model_validate(fields)
    except PydanticValidationError as e:
        field, message = _first_error(e)
        raise ValidationError(field, message)
