"""Domain error codes for the event_manager module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    PARTICIPANT_NOT_FOUND = "PARTICIPANT_NOT_FOUND"
    EVENT_ALREADY_EXISTS = "EVENT_ALREADY_EXISTS"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    EVENT_CANCELLED = "EVENT_CANCELLED"
    ALREADY_ENROLLED = "ALREADY_ENROLLED"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    SERIALIZATION_FAILED = "SERIALIZATION_FAILED"


class SerializationPhase(Enum):
    """Which side of the snapshot codec failed."""

    SAVE = "save"
    LOAD = "load"
    EXPORT = "export"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotFoundError(DomainError):
    """An entity looked up by id does not exist."""


class AlreadyExistsError(DomainError):
    """An entity with the same id is already registered."""


class InvalidStateError(DomainError):
    """The operation is not allowed in the entity's current state."""


class EventNotFoundError(NotFoundError):
    """Raised when an event is not found."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.EVENT_NOT_FOUND,
            message=f"No event found with id '{event_id}'",
        )
        self.event_id = event_id


class ParticipantNotFoundError(NotFoundError):
    """Raised when a participant is not found."""

    def __init__(self, participant_id: str) -> None:
        super().__init__(
            code=ErrorCode.PARTICIPANT_NOT_FOUND,
            message=f"No participant found with id '{participant_id}'",
        )
        self.participant_id = participant_id


class EventAlreadyExistsError(AlreadyExistsError):
    """Raised when registering an event whose id is taken."""

    def __init__(self, event_id: str, existing_name: str | None = None) -> None:
        super().__init__(
            code=ErrorCode.EVENT_ALREADY_EXISTS,
            message=f"An event with id '{event_id}' already exists",
        )
        self.event_id = event_id
        self.existing_name = existing_name


class CapacityExceededError(DomainError):
    """Raised when enrolling into a full event."""

    def __init__(
        self,
        event_id: str,
        event_name: str,
        capacity_max: int,
        current_count: int,
    ) -> None:
        super().__init__(
            code=ErrorCode.CAPACITY_EXCEEDED,
            message=(
                f"Event '{event_name}' is full "
                f"({current_count}/{capacity_max} seats taken)"
            ),
        )
        self.event_id = event_id
        self.event_name = event_name
        self.capacity_max = capacity_max
        self.current_count = current_count

    @property
    def remaining_seats(self) -> int:
        return max(0, self.capacity_max - self.current_count)


class EventCancelledError(InvalidStateError):
    """Raised when mutating membership of a cancelled event."""

    def __init__(self, event_id: str, event_name: str) -> None:
        super().__init__(
            code=ErrorCode.EVENT_CANCELLED,
            message=f"Event '{event_name}' is cancelled",
        )
        self.event_id = event_id
        self.event_name = event_name


class AlreadyEnrolledError(InvalidStateError):
    """Raised when a participant is enrolled twice in the same event."""

    def __init__(self, event_id: str, participant_id: str) -> None:
        super().__init__(
            code=ErrorCode.ALREADY_ENROLLED,
            message=(
                f"Participant '{participant_id}' is already enrolled "
                f"in event '{event_id}'"
            ),
        )
        self.event_id = event_id
        self.participant_id = participant_id


class ValidationError(DomainError):
    """Aggregates every violation found, never only the first one."""

    def __init__(self, violations: list[str]) -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_FAILED,
            message=_format_violations(violations),
        )
        self.violations = list(violations)


class SerializationError(DomainError):
    """Wraps an I/O or parse failure of the snapshot codec."""

    def __init__(
        self,
        message: str,
        phase: SerializationPhase,
        file: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        where = f" '{file}'" if file else ""
        super().__init__(
            code=ErrorCode.SERIALIZATION_FAILED,
            message=f"{phase.value} of snapshot{where} failed: {message}",
        )
        self.phase = phase
        self.file = file
        self.cause = cause
        self.__cause__ = cause


def _format_violations(violations: list[str]) -> str:
    if len(violations) == 1:
        return violations[0]
    lines = "\n".join(f"- {violation}" for violation in violations)
    return f"{len(violations)} validation errors:\n{lines}"
