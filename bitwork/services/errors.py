"""Error taxonomy for marketplace operations."""


class BitworkError(Exception):
    """Base error. ``code`` is the machine-readable kind surfaced in results."""

    code = "error"
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class NotFoundError(BitworkError):
    """The requested entity does not exist."""

    code = "not_found"
    default_message = "Not found"


class UnauthorizedError(BitworkError):
    """The caller does not own the resource."""

    code = "unauthorized"
    default_message = "Unauthorized"


class ValidationError(BitworkError):
    """Malformed or incomplete input."""

    code = "validation_error"
    default_message = "Invalid input"


class ConflictError(BitworkError):
    """The write collides with an existing row."""

    code = "conflict"
    default_message = "Already exists"


class InvalidStateError(BitworkError):
    """The operation is not valid for the entity's current status."""

    code = "invalid_state"
    default_message = "This action is not allowed in the current state"


class SelfApplicationError(ValidationError):
    code = "self_application"
    default_message = "Cannot apply to your own job"


class DuplicateApplicationError(ConflictError):
    code = "duplicate_application"
    default_message = "You have already applied to this job"


class JobClosedError(InvalidStateError):
    code = "job_closed"
    default_message = "This job is no longer accepting applications"


class InvalidTransitionError(InvalidStateError):
    code = "invalid_transition"

    def __init__(self, current: str, target: str, entity: str = "application"):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change {entity} from {current} to {target}")
