class GradingError(Exception):
    """Base class for errors raised by the grading pipeline."""


class NotFound(GradingError):
    def __init__(self, kind: str, ident):
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind} not found: {ident}")


class InvalidTransition(GradingError):
    def __init__(self, from_status, to_status):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid revision status transition: {from_status.value} -> {to_status.value}"
        )


class ValidationError(GradingError):
    """Business rule violated; raised before anything is written."""


class ConflictError(GradingError):
    """A concurrent write to the same grading queue row was detected."""
