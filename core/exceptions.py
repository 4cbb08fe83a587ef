"""Error hierarchy for the amortization engine and its collaborators."""


class EMITrackerError(Exception):
    """Base error: carries a machine-readable `kind` plus a human message."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class NotFoundError(EMITrackerError):
    """Raised when a loan or a referenced installment does not exist."""

    kind = "not_found"


class InvalidArgumentError(EMITrackerError):
    """Raised for inputs the engine refuses to compute with."""

    kind = "invalid_argument"


class ArithmeticDegenerateError(EMITrackerError):
    """Raised when a closed-form solve has no real solution (e.g. log of a non-positive)."""

    kind = "arithmetic_degenerate"
