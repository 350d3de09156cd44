"""Exception hierarchy for flipforge."""

from typing import Optional


class FlipforgeError(Exception):
    """Base exception for all flipforge errors."""
    pass


class ConfigurationError(FlipforgeError):
    """Raised when required configuration or credentials are missing."""
    pass


class ValidationError(FlipforgeError):
    """Raised when caller input is rejected before any oracle call."""
    pass


class CandidateLimitError(ValidationError):
    """Raised when generation produces more unique candidates than allowed."""

    def __init__(self, limit: int, count: Optional[int] = None):
        self.limit = limit
        self.count = count
        seen = f"{count}" if count is not None else f"more than {limit}"
        super().__init__(
            f"Too many candidates ({seen}). Maximum {limit}. Please tighten your filters."
        )


class PresetCountError(ValidationError):
    """Raised when the number of requested personas is out of bounds."""

    def __init__(self, count: int, minimum: int, maximum: int):
        self.count = count
        super().__init__(f"Invalid preset count. Must be {minimum}-{maximum}. Got {count}.")


class OracleError(FlipforgeError):
    """Base exception for scoring oracle failures."""
    pass


class OracleTransportError(OracleError):
    """Raised when the oracle cannot be reached after all retries."""
    pass


class OracleResponseError(OracleError):
    """Raised when the oracle answers with an error status or unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ''):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class PipelineCancelled(FlipforgeError):
    """Raised when the caller cancels a run between batches."""
    pass
