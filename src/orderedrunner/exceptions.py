"""Exception types raised by orderedrunner."""

from typing import Optional


class OrderedRunnerError(Exception):
    """Base class for all orderedrunner errors."""

    pass


class ConfigurationError(OrderedRunnerError):
    """Raised when a test class or method is declared incorrectly.

    Configuration errors are detected before any unit of the affected
    method (or plan) runs.
    """

    def __init__(self, message: str, method: Optional[str] = None):
        self.message = message
        self.method = method
        if method:
            message = f"{method}: {message}"
        super().__init__(message)


class UnitFailure(OrderedRunnerError):
    """Outcome of a single execution unit whose test body raised."""

    def __init__(self, unit_id: str, cause: BaseException):
        self.unit_id = unit_id
        self.cause = cause
        super().__init__(f"{unit_id} failed: {cause!r}")
