# utils/manager_performance/errors.py
"""
Error kinds raised by the scoring engine and the state store.

- ValidationError: malformed or missing command input, command has no effect
- NotFoundError: reference to a nonexistent manager/plan/step/KPI/alert
- InsufficientDataError: a score cannot be computed for the period
"""


class PerformanceError(Exception):
    """Base class for all manager-performance errors."""


class ValidationError(PerformanceError):
    pass


class NotFoundError(PerformanceError):

    def __init__(self, entity: str, identifier):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found: {identifier}")


class InsufficientDataError(PerformanceError):
    """Not a hard failure: the subject has no data for the requested period."""

    def __init__(self, subject: str, period=None):
        self.subject = subject
        self.period = period
        suffix = f" ({period})" if period is not None else ""
        super().__init__(f"Insufficient data for {subject}{suffix}")
