# carwash/errors.py

from enum import Enum


class ReasonCode(str, Enum):
    slot_unavailable = "slot_unavailable"
    day_closed = "day_closed"
    no_worker_available = "no_worker_available"
    system_busy = "system_busy"


SYSTEM_BUSY_MESSAGE = "System busy. Please try again in a few seconds."


class SchedulingError(Exception):
    """Base class for errors raised by the scheduling core."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Malformed input: bad date, non-positive duration, out-of-hours slot."""


class NotFound(SchedulingError):
    """A referenced service, client, worker or appointment does not exist."""


class ConcurrencyConflict(SchedulingError):
    """Transient: serialization failure or lock timeout at the data layer."""

    def __init__(self, message: str = SYSTEM_BUSY_MESSAGE):
        super().__init__(message)
