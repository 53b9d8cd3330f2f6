"""Error taxonomy for the tracker core."""


class TrackerError(Exception):
    """Base class for errors raised by the tracker core."""


class ValidationError(TrackerError):
    """Malformed or out-of-range input."""


class PreconditionError(TrackerError):
    """A chapter task was toggled out of order."""


class NotFoundError(TrackerError):
    """Reference to an unknown exam id or chapter."""
