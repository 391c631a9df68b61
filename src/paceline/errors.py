"""Exceptions raised by paceline."""


class PacelineError(Exception):
    """Base class for all paceline errors."""


class InvalidReferenceError(PacelineError, ValueError):
    """Reference data needed for a computation is missing or unusable.

    Raised for a maximum heart rate that is None, non-numeric or <= 0.
    """


class ActivityFormatError(PacelineError, ValueError):
    """An ingested activity record cannot be turned into an Activity."""
