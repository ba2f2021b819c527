"""Error taxonomy for the study tracker core."""


class StudyTrackerError(Exception):
    """Base class for study tracker errors."""


class InvalidInput(StudyTrackerError):  # noqa: N818
    """Raised when a write is rejected before reaching the store."""


class NotFound(StudyTrackerError):  # noqa: N818
    """Raised when an entry or hour record does not exist."""


class StoreUnavailable(StudyTrackerError):  # noqa: N818
    """Raised when the persistence transport fails."""


class ResetFailure(StudyTrackerError):  # noqa: N818
    """Raised when a factory reset may have been partially committed."""
