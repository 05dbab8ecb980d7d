"""DONQ — Error Taxonomy.

Every failure the moderation pipeline reports is one of these. The HTTP layer
maps them to status codes; the poll job logs them and moves on.
"""


class DonqError(Exception):
    """Base class for all pipeline errors."""


class NotFoundError(DonqError):
    """Raised when an operation targets an unknown donation id."""

    def __init__(self, donation_id: str):
        self.donation_id = donation_id
        super().__init__(f"Donation not found: {donation_id}")


class TransitionError(DonqError):
    """Raised when a moderation transition's precondition does not hold."""

    def __init__(self, donation_id: str, message: str):
        self.donation_id = donation_id
        super().__init__(message)


class StorageError(DonqError):
    """Raised when the record store fails. No partial write is assumed."""


class UpstreamFetchError(DonqError):
    """Raised when the Extra Life API is unreachable or returns garbage."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


class ExportWriteError(DonqError):
    """Raised when the export file cannot be written."""

    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(message)


class ConfigError(DonqError):
    """Raised when the persisted export settings are malformed."""
