"""
Error taxonomy for the settings synchronization layer.

A missing remote record is not an error: repositories return ``None`` for
it. Malformed local slot contents are recovered inside the local store
adapter and never raised.
"""


class SettingsSyncError(Exception):
    """Base class for all settings-sync errors."""


class RepositoryError(SettingsSyncError):
    """
    Failure of a remote repository fetch or upsert.

    Attributes:
        message: Human-readable message from the underlying failure
        code: Optional stable error code reported by the backend
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} (code={self.code})"
        return self.message


class LocalStoreError(SettingsSyncError):
    """The backing local key-value store could not be read or written."""
