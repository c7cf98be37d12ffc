"""Custom exceptions for MixArchive services."""


class PageLoadFailure(Exception):
    """Raised when a page cannot be opened (network error, bad status or timeout)."""

    def __init__(self, url: str, original: Exception):
        self.url = url
        self.original = original
        super().__init__(f"Failed to load {url}: {original}")


class ExtractionTimeout(Exception):
    """Raised when the track list never became available on a rendered page."""

    def __init__(self, url: str, attempts: int):
        self.url = url
        self.attempts = attempts
        super().__init__(f"Track list for {url} not available after {attempts} attempts")


class StorageFailure(Exception):
    """Raised when the artifact store cannot write or read a blob."""

    def __init__(self, key: str, original: Exception):
        self.key = key
        self.original = original
        super().__init__(f"Storage operation failed for '{key}': {original}")


class RequestNotFoundError(Exception):
    """Raised when an archive request id is unknown."""

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Archive request '{request_id}' not found")


class ArchiveNotReadyError(Exception):
    """Raised when assembly is attempted before every discovered item finished.

    This is a normal status for polling callers, not a fault.
    """

    def __init__(self, readiness):
        self.readiness = readiness
        super().__init__(
            f"Archive not ready: {readiness.completed_count} of {readiness.total_discovered} items complete"
        )


class InvocationError(Exception):
    """Raised when an asynchronous invocation could not be submitted."""

    def __init__(self, function: str, reason: str):
        self.function = function
        self.reason = reason
        super().__init__(f"Invocation of '{function}' failed: {reason}")


class IntakeError(Exception):
    """Raised when a new archive request could not be initiated."""
