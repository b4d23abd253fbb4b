"""Failure taxonomy for the bootstrap pipeline.

Each stage raises a ``HipoError`` subclass; the orchestrator maps the
error's ``FailureKind`` to a process exit status with ``exit_code_for``.
"""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    """Categories of pipeline failure."""

    MALFORMED_INPUT = "malformed-input"
    NETWORK_FAILURE = "network-failure"
    REMOTE_REJECTION = "remote-rejection"
    LOCAL_IO_FAILURE = "local-io-failure"
    ILLEGAL_ARCHIVE_ENTRY = "illegal-archive-entry"
    RUNTIME_NOT_FOUND = "runtime-not-found"
    LAUNCH_FAILURE = "launch-failure"


EXIT_CODES: dict[FailureKind, int] = {
    FailureKind.MALFORMED_INPUT: 2,
    FailureKind.NETWORK_FAILURE: 3,
    FailureKind.REMOTE_REJECTION: 4,
    FailureKind.LOCAL_IO_FAILURE: 5,
    FailureKind.ILLEGAL_ARCHIVE_ENTRY: 6,
    FailureKind.RUNTIME_NOT_FOUND: 7,
    FailureKind.LAUNCH_FAILURE: 8,
}


class HipoError(Exception):
    """Base class for every failure surfaced to the user."""

    kind: FailureKind = FailureKind.LOCAL_IO_FAILURE


class CoordinateError(HipoError, ValueError):
    """Raised when a coordinate string is malformed."""

    kind = FailureKind.MALFORMED_INPUT


class NetworkError(HipoError):
    """Raised when a request cannot be completed at the transport level."""

    kind = FailureKind.NETWORK_FAILURE


class RemoteRejectionError(HipoError):
    """Raised when a remote endpoint answers with an unusable response."""

    kind = FailureKind.REMOTE_REJECTION

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ArtifactNotFoundError(RemoteRejectionError):
    """Raised when the repository does not serve the requested artifact."""


class InvalidResponseError(RemoteRejectionError):
    """Raised when a 2xx response body lacks the expected fields."""


class LocalIOError(HipoError):
    """Raised on file-system failures inside the managed home."""

    kind = FailureKind.LOCAL_IO_FAILURE


class IllegalArchiveEntryError(HipoError):
    """Raised when an archive entry would land outside the destination."""

    kind = FailureKind.ILLEGAL_ARCHIVE_ENTRY

    def __init__(self, entry_name: str, destination: str) -> None:
        super().__init__(f"{entry_name}: illegal file path (escapes {destination})")
        self.entry_name = entry_name
        self.destination = destination


class RuntimeNotFoundError(HipoError):
    """Raised when no runtime executable can be located."""

    kind = FailureKind.RUNTIME_NOT_FOUND


class LaunchError(HipoError):
    """Raised when the runtime process cannot be spawned."""

    kind = FailureKind.LAUNCH_FAILURE


def exit_code_for(error: HipoError) -> int:
    """Return the process exit status for *error*."""
    return EXIT_CODES[error.kind]
