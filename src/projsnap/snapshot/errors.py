"""
Snapshot harness errors.

Everything the harness itself can fail with derives from SnapshotError.
Failures of the wrapped GitHub client are projsnap.github.UpstreamError and
are never wrapped in these types.
"""

from pathlib import Path
from typing import Optional


class SnapshotError(Exception):
    """Base class for record/replay harness failures."""


class SnapshotNotFound(SnapshotError, FileNotFoundError):
    """Raised in replay mode when the scenario has no snapshot file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(
            f"Snapshot file not found: {self.path} "
            f"(try running with SNAPSHOT_MODE=record to create it)"
        )


class SnapshotExhausted(SnapshotError):
    """
    Raised when replay runs past the last recorded call.

    This means the test made more calls than were recorded; the code under
    test has diverged from the recorded run.

    Attributes:
        operation: Operation that was requested
        position: Zero-based cursor position at the time of the request
    """

    def __init__(self, operation: str, position: int):
        self.operation = operation
        self.position = position
        super().__init__(
            f"No more recorded calls available for {operation} (call {position + 1})"
        )


class UnconsumedCalls(SnapshotError):
    """Raised by an exhaustion check when recorded calls were left unused."""

    def __init__(self, remaining: int, total: int):
        self.remaining = remaining
        self.total = total
        super().__init__(f"{remaining} of {total} recorded calls were never replayed")


class CallMismatch(SnapshotError):
    """
    Raised by strict replay when the next recorded call is not the one requested.

    Attributes:
        position: Zero-based index of the recorded call
        expected: (method, target) that was recorded
        actual: (method, target) that was requested
    """

    def __init__(self, position: int, expected: tuple, actual: tuple):
        self.position = position
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Call {position + 1} mismatch: recorded {expected[0]} {expected[1]}, "
            f"requested {actual[0]} {actual[1]}"
        )


class SnapshotParseError(SnapshotError, ValueError):
    """Raised when a snapshot document or an embedded payload cannot be decoded."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


class PersistenceError(SnapshotError, OSError):
    """Raised when a snapshot file cannot be written, or exists but cannot be read."""


class ClientClosedError(SnapshotError, RuntimeError):
    """Raised when an operation is invoked on a closed snapshot client."""
