"""
Call Replayer

Serves recorded calls back in order, without touching the network.
"""

import logging
from typing import Callable, TypeVar

from .errors import CallMismatch, SnapshotExhausted, SnapshotParseError, UnconsumedCalls
from .payloads import decode_error
from .recorder import OPERATION_METHOD
from .store import Snapshot


logger = logging.getLogger("projsnap.snapshot")

T = TypeVar('T')


class CallReplayer:
    """
    Sequential replay of a snapshot.

    Each replayed call consumes the next recorded call, whatever its
    outcome. With strict matching enabled, the recorded method and target
    must equal the ones requested; otherwise calls are matched purely by
    position.

    Example:
        replayer = CallReplayer(load_snapshot(path))
        login = replayer.replay('GetUser', decode_login)
    """

    def __init__(self, snapshot: Snapshot, strict: bool = False):
        """
        Initialize replayer.

        Args:
            snapshot: Snapshot to consume
            strict: Compare each recorded call with the requested one
        """
        self.snapshot = snapshot
        self.strict = strict
        self._cursor = 0

    @property
    def cursor(self) -> int:
        """Number of recorded calls consumed so far."""
        return self._cursor

    @property
    def remaining(self) -> int:
        return len(self.snapshot.calls) - self._cursor

    def replay(
        self,
        operation: str,
        decoder: Callable[[str], T],
        method: str = OPERATION_METHOD
    ) -> T:
        """
        Return the recorded result of the next call.

        Args:
            operation: Operation being requested
            decoder: Turns the recorded success payload into the typed result
            method: Method tag of the request (checked in strict mode)

        Returns:
            Decoded result of the recorded call

        Raises:
            SnapshotExhausted: If every recorded call has been consumed
            CallMismatch: In strict mode, if the recorded call is a different one
            UpstreamError: If the recorded call failed
            SnapshotParseError: If the recorded payload cannot be decoded
        """
        position = self._cursor
        if position >= len(self.snapshot.calls):
            raise SnapshotExhausted(operation, position)

        call = self.snapshot.calls[position]
        self._cursor += 1

        if self.strict and (call.method, call.url) != (method, operation):
            raise CallMismatch(position, (call.method, call.url), (method, operation))

        if not call.succeeded:
            logger.debug(f"Replaying {operation} failure from call {position + 1} ({call.status_code})")
            raise decode_error(call.response, call.status_code)

        logger.debug(f"Replaying {operation} from call {position + 1}")
        try:
            return decoder(call.response)
        except (ValueError, TypeError, KeyError) as e:
            raise SnapshotParseError(
                f"call {position + 1} ({operation}): cannot decode recorded response: {e}"
            ) from e

    def assert_exhausted(self):
        """
        Check that every recorded call was replayed.

        Raises:
            UnconsumedCalls: If recorded calls are left over
        """
        if self.remaining > 0:
            raise UnconsumedCalls(self.remaining, len(self.snapshot.calls))
