"""
Call Recorder

Runs live calls and captures their outcome into a snapshot.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar

from ..common import dump_payload
from .payloads import encode_error, error_status
from .store import APICall, Snapshot, utc_now


logger = logging.getLogger("projsnap.snapshot")

T = TypeVar('T')

# Method tag for calls captured at the client-operation level
OPERATION_METHOD = "API"

SUCCESS_STATUS = 200


class CallRecorder:
    """
    Append-only capture of live calls.

    The recorder only grows the in-memory snapshot; writing it to disk is
    the owner's job.

    Example:
        recorder = CallRecorder(Snapshot.new('GetUser'))
        login = recorder.record('GetUser', client.get_user)
    """

    def __init__(self, snapshot: Snapshot, clock: Callable[[], datetime] = utc_now):
        """
        Initialize recorder.

        Args:
            snapshot: Snapshot to append to
            clock: Source of capture timestamps
        """
        self.snapshot = snapshot
        self.clock = clock

    def record(
        self,
        operation: str,
        thunk: Callable[[], T],
        request: Optional[Any] = None,
        method: str = OPERATION_METHOD
    ) -> T:
        """
        Invoke a live call once and capture the outcome.

        Args:
            operation: Operation name, stored as the call's url
            thunk: Zero-argument callable performing the live call
            request: Arguments of the call, stored as the request body
            method: Method tag to store

        Returns:
            Whatever the thunk returned

        Raises:
            Whatever the thunk raised, unchanged, after it has been recorded
        """
        request_body = dump_payload(request) if request is not None else ""

        try:
            result = thunk()
        except Exception as e:
            status = error_status(e)
            self._append(method, operation, request_body, status, encode_error(e, status))
            logger.debug(f"Recorded {operation} failure ({status}): {e}")
            raise

        self._append(method, operation, request_body, SUCCESS_STATUS, dump_payload(result))
        logger.debug(f"Recorded {operation} ({SUCCESS_STATUS})")
        return result

    def _append(self, method: str, url: str, request_body: str, status_code: int, response: str):
        self.snapshot.append(APICall(
            method=method,
            url=url,
            request_body=request_body,
            status_code=status_code,
            response=response,
            timestamp=self.clock()
        ))
