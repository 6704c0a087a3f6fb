"""
Snapshot Store

On-disk format and persistence for recorded GitHub API interactions.

A snapshot file holds one test scenario:

    {
      "test_name": "EndToEndWorkflow",
      "calls": [
        {"method": "API", "url": "GetUser", "status_code": 200,
         "response": "\"octocat\"", "timestamp": "2025-01-01T12:00:00+00:00"}
      ],
      "created": "2025-01-01T12:00:00+00:00",
      "updated": "2025-01-01T12:00:00+00:00"
    }

The order of "calls" is the replay contract.
"""

import hashlib
import json
import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .config import DEFAULT_SNAPSHOT_DIR
from .errors import PersistenceError, SnapshotNotFound, SnapshotParseError


logger = logging.getLogger("projsnap.snapshot")

UNSAFE_CHARS = re.compile(r'[^a-zA-Z0-9_-]')
FRACTION = re.compile(r'\.(\d+)')


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp.

    Accepts a trailing "Z" and fractions of any length (zero-trimmed or
    nanosecond), both of which other recorders emit.

    Raises:
        ValueError: If the value is not a valid timestamp
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be a string, got {type(value).__name__}")

    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    # fromisoformat() before 3.11 only takes 3 or 6 fraction digits
    text = FRACTION.sub(lambda m: '.' + m.group(1)[:6].ljust(6, '0'), text, count=1)
    return datetime.fromisoformat(text)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class APICall:
    """A single captured call. Never modified once appended to a snapshot."""

    method: str
    url: str
    status_code: int
    response: str
    request_body: str = ""
    timestamp: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        return 200 <= self.status_code < 300

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'APICall':
        """
        Create APICall from its JSON form.

        Raises:
            ValueError: If required fields are missing or have the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"Call must be an object, got {type(data).__name__}")

        status = data.get('status_code')
        if isinstance(status, bool) or not isinstance(status, int):
            raise ValueError(f"Call has no integer status_code: {data!r}")

        response = data.get('response')
        if not isinstance(response, str):
            raise ValueError(f"Call has no string response: {data!r}")

        for key in ('method', 'url', 'request_body'):
            if data.get(key) is not None and not isinstance(data[key], str):
                raise ValueError(f"Call field {key} must be a string: {data!r}")

        return cls(
            method=data.get('method') or '',
            url=data.get('url') or '',
            status_code=status,
            response=response,
            request_body=data.get('request_body') or '',
            timestamp=parse_timestamp(data.get('timestamp'))
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: Dict[str, Any] = {
            'method': self.method,
            'url': self.url,
        }
        if self.request_body:
            data['request_body'] = self.request_body
        data['status_code'] = self.status_code
        data['response'] = self.response
        if self.timestamp is not None:
            data['timestamp'] = format_timestamp(self.timestamp)
        return data


@dataclass
class Snapshot:
    """All recorded calls of one test scenario, in call order."""

    test_name: str
    calls: List[APICall] = field(default_factory=list)
    created: Optional[datetime] = None
    updated: Optional[datetime] = None

    @classmethod
    def new(cls, test_name: str) -> 'Snapshot':
        """Create an empty snapshot stamped with the current time."""
        now = utc_now()
        return cls(test_name=test_name, calls=[], created=now, updated=now)

    def append(self, call: APICall):
        """Append a call; updated follows the newest call."""
        self.calls.append(call)
        self.updated = call.timestamp or utc_now()

    def __len__(self) -> int:
        return len(self.calls)

    @classmethod
    def from_dict(cls, data: Any) -> 'Snapshot':
        """
        Create Snapshot from its JSON form.

        Raises:
            ValueError: If the document is not a well-formed snapshot
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

        calls = data.get('calls')
        if not isinstance(calls, list):
            raise ValueError("Expected 'calls' to be a list")

        test_name = data.get('test_name') or ''
        if not isinstance(test_name, str):
            raise ValueError("Expected 'test_name' to be a string")

        parsed = []
        for index, call in enumerate(calls):
            try:
                parsed.append(APICall.from_dict(call))
            except ValueError as e:
                raise ValueError(f"calls[{index}]: {e}") from e

        return cls(
            test_name=test_name,
            calls=parsed,
            created=parse_timestamp(data.get('created')),
            updated=parse_timestamp(data.get('updated'))
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'test_name': self.test_name,
            'calls': [call.to_dict() for call in self.calls],
            'created': format_timestamp(self.created),
            'updated': format_timestamp(self.updated),
        }


def sanitize_name(test_name: str) -> str:
    """
    Turn a scenario name into a filesystem-safe token.

    Whitespace and anything outside [A-Za-z0-9_-] become "_". When that
    loses information, a short digest of the original name is appended so
    that distinct names never map to the same file.
    """
    safe = UNSAFE_CHARS.sub('_', re.sub(r'\s', '_', test_name))
    if safe != test_name or not safe:
        digest = hashlib.sha1(test_name.encode('utf-8')).hexdigest()[:8]
        safe = f"{safe}-{digest}"
    return safe


def derive_path(test_name: str, base_dir: Union[str, Path, None] = None) -> Path:
    """Return the snapshot file path for a scenario: {base_dir}/{sanitized}.json."""
    return Path(base_dir or DEFAULT_SNAPSHOT_DIR) / f"{sanitize_name(test_name)}.json"


def load_snapshot(path: Union[str, Path]) -> Snapshot:
    """
    Load a snapshot file.

    Raises:
        SnapshotNotFound: If the file doesn't exist
        SnapshotParseError: If the file is not a well-formed snapshot
        PersistenceError: If the file exists but cannot be read
    """
    path = Path(path)
    if not path.is_file():
        raise SnapshotNotFound(path)

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SnapshotParseError(f"invalid JSON: {e}", path) from e
    except UnicodeDecodeError as e:
        raise SnapshotParseError(f"not UTF-8 text: {e}", path) from e
    except OSError as e:
        raise PersistenceError(f"Failed to read snapshot {path}: {e}") from e

    try:
        snapshot = Snapshot.from_dict(data)
    except ValueError as e:
        raise SnapshotParseError(str(e), path) from e

    logger.info(f"Loaded {len(snapshot)} calls from {path}")
    return snapshot


def save_snapshot(snapshot: Snapshot, path: Union[str, Path]):
    """
    Write a snapshot file atomically.

    The document is written to a temporary file next to the target and then
    renamed over it, so readers never see a partial file.

    Raises:
        PersistenceError: If the directory or file cannot be written
    """
    path = Path(path)
    text = json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False) + "\n"

    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            'w',
            encoding='utf-8',
            dir=path.parent,
            prefix=f".{path.stem}.",
            suffix='.tmp',
            delete=False
        ) as f:
            tmp_name = f.name
            f.write(text)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise PersistenceError(f"Failed to write snapshot {path}: {e}") from e

    logger.info(f"Saved {len(snapshot)} calls to {path}")


class SnapshotStore:
    """
    Snapshot files under one base directory.

    Example:
        store = SnapshotStore('testdata/snapshots')
        path = store.path_for('GetUser')
        snapshot = store.load(path)
    """

    def __init__(self, base_dir: Union[str, Path, None] = None):
        self.base_dir = Path(base_dir or DEFAULT_SNAPSHOT_DIR)

    def path_for(self, test_name: str) -> Path:
        return derive_path(test_name, self.base_dir)

    def load(self, path: Union[str, Path]) -> Snapshot:
        return load_snapshot(path)

    def save(self, snapshot: Snapshot, path: Union[str, Path]):
        save_snapshot(snapshot, path)
