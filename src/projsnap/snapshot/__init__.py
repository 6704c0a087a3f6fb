"""
projsnap Snapshot Module

Record/replay harness for GitHub API calls in tests.

This module provides:
- SnapshotGitHubClient, the record/replay/bypass facade
- Call recording and sequential replay
- Snapshot file format and persistence
- Mode and configuration handling
"""

from .client import SnapshotGitHubClient, RecordingClient, ReplayingClient
from .config import SnapshotConfig, DEFAULT_SNAPSHOT_DIR
from .errors import (
    SnapshotError,
    SnapshotNotFound,
    SnapshotExhausted,
    UnconsumedCalls,
    CallMismatch,
    SnapshotParseError,
    PersistenceError,
    ClientClosedError,
)
from .modes import SnapshotMode, resolve_mode
from .recorder import CallRecorder
from .replayer import CallReplayer
from .store import (
    APICall,
    Snapshot,
    SnapshotStore,
    derive_path,
    load_snapshot,
    sanitize_name,
    save_snapshot,
)

__all__ = [
    # Client
    'SnapshotGitHubClient',
    'RecordingClient',
    'ReplayingClient',

    # Configuration
    'SnapshotConfig',
    'SnapshotMode',
    'resolve_mode',
    'DEFAULT_SNAPSHOT_DIR',

    # Recording and replay
    'CallRecorder',
    'CallReplayer',

    # Storage
    'APICall',
    'Snapshot',
    'SnapshotStore',
    'derive_path',
    'load_snapshot',
    'sanitize_name',
    'save_snapshot',

    # Errors
    'SnapshotError',
    'SnapshotNotFound',
    'SnapshotExhausted',
    'UnconsumedCalls',
    'CallMismatch',
    'SnapshotParseError',
    'PersistenceError',
    'ClientClosedError',
]
