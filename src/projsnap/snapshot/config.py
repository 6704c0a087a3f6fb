"""
Snapshot Configuration

Explicit configuration for a snapshot client. A config value is built once
(from arguments, the environment or a YAML file) and handed to the client at
construction; the client never reads the environment on its own.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .modes import SnapshotMode, resolve_mode


DEFAULT_SNAPSHOT_DIR = "testdata/snapshots"

TRUTHY = ('1', 'true', 'yes', 'on')


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUTHY


@dataclass
class SnapshotConfig:
    """Configuration for SnapshotGitHubClient."""

    # Operating mode (replay, record, bypass); anything else means replay
    mode: SnapshotMode = SnapshotMode.REPLAY

    # Where snapshot files live
    snapshot_dir: Path = field(default_factory=lambda: Path(DEFAULT_SNAPSHOT_DIR))

    # Replay matching: strict compares each recorded call with the one requested
    strict: bool = False

    # Level for the projsnap loggers; None leaves them untouched
    log_level: Optional[str] = None

    def __post_init__(self):
        self.mode = resolve_mode(self.mode)
        self.snapshot_dir = Path(self.snapshot_dir or DEFAULT_SNAPSHOT_DIR)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SnapshotConfig':
        """Create config from a dictionary, ignoring unset values."""
        return cls(
            mode=resolve_mode(data.get('mode')),
            snapshot_dir=Path(data.get('snapshot_dir') or DEFAULT_SNAPSHOT_DIR),
            strict=_as_bool(data.get('strict', False)),
            log_level=str(data['log_level']) if data.get('log_level') else None
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'SnapshotConfig':
        """
        Read configuration from environment variables.

        SNAPSHOT_MODE       replay (default), record or bypass
        SNAPSHOT_DIR        snapshot directory (default testdata/snapshots)
        SNAPSHOT_STRICT     1/true/yes/on to enable strict replay matching
        SNAPSHOT_LOG_LEVEL  level for projsnap loggers
        """
        env = os.environ if environ is None else environ
        return cls.from_dict({
            'mode': env.get('SNAPSHOT_MODE'),
            'snapshot_dir': env.get('SNAPSHOT_DIR'),
            'strict': env.get('SNAPSHOT_STRICT', ''),
            'log_level': env.get('SNAPSHOT_LOG_LEVEL'),
        })

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'SnapshotConfig':
        """
        Load configuration from a YAML file.

        The keys may sit at the top level or under a "snapshot:" section.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the document is not a mapping
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping in {path}, got {type(data).__name__}")

        section = data.get('snapshot', data)
        if not isinstance(section, dict):
            raise ValueError(f"Expected 'snapshot' to be a mapping in {path}")

        return cls.from_dict(section)
