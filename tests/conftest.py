"""Shared fixtures for projsnap tests."""

import json
import os
from pathlib import Path

import pytest

from projsnap.snapshot import SnapshotConfig


TESTDATA_DIR = Path(__file__).parent.parent / "testdata" / "snapshots"


@pytest.fixture
def write_snapshot(tmp_path):
    """Write a snapshot document into tmp_path and return its path."""
    def _write(test_name, calls, **extra):
        document = {'test_name': test_name, 'calls': calls}
        document.update(extra)
        path = tmp_path / f"{test_name}.json"
        path.write_text(json.dumps(document), encoding='utf-8')
        return path

    return _write


@pytest.fixture
def replay_config(tmp_path):
    """Replay-mode config pointing at tmp_path."""
    return SnapshotConfig(mode='replay', snapshot_dir=tmp_path)


@pytest.fixture
def snapshot_config():
    """
    Config for tests that run against the checked-in snapshots.

    Honors SNAPSHOT_MODE etc.; without SNAPSHOT_DIR the repository's
    testdata/snapshots directory is used regardless of the working directory.
    """
    config = SnapshotConfig.from_env()
    if not os.environ.get('SNAPSHOT_DIR'):
        config.snapshot_dir = TESTDATA_DIR
    return config
