"""
Tests for snapshot mode resolution.
"""

import pytest

from projsnap.snapshot import SnapshotMode, resolve_mode


class TestResolveMode:
    """Test resolve_mode()."""

    @pytest.mark.parametrize('value,expected', [
        ('replay', SnapshotMode.REPLAY),
        ('record', SnapshotMode.RECORD),
        ('bypass', SnapshotMode.BYPASS),
        ('RECORD', SnapshotMode.RECORD),
        ('Bypass', SnapshotMode.BYPASS),
        ('  record  ', SnapshotMode.RECORD),
    ])
    def test_recognized_values(self, value, expected):
        """Test recognized modes regardless of case."""
        assert resolve_mode(value) is expected

    @pytest.mark.parametrize('value', [None, '', 'live', 'recording', 'off'])
    def test_unset_or_unknown_defaults_to_replay(self, value):
        """Test that anything unrecognized means replay."""
        assert resolve_mode(value) is SnapshotMode.REPLAY

    def test_mode_passes_through(self):
        """Test that an already resolved mode is returned unchanged."""
        assert resolve_mode(SnapshotMode.BYPASS) is SnapshotMode.BYPASS
