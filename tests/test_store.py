"""
Tests for the snapshot store.

Tests path derivation, loading, validation and atomic saving.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from projsnap.snapshot import (
    APICall,
    PersistenceError,
    Snapshot,
    SnapshotNotFound,
    SnapshotParseError,
    SnapshotStore,
    derive_path,
    load_snapshot,
    sanitize_name,
    save_snapshot,
)


STAMP = datetime(2025, 3, 1, 12, 30, 0, tzinfo=timezone.utc)


def make_call(url='GetUser', status=200, response='"octocat"', request_body=''):
    return APICall(
        method='API',
        url=url,
        status_code=status,
        response=response,
        request_body=request_body,
        timestamp=STAMP
    )


class TestSanitizeName:
    """Test sanitize_name() and derive_path()."""

    def test_safe_name_unchanged(self):
        """Test names that are already safe."""
        assert sanitize_name('GetUser') == 'GetUser'
        assert sanitize_name('find-project_2') == 'find-project_2'

    def test_unsafe_characters_replaced(self):
        """Test whitespace and punctuation become underscores."""
        safe = sanitize_name('FindProject valid/project: 1')

        assert safe.startswith('FindProject_valid_project__1-')
        assert ' ' not in safe and '/' not in safe and ':' not in safe

    def test_deterministic(self):
        """Test the same name always gives the same token."""
        assert sanitize_name('a b/c') == sanitize_name('a b/c')

    def test_distinct_names_do_not_collide(self):
        """Test names that sanitize to the same text stay distinct."""
        names = ['a b', 'a_b', 'a/b', 'a\tb', 'a.b']
        tokens = {sanitize_name(name) for name in names}

        assert len(tokens) == len(names)

    def test_derive_path_default_directory(self):
        """Test default base directory."""
        assert derive_path('GetUser') == Path('testdata/snapshots/GetUser.json')

    def test_derive_path_custom_directory(self, tmp_path):
        """Test custom base directory."""
        assert derive_path('GetUser', tmp_path) == tmp_path / 'GetUser.json'

    def test_store_path_for(self, tmp_path):
        """Test SnapshotStore uses its base directory."""
        store = SnapshotStore(tmp_path)

        assert store.path_for('GetUser') == tmp_path / 'GetUser.json'


class TestLoadSnapshot:
    """Test load_snapshot()."""

    def test_missing_file(self, tmp_path):
        """Test loading a snapshot that was never recorded."""
        path = tmp_path / 'missing.json'

        with pytest.raises(SnapshotNotFound) as exc_info:
            load_snapshot(path)

        assert exc_info.value.path == path
        assert 'SNAPSHOT_MODE=record' in str(exc_info.value)
        assert isinstance(exc_info.value, FileNotFoundError)

    def test_minimal_document(self, write_snapshot):
        """Test a hand-written snapshot without timestamps."""
        path = write_snapshot('GetUser', [
            {'method': 'GET', 'url': 'user', 'status_code': 200, 'response': '{"login":"alice"}'}
        ])

        snapshot = load_snapshot(path)

        assert snapshot.test_name == 'GetUser'
        assert len(snapshot) == 1
        call = snapshot.calls[0]
        assert call.method == 'GET'
        assert call.url == 'user'
        assert call.status_code == 200
        assert call.request_body == ''
        assert call.timestamp is None
        assert snapshot.created is None

    def test_preserves_call_order(self, write_snapshot):
        """Test calls come back in file order."""
        path = write_snapshot('Order', [
            {'method': 'API', 'url': name, 'status_code': 200, 'response': 'null'}
            for name in ['FindProject', 'GetProjectFields', 'CreateDraftIssue']
        ])

        snapshot = load_snapshot(path)

        assert [c.url for c in snapshot.calls] == ['FindProject', 'GetProjectFields', 'CreateDraftIssue']

    def test_go_style_timestamps(self, write_snapshot):
        """Test RFC 3339 timestamps with Z suffix and nanoseconds."""
        path = write_snapshot(
            'Stamps',
            [{'method': 'API', 'url': 'GetUser', 'status_code': 200, 'response': '"x"',
              'timestamp': '2025-03-01T12:30:00.123456789Z'}],
            created='2025-03-01T12:30:00Z',
            updated='2025-03-01T12:30:00.500+01:00'
        )

        snapshot = load_snapshot(path)

        assert snapshot.calls[0].timestamp == datetime(2025, 3, 1, 12, 30, 0, 123456, tzinfo=timezone.utc)
        assert snapshot.created == STAMP.replace(second=0)
        assert snapshot.updated.utcoffset().total_seconds() == 3600

    @pytest.mark.parametrize('stamp,micro', [
        ('2025-03-01T12:30:00.12345Z', 123450),
        ('2025-03-01T12:30:00.1Z', 100000),
        ('2025-03-01T12:30:00.1234567+00:00', 123456),
    ])
    def test_odd_length_fractions(self, write_snapshot, stamp, micro):
        """Test fractions that are not 3 or 6 digits long."""
        path = write_snapshot('Fractions', [
            {'method': 'API', 'url': 'GetUser', 'status_code': 200, 'response': '"x"', 'timestamp': stamp}
        ])

        snapshot = load_snapshot(path)

        assert snapshot.calls[0].timestamp == datetime(2025, 3, 1, 12, 30, 0, micro, tzinfo=timezone.utc)

    def test_unreadable_file(self, tmp_path):
        """Test a read failure surfaces as PersistenceError."""
        path = tmp_path / 'Locked.json'
        path.write_text('{"calls": []}', encoding='utf-8')

        with patch('builtins.open', side_effect=PermissionError('permission denied')):
            with pytest.raises(PersistenceError, match='permission denied'):
                load_snapshot(path)

    def test_invalid_json(self, tmp_path):
        """Test a file that is not JSON."""
        path = tmp_path / 'broken.json'
        path.write_text('{"calls": [', encoding='utf-8')

        with pytest.raises(SnapshotParseError, match='invalid JSON'):
            load_snapshot(path)

    @pytest.mark.parametrize('document', [
        [],
        {'test_name': 'x'},
        {'calls': {}},
        {'calls': ['GetUser']},
        {'calls': [{'method': 'GET', 'url': 'user', 'response': '{}'}]},
        {'calls': [{'method': 'GET', 'url': 'user', 'status_code': '200', 'response': '{}'}]},
        {'calls': [{'method': 'GET', 'url': 'user', 'status_code': 200, 'response': {'login': 'a'}}]},
        {'calls': [{'status_code': 200, 'response': '{}', 'timestamp': 'yesterday'}]},
        {'calls': [], 'created': 12},
    ])
    def test_malformed_documents(self, tmp_path, document):
        """Test documents that are JSON but not snapshots."""
        path = tmp_path / 'bad.json'
        path.write_text(json.dumps(document), encoding='utf-8')

        with pytest.raises(SnapshotParseError):
            load_snapshot(path)


class TestSaveSnapshot:
    """Test save_snapshot()."""

    def test_round_trip(self, tmp_path):
        """Test every field survives save and load."""
        snapshot = Snapshot(test_name='RoundTrip', created=STAMP, updated=STAMP)
        snapshot.append(make_call(request_body='{"project_id": "PVT_1"}'))
        snapshot.append(make_call(url='FindProject', status=404, response='{"error": "nope"}'))
        path = tmp_path / 'RoundTrip.json'

        save_snapshot(snapshot, path)
        loaded = load_snapshot(path)

        assert loaded == snapshot

    def test_file_format(self, tmp_path):
        """Test the JSON layout on disk."""
        snapshot = Snapshot(test_name='Format', created=STAMP, updated=STAMP)
        snapshot.append(make_call())
        path = tmp_path / 'Format.json'

        save_snapshot(snapshot, path)
        data = json.loads(path.read_text(encoding='utf-8'))

        assert set(data) == {'test_name', 'calls', 'created', 'updated'}
        assert data['test_name'] == 'Format'
        assert data['created'] == '2025-03-01T12:30:00+00:00'
        assert data['calls'] == [{
            'method': 'API',
            'url': 'GetUser',
            'status_code': 200,
            'response': '"octocat"',
            'timestamp': '2025-03-01T12:30:00+00:00'
        }]

    def test_creates_parent_directories(self, tmp_path):
        """Test saving into a directory that doesn't exist yet."""
        path = tmp_path / 'nested' / 'deeper' / 'New.json'

        save_snapshot(Snapshot.new('New'), path)

        assert path.exists()

    def test_leaves_no_temp_files(self, tmp_path):
        """Test the atomic write cleans up after itself."""
        path = tmp_path / 'Clean.json'

        save_snapshot(Snapshot.new('Clean'), path)
        save_snapshot(Snapshot.new('Clean'), path)

        assert [p.name for p in tmp_path.iterdir()] == ['Clean.json']

    def test_replace_failure(self, tmp_path):
        """Test an I/O failure surfaces as PersistenceError."""
        path = tmp_path / 'Fail.json'

        with patch('projsnap.snapshot.store.os.replace', side_effect=OSError('disk full')):
            with pytest.raises(PersistenceError, match='disk full'):
                save_snapshot(Snapshot.new('Fail'), path)

        assert not path.exists()
        assert list(tmp_path.iterdir()) == []

    def test_unwritable_directory(self, tmp_path):
        """Test a parent path that is a file."""
        blocker = tmp_path / 'blocker'
        blocker.write_text('not a directory')

        with pytest.raises(PersistenceError):
            save_snapshot(Snapshot.new('X'), blocker / 'X.json')


class TestSnapshot:
    """Test Snapshot bookkeeping."""

    def test_new_snapshot_is_empty(self):
        """Test Snapshot.new()."""
        snapshot = Snapshot.new('Empty')

        assert snapshot.calls == []
        assert snapshot.created is not None
        assert snapshot.created == snapshot.updated

    def test_append_moves_updated(self):
        """Test updated follows the newest call."""
        snapshot = Snapshot(test_name='T', created=STAMP.replace(hour=1), updated=STAMP.replace(hour=1))

        snapshot.append(make_call())

        assert snapshot.updated == STAMP
        assert snapshot.created == STAMP.replace(hour=1)

    def test_calls_are_immutable(self):
        """Test recorded calls cannot be modified."""
        call = make_call()

        with pytest.raises(AttributeError):
            call.status_code = 500

    def test_succeeded(self):
        """Test success classification by status."""
        assert make_call(status=200).succeeded
        assert make_call(status=204).succeeded
        assert not make_call(status=404).succeeded
        assert not make_call(status=500).succeeded
