"""
Snapshot GitHub Client

Drop-in replacement for GitHubClient that records GitHub API interactions
to snapshot files and replays them for deterministic, offline tests.

Modes:
- replay (default): serve every call from the scenario's snapshot file
- record: call GitHub, capture every call, write the snapshot on close()
- bypass: call GitHub directly, capture nothing
"""

import logging
from abc import abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from ..github import GitHubClient, Project, ProjectField, ProjectsAPI
from .config import SnapshotConfig
from .errors import ClientClosedError
from .modes import SnapshotMode
from .payloads import (
    decode_fields,
    decode_item_id,
    decode_login,
    decode_nothing,
    decode_object,
    decode_project,
)
from .recorder import CallRecorder
from .replayer import CallReplayer
from .store import Snapshot, SnapshotStore


logger = logging.getLogger("projsnap.snapshot")

T = TypeVar('T')


class _SnapshotBackend(ProjectsAPI):
    """
    Maps every client operation onto a single _call() hook.

    Operation names match the ones stored in snapshot files, so they must
    not change once snapshots have been recorded.
    """

    @abstractmethod
    def _call(
        self,
        operation: str,
        invoke: Callable[[ProjectsAPI], T],
        decoder: Callable[[str], T],
        request: Optional[Dict[str, Any]] = None
    ) -> T:
        ...

    def get_user(self) -> str:
        return self._call('GetUser', lambda c: c.get_user(), decode_login)

    def find_project(self, identifier: str) -> Project:
        return self._call(
            'FindProject',
            lambda c: c.find_project(identifier),
            decode_project,
            {'identifier': identifier}
        )

    def get_project_fields(self, project_id: str) -> List[ProjectField]:
        return self._call(
            'GetProjectFields',
            lambda c: c.get_project_fields(project_id),
            decode_fields,
            {'project_id': project_id}
        )

    def create_draft_issue(self, project_id: str, title: str, body: str) -> str:
        return self._call(
            'CreateDraftIssue',
            lambda c: c.create_draft_issue(project_id, title, body),
            decode_item_id,
            {'project_id': project_id, 'title': title, 'body': body}
        )

    def create_project_item(self, project_id: str, content_id: str) -> str:
        return self._call(
            'CreateProjectItem',
            lambda c: c.create_project_item(project_id, content_id),
            decode_item_id,
            {'project_id': project_id, 'content_id': content_id}
        )

    def get_issue_or_pr(self, url: str) -> Dict[str, Any]:
        return self._call(
            'GetIssueOrPR',
            lambda c: c.get_issue_or_pr(url),
            decode_object,
            {'url': url}
        )

    def set_project_item_field_value(
        self,
        project_id: str,
        item_id: str,
        field_id: str,
        value: Dict[str, Any]
    ) -> None:
        return self._call(
            'SetProjectItemFieldValue',
            lambda c: c.set_project_item_field_value(project_id, item_id, field_id, value),
            decode_nothing,
            {'project_id': project_id, 'item_id': item_id, 'field_id': field_id, 'value': value}
        )

    def delete_project_item(self, project_id: str, item_id: str) -> None:
        return self._call(
            'DeleteProjectItem',
            lambda c: c.delete_project_item(project_id, item_id),
            decode_nothing,
            {'project_id': project_id, 'item_id': item_id}
        )

    def create_project(
        self,
        owner_type: str,
        owner_login: str,
        title: str,
        description: str = ""
    ) -> Project:
        return self._call(
            'CreateProject',
            lambda c: c.create_project(owner_type, owner_login, title, description),
            decode_project,
            {
                'owner_type': owner_type,
                'owner_login': owner_login,
                'title': title,
                'description': description
            }
        )

    def delete_project(self, project_id: str) -> None:
        return self._call(
            'DeleteProject',
            lambda c: c.delete_project(project_id),
            decode_nothing,
            {'project_id': project_id}
        )


class RecordingClient(_SnapshotBackend):
    """Calls the live client and records every outcome."""

    def __init__(self, client: ProjectsAPI, recorder: CallRecorder):
        self.client = client
        self.recorder = recorder

    def _call(self, operation, invoke, decoder, request=None):
        return self.recorder.record(operation, lambda: invoke(self.client), request=request)


class ReplayingClient(_SnapshotBackend):
    """Answers every call from the recorded snapshot."""

    def __init__(self, replayer: CallReplayer):
        self.replayer = replayer

    def _call(self, operation, invoke, decoder, request=None):
        return self.replayer.replay(operation, decoder)


class SnapshotGitHubClient(ProjectsAPI):
    """
    GitHub client with snapshot record/replay.

    One instance serves one test scenario and must be used from one thread;
    replay correctness depends entirely on call order.

    Example:
        config = SnapshotConfig.from_env()
        with SnapshotGitHubClient('EndToEndWorkflow', config) as client:
            project = client.find_project('octo-org/Roadmap')
            fields = client.get_project_fields(project.id)
    """

    def __init__(
        self,
        test_name: str,
        config: Optional[SnapshotConfig] = None,
        real_client: Optional[ProjectsAPI] = None,
        client_factory: Callable[[], ProjectsAPI] = GitHubClient
    ):
        """
        Initialize snapshot client.

        Args:
            test_name: Scenario name, used to derive the snapshot file name
            config: Optional SnapshotConfig (defaults to replay mode)
            real_client: Live client for record/bypass mode
            client_factory: Builds the live client when real_client is None

        Raises:
            SnapshotNotFound: In replay mode, if the scenario was never recorded
            SnapshotParseError: In replay mode, if the snapshot file is malformed
        """
        self.test_name = test_name
        self.config = config or SnapshotConfig()
        self._mode = self.config.mode

        if self.config.log_level:
            logging.getLogger("projsnap").setLevel(
                getattr(logging, self.config.log_level.upper(), logging.WARNING)
            )

        self.store = SnapshotStore(self.config.snapshot_dir)
        self.snapshot_path: Path = self.store.path_for(test_name)
        self.snapshot: Optional[Snapshot] = None
        self.replayer: Optional[CallReplayer] = None

        self._real_client = real_client
        self._owns_client = False
        self._closed = False

        self._backend = self._create_backend(client_factory)
        logger.debug(f"{test_name}: {self._mode.value} mode, snapshot {self.snapshot_path}")

    def _create_backend(self, client_factory: Callable[[], ProjectsAPI]) -> ProjectsAPI:
        if self._mode is SnapshotMode.REPLAY:
            self.snapshot = self.store.load(self.snapshot_path)
            self.replayer = CallReplayer(self.snapshot, strict=self.config.strict)
            return ReplayingClient(self.replayer)

        if self._real_client is None:
            self._real_client = client_factory()
            self._owns_client = True

        if self._mode is SnapshotMode.RECORD:
            self.snapshot = Snapshot.new(self.test_name)
            return RecordingClient(self._real_client, CallRecorder(self.snapshot))

        return self._real_client

    @property
    def mode(self) -> SnapshotMode:
        return self._mode

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cursor(self) -> int:
        """Recorded calls consumed so far (always 0 outside replay mode)."""
        return self.replayer.cursor if self.replayer else 0

    def assert_exhausted(self):
        """In replay mode, fail if recorded calls were never replayed."""
        if self.replayer:
            self.replayer.assert_exhausted()

    def close(self):
        """
        Finish the scenario.

        In record mode the snapshot is written (again, on every call); in the
        other modes nothing is persisted. An owned live client is released
        even when writing fails.

        Raises:
            PersistenceError: If the snapshot cannot be written
        """
        try:
            if self._mode is SnapshotMode.RECORD:
                self.store.save(self.snapshot, self.snapshot_path)
        finally:
            if self._owns_client and not self._closed:
                close = getattr(self._real_client, 'close', None)
                if close:
                    close()
            self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _active(self) -> ProjectsAPI:
        if self._closed:
            raise ClientClosedError(f"Snapshot client for {self.test_name} is closed")
        return self._backend

    def get_user(self) -> str:
        return self._active().get_user()

    def find_project(self, identifier: str) -> Project:
        return self._active().find_project(identifier)

    def get_project_fields(self, project_id: str) -> List[ProjectField]:
        return self._active().get_project_fields(project_id)

    def create_draft_issue(self, project_id: str, title: str, body: str) -> str:
        return self._active().create_draft_issue(project_id, title, body)

    def create_project_item(self, project_id: str, content_id: str) -> str:
        return self._active().create_project_item(project_id, content_id)

    def get_issue_or_pr(self, url: str) -> Dict[str, Any]:
        return self._active().get_issue_or_pr(url)

    def set_project_item_field_value(
        self,
        project_id: str,
        item_id: str,
        field_id: str,
        value: Dict[str, Any]
    ) -> None:
        self._active().set_project_item_field_value(project_id, item_id, field_id, value)

    def delete_project_item(self, project_id: str, item_id: str) -> None:
        self._active().delete_project_item(project_id, item_id)

    def create_project(
        self,
        owner_type: str,
        owner_login: str,
        title: str,
        description: str = ""
    ) -> Project:
        return self._active().create_project(owner_type, owner_login, title, description)

    def delete_project(self, project_id: str) -> None:
        self._active().delete_project(project_id)
