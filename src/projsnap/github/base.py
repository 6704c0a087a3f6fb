"""
Capability set shared by every GitHub Projects client variant.

The live client, the recording wrapper and the replaying wrapper all
implement ProjectsAPI, so code under test never needs to know which one
it holds.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from .models import Project, ProjectField


class ProjectsAPI(ABC):
    """Operations the project importer needs from GitHub."""

    @abstractmethod
    def get_user(self) -> str:
        """Return the login of the authenticated user."""

    @abstractmethod
    def find_project(self, identifier: str) -> Project:
        """Find a project by number or by "owner/project-title"."""

    @abstractmethod
    def get_project_fields(self, project_id: str) -> List[ProjectField]:
        """Return the field schema of a project."""

    @abstractmethod
    def create_draft_issue(self, project_id: str, title: str, body: str) -> str:
        """Create a draft issue in a project and return the new item id."""

    @abstractmethod
    def create_project_item(self, project_id: str, content_id: str) -> str:
        """Add an existing issue or pull request to a project; return the item id."""

    @abstractmethod
    def get_issue_or_pr(self, url: str) -> Dict[str, Any]:
        """Fetch an issue or pull request by its html URL."""

    @abstractmethod
    def set_project_item_field_value(
        self,
        project_id: str,
        item_id: str,
        field_id: str,
        value: Dict[str, Any]
    ) -> None:
        """Set one field value on a project item."""

    @abstractmethod
    def delete_project_item(self, project_id: str, item_id: str) -> None:
        """Remove an item from a project."""

    @abstractmethod
    def create_project(
        self,
        owner_type: str,
        owner_login: str,
        title: str,
        description: str = ""
    ) -> Project:
        """Create a project owned by a user or an organization."""

    @abstractmethod
    def delete_project(self, project_id: str) -> None:
        """Delete a project."""
