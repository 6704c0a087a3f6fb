"""
projsnap GitHub Client

Live client for the GitHub REST and GraphQL (Projects v2) APIs.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..common import get_token_from_env
from .base import ProjectsAPI
from .models import Project, ProjectField


logger = logging.getLogger("projsnap.github")

DEFAULT_BASE_URL = "https://api.github.com"

PROJECT_NODE_FIELDS = "id number title url"


class UpstreamError(Exception):
    """
    Raised when GitHub (or the transport to it) fails.

    Attributes:
        status_code: HTTP status of the failed response, if there was one
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def parse_repository_url(url: str) -> Tuple[str, str]:
    """
    Extract owner and repository name from a GitHub URL.

    Args:
        url: Any github.com URL pointing into a repository

    Returns:
        Tuple of (owner, repo)

    Raises:
        UpstreamError: If the URL is not a GitHub repository URL
    """
    match = re.search(r'github\.com/([^/]+)/([^/]+)', url)
    if not match:
        raise UpstreamError(f"Invalid GitHub URL format: {url}")
    return match.group(1), match.group(2)


class GitHubClient(ProjectsAPI):
    """
    Client for the GitHub Projects v2 API.

    Features:
    - Token lookup from GITHUB_TOKEN / GH_TOKEN
    - HTTP session with retry logic
    - REST for users and issues, GraphQL for everything project related
    - Every failure surfaces as UpstreamError

    Example:
        client = GitHubClient()
        project = client.find_project('octo-org/Roadmap')
        fields = client.get_project_fields(project.id)
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = 30,
        max_retries: int = 3
    ):
        """
        Initialize GitHub client.

        Args:
            token: API token (defaults to GITHUB_TOKEN / GH_TOKEN)
            base_url: API root, override for GitHub Enterprise
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts per request
        """
        self.token = token or get_token_from_env()
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries

        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        """Create HTTP session with retry configuration."""
        session = requests.Session()

        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "POST"]
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'Accept': 'application/vnd.github+json',
            'X-GitHub-Api-Version': '2022-11-28',
        })
        if self.token:
            session.headers['Authorization'] = f"Bearer {self.token}"

        return session

    def close(self):
        """Release the underlying HTTP session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, json_body: Optional[Dict[str, Any]] = None) -> Any:
        """
        Send one request and return the decoded JSON body.

        Raises:
            UpstreamError: On transport failure, non-2xx status or non-JSON body
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                json=json_body,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise UpstreamError(f"{method} {path} failed: {e}") from e

        if not response.ok:
            try:
                message = response.json().get('message', response.text)
            except (ValueError, AttributeError):
                # Not JSON, or JSON that isn't an object
                message = response.text
            raise UpstreamError(
                f"{method} {path} returned {response.status_code}: {message}",
                status_code=response.status_code
            )

        if not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"{method} {path} returned invalid JSON",
                status_code=response.status_code
            ) from e

    def _graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute a GraphQL query or mutation and return its data member."""
        payload: Dict[str, Any] = {'query': query}
        if variables:
            payload['variables'] = variables

        response = self._request('POST', 'graphql', payload)

        errors = response.get('errors')
        if errors:
            raise UpstreamError(f"GraphQL error: {errors[0].get('message', errors[0])}")

        return response.get('data') or {}

    # ------------------------------------------------------------------
    # Identity and discovery
    # ------------------------------------------------------------------

    def get_user(self) -> str:
        data = self._request('GET', 'user')
        login = data.get('login') if isinstance(data, dict) else None
        if not login:
            raise UpstreamError("Unexpected response format for user lookup")
        return login

    def find_project(self, identifier: str) -> Project:
        """
        Find a project by identifier.

        Args:
            identifier: Project number ("12") or "owner/project-title"

        Returns:
            The matching Project
        """
        if identifier.isdigit():
            return self._find_project_by_number(int(identifier))

        parts = identifier.split('/')
        if len(parts) < 2 or not parts[0]:
            raise UpstreamError(
                f"Invalid project identifier format: {identifier} "
                f"(expected owner/project-name or project-number)"
            )

        owner = parts[0]
        name = '/'.join(parts[1:])
        return self._find_project_by_name(owner, name)

    def _find_project_by_number(self, number: int) -> Project:
        query = f"""
            query($number: Int!) {{
                viewer {{
                    projectV2(number: $number) {{ {PROJECT_NODE_FIELDS} }}
                }}
            }}
        """
        data = self._graphql(query, {'number': number})
        node = (data.get('viewer') or {}).get('projectV2')
        if not node:
            raise UpstreamError(f"Project with number {number} not found")
        return Project.from_dict(node)

    def _find_project_by_name(self, owner: str, name: str) -> Project:
        owner_field = 'organization' if self._is_organization(owner) else 'user'
        query = f"""
            query($login: String!, $search: String!) {{
                {owner_field}(login: $login) {{
                    projectsV2(first: 100, query: $search) {{
                        nodes {{ {PROJECT_NODE_FIELDS} }}
                    }}
                }}
            }}
        """
        data = self._graphql(query, {'login': owner, 'search': name})
        nodes = ((data.get(owner_field) or {}).get('projectsV2') or {}).get('nodes') or []

        # Search is fuzzy; only an exact title match counts
        for node in nodes:
            if node and node.get('title') == name:
                return Project.from_dict(node)

        raise UpstreamError(f"Project {owner}/{name} not found")

    def _is_organization(self, login: str) -> bool:
        data = self._request('GET', f"users/{login}")
        return data.get('type') == 'Organization'

    def get_project_fields(self, project_id: str) -> List[ProjectField]:
        query = """
            query($id: ID!) {
                node(id: $id) {
                    ... on ProjectV2 {
                        fields(first: 100) {
                            nodes {
                                ... on ProjectV2Field { id name dataType }
                                ... on ProjectV2SingleSelectField {
                                    id name dataType
                                    options { id name }
                                }
                                ... on ProjectV2IterationField { id name dataType }
                            }
                        }
                    }
                }
            }
        """
        data = self._graphql(query, {'id': project_id})
        nodes = (((data.get('node') or {}).get('fields') or {}).get('nodes')) or []

        fields = []
        for node in nodes:
            try:
                fields.append(ProjectField.from_dict(node or {}))
            except ValueError:
                # Field kinds outside the fragments above come back empty
                logger.debug(f"Skipping unsupported field node: {node!r}")
        return fields

    def get_issue_or_pr(self, url: str) -> Dict[str, Any]:
        owner, repo = parse_repository_url(url)

        match = re.search(r'/(?:issues|pull)/(\d+)', url)
        if not match:
            raise UpstreamError(f"Could not extract issue/PR number from URL: {url}")
        number = match.group(1)

        try:
            return self._request('GET', f"repos/{owner}/{repo}/issues/{number}")
        except UpstreamError:
            try:
                return self._request('GET', f"repos/{owner}/{repo}/pulls/{number}")
            except UpstreamError as e:
                raise UpstreamError(f"Failed to get issue/PR {url}: {e}", e.status_code) from e

    # ------------------------------------------------------------------
    # Item mutations
    # ------------------------------------------------------------------

    def create_draft_issue(self, project_id: str, title: str, body: str) -> str:
        mutation = """
            mutation($projectId: ID!, $title: String!, $body: String) {
                addProjectV2DraftIssue(input: {projectId: $projectId, title: $title, body: $body}) {
                    projectItem { id }
                }
            }
        """
        data = self._graphql(mutation, {'projectId': project_id, 'title': title, 'body': body})
        item = (data.get('addProjectV2DraftIssue') or {}).get('projectItem') or {}
        if not item.get('id'):
            raise UpstreamError("Unexpected response format for draft issue creation")
        return item['id']

    def create_project_item(self, project_id: str, content_id: str) -> str:
        mutation = """
            mutation($projectId: ID!, $contentId: ID!) {
                addProjectV2ItemById(input: {projectId: $projectId, contentId: $contentId}) {
                    item { id }
                }
            }
        """
        data = self._graphql(mutation, {'projectId': project_id, 'contentId': content_id})
        item = (data.get('addProjectV2ItemById') or {}).get('item') or {}
        if not item.get('id'):
            raise UpstreamError("Unexpected response format for project item creation")
        return item['id']

    def set_project_item_field_value(
        self,
        project_id: str,
        item_id: str,
        field_id: str,
        value: Dict[str, Any]
    ) -> None:
        mutation = """
            mutation($projectId: ID!, $itemId: ID!, $fieldId: ID!, $value: ProjectV2FieldValue!) {
                updateProjectV2ItemFieldValue(input: {
                    projectId: $projectId,
                    itemId: $itemId,
                    fieldId: $fieldId,
                    value: $value
                }) {
                    projectV2Item { id }
                }
            }
        """
        self._graphql(mutation, {
            'projectId': project_id,
            'itemId': item_id,
            'fieldId': field_id,
            'value': value
        })

    def delete_project_item(self, project_id: str, item_id: str) -> None:
        mutation = """
            mutation($projectId: ID!, $itemId: ID!) {
                deleteProjectV2Item(input: {projectId: $projectId, itemId: $itemId}) {
                    deletedItemId
                }
            }
        """
        self._graphql(mutation, {'projectId': project_id, 'itemId': item_id})

    # ------------------------------------------------------------------
    # Project lifecycle
    # ------------------------------------------------------------------

    def create_project(
        self,
        owner_type: str,
        owner_login: str,
        title: str,
        description: str = ""
    ) -> Project:
        """
        Create a project.

        Args:
            owner_type: "user" or "org"/"organization"
            owner_login: Login of the owning user or organization
            title: Project title
            description: Optional short description

        Returns:
            The created Project
        """
        owner_id = self._owner_id(owner_type, owner_login)

        mutation = f"""
            mutation($ownerId: ID!, $title: String!) {{
                createProjectV2(input: {{ownerId: $ownerId, title: $title}}) {{
                    projectV2 {{ {PROJECT_NODE_FIELDS} }}
                }}
            }}
        """
        data = self._graphql(mutation, {'ownerId': owner_id, 'title': title})
        node = (data.get('createProjectV2') or {}).get('projectV2')
        if not node:
            raise UpstreamError("Unexpected response format for project creation")
        project = Project.from_dict(node)

        if description:
            self._graphql("""
                mutation($projectId: ID!, $description: String!) {
                    updateProjectV2(input: {projectId: $projectId, shortDescription: $description}) {
                        projectV2 { id }
                    }
                }
            """, {'projectId': project.id, 'description': description})

        return project

    def _owner_id(self, owner_type: str, owner_login: str) -> str:
        kind = owner_type.lower()
        if kind == 'user':
            owner_field = 'user'
        elif kind in ('org', 'organization'):
            owner_field = 'organization'
        else:
            raise UpstreamError(f"Unknown owner type: {owner_type} (expected user or org)")

        data = self._graphql(
            f"query($login: String!) {{ {owner_field}(login: $login) {{ id }} }}",
            {'login': owner_login}
        )
        owner = data.get(owner_field) or {}
        if not owner.get('id'):
            raise UpstreamError(f"{owner_field.capitalize()} {owner_login} not found")
        return owner['id']

    def delete_project(self, project_id: str) -> None:
        mutation = """
            mutation($projectId: ID!) {
                deleteProjectV2(input: {projectId: $projectId}) {
                    projectV2 { id }
                }
            }
        """
        self._graphql(mutation, {'projectId': project_id})
