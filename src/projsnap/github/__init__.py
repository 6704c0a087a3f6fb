"""
projsnap GitHub Module

Live client for the GitHub Projects v2 API.

This module provides:
- ProjectsAPI, the capability set every client variant implements
- GitHubClient, the requests-based live implementation
- Project / ProjectField data types
- UpstreamError for every failure coming from GitHub
"""

from .base import ProjectsAPI
from .client import GitHubClient, UpstreamError, parse_repository_url
from .models import Project, ProjectField, ProjectFieldOption

__all__ = [
    'ProjectsAPI',
    'GitHubClient',
    'UpstreamError',
    'parse_repository_url',
    'Project',
    'ProjectField',
    'ProjectFieldOption',
]
