"""
GitHub Projects data types.

Plain dataclasses for the values the Projects v2 API hands back. Each type
can be rebuilt from either the GraphQL node shape (camelCase keys) or its
own asdict() output (snake_case keys), so recorded payloads decode cleanly.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class Project:
    """A GitHub Projects v2 project."""

    id: str
    number: int = 0
    title: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Project':
        """Create Project from a GraphQL node or serialized dict."""
        return cls(
            id=data.get('id') or '',
            number=int(data.get('number') or 0),
            title=data.get('title') or '',
            url=data.get('url') or ''
        )


@dataclass
class ProjectFieldOption:
    """An option of a single-select field."""

    id: str
    name: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectFieldOption':
        return cls(id=data.get('id') or '', name=data.get('name') or '')


@dataclass
class ProjectField:
    """A field in a project's schema."""

    id: str
    name: str
    data_type: str
    options: List[ProjectFieldOption] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectField':
        """Create ProjectField from a GraphQL node or serialized dict."""
        data_type = data.get('dataType', data.get('data_type'))
        if not data.get('id') or not data.get('name') or not data_type:
            raise ValueError(f"Incomplete project field: {data!r}")

        options = data.get('options') or []
        if not isinstance(options, list) or not all(isinstance(o, dict) for o in options):
            raise ValueError(f"Field {data['name']!r} options must be a list of objects")

        return cls(
            id=data['id'],
            name=data['name'],
            data_type=data_type,
            options=[ProjectFieldOption.from_dict(o) for o in options]
        )

    def option_id(self, name: str) -> str:
        """Look up a single-select option id by its (case-insensitive) name."""
        for option in self.options:
            if option.name.lower() == name.lower():
                return option.id
        raise KeyError(f"Field {self.name!r} has no option {name!r}")
