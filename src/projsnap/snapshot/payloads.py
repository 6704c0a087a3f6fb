"""
Payload encodings for recorded calls.

Successful results and failures are stored with different encodings:

- success: the operation's result as JSON (dataclasses expanded)
- failure: {"error": message, "type": exception class, "status_code": n}

Decoders turn a stored success payload back into the typed result of one
operation. They raise ValueError (or TypeError/KeyError) when the payload
does not have the expected shape.
"""

import json
from typing import Any, Dict, List, Optional

from ..common import safe_json_parse
from ..github import Project, ProjectField, UpstreamError


DEFAULT_ERROR_STATUS = 500


def error_status(exc: BaseException) -> int:
    """Status to record for a failed call: the upstream HTTP status, else 500."""
    status = getattr(exc, 'status_code', None)
    if isinstance(status, int) and not isinstance(status, bool) and status >= 400:
        return status
    return DEFAULT_ERROR_STATUS


def encode_error(exc: BaseException, status_code: int) -> str:
    return json.dumps({
        'error': str(exc),
        'type': type(exc).__name__,
        'status_code': status_code,
    }, ensure_ascii=False)


def decode_error(payload: str, status_code: int) -> UpstreamError:
    """Rebuild the error a recorded failure stands for."""
    data = safe_json_parse(payload)
    if isinstance(data, dict) and isinstance(data.get('error'), str):
        return UpstreamError(data['error'], status_code=status_code)
    return UpstreamError(f"API error (status {status_code})", status_code=status_code)


def _load(payload: str) -> Any:
    return json.loads(payload)


def decode_login(payload: str) -> str:
    """Accepts "octocat" as recorded, or a raw REST user object."""
    data = _load(payload)
    if isinstance(data, str):
        return data
    if isinstance(data, dict) and isinstance(data.get('login'), str):
        return data['login']
    raise ValueError(f"Expected a login, got {payload[:80]!r}")


def decode_item_id(payload: str) -> str:
    """Accepts "PVTI_..." as recorded, or an object with an id."""
    data = _load(payload)
    if isinstance(data, str):
        return data
    if isinstance(data, dict) and isinstance(data.get('id'), str):
        return data['id']
    raise ValueError(f"Expected an item id, got {payload[:80]!r}")


def decode_project(payload: str) -> Project:
    data = _load(payload)
    if not isinstance(data, dict) or not data.get('id'):
        raise ValueError(f"Expected a project object, got {payload[:80]!r}")
    return Project.from_dict(data)


def decode_fields(payload: str) -> List[ProjectField]:
    data = _load(payload)
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of fields, got {type(data).__name__}")
    if not all(isinstance(item, dict) for item in data):
        raise ValueError("Expected every field to be a JSON object")
    return [ProjectField.from_dict(item) for item in data]


def decode_object(payload: str) -> Dict[str, Any]:
    data = _load(payload)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def decode_nothing(payload: str) -> Optional[Any]:
    """Void operations: the recorded payload carries no information."""
    return None
