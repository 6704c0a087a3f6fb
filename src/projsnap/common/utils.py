"""
projsnap Common Utilities

Shared helpers for token lookup and JSON payload handling.
"""

import json
import os
from dataclasses import asdict, is_dataclass
from typing import Any, Mapping, Optional


TOKEN_ENV_VARS = ('GITHUB_TOKEN', 'GH_TOKEN')


def get_token_from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Retrieve a GitHub token from the environment.

    Tokens are read from GITHUB_TOKEN first, then GH_TOKEN (the variable the
    gh CLI exports to extensions). Tokens should never be passed on the
    command line where they end up in process lists and shell history.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        The first non-empty token found, or None

    Example:
        token = get_token_from_env()
        if not token:
            print("Error: GITHUB_TOKEN environment variable not set")
    """
    env = os.environ if environ is None else environ
    for name in TOKEN_ENV_VARS:
        value = env.get(name)
        if value:
            return value
    return None


def safe_json_parse(json_string: str, default: Any = None) -> Any:
    """
    Safely parse JSON string with error handling.

    Args:
        json_string: JSON string to parse
        default: Default value to return if parsing fails

    Returns:
        Parsed JSON object, or default if parsing fails

    Example:
        payload = safe_json_parse(call.response, default={})
    """
    if not json_string:
        return default

    try:
        return json.loads(json_string)
    except (json.JSONDecodeError, TypeError, ValueError):
        return default


def to_jsonable(value: Any) -> Any:
    """Convert dataclasses (recursively) into plain JSON-compatible structures."""
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    return value


def dump_payload(value: Any) -> str:
    """
    Serialize a result or request payload to a compact JSON string.

    Dataclass instances are expanded with asdict(); anything json cannot
    encode natively falls back to str().

    Args:
        value: Value to serialize

    Returns:
        JSON text
    """
    return json.dumps(to_jsonable(value), ensure_ascii=False, default=str)
