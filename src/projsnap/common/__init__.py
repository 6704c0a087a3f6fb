"""
projsnap Common Utilities

Shared utilities and helpers used across projsnap modules.
"""

from .utils import get_token_from_env, safe_json_parse, to_jsonable, dump_payload

__all__ = [
    'get_token_from_env',
    'safe_json_parse',
    'to_jsonable',
    'dump_payload',
]
