"""Snapshot operating modes."""

from enum import Enum
from typing import Optional, Union


class SnapshotMode(Enum):
    """How a snapshot client treats calls to GitHub."""

    REPLAY = "replay"   # serve calls from the snapshot file only
    RECORD = "record"   # call GitHub and capture every interaction
    BYPASS = "bypass"   # call GitHub, capture nothing


def resolve_mode(value: Optional[Union[str, SnapshotMode]]) -> SnapshotMode:
    """
    Map a configuration value to a SnapshotMode.

    Matching is case-insensitive. Unset or unrecognized values resolve to
    REPLAY so that a plain test run never touches the network.
    """
    if isinstance(value, SnapshotMode):
        return value
    if not value:
        return SnapshotMode.REPLAY

    try:
        return SnapshotMode(str(value).strip().lower())
    except ValueError:
        return SnapshotMode.REPLAY
