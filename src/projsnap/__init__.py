"""
projsnap

Snapshot record/replay harness for the GitHub Projects API client.

Subpackages:
- github: live GitHub Projects client and its data types
- snapshot: record/replay/bypass facade around that client
- common: shared helpers
"""

__version__ = '1.0.0'
