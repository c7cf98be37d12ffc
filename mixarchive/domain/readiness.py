"""Completion status data model."""
from typing import NamedTuple, Optional


class Readiness(NamedTuple):
    """Snapshot of how far a request has progressed.

    Counts are read without locking and may transiently undercount.
    """
    ready: bool
    total_discovered: int
    completed_count: int
    status: Optional[str] = None
