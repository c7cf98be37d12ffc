from datetime import datetime
from typing import NamedTuple


class ArchiveReference(NamedTuple):
    """Where an assembled archive can be downloaded from."""
    url: str
    key: str
    expires_at: datetime
    entries: int
    failed: int
