from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class Track:
    name: str
    performer: str


@dataclass
class Mix:
    """Structured data scraped from one mix page."""
    name: str = ""
    owner: str = ""
    tags: List[str] = field(default_factory=list)
    notes: str = ""
    tracks: List[Track] = field(default_factory=list)
