"""Payloads exchanged between pagination and item invocations.

Field names on the wire are camelCase so HTTP and in-process invokers share
one shape: ``{url, id, currentPage, count, total}``.
"""
from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class PageJob:
    request_id: str
    source_url: str
    current_page: int = 1
    count: int = 1
    total: int = 0

    def to_payload(self) -> Dict[str, Any]:
        return {
            "url": self.source_url,
            "id": self.request_id,
            "currentPage": self.current_page,
            "count": self.count,
            "total": self.total,
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "PageJob":
        return cls(
            request_id=payload["id"],
            source_url=payload["url"],
            current_page=int(payload.get("currentPage") or 1),
            count=int(payload.get("count") or 1),
            total=int(payload.get("total") or 0),
        )


@dataclass(frozen=True)
class ItemJob:
    request_id: str
    item_url: str
    count: int = 0
    total: int = 0

    def to_payload(self) -> Dict[str, Any]:
        return {
            "url": self.item_url,
            "id": self.request_id,
            "count": self.count,
            "total": self.total,
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ItemJob":
        return cls(
            request_id=payload["id"],
            item_url=payload["url"],
            count=int(payload.get("count") or 0),
            total=int(payload.get("total") or 0),
        )
