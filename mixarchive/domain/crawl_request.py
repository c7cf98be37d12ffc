from datetime import datetime
from typing import Optional, Set

KIND_HISTORY = "history"
KIND_COLLECTION = "collection"
REQUEST_KINDS = (KIND_HISTORY, KIND_COLLECTION)

STATUS_PAGINATING = "paginating"
STATUS_PAGINATED = "paginated"
STATUS_TRUNCATED = "truncated"
STATUS_FAILED = "failed"
FINAL_STATUSES = (STATUS_PAGINATED, STATUS_TRUNCATED)


class CrawlRequest:
    def __init__(self, request_id: str, source_url: str, kind: str, status: str = STATUS_PAGINATING, total_discovered: Optional[int] = None, discovered_count: int = 0, discovered_links: Optional[Set[str]] = None, error: Optional[str] = None, created_at: Optional[datetime] = None, finalized_at: Optional[datetime] = None):
        self.request_id = request_id
        self.source_url = source_url
        self.kind = kind
        self.status = status
        # None until pagination terminates; final afterwards
        self.total_discovered = total_discovered
        self.discovered_count = discovered_count
        self.discovered_links = discovered_links
        self.error = error
        self.created_at = created_at
        self.finalized_at = finalized_at

    @property
    def is_finalized(self) -> bool:
        return self.total_discovered is not None

    def __repr__(self):
        return f"<CrawlRequest id={self.request_id} kind={self.kind} status={self.status} total={self.total_discovered}>"
