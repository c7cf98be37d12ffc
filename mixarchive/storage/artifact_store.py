from __future__ import annotations

import hashlib
from typing import Optional, Protocol


class ArtifactStore(Protocol):
    """Key-value blob store for item artifacts and assembled archives.

    Implementations raise `StorageFailure` when a write cannot be completed.
    """

    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None: ...

    def get(self, key: str) -> Optional[bytes]: ...

    def signed_url(self, key: str, expires_in: int) -> str: ...


def item_key(request_id: str, item_url: str, artifact_key: str) -> str:
    # Items with the same owner and name must not share a blob.
    digest = hashlib.sha1(item_url.encode("utf-8")).hexdigest()[:12]
    return f"mixes/{request_id}/{digest}/{artifact_key}"


def archive_key(request_id: str) -> str:
    return f"archives/{request_id}.zip"
