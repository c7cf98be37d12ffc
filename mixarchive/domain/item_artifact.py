from datetime import datetime
from typing import Optional

ERROR_SENTINEL = "error"


class ItemArtifact:
    def __init__(self, request_id: str, item_url: str, artifact_key: str, error: Optional[str] = None, created_at: Optional[datetime] = None):
        self.request_id = request_id
        self.item_url = item_url
        self.artifact_key = artifact_key
        self.error = error
        self.created_at = created_at

    @property
    def failed(self) -> bool:
        return self.artifact_key == ERROR_SENTINEL

    def __repr__(self):
        return f"<ItemArtifact request={self.request_id} url={self.item_url} key={self.artifact_key}>"
