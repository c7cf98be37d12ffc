from .artifact_store import ArtifactStore, item_key, archive_key
from .local_store import LocalArtifactStore

__all__ = ["ArtifactStore", "item_key", "archive_key", "LocalArtifactStore"]
