from .engine import make_engine, init_orm
from .models import Base, ArchiveRequest, DiscoveredLink, ItemArtifact

__all__ = [
    "make_engine",
    "init_orm",
    "Base",
    "ArchiveRequest",
    "DiscoveredLink",
    "ItemArtifact",
]
