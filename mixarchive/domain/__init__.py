"""Domain objects for MixArchive - explicit re-exports to satisfy linters."""
from .crawl_request import CrawlRequest as CrawlRequest
from .item_artifact import ItemArtifact as ItemArtifact, ERROR_SENTINEL as ERROR_SENTINEL
from .mix import Mix as Mix, Track as Track
from .readiness import Readiness as Readiness
from .archive_reference import ArchiveReference as ArchiveReference
from .page_advance import PageAdvance as PageAdvance
from .jobs import PageJob as PageJob, ItemJob as ItemJob

__all__ = [
    "CrawlRequest",
    "ItemArtifact",
    "ERROR_SENTINEL",
    "Mix",
    "Track",
    "Readiness",
    "ArchiveReference",
    "PageAdvance",
    "PageJob",
    "ItemJob",
]
