from .archive_requests import RequestsRepository
from .artifacts import ArtifactsRepository

__all__ = ["RequestsRepository", "ArtifactsRepository"]
