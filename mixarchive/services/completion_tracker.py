import asyncio

from mixarchive.domain import Readiness
from mixarchive.exceptions import RequestNotFoundError


class CompletionTracker:
    """Compares the discovered total against the completed-artifact count.

    A pure read: no locks, and a read right after a write may undercount.
    Meant to be polled until ready or until the caller gives up.
    """

    def __init__(self, *, requests_repo, artifacts_repo):
        self.requests_repo = requests_repo
        self.artifacts_repo = artifacts_repo

    def _read(self, request_id: str) -> Readiness:
        request = self.requests_repo.get_request(request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        completed = self.artifacts_repo.count_completed(request_id)
        if not request.is_finalized:
            return Readiness(False, request.discovered_count, completed, request.status)
        total = request.total_discovered
        return Readiness(completed == total, total, completed, request.status)

    async def check_ready(self, request_id: str) -> Readiness:
        return await asyncio.to_thread(self._read, request_id)
