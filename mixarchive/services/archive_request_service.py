import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError

from mixarchive.domain import CrawlRequest, PageJob
from mixarchive.domain.crawl_request import REQUEST_KINDS
from mixarchive.exceptions import IntakeError, InvocationError
from mixarchive.services.invoker import FUNCTION_PAGINATE

logger = logging.getLogger(__name__)


class ArchiveRequestService:
    """Creates archive requests and kicks off pagination without waiting for it."""

    def __init__(self, *, requests_repo, invoker):
        self.requests_repo = requests_repo
        self.invoker = invoker

    async def submit(self, source_url: str, kind: str) -> CrawlRequest:
        if kind not in REQUEST_KINDS:
            raise ValueError(f"Unknown request type: {kind!r}")
        if not source_url:
            raise ValueError("url is required")

        try:
            request = await asyncio.to_thread(self.requests_repo.create_request, source_url, kind)
        except SQLAlchemyError as e:
            logger.error("Could not create archive request for %s: %s", source_url, e, exc_info=True)
            raise IntakeError("Unable to initiate archive request.") from e

        job = PageJob(request_id=request.request_id, source_url=source_url)
        try:
            await self.invoker.invoke(FUNCTION_PAGINATE, job.to_payload())
        except InvocationError as e:
            logger.error("Could not start pagination for %s: %s", request.request_id, e)
            await asyncio.to_thread(self.requests_repo.mark_failed, request.request_id, str(e))
            raise IntakeError("Unable to initiate archive request.") from e

        logger.info("Started archive request %s (%s) for %s", request.request_id, kind, source_url)
        return request
