import asyncio
import logging
from typing import Dict, Optional

from mixarchive.domain import ERROR_SENTINEL, CrawlRequest, ItemArtifact, ItemJob, PageAdvance, PageJob
from mixarchive.domain.crawl_request import KIND_COLLECTION, KIND_HISTORY, STATUS_PAGINATED, STATUS_TRUNCATED
from mixarchive.exceptions import PageLoadFailure, RequestNotFoundError
from mixarchive.services.fan_out import FanOutDispatcher
from mixarchive.services.invoker import FUNCTION_PAGINATE, FUNCTION_PROCESS_ITEM
from mixarchive.services.page_link_extractor import PageLinkExtractor

logger = logging.getLogger(__name__)

DEFAULT_ITEM_SELECTOR = ".cover a.mix_url"


def page_url(source_url: str, page_number: int) -> str:
    return f"{source_url.rstrip('/')}/{page_number}"


class PaginationCoordinator:
    """Walks a listing page by page and fans out one item invocation per new link.

    Pagination stops at the first empty page, which freezes the request's
    discovered total. A page that fails to load also stops pagination: the
    request is marked truncated and the total is frozen at what was discovered,
    while items already dispatched keep running.
    """

    def __init__(
        self,
        *,
        requests_repo,
        artifacts_repo,
        link_extractor: PageLinkExtractor,
        dispatcher: FanOutDispatcher,
        invoker,
        item_selectors: Optional[Dict[str, str]] = None,
    ):
        self.requests_repo = requests_repo
        self.artifacts_repo = artifacts_repo
        self.link_extractor = link_extractor
        self.dispatcher = dispatcher
        self.invoker = invoker
        self.item_selectors = item_selectors or {
            KIND_HISTORY: DEFAULT_ITEM_SELECTOR,
            KIND_COLLECTION: DEFAULT_ITEM_SELECTOR,
        }

    def _selector_for(self, request: CrawlRequest) -> str:
        return self.item_selectors.get(request.kind, DEFAULT_ITEM_SELECTOR)

    async def _submit_item(self, job: ItemJob) -> None:
        await self.invoker.invoke(FUNCTION_PROCESS_ITEM, job.to_payload())

    async def _record_dispatch_failure(self, job: ItemJob, error: Exception) -> None:
        # The link is already in the discovered set and will not be dispatched
        # again, so it needs a terminal outcome of its own.
        logger.error("Could not dispatch %s for %s: %s", job.item_url, job.request_id, error)
        await asyncio.to_thread(
            self.artifacts_repo.record_artifact,
            ItemArtifact(
                request_id=job.request_id,
                item_url=job.item_url,
                artifact_key=ERROR_SENTINEL,
                error=f"dispatch failed: {error}",
            ),
        )

    async def advance(self, request: CrawlRequest, page_number: int) -> PageAdvance:
        """Process one listing page.

        Raises `PageLoadFailure` if the page cannot be loaded.
        """
        url = page_url(request.source_url, page_number)
        links = await self.link_extractor.extract(url, self._selector_for(request))

        if not links:
            total = await asyncio.to_thread(self.requests_repo.finalize_total, request.request_id, STATUS_PAGINATED)
            logger.info("Pagination for %s ended at page %s with %s items", request.request_id, page_number, total)
            return PageAdvance(links=[], is_last_page=True)

        new_links = await asyncio.to_thread(
            self.requests_repo.add_discovered_links, request.request_id, links, page_number
        )
        total = await asyncio.to_thread(self.requests_repo.count_discovered, request.request_id)
        first = total - len(new_links) + 1
        jobs = [
            ItemJob(request_id=request.request_id, item_url=link, count=first + i, total=total)
            for i, link in enumerate(new_links)
        ]
        logger.info(
            "Page %s of %s: %d links, %d new, %d discovered so far",
            page_number, request.request_id, len(links), len(new_links), total,
        )

        outcomes = await self.dispatcher.dispatch(jobs, self._submit_item)
        for o in outcomes:
            if not o.ok:
                await self._record_dispatch_failure(o.item, o.error)
        return PageAdvance(links=links, is_last_page=False)

    async def _get_request(self, request_id: str) -> CrawlRequest:
        request = await asyncio.to_thread(self.requests_repo.get_request, request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        return request

    async def _truncate(self, request: CrawlRequest, page_number: int, error: PageLoadFailure) -> None:
        logger.warning("Stopping pagination of %s at page %s: %s", request.request_id, page_number, error)
        await asyncio.to_thread(
            self.requests_repo.finalize_total,
            request.request_id,
            STATUS_TRUNCATED,
            f"page {page_number}: {error}",
        )

    async def run_page(self, job: PageJob) -> PageAdvance:
        """Handle one page invocation and chain the next page as a new invocation."""
        request = await self._get_request(job.request_id)
        if request.is_finalized:
            logger.info("Request %s already finalized; ignoring page %s", request.request_id, job.current_page)
            return PageAdvance(links=[], is_last_page=True)
        try:
            result = await self.advance(request, job.current_page)
        except PageLoadFailure as e:
            await self._truncate(request, job.current_page, e)
            raise

        if not result.is_last_page:
            total = await asyncio.to_thread(self.requests_repo.count_discovered, request.request_id)
            next_job = PageJob(
                request_id=request.request_id,
                source_url=request.source_url,
                current_page=job.current_page + 1,
                count=total + 1,
                total=total,
            )
            await self.invoker.invoke(FUNCTION_PAGINATE, next_job.to_payload())
        return result

    async def run_to_completion(self, request_id: str, start_page: int = 1) -> int:
        """Walk every page in a local loop. Returns the final discovered total."""
        request = await self._get_request(request_id)
        page_number = start_page
        while True:
            try:
                result = await self.advance(request, page_number)
            except PageLoadFailure as e:
                await self._truncate(request, page_number, e)
                break
            if result.is_last_page:
                break
            page_number += 1
        return await asyncio.to_thread(self.requests_repo.count_discovered, request_id)
