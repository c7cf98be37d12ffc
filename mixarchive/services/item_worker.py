import asyncio
import logging

from mixarchive.domain import ERROR_SENTINEL, ItemArtifact, ItemJob
from mixarchive.exceptions import ExtractionTimeout, PageLoadFailure
from mixarchive.services.mix_extractor import MixExtractor
from mixarchive.services.mix_formatter import artifact_key_for, format_mix
from mixarchive.storage.artifact_store import item_key

logger = logging.getLogger(__name__)


class ItemWorker:
    """Render one mix page, store its tracklist and record completion.

    Stateless: safe to run in any process and to run more than once for the
    same item. The blob is always written before the completion row, so a
    counted item is always retrievable.
    """

    def __init__(self, *, renderer, extractor: MixExtractor, artifact_store, artifacts_repo):
        self.renderer = renderer
        self.extractor = extractor
        self.artifact_store = artifact_store
        self.artifacts_repo = artifacts_repo

    async def _record(self, artifact: ItemArtifact) -> ItemArtifact:
        return await asyncio.to_thread(self.artifacts_repo.record_artifact, artifact)

    async def process(self, job: ItemJob) -> ItemArtifact:
        """Process one item.

        Render and extraction failures are recorded as an ``"error"`` artifact
        so completion tracking still sees a terminal outcome. `StorageFailure`
        propagates and nothing is recorded, leaving the item retryable.
        """
        logger.info("Processing %s of %s: %s", job.count, job.total, job.item_url)
        try:
            async with self.renderer.open(job.item_url) as page:
                mix = await self.extractor.extract(page, job.item_url)
        except (PageLoadFailure, ExtractionTimeout) as e:
            logger.warning("Failed to process the page %s: %s", job.item_url, e)
            return await self._record(
                ItemArtifact(
                    request_id=job.request_id,
                    item_url=job.item_url,
                    artifact_key=ERROR_SENTINEL,
                    error=str(e),
                )
            )

        key = artifact_key_for(mix)
        body = format_mix(mix).encode("utf-8")
        await asyncio.to_thread(
            self.artifact_store.put,
            item_key(job.request_id, job.item_url, key),
            body,
            "text/plain; charset=utf-8",
        )
        logger.info("Successfully uploaded %s", key)

        return await self._record(
            ItemArtifact(request_id=job.request_id, item_url=job.item_url, artifact_key=key)
        )
