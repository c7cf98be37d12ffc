import asyncio
import io
import logging
import os
import time
import zipfile
from datetime import datetime, timezone
from typing import Callable, List, Set, Tuple

from mixarchive.domain import ArchiveReference, ItemArtifact
from mixarchive.exceptions import ArchiveNotReadyError
from mixarchive.services.completion_tracker import CompletionTracker
from mixarchive.storage.artifact_store import archive_key, item_key

logger = logging.getLogger(__name__)

MANIFEST_NAME = "failed.txt"


def _unique_name(name: str, used: Set[str]) -> str:
    if name not in used:
        used.add(name)
        return name
    stem, ext = os.path.splitext(name)
    n = 2
    while f"{stem} ({n}){ext}" in used:
        n += 1
    unique = f"{stem} ({n}){ext}"
    used.add(unique)
    return unique


def format_manifest(failures: List[Tuple[str, str]]) -> str:
    lines = ["The following items could not be archived:", ""]
    lines += [f"{url}\t{reason}" for url, reason in failures]
    return "\n".join(lines) + "\n"


class ArchiveAssembler:
    """Bundles every artifact of a finished request into one zip and uploads it.

    Re-running is safe: the archive is rebuilt from the durable rows and
    overwrites the previous upload under the same key.
    """

    def __init__(
        self,
        *,
        tracker: CompletionTracker,
        artifacts_repo,
        artifact_store,
        url_ttl_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ):
        self.tracker = tracker
        self.artifacts_repo = artifacts_repo
        self.artifact_store = artifact_store
        self.url_ttl_seconds = url_ttl_seconds
        self._clock = clock

    def build_bundle(self, request_id: str, artifacts: List[ItemArtifact]) -> Tuple[bytes, int, int]:
        """Return (zip bytes, stored entry count, failed item count)."""
        failures: List[Tuple[str, str]] = []
        used: Set[str] = set()
        entries = 0
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
            for artifact in artifacts:
                if artifact.failed:
                    failures.append((artifact.item_url, artifact.error or "extraction failed"))
                    continue
                data = self.artifact_store.get(item_key(request_id, artifact.item_url, artifact.artifact_key))
                if data is None:
                    logger.warning("Artifact %s for %s is missing from the store", artifact.artifact_key, request_id)
                    failures.append((artifact.item_url, f"stored file {artifact.artifact_key} is missing"))
                    continue
                zf.writestr(_unique_name(artifact.artifact_key, used), data)
                entries += 1
            if failures:
                zf.writestr(_unique_name(MANIFEST_NAME, used), format_manifest(failures))
        return buf.getvalue(), entries, len(failures)

    async def assemble(self, request_id: str) -> ArchiveReference:
        """Build, upload and sign the archive for a finished request.

        Raises `ArchiveNotReadyError` while items are outstanding and
        `StorageFailure` if reading artifacts or uploading the archive fails.
        """
        readiness = await self.tracker.check_ready(request_id)
        if not readiness.ready:
            raise ArchiveNotReadyError(readiness)

        artifacts = await asyncio.to_thread(self.artifacts_repo.list_for_request, request_id)
        bundle, entries, failed = await asyncio.to_thread(self.build_bundle, request_id, artifacts)

        key = archive_key(request_id)
        await asyncio.to_thread(self.artifact_store.put, key, bundle, "application/zip")
        url = await asyncio.to_thread(self.artifact_store.signed_url, key, self.url_ttl_seconds)
        expires_at = datetime.fromtimestamp(self._clock() + self.url_ttl_seconds, tz=timezone.utc)
        logger.info("Uploaded archive %s with %d entries (%d failed)", key, entries, failed)
        return ArchiveReference(url=url, key=key, expires_at=expires_at, entries=entries, failed=failed)
