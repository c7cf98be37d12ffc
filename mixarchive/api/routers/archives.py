import logging
from typing import Literal

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from mixarchive.domain import Readiness
from mixarchive.exceptions import ArchiveNotReadyError, IntakeError, RequestNotFoundError, StorageFailure

logger = logging.getLogger(__name__)


class ArchiveRequestBody(BaseModel):
    url: str
    type: Literal["history", "collection"]


def _progress(readiness: Readiness) -> dict:
    return {
        "ready": False,
        "total": readiness.total_discovered,
        "count": readiness.completed_count,
        "status": readiness.status,
    }


def create_archives_router(archive_request_service, completion_tracker, archive_assembler):
    router = APIRouter(prefix="/archives", tags=["Archives"])

    async def _readiness(request_id: str) -> Readiness:
        try:
            return await completion_tracker.check_ready(request_id)
        except RequestNotFoundError:
            raise HTTPException(status_code=404, detail="archive request not found")
        except SQLAlchemyError:
            logger.exception("Could not read progress for %s", request_id)
            raise HTTPException(status_code=500, detail="could not read archive status")

    @router.post("")
    async def request_archive(req: ArchiveRequestBody):
        try:
            request = await archive_request_service.submit(req.url, req.type)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except IntakeError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {"id": request.request_id}

    @router.get("/{request_id}/status")
    async def status(request_id: str):
        readiness = await _readiness(request_id)
        out = _progress(readiness)
        out["ready"] = readiness.ready
        return out

    @router.get("/{request_id}/download")
    async def download(request_id: str):
        """Return progress while items are outstanding, otherwise build the archive
        and return a signed URL for it."""
        readiness = await _readiness(request_id)
        if not readiness.ready:
            return _progress(readiness)

        try:
            ref = await archive_assembler.assemble(request_id)
        except ArchiveNotReadyError as e:
            return _progress(e.readiness)
        except StorageFailure as e:
            logger.error("Archive assembly failed for %s: %s", request_id, e)
            raise HTTPException(status_code=502, detail="archive assembly failed; retry the download")

        return {
            "ready": True,
            "url": ref.url,
            "total": readiness.total_discovered,
            "count": readiness.completed_count,
            "status": readiness.status,
            "failed": ref.failed,
            "expires_at": ref.expires_at.isoformat(),
        }

    return router
