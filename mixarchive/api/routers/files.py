import mimetypes

from fastapi import APIRouter, HTTPException
from starlette.responses import Response

from mixarchive.exceptions import StorageFailure


def create_files_router(artifact_store):
    """Serves signed URLs issued by `LocalArtifactStore`."""
    router = APIRouter(prefix="/files", tags=["Files"])

    @router.get("/{key:path}")
    def get_file(key: str, expires: int, signature: str):
        verify = getattr(artifact_store, "verify", None)
        if verify is None:
            raise HTTPException(status_code=404, detail="file not found")
        if not verify(key, expires, signature):
            raise HTTPException(status_code=403, detail="invalid or expired signature")
        try:
            data = artifact_store.get(key)
        except ValueError:
            raise HTTPException(status_code=404, detail="file not found")
        except StorageFailure:
            raise HTTPException(status_code=500, detail="could not read file")
        if data is None:
            raise HTTPException(status_code=404, detail="file not found")
        media_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
        filename = key.rsplit("/", 1)[-1]
        return Response(
            content=data,
            media_type=media_type,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return router
