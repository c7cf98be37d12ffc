from __future__ import annotations

import hashlib
import hmac
import logging
import os
import secrets
import time
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import quote, urlencode

from mixarchive.exceptions import StorageFailure

logger = logging.getLogger(__name__)


class LocalArtifactStore:
    """Filesystem-backed artifact store.

    Signed URLs point at the `/files/{key}` route and carry an expiry
    timestamp plus an HMAC over ``key:expires``.
    """

    def __init__(
        self,
        *,
        root_dir: str,
        base_url: str,
        signing_secret: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._root = Path(root_dir).resolve()
        self._base_url = base_url.rstrip("/")
        if not signing_secret:
            logger.warning("SIGNING_SECRET not set; signed URLs will not survive a restart")
            signing_secret = secrets.token_hex(32)
        self._secret = signing_secret.encode("utf-8")
        self._clock = clock

    def _path(self, key: str) -> Path:
        if not key or key.startswith("/") or "\\" in key:
            raise ValueError(f"Invalid artifact key: {key!r}")
        path = (self._root / key).resolve()
        if self._root not in path.parents:
            raise ValueError(f"Artifact key escapes store root: {key!r}")
        return path

    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        path = self._path(key)
        tmp = path.with_name(path.name + ".part")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(data)
            os.replace(tmp, path)
        except OSError as e:
            raise StorageFailure(key, e) from e
        logger.debug("Stored %d bytes at %s", len(data), key)

    def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageFailure(key, e) from e

    def _signature(self, key: str, expires: int) -> str:
        msg = f"{key}:{expires}".encode("utf-8")
        return hmac.new(self._secret, msg, hashlib.sha256).hexdigest()

    def signed_url(self, key: str, expires_in: int) -> str:
        expires = int(self._clock()) + int(expires_in)
        query = urlencode({"expires": expires, "signature": self._signature(key, expires)})
        return f"{self._base_url}/files/{quote(key)}?{query}"

    def verify(self, key: str, expires: int, signature: str) -> bool:
        if int(expires) < int(self._clock()):
            return False
        return secrets.compare_digest(signature or "", self._signature(key, int(expires)))
