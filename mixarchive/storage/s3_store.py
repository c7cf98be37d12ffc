from __future__ import annotations

import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from mixarchive.exceptions import StorageFailure

logger = logging.getLogger(__name__)


class S3ArtifactStore:
    """Artifact store backed by an S3 bucket; signed URLs are presigned GETs."""

    def __init__(self, *, bucket: str, client=None):
        if not bucket:
            raise ValueError("S3_BUCKET is required for the s3 artifact store")
        self._bucket = bucket
        self._client = client or boto3.client("s3")

    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageFailure(key, e) from e
        logger.debug("Uploaded %d bytes to s3://%s/%s", len(data), self._bucket, key)

    def get(self, key: str) -> Optional[bytes]:
        try:
            obj = self._client.get_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("NoSuchKey", "404"):
                return None
            raise StorageFailure(key, e) from e
        except BotoCoreError as e:
            raise StorageFailure(key, e) from e
        return obj["Body"].read()

    def signed_url(self, key: str, expires_in: int) -> str:
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self._bucket, "Key": key},
                ExpiresIn=int(expires_in),
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageFailure(key, e) from e
