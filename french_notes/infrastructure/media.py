import os
import uuid
from urllib.parse import urlparse

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..application.dto import MediaUpload
from ..application.errors import UpstreamFailure
from ..application.use_cases.catalog import IMediaStore
from ..config import Settings, settings
from .metrics import media_operations_total

logger = structlog.get_logger()


class S3MediaStore(IMediaStore):
    """Media host client for any S3-compatible bucket.

    Objects are stored under ``<folder>/<random hex><ext>`` and addressed by
    public URL; ``delete`` maps a URL back to its key.
    """

    def __init__(self, config: Settings = settings, client=None):
        self.bucket = config.MEDIA_BUCKET
        self.endpoint_url = config.MEDIA_ENDPOINT_URL
        self.public_base_url = config.MEDIA_PUBLIC_BASE_URL
        self._config = config
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self.endpoint_url,
                aws_access_key_id=self._config.MEDIA_ACCESS_KEY,
                aws_secret_access_key=self._config.MEDIA_SECRET_KEY,
                region_name=self._config.MEDIA_REGION,
                config=Config(
                    connect_timeout=self._config.MEDIA_CONNECT_TIMEOUT,
                    read_timeout=self._config.MEDIA_READ_TIMEOUT,
                    retries={"max_attempts": 1, "mode": "standard"},
                ),
            )
        return self._client

    def url_for(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    def key_from_url(self, url: str) -> str | None:
        for base in (self.public_base_url, self.endpoint_url and f"{self.endpoint_url.rstrip('/')}/{self.bucket}"):
            if base and url.startswith(base.rstrip("/") + "/"):
                return url[len(base.rstrip("/")) + 1:]
        parsed = urlparse(url)
        if parsed.netloc == f"{self.bucket}.s3.amazonaws.com":
            return parsed.path.lstrip("/") or None
        return None

    def upload(self, upload: MediaUpload, folder: str) -> str:
        ext = os.path.splitext(upload.filename or "")[1].lower()
        key = f"{folder.strip('/')}/{uuid.uuid4().hex}{ext}"
        extra = {"ContentType": upload.content_type} if upload.content_type else {}
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=upload.content, **extra)
        except (BotoCoreError, ClientError) as e:
            media_operations_total.labels(operation="upload", result="error").inc()
            logger.error("media_upload_failed", key=key, error=str(e))
            raise UpstreamFailure("File upload failed.") from e
        media_operations_total.labels(operation="upload", result="ok").inc()
        logger.info("media_uploaded", key=key, size=len(upload.content))
        return self.url_for(key)

    def delete(self, url: str) -> None:
        key = self.key_from_url(url)
        if key is None:
            media_operations_total.labels(operation="delete", result="skipped").inc()
            logger.warning("media_delete_skipped", url=url, reason="not in bucket")
            return
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            media_operations_total.labels(operation="delete", result="error").inc()
            raise UpstreamFailure(f"Failed to delete media object {key}") from e
        media_operations_total.labels(operation="delete", result="ok").inc()
        logger.info("media_deleted", key=key)


media_store = S3MediaStore()


def get_media_store() -> IMediaStore:
    return media_store
