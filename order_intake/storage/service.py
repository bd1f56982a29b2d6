"""S3-compatible object storage for uploaded order documents, using MinIO.

Every request writes its original document once under a unique key and gets
back a publicly resolvable URL. A failed write is fatal to the request.

Based on MinIO Python SDK:
https://min.io/docs/minio/linux/developers/python/API.html
"""

import io
import logging
import mimetypes
import time
import uuid
from pathlib import PurePosixPath

from minio import Minio
from minio.error import S3Error
from pydantic import BaseModel

from order_intake.shared.config import Settings
from order_intake.shared.errors import UpstreamStorageError

logger = logging.getLogger(__name__)


class StoredDocument(BaseModel):
    """Location of a stored original document.

    Attributes:
        object_name: Full object key inside the bucket
        bucket: Bucket name
        url: Public URL of the object
        size: Object size in bytes
    """

    object_name: str
    bucket: str
    url: str
    size: int

    @property
    def source_invoice_id(self) -> str:
        """Object key with its final extension stripped."""
        return str(PurePosixPath(self.object_name).with_suffix(""))


class StorageService:
    """Write-once document storage backed by MinIO."""

    def __init__(self, settings: Settings) -> None:
        """Initialize storage service.

        Args:
            settings: Application settings with storage configuration
        """
        self.settings = settings
        self._client: Minio | None = None
        self._bucket_exists_cache: set[str] = set()

    def _get_client(self) -> Minio:
        """Get or create MinIO client (lazy initialization).

        Raises:
            ValueError: If storage credentials are not configured
        """
        if self._client is None:
            if not self.settings.storage_access_key:
                raise ValueError(
                    "Storage access key not configured. "
                    "Set APP_STORAGE_ACCESS_KEY environment variable."
                )
            if not self.settings.storage_secret_key:
                raise ValueError(
                    "Storage secret key not configured. "
                    "Set APP_STORAGE_SECRET_KEY environment variable."
                )

            self._client = Minio(
                endpoint=self.settings.storage_endpoint,
                access_key=self.settings.storage_access_key,
                secret_key=self.settings.storage_secret_key,
                secure=self.settings.storage_secure,
            )
            logger.info(f"MinIO client initialized for endpoint: {self.settings.storage_endpoint}")

        return self._client

    def is_available(self) -> bool:
        """Check if storage credentials are set."""
        return bool(self.settings.storage_access_key and self.settings.storage_secret_key)

    def health_check(self) -> bool:
        """Check if storage backend is reachable.

        Returns:
            True if MinIO server responds to bucket_exists
        """
        if not self.is_available():
            return False

        try:
            client = self._get_client()
            client.bucket_exists(self.settings.storage_bucket)
            return True
        except Exception as e:
            logger.warning(f"Storage health check failed: {e}")
            return False

    def _ensure_bucket(self, bucket: str) -> None:
        if bucket in self._bucket_exists_cache:
            return

        client = self._get_client()
        if not client.bucket_exists(bucket):
            client.make_bucket(bucket)
            logger.info(f"Created bucket: {bucket}")

        self._bucket_exists_cache.add(bucket)

    def build_object_name(self, filename: str | None, content_type: str | None) -> str:
        """Build a unique key: <prefix>/<epoch-millis>-<random>.<ext>.

        Args:
            filename: Original upload name, used for its extension
            content_type: Declared MIME type, used when the name has no extension

        Returns:
            Object key
        """
        ext = PurePosixPath(filename or "").suffix.lstrip(".")
        if not ext and content_type:
            guessed = mimetypes.guess_extension(content_type.split(";")[0].strip())
            ext = guessed.lstrip(".") if guessed else ""
        ext = ext or "bin"

        name = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:7]}.{ext}"
        prefix = self.settings.storage_prefix.strip("/")
        return f"{prefix}/{name}" if prefix else name

    def public_url(self, object_name: str, bucket: str | None = None) -> str:
        """Public URL for an object in a public-read bucket."""
        bucket = bucket or self.settings.storage_bucket
        base = self.settings.storage_public_base_url
        if not base:
            scheme = "https" if self.settings.storage_secure else "http"
            base = f"{scheme}://{self.settings.storage_endpoint}"
        return f"{base.rstrip('/')}/{bucket}/{object_name}"

    def store_document(
        self,
        data: bytes,
        filename: str | None,
        content_type: str | None = None,
    ) -> StoredDocument:
        """Upload document bytes under a new unique key.

        Args:
            data: Document bytes
            filename: Original file name
            content_type: MIME type (detected from the name if not provided)

        Returns:
            StoredDocument with key and public URL

        Raises:
            UpstreamStorageError: If the write fails for any reason
        """
        bucket = self.settings.storage_bucket
        object_name = self.build_object_name(filename, content_type)
        if not content_type:
            content_type = mimetypes.guess_type(filename or object_name)[0]
        content_type = content_type or "application/octet-stream"

        try:
            client = self._get_client()
            self._ensure_bucket(bucket)
            client.put_object(
                bucket_name=bucket,
                object_name=object_name,
                data=io.BytesIO(data),
                length=len(data),
                content_type=content_type,
            )
        except S3Error as e:
            logger.error(f"S3 error uploading {object_name}: {e}")
            raise UpstreamStorageError(f"S3 error: {e.code} - {e.message}") from e
        except Exception as e:
            logger.error(f"Error uploading {object_name}: {e}")
            raise UpstreamStorageError(str(e)) from e

        url = self.public_url(object_name, bucket)
        logger.info(f"Uploaded {object_name} to {bucket} ({len(data)} bytes): {url}")
        return StoredDocument(object_name=object_name, bucket=bucket, url=url, size=len(data))
