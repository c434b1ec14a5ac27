"""Article image storage on the hosted object store."""

from dataclasses import dataclass
from uuid import uuid4

import httpx
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from havaasa.config import Settings
from havaasa.exceptions import StorageError, ValidationError

logger = structlog.get_logger(__name__)


@dataclass
class ImageUpload:
    """An uploaded image held in memory."""

    filename: str
    content_type: str
    data: bytes


@dataclass
class StoredFile:
    """Public URL and bucket path of a stored object."""

    url: str
    path: str


def validate_image(upload: ImageUpload, max_bytes: int) -> None:
    """Reject non-image uploads and files above the size limit."""
    if not upload.content_type.startswith("image/"):
        raise ValidationError("Not an image! Please upload an image file.")
    if len(upload.data) > max_bytes:
        raise ValidationError(f"Image exceeds the {max_bytes // (1024 * 1024)}MB limit")


def object_name(filename: str) -> str:
    """Random object name keeping the original extension (jpg by default)."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return f"{uuid4()}.{ext or 'jpg'}"


class StorageClient:
    """Uploads and removes objects in the article-images bucket."""

    def __init__(self, settings: Settings, http: httpx.AsyncClient | None = None):
        self.settings = settings
        self.bucket = settings.storage_bucket
        self.base = settings.supabase_url.rstrip("/")
        self.http = http or httpx.AsyncClient(timeout=30.0)

    @property
    def _headers(self) -> dict[str, str]:
        key = self.settings.supabase_service_role_key
        return {"apikey": key, "Authorization": f"Bearer {key}"}

    def public_url(self, path: str) -> str:
        return f"{self.base}/storage/v1/object/public/{self.bucket}/{path}"

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    async def _put(self, path: str, data: bytes, content_type: str) -> httpx.Response:
        return await self.http.post(
            f"{self.base}/storage/v1/object/{self.bucket}/{path}",
            content=data,
            headers={
                **self._headers,
                "Content-Type": content_type,
                "Cache-Control": "3600",
                "x-upsert": "false",
            },
        )

    async def upload_image(self, upload: ImageUpload) -> StoredFile:
        """Store an image and return its public URL."""
        path = object_name(upload.filename)
        logger.info("uploading_image", bucket=self.bucket, path=path, size=len(upload.data))
        try:
            response = await self._put(path, upload.data, upload.content_type)
        except httpx.HTTPError as e:
            raise StorageError("Failed to upload image", details=str(e)) from e
        if response.is_error:
            raise StorageError("Failed to upload image", details=response.text)
        return StoredFile(url=self.public_url(path), path=path)

    async def delete_file(self, path: str) -> None:
        try:
            response = await self.http.request(
                "DELETE",
                f"{self.base}/storage/v1/object/{self.bucket}",
                json={"prefixes": [path]},
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise StorageError("Failed to delete file", details=str(e)) from e
        if response.is_error:
            raise StorageError("Failed to delete file", details=response.text)

    async def close(self) -> None:
        await self.http.aclose()
