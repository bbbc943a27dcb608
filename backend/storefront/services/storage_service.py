# Overview: Blob storage for item images; local disk or an S3-compatible bucket.

from __future__ import annotations

import base64
import binascii
import logging
import mimetypes
import re
import time
from dataclasses import dataclass
from importlib import import_module
from pathlib import Path
from urllib.parse import urlparse

from flask import current_app
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

_ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "webp", "gif"}
_CONTENT_TYPE_TO_EXT = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}
_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(?P<params>(;[\w=.-]+)*?)(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)


class StorageError(Exception):
    """Raised when an image cannot be decoded or stored."""

    def __init__(self, message: str, *, error_code: str = "BAD_REQUEST") -> None:
        super().__init__(message)
        self.error_code = error_code


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    content_type: str
    extension: str


def _extension_for(content_type: str | None, filename: str | None = None) -> str:
    from_filename = Path(filename or "").suffix.lower().lstrip(".")
    if from_filename in _ALLOWED_EXTENSIONS:
        return "jpg" if from_filename == "jpeg" else from_filename

    from_content_type = _CONTENT_TYPE_TO_EXT.get((content_type or "").lower())
    if from_content_type:
        return from_content_type

    raise StorageError("unsupported image type")


def decode_data_url(data_url: str) -> ImagePayload:
    """
    Decode a browser data URL ("data:image/png;base64,....").

    Raises StorageError for anything that is not a base64 image.
    """
    match = _DATA_URL_RE.match(data_url.strip())
    if not match:
        raise StorageError("image must be a data URL")
    if not match.group("b64"):
        raise StorageError("image data URL must be base64 encoded")

    content_type = (match.group("mime") or "").lower()
    extension = _extension_for(content_type)
    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError):
        raise StorageError("image data URL is not valid base64")
    if not data:
        raise StorageError("image is empty")
    return ImagePayload(data=data, content_type=content_type, extension=extension)


def image_from_upload(file_storage) -> ImagePayload:
    """Build an ImagePayload from a multipart werkzeug FileStorage."""
    data = file_storage.read()
    if not data:
        raise StorageError("image is empty")
    extension = _extension_for(file_storage.mimetype, file_storage.filename)
    content_type = (file_storage.mimetype or "").lower()
    if not content_type.startswith("image/"):
        content_type = mimetypes.guess_type(f"upload.{extension}")[0] or "application/octet-stream"
    return ImagePayload(data=data, content_type=content_type, extension=extension)


def build_image_key(name: str, extension: str, *, now_ms: int | None = None) -> str:
    """Object key: item name with spaces as underscores, a millisecond stamp, the extension."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    base = secure_filename(re.sub(r"\s+", "_", name.strip())) or "item"
    return f"{base}_{stamp}.{extension}"


class LocalStorage:
    """Files under UPLOAD_FOLDER/<bucket>/, served by the storefront blueprint."""

    def __init__(self, *, root: str | Path, bucket: str, public_base_url: str = "") -> None:
        self.root = Path(root)
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    @property
    def bucket_dir(self) -> Path:
        return self.root / self.bucket

    def path_for(self, key: str) -> Path:
        safe_key = secure_filename(key)
        if not safe_key or safe_key != key:
            raise StorageError(f"invalid object key: {key}")
        return self.bucket_dir / safe_key

    def upload(self, key: str, data: bytes, *, upsert: bool = False, content_type: str | None = None) -> str:
        path = self.path_for(key)
        if path.exists() and not upsert:
            raise StorageError(f"object already exists: {key}", error_code="CONFLICT")
        try:
            self.bucket_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            logger.exception("storage_upload_error", extra={"key": key, "bucket": self.bucket})
            raise StorageError(f"storage upload failed: {exc}", error_code="STORAGE_ERROR") from exc
        logger.info("storage_upload_ok", extra={"key": key, "bytes": len(data), "bucket": self.bucket})
        return key

    def get_public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{self.bucket}/{key}"
        return f"/storage/{self.bucket}/{key}"


class S3Storage:
    """S3-compatible bucket (AWS, DigitalOcean Spaces, MinIO) through boto3."""

    def __init__(
        self,
        *,
        bucket: str,
        access_key: str | None,
        secret_key: str | None,
        region: str | None,
        endpoint: str | None,
        public_base_url: str,
    ) -> None:
        self.bucket = bucket
        self._access_key = access_key
        self._secret_key = secret_key
        self._region = region
        self._endpoint = endpoint
        self.public_base_url = (public_base_url or "").rstrip("/")
        self._client = None

    def _validate_settings(self) -> None:
        required = {
            "S3_ACCESS_KEY": self._access_key,
            "S3_SECRET_KEY": self._secret_key,
            "S3_REGION": self._region,
            "STORAGE_BUCKET": self.bucket,
            "STORAGE_PUBLIC_BASE_URL": self.public_base_url,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise StorageError(f"missing storage configuration: {', '.join(missing)}")

    def _normalized_endpoint_url(self) -> str | None:
        endpoint = (self._endpoint or "").strip()
        if not endpoint:
            return None
        parsed = urlparse(endpoint)
        if parsed.scheme:
            return f"{parsed.scheme}://{parsed.netloc}{parsed.path}".rstrip("/")
        return f"https://{endpoint.lstrip('/')}".rstrip("/")

    def _get_client(self):
        if self._client is None:
            boto3 = import_module("boto3")
            botocore_client = import_module("botocore.client")
            self._client = boto3.client(
                "s3",
                region_name=self._region,
                endpoint_url=self._normalized_endpoint_url(),
                aws_access_key_id=self._access_key,
                aws_secret_access_key=self._secret_key,
                config=botocore_client.Config(signature_version="s3v4"),
            )
        return self._client

    def _exists(self, client, key: str) -> bool:
        botocore_exceptions = import_module("botocore.exceptions")
        try:
            client.head_object(Bucket=self.bucket, Key=key)
        except botocore_exceptions.ClientError as exc:
            status = (getattr(exc, "response", {}) or {}).get("ResponseMetadata", {}).get("HTTPStatusCode")
            if status == 404:
                return False
            raise
        return True

    def upload(self, key: str, data: bytes, *, upsert: bool = False, content_type: str | None = None) -> str:
        self._validate_settings()
        botocore_exceptions = import_module("botocore.exceptions")
        client = self._get_client()
        try:
            if not upsert and self._exists(client, key):
                raise StorageError(f"object already exists: {key}", error_code="CONFLICT")
            client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ACL="public-read",
                ContentType=content_type or "application/octet-stream",
                CacheControl="public, max-age=31536000",
            )
        except botocore_exceptions.ClientError as exc:
            s3_response = getattr(exc, "response", {}) or {}
            logger.exception(
                "storage_upload_error",
                extra={"key": key, "bucket": self.bucket, "s3_error": s3_response.get("Error")},
            )
            error_message = (s3_response.get("Error") or {}).get("Message") or str(exc)
            raise StorageError(f"storage upload failed: {error_message}", error_code="STORAGE_ERROR") from exc
        except botocore_exceptions.BotoCoreError as exc:
            logger.exception("storage_upload_error", extra={"key": key, "bucket": self.bucket})
            raise StorageError(f"storage upload failed: {exc}", error_code="STORAGE_ERROR") from exc
        logger.info("storage_upload_ok", extra={"key": key, "bytes": len(data), "bucket": self.bucket})
        return key

    def get_public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"


def build_storage(config) -> LocalStorage | S3Storage:
    backend = (config.get("STORAGE_BACKEND") or "local").lower()
    bucket = config.get("STORAGE_BUCKET") or "inventory-images"
    if backend == "local":
        return LocalStorage(
            root=config.get("UPLOAD_FOLDER") or "uploads",
            bucket=bucket,
            public_base_url=config.get("STORAGE_PUBLIC_BASE_URL") or "",
        )
    if backend == "s3":
        return S3Storage(
            bucket=bucket,
            access_key=config.get("S3_ACCESS_KEY"),
            secret_key=config.get("S3_SECRET_KEY"),
            region=config.get("S3_REGION"),
            endpoint=config.get("S3_ENDPOINT"),
            public_base_url=config.get("STORAGE_PUBLIC_BASE_URL") or "",
        )
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")


def get_storage() -> LocalStorage | S3Storage:
    """The storage backend bound to the current app (built once per app)."""
    storage = current_app.extensions.get("storefront_storage")
    if storage is None:
        storage = build_storage(current_app.config)
        current_app.extensions["storefront_storage"] = storage
    return storage


def upload_image(image: ImagePayload, *, name: str) -> str:
    """
    Store an item image and return its public URL.

    Upload happens before any row is written, so a failure here leaves no
    partial inventory row behind.
    """
    max_bytes = current_app.config.get("MAX_IMAGE_BYTES", 10 * 1024 * 1024)
    if len(image.data) > max_bytes:
        raise StorageError(f"image exceeds max size of {max_bytes // (1024 * 1024)} MB")

    storage = get_storage()
    key = build_image_key(name, image.extension)
    storage.upload(key, image.data, upsert=True, content_type=image.content_type)
    return storage.get_public_url(key)
