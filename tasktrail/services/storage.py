# tasktrail/services/storage.py
import logging
import time
from dataclasses import dataclass
from datetime import datetime, UTC
from functools import lru_cache
from pathlib import PurePath
from typing import BinaryIO, Callable, Optional

import boto3
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from tasktrail import config
from tasktrail.exceptions import PayloadTooLarge, UnsupportedMediaType, InternalFault

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {"application/pdf", "image/png", "image/jpeg"}
ALLOWED_EXTENSIONS = {".pdf", ".png", ".jpg", ".jpeg"}

MIB = 1024 * 1024
# parts stay well under the upload ceiling, so a single part is buffered at a time
TRANSFER_CONFIG = TransferConfig(multipart_threshold=8 * MIB, multipart_chunksize=8 * MIB)

_MISSING_OBJECT_CODES = {"NoSuchKey", "NoSuchBucket", "404", "NotFound"}
_BUCKET_TAKEN_CODES = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}


@dataclass
class StoredObject:
    key: str
    url: str
    filename: str
    size: int
    mimetype: str


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def _extension(filename: str) -> str:
    return PurePath(filename).suffix.lower()


def validate_attachment(size: Optional[int], mimetype: str, filename: str, max_size: int = None):
    """Reject attachments outside the size/type/extension policy.

    The three checks are independent: a spoofed MIME type does not get a bad
    extension through, and vice versa. ``size`` may be None when the client did
    not announce it; the ceiling is then enforced while streaming.
    """
    max_size = max_size or config.MAX_UPLOAD_SIZE
    if size is not None and size > max_size:
        raise PayloadTooLarge(
            f"File exceeds the maximum size of {max_size / MIB:.0f}MB "
            f"(received: {size / MIB:.2f} MB)"
        )
    if mimetype not in ALLOWED_MIME_TYPES:
        raise UnsupportedMediaType(
            f"File type not allowed. Valid formats: PDF, PNG, JPG (received: {mimetype})"
        )
    ext = _extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise UnsupportedMediaType(f"File extension not allowed: {ext or '(none)'}")


class _LimitedReader:
    """File-like wrapper that refuses to hand out more than ``limit`` bytes."""

    def __init__(self, fileobj: BinaryIO, limit: int):
        self._fileobj = fileobj
        self._limit = limit
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._fileobj.read(size)
        self.bytes_read += len(chunk)
        if self.bytes_read > self._limit:
            raise PayloadTooLarge(
                f"File exceeds the maximum size of {self._limit / MIB:.0f}MB"
            )
        return chunk


class ObjectStorage:
    """Attachment storage in an S3-compatible bucket (MinIO in local setups)."""

    def __init__(self, client, bucket: str, public_endpoint: str, max_size: int = None):
        self.client = client
        self.bucket = bucket
        self.public_endpoint = public_endpoint.rstrip("/")
        self.max_size = max_size or config.MAX_UPLOAD_SIZE

    def ensure_bucket(self):
        try:
            self.client.head_bucket(Bucket=self.bucket)
            return
        except ClientError as exc:
            if _error_code(exc) not in _MISSING_OBJECT_CODES:
                raise

        logger.info("Bucket %s does not exist, creating it", self.bucket)
        try:
            self.client.create_bucket(Bucket=self.bucket)
        except ClientError as exc:
            # another worker created it between our check and create
            if _error_code(exc) not in _BUCKET_TAKEN_CODES:
                raise

    def build_key(self, task_id: int, filename: str) -> str:
        return f"tasks/{task_id}/{int(time.time() * 1000)}-{PurePath(filename).name}"

    def public_url(self, key: str) -> str:
        return f"{self.public_endpoint}/{self.bucket}/{key}"

    def upload(
        self,
        fileobj: BinaryIO,
        size: Optional[int],
        task_id: int,
        filename: str,
        mimetype: str,
    ) -> StoredObject:
        validate_attachment(size, mimetype, filename, self.max_size)

        key = self.build_key(task_id, filename)
        reader = _LimitedReader(fileobj, self.max_size)
        extra_args = {
            "ContentType": mimetype,
            "Metadata": {
                "task-id": str(task_id),
                "uploaded-at": datetime.now(UTC).isoformat(),
                # S3 metadata must be ASCII
                "original-name": filename.encode("ascii", "ignore").decode("ascii"),
            },
        }
        try:
            self.ensure_bucket()
            self.client.upload_fileobj(
                reader, self.bucket, key, ExtraArgs=extra_args, Config=TRANSFER_CONFIG
            )
        except PayloadTooLarge:
            logger.warning("Upload for task %s aborted: exceeded %s bytes", task_id, self.max_size)
            raise
        except (ClientError, BotoCoreError) as exc:
            logger.exception("Failed to upload %s to bucket %s: %s", key, self.bucket, exc)
            raise InternalFault("Failed to store file")

        logger.info("Stored object %s/%s (%s bytes)", self.bucket, key, reader.bytes_read)
        return StoredObject(
            key=key,
            url=self.public_url(key),
            filename=filename,
            size=reader.bytes_read,
            mimetype=mimetype,
        )

    def delete(self, key: str):
        """Remove an object. Missing objects or buckets count as already deleted."""
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_OBJECT_CODES:
                logger.info("Object %s already absent from %s", key, self.bucket)
                return
            logger.exception("Failed to delete %s from bucket %s", key, self.bucket)
            raise InternalFault("Failed to delete file")
        except BotoCoreError:
            logger.exception("Failed to delete %s from bucket %s", key, self.bucket)
            raise InternalFault("Failed to delete file")
        logger.info("Deleted object %s/%s", self.bucket, key)


def build_s3_client():
    if not (config.S3_ENDPOINT and config.S3_ACCESS_KEY and config.S3_SECRET_KEY):
        raise RuntimeError(
            "Object storage is not configured: S3_ENDPOINT, S3_ACCESS_KEY and S3_SECRET_KEY are required"
        )
    return boto3.client(
        "s3",
        endpoint_url=config.S3_ENDPOINT,
        aws_access_key_id=config.S3_ACCESS_KEY,
        aws_secret_access_key=config.S3_SECRET_KEY,
        region_name=config.S3_REGION,
        config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
    )


@lru_cache()
def get_storage() -> ObjectStorage:
    """FastAPI dependency; one client (and connection pool) per process."""
    return ObjectStorage(
        client=build_s3_client(),
        bucket=config.S3_BUCKET,
        public_endpoint=config.S3_PUBLIC_ENDPOINT,
    )


def get_storage_provider() -> Callable[[], ObjectStorage]:
    """FastAPI dependency for routes that touch the store on some paths only.

    The adapter, and with it the S3 credentials check, is built on first call.
    """
    return get_storage
