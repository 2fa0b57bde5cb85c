"""
Storage Service - uploaded files in S3 or MinIO (any S3-compatible endpoint).

Objects live under {prefix}/{folder}/{timestamp}_{sanitized-name}{ext} and are
served from a public URL.
"""

import asyncio
import re
import time
from functools import wraps
from typing import Optional
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException

from ojt_monitoring.core.config import get_settings
from ojt_monitoring.core.logging_config import logger
from ojt_monitoring.utils.file_upload import ValidatedFile, get_file_extension


def retry_with_backoff(max_retries: int = 3, base_delay: float = 0.5, max_delay: float = 5.0):
    """
    Decorator for retrying async storage calls with exponential backoff.

    Args:
        max_retries: Maximum number of attempts
        base_delay: Initial delay in seconds
        max_delay: Maximum delay cap in seconds
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            last_exception = None
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except (ClientError, BotoCoreError, ConnectionError, TimeoutError) as e:
                    last_exception = e
                    if attempt < max_retries - 1:
                        delay = min(base_delay * (2 ** attempt), max_delay)
                        logger.warning(f"[S3-Retry] Attempt {attempt + 1}/{max_retries} failed: {e}. Retrying in {delay:.1f}s...")
                        await asyncio.sleep(delay)
                    else:
                        logger.error(f"[S3-Retry] All {max_retries} attempts failed: {e}")
            raise last_exception
        return wrapper
    return decorator


def sanitize_filename(filename: str) -> str:
    """Base name without extension, reduced to safe characters."""
    base = filename.rsplit(".", 1)[0] if "." in filename else filename
    base = re.sub(r"[^a-zA-Z0-9_-]+", "_", base).strip("_")
    return base[:80] or "file"


class StorageService:
    """S3-compatible object storage for documents, avatars and chat images"""

    def __init__(self):
        settings = get_settings()
        self._client = None
        self._bucket_name = settings.storage_bucket
        self._endpoint_url = settings.storage_endpoint_url or None
        self._region = settings.storage_region
        self._access_key = settings.storage_access_key
        self._secret_key = settings.storage_secret_key
        self._public_url = settings.storage_public_url.rstrip("/")
        self._prefix = settings.storage_prefix.strip("/")

    def _get_client(self):
        """Lazy initialization of the S3 client"""
        if self._client is None:
            kwargs = {"region_name": self._region}
            if self._endpoint_url:
                # MinIO and friends need path-style addressing
                kwargs["endpoint_url"] = self._endpoint_url
                kwargs["config"] = Config(signature_version="s3v4", s3={"addressing_style": "path"})
            if self._access_key and self._secret_key:
                kwargs["aws_access_key_id"] = self._access_key
                kwargs["aws_secret_access_key"] = self._secret_key
            self._client = boto3.client("s3", **kwargs)
        return self._client

    def test_connection(self) -> bool:
        """True when the bucket is reachable with the configured credentials."""
        try:
            self._get_client().head_bucket(Bucket=self._bucket_name)
            return True
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Storage connection failed: {e}")
            return False

    def build_key(self, folder: str, filename: str) -> str:
        timestamp = int(time.time() * 1000)
        ext = get_file_extension(filename)
        return f"{self._prefix}/{folder}/{timestamp}_{sanitize_filename(filename)}{ext}"

    def public_url(self, key: str) -> str:
        if self._public_url:
            return f"{self._public_url}/{quote(key)}"
        if self._endpoint_url:
            return f"{self._endpoint_url.rstrip('/')}/{self._bucket_name}/{quote(key)}"
        return f"https://{self._bucket_name}.s3.{self._region}.amazonaws.com/{quote(key)}"

    def key_from_url(self, url: str) -> Optional[str]:
        """Recover the object key from a URL produced by public_url()."""
        marker = f"{self._prefix}/"
        index = url.find(marker)
        return url[index:] if index >= 0 else None

    @retry_with_backoff()
    async def _put(self, key: str, content: bytes, content_type: str) -> None:
        client = self._get_client()
        await asyncio.to_thread(
            client.put_object,
            Bucket=self._bucket_name,
            Key=key,
            Body=content,
            ContentType=content_type,
        )

    async def upload_file(self, file: ValidatedFile, folder: str) -> str:
        """
        Upload a validated file and return its public URL.

        Raises:
            HTTPException 500 when storage is unreachable after retries
        """
        key = self.build_key(folder, file.filename)
        try:
            await self._put(key, file.content, file.content_type)
        except (ClientError, BotoCoreError, ConnectionError, TimeoutError) as e:
            logger.error(f"[S3-Upload] Failed for {file.filename}: {e}")
            raise HTTPException(status_code=500, detail="Error uploading file to storage")

        logger.info(f"[S3-Upload] Uploaded: {key} ({len(file.content)} bytes)")
        return self.public_url(key)

    async def delete_file(self, url: str) -> bool:
        """Delete the object behind a public URL. Best effort."""
        key = self.key_from_url(url)
        if not key:
            return False
        try:
            client = self._get_client()
            await asyncio.to_thread(client.delete_object, Bucket=self._bucket_name, Key=key)
            logger.info(f"Deleted file from storage: {key}")
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete file from storage: {e}")
            return False


_storage_service: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    """Get singleton storage service instance"""
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
