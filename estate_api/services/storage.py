"""
Object storage for uploaded images.
Two backends share one async interface: files on local disk (served by the
app under ``public_base_url``) and Supabase Storage buckets.
"""

from functools import lru_cache
from pathlib import Path
from typing import List
import logging

import aiofiles
import aiofiles.os
from fastapi.concurrency import run_in_threadpool

from estate_api.config import settings
from estate_api.utils.exceptions import ServiceNotConfiguredError

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a storage backend rejects an operation."""


class StorageBackend:
    """Interface implemented by every storage backend."""

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str, upsert: bool = False) -> None:
        raise NotImplementedError

    def public_url(self, bucket: str, path: str) -> str:
        raise NotImplementedError

    async def remove(self, bucket: str, paths: List[str]) -> None:
        raise NotImplementedError


class LocalStorage(StorageBackend):
    """Stores objects under ``<root>/<bucket>/<path>``."""

    def __init__(self, root: str, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _resolve(self, bucket: str, path: str) -> Path:
        target = (self.root / bucket / path).resolve()
        if self.root.resolve() not in target.parents:
            raise StorageError(f"Path escapes storage root: {path}")
        return target

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str, upsert: bool = False) -> None:
        target = self._resolve(bucket, path)
        if not upsert and await aiofiles.os.path.exists(target):
            raise StorageError(f"Object already exists: {bucket}/{path}")

        await aiofiles.os.makedirs(target.parent, exist_ok=True)
        async with aiofiles.open(target, "wb") as f:
            await f.write(data)
        logger.debug(f"Stored {len(data)} bytes at {bucket}/{path}")

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/{bucket}/{path}"

    async def remove(self, bucket: str, paths: List[str]) -> None:
        for path in paths:
            target = self._resolve(bucket, path)
            if await aiofiles.os.path.exists(target):
                await aiofiles.os.remove(target)


class SupabaseStorage(StorageBackend):
    """
    Supabase Storage backend.
    The supabase client is synchronous, so calls run in the thread pool.
    """

    def __init__(self, url: str, key: str):
        from supabase import create_client

        self.client = create_client(url, key)

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str, upsert: bool = False) -> None:
        def _upload():
            return self.client.storage.from_(bucket).upload(
                path,
                data,
                file_options={"content-type": content_type, "upsert": "true" if upsert else "false"},
            )

        try:
            await run_in_threadpool(_upload)
        except Exception as e:
            raise StorageError(f"Upload to {bucket}/{path} failed: {e}") from e

    def public_url(self, bucket: str, path: str) -> str:
        url = self.client.storage.from_(bucket).get_public_url(path)
        return url.rstrip("?")

    async def remove(self, bucket: str, paths: List[str]) -> None:
        try:
            await run_in_threadpool(lambda: self.client.storage.from_(bucket).remove(paths))
        except Exception as e:
            raise StorageError(f"Removing {len(paths)} object(s) from {bucket} failed: {e}") from e


@lru_cache()
def get_storage() -> StorageBackend:
    """Dependency returning the configured storage backend."""
    if settings.storage_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_key:
            raise ServiceNotConfiguredError("Storage service not configured")
        return SupabaseStorage(settings.supabase_url, settings.supabase_key)
    return LocalStorage(settings.upload_dir, settings.public_base_url)
