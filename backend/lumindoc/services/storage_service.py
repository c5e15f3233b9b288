import secrets
import string
import time
from dataclasses import dataclass
from pathlib import PurePath

from storage3.utils import StorageException

from lumindoc.config import (
    DEFAULT_USER_ID,
    STORAGE_BUCKET,
    get_supabase_client,
    setup_logger,
)
from lumindoc.core.exceptions import StorageError


logger = setup_logger("storage-service")

_KEY_ALPHABET = string.ascii_lowercase + string.digits
_KEY_SUFFIX_LENGTH = 13


@dataclass
class StoredFile:
    url: str
    path: str


def build_object_key(filename: str, user_id: str = DEFAULT_USER_ID) -> str:
    """Object key for an upload; the original name never reaches the key."""
    ext = PurePath(filename or "").suffix.lstrip(".").lower() or "pdf"
    suffix = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(_KEY_SUFFIX_LENGTH))
    return f"{user_id}/{int(time.time() * 1000)}-{suffix}.{ext}"


class StorageService:
    def __init__(self, bucket: str = STORAGE_BUCKET) -> None:
        self._bucket = bucket
        self._supabase = None

    async def _get_supabase(self):
        if not self._supabase:
            self._supabase = await get_supabase_client()
        return self._supabase

    async def _get_bucket(self):
        supabase = await self._get_supabase()
        return supabase.storage.from_(self._bucket)

    async def upload_file(
        self,
        data: bytes,
        filename: str,
        content_type: str,
        user_id: str = DEFAULT_USER_ID,
    ) -> StoredFile:
        path = build_object_key(filename, user_id)
        try:
            bucket = await self._get_bucket()
            response = await bucket.upload(path, data, {"content-type": content_type})
        except StorageException as e:
            raise StorageError("upload", path, str(e)) from e

        stored_path = getattr(response, "path", None) or path
        url = await self.get_public_url(stored_path)
        logger.info(f"Uploaded {filename} to {self._bucket}/{stored_path}")
        return StoredFile(url=url, path=stored_path)

    async def get_public_url(self, path: str) -> str:
        bucket = await self._get_bucket()
        return await bucket.get_public_url(path)

    async def download_file(self, path: str) -> bytes:
        try:
            bucket = await self._get_bucket()
            return await bucket.download(path)
        except StorageException as e:
            raise StorageError("download", path, str(e)) from e

    async def remove_file(self, path: str) -> None:
        try:
            bucket = await self._get_bucket()
            await bucket.remove([path])
        except StorageException as e:
            raise StorageError("removal", path, str(e)) from e


storage_service = StorageService()
