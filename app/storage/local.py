"""
Blob storage on the local filesystem (uploads volume).
Keys are paths relative to the root; keys escaping the root are treated as missing.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

from app.storage.base import BlobNotFound, BlobStorage, OpenBlob

logger = logging.getLogger(__name__)


class LocalBlobStorage(BlobStorage):
    def __init__(self, root: str | os.PathLike) -> None:
        self.root = Path(root).resolve()

    def _path_for(self, key: str) -> Path:
        path = (self.root / key.lstrip("/")).resolve()
        try:
            path.relative_to(self.root)
        except ValueError:
            logger.warning("storage_key_outside_root", extra={"storage_key": key})
            raise BlobNotFound(key)
        return path

    def open_for_read(self, key: str) -> OpenBlob:
        path = self._path_for(key)
        try:
            stream = open(path, "rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            raise BlobNotFound(key)
        try:
            length = os.fstat(stream.fileno()).st_size
        except OSError:
            stream.close()
            raise
        return OpenBlob(length=length, stream=stream)


_default_storage: LocalBlobStorage | None = None


def get_blob_storage() -> BlobStorage:
    """FastAPI dependency: uploads volume configured by VIDEO_STORAGE_PATH."""
    global _default_storage
    if _default_storage is None:
        from app.core.config import settings

        _default_storage = LocalBlobStorage(settings.video_storage_path)
    return _default_storage
