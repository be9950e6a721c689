from abc import ABC, abstractmethod
from typing import BinaryIO, NamedTuple


class BlobNotFound(FileNotFoundError):
    """No blob stored under the given key."""


class OpenBlob(NamedTuple):
    length: int
    stream: BinaryIO  # seekable, caller closes


class BlobStorage(ABC):
    @abstractmethod
    def open_for_read(self, key: str) -> OpenBlob:
        """Open the blob for reading; raises BlobNotFound. Every call returns an independent handle."""
        raise NotImplementedError
