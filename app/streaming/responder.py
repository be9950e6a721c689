"""
Execution: RangeStreamer.serve(storage_key, range_header) -> StreamingResponse.

Reads bytes from blob storage and frames them as a 200 (full) or 206 (partial)
response. It does NOT check entitlements: callers must obtain a granted
AccessService.can_stream() before calling serve().
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import BinaryIO, Iterator

from fastapi import status
from fastapi.responses import StreamingResponse

from app.core.config import settings
from app.core.errors import RangeNotImplemented, RangeNotSatisfiable, StorageIntegrityError
from app.storage.base import BlobNotFound, BlobStorage
from app.streaming.range_parser import (
    FullRequest,
    Malformed,
    MultiRange,
    ParsedRange,
    SingleRange,
    parse_range_header,
)
from app.utils.metrics import stream_bytes_total, stream_requests_total

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServeWindow:
    """Inclusive byte window [start, end] of a blob of total_length bytes."""

    status_code: int
    start: int
    end: int
    total_length: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def is_partial(self) -> bool:
        return self.status_code == status.HTTP_206_PARTIAL_CONTENT


def plan_window(parsed: ParsedRange, total_length: int) -> ServeWindow:
    """
    Pure range arithmetic. Raises RangeNotSatisfiable for malformed or
    out-of-bounds ranges and RangeNotImplemented for multi-range requests.
    """
    if isinstance(parsed, FullRequest):
        return ServeWindow(status.HTTP_200_OK, 0, total_length - 1, total_length)

    if isinstance(parsed, MultiRange):
        raise RangeNotImplemented()

    if isinstance(parsed, Malformed):
        raise RangeNotSatisfiable(total_length, reason=parsed.reason)

    assert isinstance(parsed, SingleRange)
    start = parsed.start
    end = parsed.end if parsed.end is not None else total_length - 1
    if start >= total_length:
        raise RangeNotSatisfiable(total_length, reason="start beyond end of file")
    if end > total_length - 1:
        raise RangeNotSatisfiable(total_length, reason="end beyond end of file")
    if end < start:
        raise RangeNotSatisfiable(total_length, reason="end before start")
    return ServeWindow(status.HTTP_206_PARTIAL_CONTENT, start, end, total_length)


def iter_window(
    stream: BinaryIO,
    start: int,
    length: int,
    chunk_size: int,
    storage_key: str = "",
) -> Iterator[bytes]:
    """
    Yield exactly `length` bytes starting at `start`, then close the stream.
    The stream is closed on every exit path, including early close of the generator.
    """
    try:
        stream.seek(start)
        remaining = length
        while remaining > 0:
            chunk = stream.read(min(chunk_size, remaining))
            if not chunk:
                # blob shrank under us: abort instead of sending a short body
                logger.error(
                    "stream_blob_truncated",
                    extra={"storage_key": storage_key, "bytes": length - remaining},
                )
                raise StorageIntegrityError(storage_key, "Stored file is shorter than declared")
            remaining -= len(chunk)
            stream_bytes_total.inc(len(chunk))
            yield chunk
    finally:
        stream.close()


class RangeStreamer:
    def __init__(
        self,
        storage: BlobStorage,
        media_type: str | None = None,
        chunk_size: int | None = None,
    ) -> None:
        self.storage = storage
        self.media_type = media_type or settings.media_content_type
        self.chunk_size = chunk_size or settings.stream_chunk_size

    def serve(self, storage_key: str, range_header: str | None) -> StreamingResponse:
        """
        Serve the blob at storage_key honoring a single-range Range header.

        PRECONDITION: entitlement was already granted by AccessService.can_stream();
        this method never re-checks it.
        """
        try:
            blob = self.storage.open_for_read(storage_key)
        except BlobNotFound:
            logger.error("stream_blob_missing", extra={"storage_key": storage_key})
            stream_requests_total.labels(status="404").inc()
            raise StorageIntegrityError(storage_key)

        try:
            window = plan_window(parse_range_header(range_header), blob.length)
        except (RangeNotSatisfiable, RangeNotImplemented) as e:
            blob.stream.close()
            stream_requests_total.labels(status=str(e.status_code)).inc()
            logger.info(
                "stream_range_rejected",
                extra={"storage_key": storage_key, "range": range_header, "code": e.code},
            )
            raise

        headers = {
            "Accept-Ranges": "bytes",
            "Content-Length": str(window.length),
        }
        if window.is_partial:
            headers["Content-Range"] = f"bytes {window.start}-{window.end}/{window.total_length}"

        stream_requests_total.labels(status=str(window.status_code)).inc()
        logger.info(
            "stream_started",
            extra={
                "storage_key": storage_key,
                "range": range_header,
                "status_code": window.status_code,
                "bytes": window.length,
            },
        )
        body = iter_window(
            blob.stream,
            window.start,
            window.length,
            self.chunk_size,
            storage_key=storage_key,
        )
        return StreamingResponse(
            body,
            status_code=window.status_code,
            headers=headers,
            media_type=self.media_type,
        )
