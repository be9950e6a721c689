"""Tests for RangeStreamer / iter_window with in-memory blobs (no database, no auth)."""
import io

import pytest
from fastapi import FastAPI, Header
from fastapi.testclient import TestClient

from app.core.errors import StorageIntegrityError, register_exception_handlers
from app.storage.base import BlobNotFound, BlobStorage, OpenBlob
from app.streaming.responder import RangeStreamer, iter_window


class MemoryStorage(BlobStorage):
    def __init__(self, blobs: dict[str, bytes], declared: dict[str, int] | None = None):
        self.blobs = blobs
        self.declared = declared or {}
        self.opened: list[io.BytesIO] = []

    def open_for_read(self, key: str) -> OpenBlob:
        if key not in self.blobs:
            raise BlobNotFound(key)
        stream = io.BytesIO(self.blobs[key])
        self.opened.append(stream)
        return OpenBlob(length=self.declared.get(key, len(self.blobs[key])), stream=stream)


CONTENT = bytes(range(256)) * 4  # 1024 bytes


@pytest.fixture
def storage():
    return MemoryStorage({"clip.mp4": CONTENT, "empty.mp4": b""})


@pytest.fixture
def client(storage):
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/blob/{key}")
    def blob(key: str, range_header: str | None = Header(None, alias="Range")):
        return RangeStreamer(storage, chunk_size=100).serve(key, range_header)

    return TestClient(app)


class TestIterWindow:
    def test_yields_exact_window_and_closes(self):
        stream = io.BytesIO(CONTENT)
        body = b"".join(iter_window(stream, 10, 250, chunk_size=64))
        assert body == CONTENT[10:260]
        assert stream.closed

    def test_early_close_releases_stream(self):
        stream = io.BytesIO(CONTENT)
        gen = iter_window(stream, 0, len(CONTENT), chunk_size=16)
        assert next(gen) == CONTENT[:16]
        gen.close()
        assert stream.closed

    def test_truncated_blob_raises_and_closes(self):
        stream = io.BytesIO(CONTENT[:100])
        with pytest.raises(StorageIntegrityError):
            b"".join(iter_window(stream, 0, 200, chunk_size=64))
        assert stream.closed


class TestServe:
    def test_full_content(self, client):
        resp = client.get("/blob/clip.mp4")
        assert resp.status_code == 200
        assert resp.content == CONTENT
        assert resp.headers["content-length"] == str(len(CONTENT))
        assert resp.headers["content-type"] == "video/mp4"
        assert resp.headers["accept-ranges"] == "bytes"
        assert "content-range" not in resp.headers

    def test_first_byte(self, client):
        resp = client.get("/blob/clip.mp4", headers={"Range": "bytes=0-0"})
        assert resp.status_code == 206
        assert resp.content == CONTENT[:1]
        assert resp.headers["content-length"] == "1"
        assert resp.headers["content-range"] == f"bytes 0-0/{len(CONTENT)}"

    def test_open_ended_range(self, client):
        resp = client.get("/blob/clip.mp4", headers={"Range": "bytes=1000-"})
        assert resp.status_code == 206
        assert resp.content == CONTENT[1000:]
        assert resp.headers["content-range"] == "bytes 1000-1023/1024"

    def test_adjacent_ranges_reassemble_file(self, client):
        k = 333
        first = client.get("/blob/clip.mp4", headers={"Range": f"bytes=0-{k}"})
        second = client.get("/blob/clip.mp4", headers={"Range": f"bytes={k + 1}-{len(CONTENT) - 1}"})
        assert first.content + second.content == CONTENT

    def test_start_past_end_is_416(self, client, storage):
        resp = client.get("/blob/clip.mp4", headers={"Range": f"bytes={len(CONTENT)}-"})
        assert resp.status_code == 416
        assert resp.headers["content-range"] == f"bytes */{len(CONTENT)}"
        assert resp.content == b""
        assert all(s.closed for s in storage.opened)

    def test_reversed_range_is_416(self, client):
        resp = client.get("/blob/clip.mp4", headers={"Range": "bytes=10-5"})
        assert resp.status_code == 416
        assert resp.content == b""

    def test_malformed_range_is_416(self, client):
        resp = client.get("/blob/clip.mp4", headers={"Range": "bytes=abc"})
        assert resp.status_code == 416
        assert resp.headers["content-range"] == "bytes */1024"

    def test_multi_range_is_501(self, client, storage):
        resp = client.get("/blob/clip.mp4", headers={"Range": "bytes=0-1,3-4"})
        assert resp.status_code == 501
        assert resp.json()["error"]["code"] == "multiple_ranges_not_supported"
        assert all(s.closed for s in storage.opened)

    def test_missing_blob_is_storage_error(self, client):
        resp = client.get("/blob/gone.mp4")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "storage_missing"

    def test_empty_blob(self, client):
        resp = client.get("/blob/empty.mp4")
        assert resp.status_code == 200
        assert resp.content == b""

    def test_streams_are_closed_after_response(self, client, storage):
        client.get("/blob/clip.mp4", headers={"Range": "bytes=0-499"})
        client.get("/blob/clip.mp4")
        assert len(storage.opened) == 2
        assert all(s.closed for s in storage.opened)

    def test_serve_raises_for_missing_blob(self, storage):
        with pytest.raises(StorageIntegrityError) as exc_info:
            RangeStreamer(storage).serve("nope.mp4", None)
        assert exc_info.value.storage_key == "nope.mp4"
