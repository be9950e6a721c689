import pytest

from app.storage.base import BlobNotFound
from app.storage.local import LocalBlobStorage


@pytest.fixture
def storage(tmp_path):
    (tmp_path / "clip.mp4").write_bytes(b"0123456789")
    (tmp_path / "nested").mkdir()
    return LocalBlobStorage(tmp_path)


def test_open_reports_length(storage):
    blob = storage.open_for_read("clip.mp4")
    try:
        assert blob.length == 10
        assert blob.stream.read() == b"0123456789"
    finally:
        blob.stream.close()


def test_handles_have_independent_offsets(storage):
    a = storage.open_for_read("clip.mp4")
    b = storage.open_for_read("clip.mp4")
    try:
        a.stream.seek(5)
        assert b.stream.read(2) == b"01"
        assert a.stream.read(2) == b"56"
    finally:
        a.stream.close()
        b.stream.close()


def test_missing_blob(storage):
    with pytest.raises(BlobNotFound):
        storage.open_for_read("missing.mp4")


def test_directory_is_not_a_blob(storage):
    with pytest.raises(BlobNotFound):
        storage.open_for_read("nested")


def test_key_outside_root_refused(storage, tmp_path):
    (tmp_path.parent / "secret.mp4").write_bytes(b"x")
    with pytest.raises(BlobNotFound):
        storage.open_for_read("../secret.mp4")
