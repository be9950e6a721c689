"""Shared fixtures: file-backed SQLite per test, media directory, fake gateway."""
import hashlib
import hmac
import os
from uuid import uuid4

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-0123456789")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")
os.environ.setdefault("PAYMENT_SIGNATURE_REQUIRED", "true")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app import models  # noqa: F401  register mappers
from app.core.config import settings
from app.db.base import Base
from app.models.video import Video
from app.schemas.auth import Identity
from app.services.payments.gateway import ChargeHandle, RazorpayGateway
from app.core.errors import GatewayError
from app.utils.currency import to_minor_units


class FakeGateway(RazorpayGateway):
    """Razorpay client with charge creation stubbed; signature check is the real HMAC."""

    def __init__(self, fail: bool = False) -> None:
        super().__init__(key_id="rzp_test_key", key_secret=settings.razorpay_key_secret)
        self.fail = fail
        self.charges: list[ChargeHandle] = []

    def create_charge(self, amount: int, currency: str, receipt: str) -> ChargeHandle:
        if self.fail:
            raise GatewayError("Razorpay error", details={"detail": "gateway down"})
        handle = ChargeHandle(
            id=f"order_test{len(self.charges) + 1}",
            amount=to_minor_units(amount, currency),
            currency=currency,
            receipt=receipt,
        )
        self.charges.append(handle)
        return handle


def sign_payment(gateway_order_id: str, payment_id: str) -> str:
    return hmac.new(
        settings.razorpay_key_secret.encode("utf-8"),
        f"{gateway_order_id}|{payment_id}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def sample_bytes(length: int) -> bytes:
    return bytes(i % 251 for i in range(length))


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def media_dir(tmp_path):
    path = tmp_path / "videos"
    path.mkdir()
    return path


@pytest.fixture
def make_video(db, media_dir):
    def _make(
        price: int = 500,
        content: bytes | None = None,
        video_id: int | None = None,
        title: str = "Sample",
        write_file: bool = True,
    ) -> Video:
        data = content if content is not None else sample_bytes(1000)
        filename = f"video-{uuid4().hex[:8]}.mp4"
        if write_file:
            (media_dir / filename).write_bytes(data)
        video = Video(title=title, description="", filename=filename, price=price)
        if video_id is not None:
            video.id = video_id
        db.add(video)
        db.commit()
        db.refresh(video)
        return video

    return _make


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def failing_gateway():
    return FakeGateway(fail=True)


@pytest.fixture
def user42():
    return Identity(id="42", administrative=False)


@pytest.fixture
def user99():
    return Identity(id="99", administrative=False)


@pytest.fixture
def admin():
    return Identity(id="1", administrative=True)


@pytest.fixture
def sign():
    return sign_payment


@pytest.fixture
def sample():
    return sample_bytes
