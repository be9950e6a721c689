"""
Video streaming route.

ORDERING CONTRACT: the entitlement check (AccessService) runs first and must pass
before RangeStreamer.serve() is called; the streamer itself never checks access.
"""
from fastapi import APIRouter, Depends, Header
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.core.errors import AccessDenied
from app.db.session import get_db
from app.schemas.auth import Identity
from app.services.access.service import AccessService
from app.services.auth.jwt import get_current_identity
from app.storage.base import BlobStorage
from app.storage.local import get_blob_storage
from app.streaming.responder import RangeStreamer
from app.utils.metrics import stream_requests_total


router = APIRouter(prefix="/video", tags=["stream"])


@router.get("/stream/{video_id}")
def stream_video(
    video_id: int,
    range_header: str | None = Header(None, alias="Range"),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_blob_storage),
) -> StreamingResponse:
    check = AccessService(db).check(identity, video_id)
    if not check.granted:
        stream_requests_total.labels(status="403").inc()
        raise AccessDenied(video_id)
    return RangeStreamer(storage).serve(check.video.filename, range_header)
