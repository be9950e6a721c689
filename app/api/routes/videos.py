from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.auth import Identity
from app.schemas.videos import AccessOut, VideoOut
from app.services.access.service import AccessService
from app.services.auth.jwt import get_current_identity
from app.services.catalog.service import CatalogService


router = APIRouter(prefix="/api", tags=["videos"])


@router.get("/videos", response_model=list[VideoOut])
def list_videos(db: Session = Depends(get_db)) -> list[VideoOut]:
    """Public catalog, newest first."""
    return [VideoOut.model_validate(v) for v in CatalogService(db).list_videos()]


@router.get("/check-access/{video_id}", response_model=AccessOut)
def check_access(
    video_id: int,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> AccessOut:
    return AccessOut(access=AccessService(db).can_stream(identity, video_id))
