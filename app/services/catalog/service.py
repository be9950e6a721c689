from sqlalchemy.orm import Session

from app.core.errors import VideoNotFound
from app.models.video import Video


class CatalogService:
    def __init__(self, db: Session):
        self.db = db

    def list_videos(self) -> list[Video]:
        return self.db.query(Video).order_by(Video.created_at.desc(), Video.id.desc()).all()

    def find_video(self, video_id: int) -> Video | None:
        return self.db.query(Video).filter(Video.id == video_id).one_or_none()

    def get_video(self, video_id: int) -> Video:
        video = self.find_video(video_id)
        if video is None:
            raise VideoNotFound(video_id)
        return video
