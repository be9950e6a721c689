"""
Video model — каталог видео, доступных для покупки.
filename указывает на файл внутри VIDEO_STORAGE_PATH; сами файлы кладёт upload-сервис.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text

from app.db.base import Base


class Video(Base):
    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False, default="Untitled")
    description = Column(Text, nullable=False, default="")
    filename = Column(String, nullable=False)   # storage key, relative to the storage root
    price = Column(Integer, nullable=False, default=0)  # whole currency units (INR)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
