"""
Entitlement decision: can this identity stream this video?

Precedence: administrative identity -> grant; paid order for (user, video) -> grant;
otherwise deny. The video lookup and the paid-order check run as ONE statement,
so the decision reflects a single point-in-time view of the orders table.
"""
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.core.errors import VideoNotFound
from app.models.order import Order, OrderStatus
from app.models.video import Video
from app.schemas.auth import Identity
from app.utils.metrics import access_checks_total

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessCheck:
    video: Video
    granted: bool
    reason: str  # admin | paid | denied


class AccessService:
    def __init__(self, db: Session):
        self.db = db

    def check(self, identity: Identity, video_id: int) -> AccessCheck:
        """Resolve the video and decide access. Raises VideoNotFound."""
        has_paid_order = (
            self.db.query(Order.id)
            .filter(
                Order.video_id == video_id,
                Order.user_id == identity.id,
                Order.status == OrderStatus.PAID.value,
            )
            .exists()
        )
        row = (
            self.db.query(Video, has_paid_order.label("has_paid_order"))
            .filter(Video.id == video_id)
            .one_or_none()
        )
        if row is None:
            raise VideoNotFound(video_id)
        video, paid = row

        if identity.administrative:
            reason = "admin"
        elif paid:
            reason = "paid"
        else:
            reason = "denied"
        access_checks_total.labels(result=reason).inc()
        logger.info(
            "access_decision",
            extra={"user_id": identity.id, "video_id": video_id, "code": reason},
        )
        return AccessCheck(video=video, granted=reason != "denied", reason=reason)

    def can_stream(self, identity: Identity, video_id: int) -> bool:
        return self.check(identity, video_id).granted
