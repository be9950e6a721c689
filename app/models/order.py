"""
Order model — попытка покупки видео и её результат.
payment_ref (id платежа в шлюзе) уникален: повторный verify-payment не создаёт второй PAID заказ.
"""
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String

from app.db.base import Base


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_user_video_status", "user_id", "video_id", "status"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, nullable=False, index=True)
    video_id = Column(Integer, ForeignKey("videos.id"), nullable=False)
    payment_ref = Column(String, unique=True, nullable=True)      # null while pending
    gateway_order_id = Column(String, nullable=True, index=True)  # order id issued by the gateway
    status = Column(String, nullable=False, default=OrderStatus.PENDING.value)
    amount = Column(Integer, nullable=False)   # price at order creation, never recomputed
    currency = Column(String, nullable=False, default="INR")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    paid_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_paid(self) -> bool:
        return self.status == OrderStatus.PAID.value
