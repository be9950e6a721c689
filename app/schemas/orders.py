from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.videos import VideoSummary


class CreateOrderIn(BaseModel):
    video_id: int


class GatewayOrderOut(BaseModel):
    """Gateway order handed to the checkout widget (amount in minor units)."""

    id: str
    amount: int
    currency: str
    receipt: str
    status: str


class CreateOrderOut(BaseModel):
    order: GatewayOrderOut
    video: VideoSummary
    order_id: str


class VerifyPaymentIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    razorpay_payment_id: str | None = None
    razorpay_order_id: str | None = None
    razorpay_signature: str | None = None
    video_id: int = Field(..., description="Video the payment was made for")


class VerifyPaymentOut(BaseModel):
    success: bool
    order_id: str


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    video_id: int
    status: str
    amount: int
    currency: str
    payment_ref: str | None = None
    created_at: datetime
    paid_at: datetime | None = None
