"""
Purchase routes: create a gateway order, then verify the checkout result.
Only verify-payment can grant access, and only through OrderService.confirm().
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.auth import Identity
from app.schemas.orders import (
    CreateOrderIn,
    CreateOrderOut,
    GatewayOrderOut,
    OrderOut,
    VerifyPaymentIn,
    VerifyPaymentOut,
)
from app.schemas.videos import VideoSummary
from app.services.auth.jwt import get_current_identity
from app.services.orders.service import OrderService
from app.services.payments.gateway import PaymentGateway, get_payment_gateway


router = APIRouter(prefix="/api", tags=["orders"])


def get_order_service(
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> OrderService:
    return OrderService(db, gateway)


@router.post("/create-order", response_model=CreateOrderOut)
def create_order(
    body: CreateOrderIn,
    identity: Identity = Depends(get_current_identity),
    service: OrderService = Depends(get_order_service),
) -> CreateOrderOut:
    initiated = service.initiate(identity, body.video_id)
    return CreateOrderOut(
        order=GatewayOrderOut(**initiated.charge.model_dump()),
        video=VideoSummary.model_validate(initiated.video),
        order_id=initiated.order.id,
    )


@router.post("/verify-payment", response_model=VerifyPaymentOut)
def verify_payment(
    body: VerifyPaymentIn,
    identity: Identity = Depends(get_current_identity),
    service: OrderService = Depends(get_order_service),
) -> VerifyPaymentOut:
    order = service.confirm(
        identity,
        body.video_id,
        body.razorpay_payment_id,
        gateway_order_id=body.razorpay_order_id,
        signature=body.razorpay_signature,
    )
    return VerifyPaymentOut(success=True, order_id=order.id)


@router.get("/orders", response_model=list[OrderOut])
def list_orders(
    identity: Identity = Depends(get_current_identity),
    service: OrderService = Depends(get_order_service),
) -> list[OrderOut]:
    return [OrderOut.model_validate(o) for o in service.list_orders(identity)]


@router.get("/orders/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    identity: Identity = Depends(get_current_identity),
    service: OrderService = Depends(get_order_service),
) -> OrderOut:
    return OrderOut.model_validate(service.get_order(identity, order_id))
