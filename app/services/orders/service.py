"""
OrderService — жизненный цикл покупки видео.

Ответственности:
- initiate: проверка видео и цены, создание заказа в платёжном шлюзе, запись PENDING
- confirm: проверка подписи шлюза и атомарная запись PAID (единственный путь к доступу)
- История заказов пользователя
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    DuplicatePaymentReference,
    InvalidAmount,
    InvalidPaymentSignature,
    MissingReference,
    OrderMismatch,
    OrderNotFound,
)
from app.models.order import Order, OrderStatus
from app.models.video import Video
from app.schemas.auth import Identity
from app.services.audit.service import AuditService
from app.services.catalog.service import CatalogService
from app.services.payments.gateway import ChargeHandle, PaymentGateway
from app.utils.metrics import (
    orders_initiated_total,
    orders_paid_total,
    payment_confirm_rejected_total,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InitiatedOrder:
    order: Order
    charge: ChargeHandle
    video: Video


class OrderService:
    def __init__(
        self,
        db: Session,
        gateway: PaymentGateway,
        *,
        require_signature: bool | None = None,
        allow_free_orders: bool | None = None,
        currency: str | None = None,
    ):
        self.db = db
        self.gateway = gateway
        self.catalog = CatalogService(db)
        self.audit = AuditService(db)
        self.require_signature = (
            settings.payment_signature_required if require_signature is None else require_signature
        )
        self.allow_free_orders = (
            settings.allow_free_orders if allow_free_orders is None else allow_free_orders
        )
        self.currency = currency or settings.payment_currency

    # ------------------------------------------------------------------
    # Initiate
    # ------------------------------------------------------------------

    def _check_amount(self, amount: int) -> None:
        if amount < 0 or (amount == 0 and not self.allow_free_orders):
            raise InvalidAmount(amount)

    def initiate(self, identity: Identity, video_id: int) -> InitiatedOrder:
        """
        Create a charge at the gateway and record a PENDING order for it.
        Nothing is marked paid here; GatewayError propagates and leaves no order behind.
        """
        video = self.catalog.get_video(video_id)
        amount = video.price or 0
        self._check_amount(amount)

        receipt = f"rcpt_{uuid4().hex[:20]}"
        charge = self.gateway.create_charge(amount, self.currency, receipt)

        order = Order(
            user_id=identity.id,
            video_id=video.id,
            gateway_order_id=charge.id,
            status=OrderStatus.PENDING.value,
            amount=amount,
            currency=self.currency,
        )
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)

        orders_initiated_total.inc()
        logger.info(
            "order_initiated",
            extra={
                "user_id": identity.id,
                "video_id": video.id,
                "order_id": order.id,
                "gateway_order_id": charge.id,
                "amount": amount,
                "currency": self.currency,
            },
        )
        return InitiatedOrder(order=order, charge=charge, video=video)

    # ------------------------------------------------------------------
    # Confirm (atomic)
    # ------------------------------------------------------------------

    def _reject(self, reason: str, identity: Identity, video_id: int) -> None:
        payment_confirm_rejected_total.labels(reason=reason).inc()
        logger.warning(
            "payment_confirm_rejected",
            extra={"user_id": identity.id, "video_id": video_id, "code": reason},
        )

    def _find_by_ref(self, payment_ref: str) -> Order | None:
        return self.db.query(Order).filter(Order.payment_ref == payment_ref).one_or_none()

    def _replay(self, existing: Order, identity: Identity, video_id: int) -> Order:
        """Same payment confirmed again: return the recorded order or refuse reuse."""
        if existing.user_id != identity.id or existing.video_id != video_id:
            self._reject("duplicate_reference", identity, video_id)
            raise DuplicatePaymentReference(existing.payment_ref)
        logger.info(
            "payment_already_processed",
            extra={"order_id": existing.id, "payment_ref": existing.payment_ref},
        )
        orders_paid_total.labels(source="replay").inc()
        return existing

    def confirm(
        self,
        identity: Identity,
        video_id: int,
        payment_ref: str | None,
        *,
        gateway_order_id: str | None = None,
        signature: str | None = None,
    ) -> Order:
        """
        Record a PAID order for (identity, video).
        Idempotent by payment_ref: re-confirming the same payment returns the existing order.
        A gateway order settles only the purchase it was issued for (same user and video);
        with signatures required, only orders created by initiate() can be paid.
        Committed before returning, so a following can_stream() sees the grant.
        """
        payment_ref = (payment_ref or "").strip()
        if not payment_ref:
            self._reject("missing_reference", identity, video_id)
            raise MissingReference()

        video = self.catalog.get_video(video_id)

        if self.require_signature and not self.gateway.verify_payment_signature(
            gateway_order_id or "", payment_ref, signature or ""
        ):
            self._reject("invalid_signature", identity, video_id)
            raise InvalidPaymentSignature()

        existing = self._find_by_ref(payment_ref)
        if existing is not None:
            return self._replay(existing, identity, video_id)

        try:
            order, source = self._mark_paid(identity, video, payment_ref, gateway_order_id)
            self.audit.log(
                actor_type="user",
                actor_id=identity.id,
                action="order_paid",
                entity_type="order",
                entity_id=order.id,
                payload={
                    "video_id": video.id,
                    "payment_ref": payment_ref,
                    "gateway_order_id": gateway_order_id,
                    "amount": order.amount,
                    "signature_verified": self.require_signature,
                },
            )
            self.db.commit()
        except OrderMismatch:
            self.db.rollback()
            raise
        except IntegrityError:
            # a concurrent confirm with the same payment_ref won the insert
            self.db.rollback()
            logger.warning("payment_duplicate", extra={"payment_ref": payment_ref})
            existing = self._find_by_ref(payment_ref)
            if existing is None:
                raise
            return self._replay(existing, identity, video_id)

        self.db.refresh(order)
        orders_paid_total.labels(source=source).inc()
        logger.info(
            "order_paid",
            extra={
                "user_id": identity.id,
                "video_id": video.id,
                "order_id": order.id,
                "payment_ref": payment_ref,
                "amount": order.amount,
            },
        )
        return order

    def _mark_paid(
        self,
        identity: Identity,
        video: Video,
        payment_ref: str,
        gateway_order_id: str | None,
    ) -> tuple[Order, str]:
        now = datetime.now(timezone.utc)
        issued = None
        if gateway_order_id:
            # resolved by gateway order alone; ownership and video are checked below
            issued = (
                self.db.query(Order)
                .filter(Order.gateway_order_id == gateway_order_id)
                .with_for_update()
                .first()
            )
        if issued is not None:
            if issued.user_id != identity.id or issued.video_id != video.id:
                self._reject("order_mismatch", identity, video.id)
                raise OrderMismatch(gateway_order_id)
            if issued.is_paid:
                # paid under another payment_ref, otherwise _find_by_ref would have hit
                self._reject("order_already_paid", identity, video.id)
                raise OrderMismatch(gateway_order_id, "Order is already paid")
            # amount stays as fixed at initiation
            issued.status = OrderStatus.PAID.value
            issued.payment_ref = payment_ref
            issued.paid_at = now
            self.db.flush()
            return issued, "pending"

        if self.require_signature:
            # a signed payment must settle an order created by initiate()
            self._reject("unknown_order", identity, video.id)
            raise OrderMismatch(gateway_order_id or "", "Payment is not for an order issued here")

        order = Order(
            user_id=identity.id,
            video_id=video.id,
            payment_ref=payment_ref,
            gateway_order_id=gateway_order_id,
            status=OrderStatus.PAID.value,
            amount=video.price or 0,
            currency=self.currency,
            paid_at=now,
        )
        self.db.add(order)
        self.db.flush()
        return order, "direct"

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def list_orders(self, identity: Identity) -> list[Order]:
        return (
            self.db.query(Order)
            .filter(Order.user_id == identity.id)
            .order_by(Order.created_at.desc())
            .all()
        )

    def get_order(self, identity: Identity, order_id: str) -> Order:
        order = (
            self.db.query(Order)
            .filter(Order.id == order_id, Order.user_id == identity.id)
            .one_or_none()
        )
        if order is None:
            raise OrderNotFound(order_id)
        return order
