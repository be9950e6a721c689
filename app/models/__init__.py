from app.models.audit_log import AuditLog
from app.models.order import Order, OrderStatus
from app.models.video import Video

__all__ = ["AuditLog", "Order", "OrderStatus", "Video"]
