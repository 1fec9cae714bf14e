from app.models.order import Order
from app.models.order_status import OrderStatus
from app.models.webhook_log import WebhookLog
from app.models.user import User

__all__ = ["Order", "OrderStatus", "WebhookLog", "User"]
