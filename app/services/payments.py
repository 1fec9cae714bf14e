import logging
from decimal import Decimal
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models import Order, OrderStatus, WebhookLog, User
from app.schemas.payment import CreatePaymentRequest, WebhookPayload
from app.services.exceptions import InvalidWebhookPayloadError, OrderStatusNotFoundError
from app.services.gateway import PaymentGatewayClient

logger = logging.getLogger(__name__)


class PaymentService:
    """Writes orders and their payment status: initiation and gateway callbacks."""

    def __init__(self, db: AsyncSession, gateway: Optional[PaymentGatewayClient] = None):
        self.db = db
        self.gateway = gateway or PaymentGatewayClient()

    async def create_payment(self, request: CreatePaymentRequest, user: User) -> dict:
        """Create an order, request a payment link and record a PENDING status.

        The order is committed before the gateway call. If the call fails the
        order has no status row and stays out of transaction reports.
        """
        self.gateway.check_configured()

        order = Order(
            school_id=settings.SCHOOL_ID,
            trustee_id=user.id,
            student_info=request.student_info.model_dump() if request.student_info else None,
            gateway_name=request.gateway_name,
        )
        self.db.add(order)
        await self.db.commit()
        await self.db.refresh(order)

        collect = await self.gateway.create_collect_request(
            school_id=settings.SCHOOL_ID,
            amount=str(request.amount),
            callback_url=settings.CALLBACK_URL,
        )

        order_status = OrderStatus(
            collect_id=order.id,
            order_amount=request.amount,
            status="PENDING",
            bank_reference=collect.collect_request_id,
        )
        self.db.add(order_status)
        await self.db.commit()

        logger.info(
            "Payment initiated",
            extra={"collect_id": order.id, "bank_reference": collect.collect_request_id},
        )
        return {
            "payment_url": collect.payment_url,
            "collect_request_id": collect.collect_request_id,
            "collect_id": order.id,
        }

    async def process_webhook(self, raw_payload: dict) -> dict:
        """Record a gateway callback and apply it to the matching order status.

        The raw payload is logged first, whether or not it validates or matches.
        """
        self.db.add(WebhookLog(payload=raw_payload))
        await self.db.commit()

        try:
            webhook = WebhookPayload.model_validate(raw_payload)
        except ValidationError as e:
            errors = e.errors(include_url=False, include_context=False, include_input=False)
            logger.warning("Invalid webhook payload", extra={"error_count": len(errors)})
            raise InvalidWebhookPayloadError(errors) from e

        info = webhook.order_info
        stmt = select(OrderStatus).where(OrderStatus.bank_reference == info.order_id)
        result = await self.db.execute(stmt)
        order_status = result.scalars().first()

        if order_status is None:
            logger.warning("Webhook for unknown order", extra={"bank_reference": info.order_id})
            raise OrderStatusNotFoundError(info.order_id)

        order_status.status = info.status
        order_status.transaction_amount = Decimal(info.transaction_amount)
        order_status.payment_mode = info.payment_mode
        for field in ("payment_details", "payment_message", "error_message", "payment_time"):
            value = getattr(info, field)
            if value is not None:
                setattr(order_status, field, value)

        await self.db.commit()

        logger.info(
            "Webhook processed",
            extra={"bank_reference": info.order_id, "status": info.status},
        )
        return {"message": "Webhook received and processed successfully."}
