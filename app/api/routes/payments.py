from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models import User
from app.schemas.payment import CreatePaymentRequest, CreatePaymentResponse, WebhookResponse
from app.services.exceptions import (
    GatewayConfigurationError,
    GatewayError,
    InvalidWebhookPayloadError,
    OrderStatusNotFoundError,
)
from app.services.gateway import PaymentGatewayClient
from app.services.payments import PaymentService

router = APIRouter()


def get_gateway_client() -> PaymentGatewayClient:
    return PaymentGatewayClient()


@router.post("/create-payment", response_model=CreatePaymentResponse)
async def create_payment(
    data: CreatePaymentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGatewayClient = Depends(get_gateway_client),
):
    """Create an order and return the gateway's payment link."""
    service = PaymentService(db, gateway)
    try:
        result = await service.create_payment(data, user)
    except GatewayConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except GatewayError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return CreatePaymentResponse(**result)


@router.post("/webhook", response_model=WebhookResponse)
async def handle_webhook(
    payload: Any = Body(...),
    db: AsyncSession = Depends(get_db),
):
    """Gateway callback. Public: the gateway does not authenticate as a user."""
    service = PaymentService(db)
    try:
        result = await service.process_webhook(payload)
    except InvalidWebhookPayloadError as e:
        raise HTTPException(status_code=422, detail=e.errors)
    except OrderStatusNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return WebhookResponse(**result)
