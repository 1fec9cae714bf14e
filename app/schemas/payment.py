from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class StudentInfo(BaseModel):
    name: Optional[str] = None
    id: Optional[str] = None
    email: Optional[str] = None


class CreatePaymentRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Amount to collect")
    student_info: Optional[StudentInfo] = None
    gateway_name: Optional[str] = Field(None, max_length=100)


class CreatePaymentResponse(BaseModel):
    payment_url: str
    collect_request_id: str
    collect_id: str


class OrderInfo(BaseModel):
    order_id: str = Field(..., min_length=1, description="Gateway collect request id (bank_reference)")
    order_amount: Decimal
    transaction_amount: Decimal
    status: str
    payment_mode: str
    payment_details: Optional[str] = None
    payment_message: Optional[str] = None
    error_message: Optional[str] = None
    payment_time: Optional[datetime] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("status must not be empty")
        return v


class WebhookPayload(BaseModel):
    status: int
    order_info: OrderInfo


class WebhookResponse(BaseModel):
    message: str
