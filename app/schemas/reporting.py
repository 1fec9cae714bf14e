from datetime import date, datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


class SortField(str, Enum):
    """Reporting row fields the transaction list can be sorted by."""

    collect_id = "collect_id"
    school_id = "school_id"
    gateway = "gateway"
    order_amount = "order_amount"
    transaction_amount = "transaction_amount"
    status = "status"
    custom_order_id = "custom_order_id"
    created_at = "created_at"


class TransactionQuery(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)
    sort: Optional[SortField] = None
    order: Literal["asc", "desc"] = "desc"
    status: Optional[str] = Field(None, description="Case-insensitive status filter")
    school_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def check_date_range(self) -> "TransactionQuery":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class ReportingRow(BaseModel):
    collect_id: str
    school_id: str
    gateway: str
    order_amount: float
    transaction_amount: float
    status: str
    # OrderStatus.bank_reference: gateway reference doubling as the public order id
    custom_order_id: str
    created_at: datetime


class TransactionListResponse(BaseModel):
    data: list[ReportingRow]
    total: int
    page: int
    limit: int

    @classmethod
    def empty(cls, page: int, limit: int) -> "TransactionListResponse":
        return cls(data=[], total=0, page=page, limit=limit)


class TransactionStatusResponse(BaseModel):
    status: str


class SchoolResponse(BaseModel):
    id: str
    name: str
