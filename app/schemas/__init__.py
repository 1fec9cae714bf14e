from app.schemas.reporting import (
    SortField,
    TransactionQuery,
    ReportingRow,
    TransactionListResponse,
    TransactionStatusResponse,
    SchoolResponse
)
from app.schemas.payment import (
    CreatePaymentRequest,
    CreatePaymentResponse,
    WebhookPayload,
    WebhookResponse
)
from app.schemas.auth import (
    SignUpRequest,
    LoginRequest,
    TokenResponse,
    UserResponse
)

__all__ = [
    "SortField", "TransactionQuery", "ReportingRow", "TransactionListResponse",
    "TransactionStatusResponse", "SchoolResponse",
    "CreatePaymentRequest", "CreatePaymentResponse", "WebhookPayload", "WebhookResponse",
    "SignUpRequest", "LoginRequest", "TokenResponse", "UserResponse"
]
