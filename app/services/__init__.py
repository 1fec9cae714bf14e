from app.services.auth import AuthService
from app.services.payments import PaymentService
from app.services.reporting import ReportingService

__all__ = ["AuthService", "PaymentService", "ReportingService"]
