"""Domain errors raised by the services and mapped to HTTP responses by the routes."""


class ServiceError(Exception):
    """Base class for service-level failures."""


class TransactionFetchError(ServiceError):
    """A store operation failed while building a transaction report."""

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation}: {detail}")


class TransactionNotFoundError(ServiceError):
    def __init__(self, custom_order_id: str):
        self.custom_order_id = custom_order_id
        super().__init__(f"Transaction with ID {custom_order_id} not found.")


class OrderStatusNotFoundError(ServiceError):
    def __init__(self, bank_reference: str):
        self.bank_reference = bank_reference
        super().__init__(f"Order status with bank_reference {bank_reference} not found.")


class InvalidWebhookPayloadError(ServiceError):
    def __init__(self, errors: list):
        self.errors = errors
        super().__init__("Invalid webhook payload")


class GatewayConfigurationError(ServiceError):
    pass


class GatewayError(ServiceError):
    pass


class EmailAlreadyExistsError(ServiceError):
    pass


class InvalidCredentialsError(ServiceError):
    pass
