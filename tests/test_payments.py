import json
from decimal import Decimal

import httpx
import jwt
import pytest
from sqlalchemy import select, func

from app.api.routes.payments import get_gateway_client
from app.config import settings
from app.main import app
from app.models import Order, OrderStatus, WebhookLog
from app.services.gateway import PaymentGatewayClient

PG_KEY = "pg-test-key"


def webhook_body(order_id: str = "REF-1", status: str = "SUCCESS") -> dict:
    return {
        "status": 200,
        "order_info": {
            "order_id": order_id,
            "order_amount": 2000,
            "transaction_amount": 2200,
            "status": status,
            "payment_mode": "upi",
            "payment_message": "payment success",
            "payment_time": "2024-01-15T10:05:00Z",
        },
    }


async def count_rows(session_factory, model) -> int:
    async with session_factory() as session:
        return await session.scalar(select(func.count()).select_from(model))


class TestWebhook:
    @pytest.mark.anyio
    async def test_updates_matching_status(self, client, make_transaction, session_factory):
        order = await make_transaction(status="PENDING", bank_reference="REF-1")

        response = await client.post("/api/v1/payments/webhook", json=webhook_body())

        assert response.status_code == 200
        assert response.json()["message"] == "Webhook received and processed successfully."

        async with session_factory() as session:
            status = (await session.execute(
                select(OrderStatus).where(OrderStatus.bank_reference == "REF-1")
            )).scalar_one()
        assert status.status == "SUCCESS"
        assert status.transaction_amount == Decimal("2200")
        assert status.payment_mode == "upi"
        assert status.payment_message == "payment success"
        assert status.collect_id == order.id
        assert await count_rows(session_factory, WebhookLog) == 1

    @pytest.mark.anyio
    async def test_unknown_reference_is_logged_then_not_found(self, client, session_factory):
        response = await client.post("/api/v1/payments/webhook", json=webhook_body("REF-404"))

        assert response.status_code == 404
        assert "REF-404" in response.json()["detail"]

        async with session_factory() as session:
            log = (await session.execute(select(WebhookLog))).scalar_one()
        assert log.payload["order_info"]["order_id"] == "REF-404"

    @pytest.mark.anyio
    async def test_invalid_payload_is_logged_then_rejected(self, client, session_factory):
        response = await client.post("/api/v1/payments/webhook", json={"status": 200, "order_info": {}})

        assert response.status_code == 422
        assert await count_rows(session_factory, WebhookLog) == 1

    @pytest.mark.anyio
    async def test_webhook_is_public(self, anon_client, make_transaction):
        await make_transaction(bank_reference="REF-1")
        response = await anon_client.post("/api/v1/payments/webhook", json=webhook_body())
        assert response.status_code == 200

    @pytest.mark.anyio
    async def test_report_shows_settled_state(self, client, make_transaction):
        await make_transaction(status="PENDING", bank_reference="REF-1")
        await client.post("/api/v1/payments/webhook", json=webhook_body())

        response = await client.get("/api/v1/payments/transaction-status/REF-1")

        assert response.status_code == 200
        assert response.json() == {"status": "SUCCESS"}


@pytest.fixture
def gateway_requests(monkeypatch):
    """Point the app at a mocked gateway and collect the requests it receives."""
    monkeypatch.setattr(settings, "SCHOOL_ID", "S1")
    monkeypatch.setattr(settings, "CALLBACK_URL", "https://dashboard.test/callback")
    requests: list[httpx.Request] = []
    responses: list[httpx.Response] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if responses:
            return responses.pop(0)
        return httpx.Response(
            200,
            json={
                "collect_request_id": "CR-123",
                "Collect_request_url": "https://pay.gateway.test/collect/CR-123",
            },
        )

    app.dependency_overrides[get_gateway_client] = lambda: PaymentGatewayClient(
        api_url="https://gateway.test/create-collect-request",
        api_key="api-key",
        pg_key=PG_KEY,
        transport=httpx.MockTransport(handler),
    )
    return requests, responses


class TestCreatePayment:
    @pytest.mark.anyio
    async def test_creates_order_and_pending_status(self, client, session_factory, gateway_requests):
        requests, _ = gateway_requests

        response = await client.post(
            "/api/v1/payments/create-payment",
            json={"amount": "2000", "student_info": {"name": "Asha", "id": "ST-1"}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["payment_url"] == "https://pay.gateway.test/collect/CR-123"
        assert data["collect_request_id"] == "CR-123"

        async with session_factory() as session:
            order = await session.get(Order, data["collect_id"])
            status = (await session.execute(
                select(OrderStatus).where(OrderStatus.collect_id == order.id)
            )).scalar_one()
        assert order.school_id == "S1"
        assert order.trustee_id == "user-0001"
        assert order.student_info["name"] == "Asha"
        assert status.status == "PENDING"
        assert status.bank_reference == "CR-123"
        assert status.order_amount == Decimal("2000")

        sent = json.loads(requests[0].content)
        assert requests[0].headers["Authorization"] == "Bearer api-key"
        assert sent["amount"] == "2000"
        signed = jwt.decode(sent["sign"], PG_KEY, algorithms=["HS256"])
        assert signed == {
            "school_id": "S1",
            "amount": "2000",
            "callback_url": "https://dashboard.test/callback",
        }

    @pytest.mark.anyio
    async def test_gateway_failure_leaves_order_unreported(self, client, session_factory, gateway_requests):
        _, responses = gateway_requests
        responses.append(httpx.Response(500, json={"message": "down"}))

        response = await client.post("/api/v1/payments/create-payment", json={"amount": "100"})

        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to create payment link."
        assert await count_rows(session_factory, Order) == 1
        assert await count_rows(session_factory, OrderStatus) == 0

        listing = await client.get("/api/v1/payments/transactions")
        assert listing.json()["total"] == 0

    @pytest.mark.anyio
    async def test_malformed_gateway_response(self, client, gateway_requests):
        _, responses = gateway_requests
        responses.append(httpx.Response(200, json={"unexpected": True}))

        response = await client.post("/api/v1/payments/create-payment", json={"amount": "100"})

        assert response.status_code == 502

    @pytest.mark.anyio
    async def test_missing_gateway_configuration(self, client, session_factory):
        app.dependency_overrides[get_gateway_client] = lambda: PaymentGatewayClient(api_url="", api_key="")

        response = await client.post("/api/v1/payments/create-payment", json={"amount": "100"})

        assert response.status_code == 500
        assert "PAYMENT_API_URL" in response.json()["detail"]
        assert await count_rows(session_factory, Order) == 0

    @pytest.mark.anyio
    async def test_rejects_non_positive_amount(self, client):
        response = await client.post("/api/v1/payments/create-payment", json={"amount": "0"})
        assert response.status_code == 422

    @pytest.mark.anyio
    async def test_requires_authentication(self, anon_client):
        response = await anon_client.post("/api/v1/payments/create-payment", json={"amount": "100"})
        assert response.status_code == 401
