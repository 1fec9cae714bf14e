import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Optional

from sqlalchemy import DateTime, select, func, literal
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings, DEMO_SCHOOLS
from app.models import Order, OrderStatus, User
from app.schemas.reporting import (
    SortField,
    TransactionQuery,
    ReportingRow,
    TransactionListResponse,
    TransactionStatusResponse,
)
from app.services.exceptions import TransactionFetchError, TransactionNotFoundError

logger = logging.getLogger(__name__)

UNKNOWN_STATUS = "UNKNOWN"

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _if_null(value: Any, default: Any) -> Any:
    return default if value is None else value


def _as_float(value: Optional[Decimal]) -> float:
    return float(_if_null(value, 0))


def project_row(order: Order, status: OrderStatus, now: datetime) -> ReportingRow:
    """Flatten an (Order, OrderStatus) pair into a reporting row, applying fallbacks."""
    return ReportingRow(
        collect_id=str(order.id),
        school_id=order.school_id,
        gateway=_if_null(order.gateway_name, settings.DEFAULT_GATEWAY_NAME),
        order_amount=_as_float(status.order_amount),
        transaction_amount=_as_float(status.transaction_amount),
        status=_if_null(status.status, UNKNOWN_STATUS),
        custom_order_id=_if_null(status.bank_reference, ""),
        created_at=_if_null(order.created_at, now),
    )


def day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def sort_expression(field: SortField, now: datetime):
    """SQL expression a reporting row field is sorted by, with the projection's fallbacks."""
    if field == SortField.collect_id:
        return Order.id
    if field == SortField.school_id:
        return Order.school_id
    if field == SortField.gateway:
        return func.coalesce(Order.gateway_name, settings.DEFAULT_GATEWAY_NAME)
    if field == SortField.order_amount:
        return func.coalesce(OrderStatus.order_amount, 0)
    if field == SortField.transaction_amount:
        return func.coalesce(OrderStatus.transaction_amount, 0)
    if field == SortField.status:
        return func.coalesce(OrderStatus.status, UNKNOWN_STATUS)
    if field == SortField.custom_order_id:
        return func.coalesce(OrderStatus.bank_reference, "")
    return func.coalesce(Order.created_at, literal(now, DateTime(timezone=True)))


class ReportingService:
    """Transaction reporting over orders joined with their payment status.

    Each listing runs as: count orders (school filter pushed down) and stop
    early when there are none, inner join with order statuses, apply the
    query filters, count the joined rows, then sort, page and project.
    Orders without a status row never appear. An order with several status
    rows yields one row per status.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock = utcnow,
        log: Optional[logging.Logger] = None,
    ):
        self.db = db
        self.clock = clock
        self.logger = log or logger

    async def list_all(self, query: TransactionQuery) -> TransactionListResponse:
        return await self._list_transactions(query, school_id=query.school_id)

    async def list_by_school(self, school_id: str, query: TransactionQuery) -> TransactionListResponse:
        return await self._list_transactions(query, school_id=school_id)

    async def get_status(self, custom_order_id: str) -> TransactionStatusResponse:
        """Look up a payment status by its public order id (the bank reference)."""
        stmt = (
            select(OrderStatus)
            .where(OrderStatus.bank_reference == custom_order_id)
            .order_by(OrderStatus.created_at, OrderStatus.id)
            .limit(1)
        )
        result = await self._execute("fetch_status", stmt, {"custom_order_id": custom_order_id})
        order_status = result.scalars().first()

        if order_status is None:
            raise TransactionNotFoundError(custom_order_id)

        return TransactionStatusResponse(status=_if_null(order_status.status, UNKNOWN_STATUS))

    async def list_schools(self) -> list[dict]:
        """Schools for the dashboard filter; demo entries when none are registered."""
        stmt = select(User).where(User.role == "school").order_by(User.email)
        result = await self._execute("fetch_schools", stmt, {})
        schools = list(result.scalars().all())

        if not schools:
            self.logger.info("No schools registered, returning demo schools")
            return list(DEMO_SCHOOLS)

        return [
            {
                "id": school.school_id or school.id,
                "name": school.name or f"School {school.id}",
            }
            for school in schools
        ]

    async def _list_transactions(
        self, query: TransactionQuery, school_id: Optional[str]
    ) -> TransactionListResponse:
        now = self.clock()
        context = {
            "school_id": school_id,
            "page": query.page,
            "limit": query.limit,
            "sort": query.sort.value if query.sort else None,
            "sort_order": query.order,
        }
        self.logger.info("Fetching transactions", extra=context)

        order_count_stmt = select(func.count(Order.id))
        if school_id is not None:
            order_count_stmt = order_count_stmt.where(Order.school_id == school_id)
        order_count = (await self._execute("count_orders", order_count_stmt, context)).scalar_one()

        if order_count == 0:
            self.logger.info("No orders found", extra=context)
            return TransactionListResponse.empty(query.page, query.limit)

        criteria = self._criteria(query, school_id)

        count_stmt = (
            select(func.count())
            .select_from(Order)
            .join(OrderStatus, OrderStatus.collect_id == Order.id)
            .where(*criteria)
        )
        total = (await self._execute("count_transactions", count_stmt, context)).scalar_one()

        if total == 0:
            self.logger.info("No orders with a payment status", extra={**context, "orders": order_count})
            return TransactionListResponse.empty(query.page, query.limit)

        if query.offset >= total:
            self.logger.info("Page past the last transaction", extra={**context, "total": total})
            return TransactionListResponse(data=[], total=total, page=query.page, limit=query.limit)

        stmt = (
            select(Order, OrderStatus)
            .join(OrderStatus, OrderStatus.collect_id == Order.id)
            .where(*criteria)
            .order_by(*self._ordering(query, now))
            .offset(query.offset)
            .limit(query.limit)
        )
        result = await self._execute("fetch_transactions", stmt, context)
        data = [project_row(order, order_status, now) for order, order_status in result.all()]

        self.logger.info(
            "Fetched transactions",
            extra={**context, "total": total, "returned": len(data)},
        )
        return TransactionListResponse(data=data, total=total, page=query.page, limit=query.limit)

    def _criteria(self, query: TransactionQuery, school_id: Optional[str]) -> list:
        criteria = []
        if school_id is not None:
            criteria.append(Order.school_id == school_id)
        if query.status:
            criteria.append(
                func.upper(func.coalesce(OrderStatus.status, UNKNOWN_STATUS)) == query.status.upper()
            )
        if query.start_date:
            criteria.append(Order.created_at >= day_start(query.start_date))
        if query.end_date:
            criteria.append(Order.created_at < day_start(query.end_date + timedelta(days=1)))
        return criteria

    def _ordering(self, query: TransactionQuery, now: datetime) -> list:
        if query.sort is None:
            primary = sort_expression(SortField.created_at, now).desc()
        else:
            expression = sort_expression(query.sort, now)
            primary = expression.asc() if query.order == "asc" else expression.desc()
        # Tie-breakers keep pages stable across requests
        return [primary, Order.id.asc(), OrderStatus.id.asc()]

    async def _execute(self, operation: str, stmt, context: dict):
        try:
            return await self.db.execute(stmt)
        except (SQLAlchemyError, OSError) as exc:
            self.logger.error(
                "Transaction query failed",
                extra={**context, "operation": operation, "error": str(exc)},
            )
            raise TransactionFetchError(operation, str(exc)) from exc
