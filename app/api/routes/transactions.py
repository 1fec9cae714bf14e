from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, HTTPException
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.config import settings
from app.database import get_db
from app.schemas.reporting import (
    SortField,
    TransactionQuery,
    TransactionListResponse,
    TransactionStatusResponse,
    SchoolResponse,
)
from app.services.exceptions import TransactionFetchError, TransactionNotFoundError
from app.services.reporting import ReportingService

router = APIRouter(dependencies=[Depends(get_current_user)])


def transaction_query(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1),
    sort: Optional[SortField] = Query(None, description="Reporting field to sort by"),
    order: Literal["asc", "desc"] = Query("desc"),
    status: Optional[str] = Query(None, description="Filter by status, e.g. SUCCESS, PENDING, FAILED"),
    school_id_filter: Optional[str] = Query(None, alias="school_id"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
) -> TransactionQuery:
    try:
        return TransactionQuery(
            page=page,
            limit=limit,
            sort=sort,
            order=order,
            status=status or None,
            school_id=school_id_filter or None,
            start_date=start_date,
            end_date=end_date,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=e.errors(include_url=False, include_context=False, include_input=False),
        )


def _fetch_failed(e: TransactionFetchError) -> HTTPException:
    return HTTPException(status_code=500, detail=f"Failed to fetch transactions: {e.detail}")


@router.get("/transactions", response_model=TransactionListResponse)
async def get_all_transactions(
    query: TransactionQuery = Depends(transaction_query),
    db: AsyncSession = Depends(get_db),
):
    """Paginated transactions across all schools."""
    service = ReportingService(db)
    try:
        return await service.list_all(query)
    except TransactionFetchError as e:
        raise _fetch_failed(e)


@router.get("/transactions/school/{school_id}", response_model=TransactionListResponse)
async def get_transactions_by_school(
    school_id: str,
    query: TransactionQuery = Depends(transaction_query),
    db: AsyncSession = Depends(get_db),
):
    service = ReportingService(db)
    try:
        return await service.list_by_school(school_id, query)
    except TransactionFetchError as e:
        raise _fetch_failed(e)


@router.get("/transaction-status/{custom_order_id}", response_model=TransactionStatusResponse)
async def get_transaction_status(
    custom_order_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Status of a payment by its custom order id."""
    service = ReportingService(db)
    try:
        return await service.get_status(custom_order_id)
    except TransactionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransactionFetchError as e:
        raise _fetch_failed(e)


@router.get("/schools", response_model=list[SchoolResponse])
async def get_schools(db: AsyncSession = Depends(get_db)):
    service = ReportingService(db)
    try:
        return await service.list_schools()
    except TransactionFetchError as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch schools: {e.detail}")
