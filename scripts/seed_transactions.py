#!/usr/bin/env python3
"""
Database seeding script for the school payments dashboard.

Creates sample orders, each with a payment status record, so the
transaction reports have something to show during development.

Usage:
    python -m scripts.seed_transactions [count] [school_id]
    # or
    python scripts/seed_transactions.py 50 school-1
"""

import asyncio
import random
import sys
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

# Add the project root to the path so we can import app modules
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from app.config import settings
from app.database import Base
from app.models import Order, OrderStatus, User

NUM_TRANSACTIONS = 20
DEFAULT_SCHOOL_ID = "default-school-001"

STATUSES = ["PENDING", "COMPLETED", "FAILED", "REFUNDED"]
PAYMENT_MODES = ["CREDIT_CARD", "DEBIT_CARD", "UPI", "NET_BANKING", "WALLET"]


def random_amount() -> Decimal:
    """Random amount between 500 and 10500."""
    return Decimal(random.randint(500, 10500))


def build_records(count: int, school_id: str, now: datetime) -> list[tuple[Order, OrderStatus]]:
    """Build order/status pairs dated within the last 30 days."""
    records = []
    for _ in range(count):
        created_at = now - timedelta(days=random.randint(0, 29), minutes=random.randint(0, 1439))
        order = Order(
            id=str(uuid.uuid4()),
            school_id=school_id,
            trustee_id=str(uuid.uuid4()),
            gateway_name="Test Payment Gateway",
            created_at=created_at,
            updated_at=created_at,
        )

        status = random.choice(STATUSES)
        order_amount = random_amount()
        # Only settled payments carry a transaction amount
        transaction_amount = order_amount if status in ("COMPLETED", "REFUNDED") else Decimal("0")

        order_status = OrderStatus(
            collect_id=order.id,
            order_amount=order_amount,
            transaction_amount=transaction_amount,
            payment_mode=random.choice(PAYMENT_MODES),
            payment_details="Sample payment",
            bank_reference=f"BANK-{uuid.uuid4().hex[:8].upper()}",
            status=status,
            created_at=created_at,
            updated_at=created_at,
        )
        records.append((order, order_status))
    return records


async def resolve_school_id(session: AsyncSession, requested: str | None) -> str:
    """Use the requested school, else the first registered school, else a default."""
    if requested:
        return requested
    result = await session.execute(select(User).where(User.role == "school").limit(1))
    school = result.scalar_one_or_none()
    if school and school.school_id:
        return school.school_id
    return DEFAULT_SCHOOL_ID


async def seed_database(count: int = NUM_TRANSACTIONS, school_id: str | None = None):
    """Main function to seed the database with sample transactions."""
    print("=" * 60)
    print("Transaction Seeding Script")
    print("=" * 60)
    print()

    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    print("Initializing database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("Database tables ready.")
    print()

    async with async_session_maker() as session:
        school_id = await resolve_school_id(session, school_id)
        print(f"Using school ID: {school_id}")

        records = build_records(count, school_id, datetime.now(timezone.utc))
        for order, order_status in records:
            session.add(order)
            session.add(order_status)
        await session.commit()

    print(f"Inserted {len(records)} orders with payment statuses.")
    print()

    by_status: dict[str, int] = {}
    for _, order_status in records:
        by_status[order_status.status] = by_status.get(order_status.status, 0) + 1
    print(f"{'Status':<12} {'Count':<8}")
    print("-" * 20)
    for status in STATUSES:
        print(f"{status:<12} {by_status.get(status, 0):<8}")
    print()
    print("Database seeding completed successfully!")

    await engine.dispose()


if __name__ == "__main__":
    arg_count = int(sys.argv[1]) if len(sys.argv) > 1 else NUM_TRANSACTIONS
    arg_school = sys.argv[2] if len(sys.argv) > 2 else None
    asyncio.run(seed_database(arg_count, arg_school))
