from fastapi import APIRouter

from app.api.routes import auth, payments, transactions

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])
api_router.include_router(transactions.router, prefix="/payments", tags=["Transactions"])
