from typing import Optional, List, Dict, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from config.settings import settings
from core.entities.plan import Plan
from core.entities.user import User
from core.services.payment_provider import PaymentProvider
from core.use_cases.payment_use_cases import initiate_payment, verify_payment, list_transactions
from infrastructure.db.sqlite import SQLiteUserRepository, SQLiteTransactionRepository
from infrastructure.web.controllers.user_controller import ensure_acting_user
from infrastructure.web.dependencies import (
    get_user_repo, get_transaction_repo, get_current_user, get_payment_provider, get_plan_table,
)


router = APIRouter(prefix="/api/user", tags=["payment"])


class PayRequest(BaseModel):
    userId: Optional[int] = None
    planId: Optional[str] = None

class VerifyRequest(BaseModel):
    razorpay_order_id: Optional[str] = None

class OrderResponse(BaseModel):
    success: bool = True
    order: Dict[str, Any]

class MessageResponse(BaseModel):
    success: bool = True
    message: str

# DTO для транзакций
class TransactionItem(BaseModel):
    id: int
    plan: str
    amount: int
    credits: int
    paid: bool
    created_at: str

class TransactionsResponse(BaseModel):
    success: bool = True
    transactions: List[TransactionItem]


@router.post("/pay-razor", response_model=OrderResponse)
def pay_razor(
    payload: PayRequest,
    current_user: User = Depends(get_current_user),
    users: SQLiteUserRepository = Depends(get_user_repo),
    transactions: SQLiteTransactionRepository = Depends(get_transaction_repo),
    provider: PaymentProvider = Depends(get_payment_provider),
    plans: Dict[str, Plan] = Depends(get_plan_table),
):
    user_id = ensure_acting_user(payload.userId, current_user)
    order = initiate_payment(
        users=users,
        transactions=transactions,
        provider=provider,
        user_id=user_id,
        plan_id=payload.planId,
        plans=plans,
        currency=settings.CURRENCY,
    )
    return OrderResponse(order=order)

@router.post("/verify-razor", response_model=MessageResponse)
def verify_razor(
    payload: VerifyRequest,
    current_user: User = Depends(get_current_user),
    users: SQLiteUserRepository = Depends(get_user_repo),
    transactions: SQLiteTransactionRepository = Depends(get_transaction_repo),
    provider: PaymentProvider = Depends(get_payment_provider),
):
    verify_payment(
        users=users,
        transactions=transactions,
        provider=provider,
        order_id=payload.razorpay_order_id,
        acting_user_id=current_user.id,
    )
    return MessageResponse(message="Credits Added")

@router.get("/transactions", response_model=TransactionsResponse)
def get_transactions(
    limit: int = 50,
    offset: int = 0,
    current_user: User = Depends(get_current_user),
    transactions: SQLiteTransactionRepository = Depends(get_transaction_repo),
):
    txs = list_transactions(transactions, current_user.id, limit=limit, offset=offset)
    return TransactionsResponse(transactions=[
        TransactionItem(
            id=tx.id,
            plan=tx.plan,
            amount=tx.amount,
            credits=tx.credits,
            paid=tx.paid,
            created_at=tx.created_at,
        )
        for tx in txs
    ])
