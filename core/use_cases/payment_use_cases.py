import logging
from typing import Dict, List, Optional

from core.entities.plan import Plan
from core.entities.transaction import Transaction
from core.entities.user import User
from core.errors import (
    ValidationError, NotFoundError, ForbiddenError, PaymentGatewayError,
    PaymentInitiationError, PaymentVerificationError,
)
from core.repositories.user_repository import UserRepository
from core.repositories.transaction_repository import TransactionRepository
from core.services.payment_provider import PaymentProvider, Order

logger = logging.getLogger(__name__)

PAID_STATUS = "paid"


def initiate_payment(
    users: UserRepository,
    transactions: TransactionRepository,
    provider: PaymentProvider,
    user_id: Optional[int],
    plan_id: Optional[str],
    plans: Dict[str, Plan],
    currency: str,
) -> Order:
    if not user_id or not plan_id:
        raise ValidationError("Missing details")
    user = users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    plan = plans.get(plan_id)
    if plan is None:
        raise ValidationError("Plan not found")

    tx = transactions.create_transaction(user.id, plan)
    try:
        order = provider.create_order(plan.amount_minor, currency, receipt=str(tx.id))
    except PaymentGatewayError as e:
        # транзакция остаётся pending, без отката
        logger.warning("Payment initiation failed for transaction %s: %s", tx.id, e)
        raise PaymentInitiationError("Payment initiation failed") from e

    logger.info("Created order %s for transaction %s (%s, user %s)", order.get("id"), tx.id, plan.name, user.id)
    return order


def _transaction_id_from_receipt(receipt) -> Optional[int]:
    try:
        return int(receipt)
    except (TypeError, ValueError):
        return None


def verify_payment(
    users: UserRepository,
    transactions: TransactionRepository,
    provider: PaymentProvider,
    order_id: Optional[str],
    acting_user_id: int,
) -> User:
    """Проверяет оплату заказа в шлюзе и один раз начисляет кредиты.

    Pending -> Settled только если статус заказа "paid", транзакция из receipt
    существует и ещё не оплачена. Всё остальное - PaymentVerificationError.
    """
    if not order_id:
        raise ValidationError("Missing details")
    try:
        order = provider.fetch_order(order_id)
    except PaymentGatewayError as e:
        logger.warning("Could not fetch order %s: %s", order_id, e)
        raise PaymentVerificationError("Payment verification failed") from e

    if order.get("status") != PAID_STATUS:
        logger.warning("Order %s has status %s", order_id, order.get("status"))
        raise PaymentVerificationError("Payment verification failed")

    tx_id = _transaction_id_from_receipt(order.get("receipt"))
    tx = transactions.get_by_id(tx_id) if tx_id is not None else None
    if tx is None or tx.paid:
        logger.warning("Order %s: transaction %s missing or already settled", order_id, tx_id)
        raise PaymentVerificationError("Payment already processed or failed")
    if tx.user_id != acting_user_id:
        raise ForbiddenError("Transaction belongs to another user")

    if users.get_by_id(tx.user_id) is None:
        raise NotFoundError("User not found")

    updated = transactions.settle(tx.id)
    if updated is None:
        # параллельный вызов успел раньше
        raise PaymentVerificationError("Payment already processed or failed")

    logger.info("Transaction %s settled: +%s credits for user %s", tx.id, tx.credits, updated.id)
    return updated


def list_transactions(transactions: TransactionRepository, user_id: int, limit: int = 50, offset: int = 0) -> List[Transaction]:
    limit = max(1, min(100, int(limit)))  # пагинация, не хотим возвращать много
    offset = max(0, int(offset))
    return transactions.list_for_user(user_id, limit=limit, offset=offset)
