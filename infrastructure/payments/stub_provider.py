from threading import Lock
from typing import Dict
from uuid import uuid4

from core.errors import PaymentGatewayError
from core.services.payment_provider import PaymentProvider, Order


class StubPaymentProvider(PaymentProvider):
    """Класс-заглушка шлюза: заказы хранятся в памяти, оплату имитирует mark_paid"""
    def __init__(self):
        self._orders: Dict[str, Order] = {}
        self._lock = Lock()

    def create_order(self, amount_minor: int, currency: str, receipt: str) -> Order:
        order = {
            "id": f"order_stub_{uuid4().hex[:14]}",
            "entity": "order",
            "amount": int(amount_minor),
            "amount_paid": 0,
            "amount_due": int(amount_minor),
            "currency": currency,
            "receipt": receipt,
            "status": "created",
            "attempts": 0,
        }
        with self._lock:
            self._orders[order["id"]] = order
        return dict(order)

    def fetch_order(self, order_id: str) -> Order:
        with self._lock:
            order = self._orders.get(order_id)
        if order is None:
            raise PaymentGatewayError(f"Order {order_id} not found")
        return dict(order)

    def mark_paid(self, order_id: str) -> Order:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise PaymentGatewayError(f"Order {order_id} not found")
            order.update(status="paid", amount_paid=order["amount"], amount_due=0, attempts=order["attempts"] + 1)
            return dict(order)
