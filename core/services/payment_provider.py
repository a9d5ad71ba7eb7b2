from abc import ABC, abstractmethod
from typing import Any, Dict

# Заказ в том виде, в котором его отдаёт шлюз: id, amount, currency, receipt, status, ...
Order = Dict[str, Any]


class PaymentProvider(ABC):
    @abstractmethod
    def create_order(self, amount_minor: int, currency: str, receipt: str) -> Order:...

    @abstractmethod
    def fetch_order(self, order_id: str) -> Order:...
