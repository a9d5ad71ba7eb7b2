from abc import ABC, abstractmethod
from typing import Optional, List
from core.entities.plan import Plan
from core.entities.transaction import Transaction
from core.entities.user import User


class TransactionRepository(ABC):
    @abstractmethod
    def create_transaction(self, user_id: int, plan: Plan) -> Transaction:...

    @abstractmethod
    def get_by_id(self, transaction_id: int) -> Optional[Transaction]:...

    @abstractmethod
    def settle(self, transaction_id: int) -> Optional[User]:
        """Атомарно: paid 0 -> 1 и начисление кредитов владельцу.

        Возвращает обновлённого пользователя или None, если транзакция уже оплачена.
        """

    @abstractmethod
    def list_for_user(self, user_id: int, limit: int = 100, offset: int = 0) -> List[Transaction]:...
