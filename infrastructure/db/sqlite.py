import sqlite3
from datetime import datetime, timezone
from typing import Optional, List
from pathlib import Path

from core.entities.plan import Plan
from core.entities.user import User
from core.entities.transaction import Transaction
from core.errors import ConflictError, NotFoundError
from core.repositories.user_repository import UserRepository
from core.repositories.transaction_repository import TransactionRepository


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def connect(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str) -> None:
    if db_path != ":memory:" and not db_path.startswith("file:"):
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, check_same_thread=False)
    try:
        cur = conn.cursor()

        # password_hash допускает NULL: битые записи ловим при логине
        cur.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT,
            credit_balance INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );
        """)

        # user_id без FOREIGN KEY: пользователи не удаляются
        cur.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            plan TEXT NOT NULL,
            amount INTEGER NOT NULL,
            credits INTEGER NOT NULL,
            paid INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );
        """)
        cur.execute("CREATE INDEX IF NOT EXISTS ix_transactions_user_id ON transactions (user_id);")
        conn.commit()
    finally:
        conn.close()


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        credit_balance=int(row["credit_balance"]),
        created_at=row["created_at"],
    )


def _row_to_tx(row: sqlite3.Row) -> Transaction:
    return Transaction(
        id=row["id"],
        user_id=row["user_id"],
        plan=row["plan"],
        amount=int(row["amount"]),
        credits=int(row["credits"]),
        paid=bool(row["paid"]),
        created_at=row["created_at"],
    )


class SQLiteUserRepository(UserRepository):
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    def create_user(self, name: str, email: str, password_hash: str, credit_balance: int = 0) -> User:
        created_at = _utcnow()
        cur = self.conn.cursor()
        try:
            cur.execute(
                "INSERT INTO users (name, email, password_hash, credit_balance, created_at) VALUES (?, ?, ?, ?, ?)",
                (name, email, password_hash, int(credit_balance), created_at),
            )
        except sqlite3.IntegrityError:
            self.conn.rollback()
            raise ConflictError("User already exists")
        self.conn.commit()
        user_id = cur.lastrowid
        return User(id=user_id, name=name, email=email, password_hash=password_hash,
                    credit_balance=int(credit_balance), created_at=created_at)

    def get_by_email(self, email: str) -> Optional[User]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM users WHERE email = ?", (email,))
        row = cur.fetchone()
        return _row_to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM users WHERE id = ?", (user_id,))
        row = cur.fetchone()
        return _row_to_user(row) if row else None


class SQLiteTransactionRepository(TransactionRepository):
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    def create_transaction(self, user_id: int, plan: Plan) -> Transaction:
        created_at = _utcnow()
        cur = self.conn.cursor()
        cur.execute(
            "INSERT INTO transactions (user_id, plan, amount, credits, paid, created_at) VALUES (?, ?, ?, ?, 0, ?)",
            (int(user_id), plan.name, int(plan.amount), int(plan.credits), created_at),
        )
        self.conn.commit()
        return Transaction(id=cur.lastrowid, user_id=int(user_id), plan=plan.name, amount=plan.amount,
                           credits=plan.credits, paid=False, created_at=created_at)

    def get_by_id(self, transaction_id: int) -> Optional[Transaction]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM transactions WHERE id = ?", (transaction_id,))
        row = cur.fetchone()
        return _row_to_tx(row) if row else None

    def settle(self, transaction_id: int) -> Optional[User]:
        # Флаг paid и баланс меняются в одной транзакции sqlite.
        # UPDATE ... AND paid = 0 - точка фиксации: второй вызов ничего не обновит.
        with self.conn:
            cur = self.conn.cursor()
            cur.execute(
                "UPDATE transactions SET paid = 1 WHERE id = ? AND paid = 0",
                (int(transaction_id),),
            )
            if cur.rowcount == 0:
                return None
            cur.execute(
                """
                UPDATE users
                SET credit_balance = credit_balance + (SELECT credits FROM transactions WHERE id = ?)
                WHERE id = (SELECT user_id FROM transactions WHERE id = ?)
                """,
                (int(transaction_id), int(transaction_id)),
            )
            if cur.rowcount == 0:
                # исключение внутри with откатывает и флаг paid
                raise NotFoundError("User not found")
            cur.execute(
                "SELECT u.* FROM users u JOIN transactions t ON t.user_id = u.id WHERE t.id = ?",
                (int(transaction_id),),
            )
            row = cur.fetchone()
        return _row_to_user(row)

    def list_for_user(self, user_id: int, limit: int = 100, offset: int = 0) -> List[Transaction]:
        cur = self.conn.cursor()
        cur.execute(
            "SELECT * FROM transactions WHERE user_id = ? ORDER BY id DESC LIMIT ? OFFSET ?",
            (int(user_id), int(limit), int(offset)),
        )
        rows = cur.fetchall()
        return [_row_to_tx(r) for r in rows]
