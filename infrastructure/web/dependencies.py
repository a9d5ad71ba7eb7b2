import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict

from fastapi import Depends, HTTPException, Header, Request, status
from jose import jwt, JWTError

from config.settings import settings
from core.entities.plan import Plan
from core.entities.user import User
from core.services.payment_provider import PaymentProvider
from infrastructure.db.sqlite import connect, SQLiteUserRepository, SQLiteTransactionRepository


def get_db():
    conn = connect(settings.DB_PATH)
    try:
        yield conn
    finally:
        conn.close()

def get_user_repo(conn: sqlite3.Connection = Depends(get_db)) -> SQLiteUserRepository:
    return SQLiteUserRepository(conn)

def get_transaction_repo(conn: sqlite3.Connection = Depends(get_db)) -> SQLiteTransactionRepository:
    return SQLiteTransactionRepository(conn)

# шлюз и тарифы собираются один раз на старте (см. main.py) и лежат в app.state
def get_payment_provider(request: Request) -> PaymentProvider:
    return request.app.state.payment_provider

def get_plan_table(request: Request) -> Dict[str, Plan]:
    return request.app.state.plans

# jwt авторизация
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt

def issue_token(user: User) -> str:
    # sub - стандартный claim, его читает get_current_user; userId - для клиентов
    return create_access_token({"sub": str(user.id), "userId": user.id})

def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return authorization.split(" ", 1)[1]

async def get_current_user(
    token: str = Depends(get_bearer_token),
    repo: SQLiteUserRepository = Depends(get_user_repo),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        sub = payload.get("sub")
        if sub is None:
            raise credentials_exception
        user_id = int(sub)
    except (JWTError, ValueError):
        raise credentials_exception

    user = repo.get_by_id(user_id)
    if user is None:
        raise credentials_exception
    return user
