import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, field_validator

from config.settings import settings
from core.entities.user import User
from core.errors import ForbiddenError
from core.use_cases.user_use_cases import register_user, authenticate_user, get_credits
from infrastructure.db.sqlite import SQLiteUserRepository
from infrastructure.web.dependencies import get_user_repo, get_current_user, issue_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["user"])


# Поля опциональные: пропуски ловит use case и отвечает "Missing details"
class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class CreditsRequest(BaseModel):
    userId: Optional[int] = None

class UserSummary(BaseModel):
    name: str

class AuthResponse(BaseModel):
    success: bool = True
    token: str
    user: UserSummary

class CreditsResponse(BaseModel):
    success: bool = True
    credits: int
    user: UserSummary

class ProfileItem(BaseModel):
    id: int
    name: str
    email: EmailStr
    credits: int
    created_at: str

class ProfileResponse(BaseModel):
    success: bool = True
    user: ProfileItem


def ensure_acting_user(body_user_id: Optional[int], current_user: User) -> int:
    """Действуем только от имени владельца токена; userId из тела допустим лишь совпадающий"""
    if body_user_id is not None and body_user_id != current_user.id:
        logger.warning("User %s sent foreign userId %s", current_user.id, body_user_id)
        raise ForbiddenError("userId does not match the authenticated user")
    return current_user.id


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(payload: RegisterRequest, repo: SQLiteUserRepository = Depends(get_user_repo)):
    user = register_user(
        repo,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        starting_credits=settings.DEFAULT_CREDIT_BALANCE,
    )
    return AuthResponse(token=issue_token(user), user=UserSummary(name=user.name))

@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, repo: SQLiteUserRepository = Depends(get_user_repo)):
    user = authenticate_user(repo, email=payload.email, password=payload.password)
    logger.info("User %s logged in", user.id)
    return AuthResponse(token=issue_token(user), user=UserSummary(name=user.name))

def _credits_response(repo: SQLiteUserRepository, user_id: int) -> CreditsResponse:
    user = get_credits(repo, user_id)
    return CreditsResponse(credits=user.credit_balance, user=UserSummary(name=user.name))

@router.get("/credits", response_model=CreditsResponse)
def credits(
    current_user: User = Depends(get_current_user),
    repo: SQLiteUserRepository = Depends(get_user_repo),
):
    return _credits_response(repo, current_user.id)

@router.post("/credits", response_model=CreditsResponse)
def credits_legacy(
    payload: Optional[CreditsRequest] = None,
    current_user: User = Depends(get_current_user),
    repo: SQLiteUserRepository = Depends(get_user_repo),
):
    user_id = ensure_acting_user(payload.userId if payload else None, current_user)
    return _credits_response(repo, user_id)

@router.get("/me", response_model=ProfileResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    return ProfileResponse(user=ProfileItem(
        id=current_user.id,
        name=current_user.name,
        email=current_user.email,
        credits=current_user.credit_balance,
        created_at=current_user.created_at,
    ))
