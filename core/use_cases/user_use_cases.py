import logging
from passlib.context import CryptContext
from core.entities.user import User
from core.errors import ValidationError, ConflictError, NotFoundError, AuthError, IntegrityError
from core.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)

def _normalize_email(email: str) -> str:
    return email.strip().lower()

def register_user(repo: UserRepository, name: str, email: str, password: str, starting_credits: int = 0) -> User:
    name = (name or "").strip()
    email = _normalize_email(email or "")
    if not name or not email or not password:
        raise ValidationError("Missing details")
    if repo.get_by_email(email) is not None:
        raise ConflictError("User already exists")
    password_hash = get_password_hash(password)
    # гонку двух регистраций ловит UNIQUE в репозитории (тоже ConflictError)
    user = repo.create_user(name=name, email=email, password_hash=password_hash,
                            credit_balance=starting_credits)
    logger.info("Registered user %s", user.id)
    return user

def authenticate_user(repo: UserRepository, email: str, password: str) -> User:
    if not email or not password:
        raise ValidationError("Email and password are required")
    user = repo.get_by_email(_normalize_email(email))
    if user is None:
        raise NotFoundError("User does not exist")
    if not user.password_hash:
        logger.error("User %s has no password hash stored", user.id)
        raise IntegrityError("No password found for this user")
    if not verify_password(password, user.password_hash):
        raise AuthError("Invalid credentials")
    return user

def get_credits(repo: UserRepository, user_id: int) -> User:
    user = repo.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user
