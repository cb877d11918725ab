from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from jose import jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.config.environment import JWT_SECRET_KEY, JWT_ALGORITHM, JWT_ACCESS_TOKEN_EXPIRE_MINUTES
from app.db.database import atomic
from app.domain.models import User
from app.repositories import UserRepository
from app.exceptions.auth import UserAlreadyExistsException, InvalidCredentialsException

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


class AuthService:
    def __init__(self, user_repository: UserRepository, session: Session):
        self.user_repository = user_repository
        self.session = session

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None) -> str:
        to_encode = data.copy()

        # Set expiration
        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(minutes=JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

        to_encode.update({"exp": expire})

        return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)

    def register_user(self, username: str, email: str, password: str, is_admin: bool = False) -> User:
        # check if username exists
        if self.user_repository.get_by_username(username):
            raise UserAlreadyExistsException("Username already registered")

        # check if email exists
        if self.user_repository.get_by_email(email):
            raise UserAlreadyExistsException("Email already registered")

        user = User(
            username=username,
            email=email,
            hashed_password=get_password_hash(password),
            is_active=True,
            is_admin=is_admin,
            created_at=datetime.now()
        )

        with atomic(self.session):
            user = self.user_repository.create(user)
        logger.info(f"Registered user {user.id} ({username}){' as admin' if is_admin else ''}")
        return user

    def promote_to_admin(self, username: str) -> User:
        user = self.user_repository.get_by_username(username)
        if user is None:
            raise InvalidCredentialsException(f"User {username} does not exist")

        user.is_admin = True
        with atomic(self.session):
            user = self.user_repository.update(user)
        logger.info(f"User {user.id} ({username}) promoted to admin")
        return user

    def authenticate_user(self, username: str, password: str) -> tuple[User, str]:
        user = self.user_repository.get_by_username(username)

        if not user or not verify_password(password, user.hashed_password):
            raise InvalidCredentialsException("Invalid username or password")

        if not user.is_active:
            raise InvalidCredentialsException("Account is disabled")

        access_token = self._create_access_token_for_user(user)
        return user, access_token

    def _create_access_token_for_user(self, user: User) -> str:
        access_token_expires = timedelta(minutes=JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
        return self.create_access_token(
            data={"sub": str(user.id)},
            expires_delta=access_token_expires
        )
