"""
User accounts: registration, credential checks, token issuance and the
back-office role management.
"""
from typing import Optional, Sequence

import structlog
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import Conflict, Forbidden, Internal, NotFound, Unauthenticated
from shared.security.jwt_handler import create_access_token
from shared.security.principal import Role

from .models import User
from .repository import UserRepository
from .schemas import AuthenticatedUser, TokenResponse, UserCreate, UserLogin

logger = structlog.get_logger(__name__)

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class UserService:

    @staticmethod
    def _hash_password(password: str) -> str:
        return _pwd_context.hash(password)

    @staticmethod
    def _verify_password(plain: str, hashed: str) -> bool:
        return _pwd_context.verify(plain, hashed)

    @staticmethod
    async def register(db: AsyncSession, data: UserCreate) -> User:
        existing = await UserRepository.get_by_email(db, data.email)
        if existing:
            raise Conflict("Email already registered")

        user = User(
            name=data.name,
            email=data.email,
            hashed_password=UserService._hash_password(data.password),
            role=Role.CLIENT,
        )
        try:
            user = await UserRepository.create(db, user)
        except IntegrityError as exc:
            # Lost a race with a concurrent registration of the same email
            await db.rollback()
            raise Conflict("Email already registered") from exc

        logger.info("user_registered", user_id=user.id)
        return user

    @staticmethod
    async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[AuthenticatedUser]:
        """Check credentials. Unknown email raises NotFound; a wrong password returns None."""
        user = await UserRepository.get_by_email(db, email)
        if not user:
            raise NotFound("User not found.")

        if not UserService._verify_password(password, user.hashed_password):
            return None

        return AuthenticatedUser.model_validate(user)

    @staticmethod
    async def login(db: AsyncSession, data: UserLogin) -> TokenResponse:
        try:
            authenticated = await UserService.authenticate(db, data.email, data.password)
        except NotFound:
            authenticated = None

        if authenticated is None:
            raise Unauthenticated("Incorrect email or password")

        user = await UserRepository.get_by_id(db, authenticated.id)
        if not user.is_active:
            raise Forbidden("Account is disabled")

        token = create_access_token(data={"sub": user.id, "role": user.role.value})
        logger.info("user_logged_in", user_id=user.id)
        return TokenResponse(access_token=token)

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: str) -> User:
        user = await UserRepository.get_by_id(db, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    @staticmethod
    async def list_users(db: AsyncSession) -> Sequence[User]:
        return await UserRepository.list_all(db)

    @staticmethod
    async def change_role(db: AsyncSession, user_id: str, new_role: Role) -> User:
        user = await UserService.get_user_by_id(db, user_id)
        previous = user.role
        user.role = new_role
        try:
            user = await UserRepository.update(db, user)
        except SQLAlchemyError as exc:
            await db.rollback()
            raise Internal("Failed to change user role") from exc

        logger.info("user_role_changed", user_id=user_id, from_role=previous.value, to_role=new_role.value)
        return user

    @staticmethod
    async def delete_user(db: AsyncSession, user_id: str) -> User:
        user = await UserService.get_user_by_id(db, user_id)
        try:
            await UserRepository.delete(db, user)
        except IntegrityError as exc:
            await db.rollback()
            raise Conflict("User still has orders on record") from exc
        except SQLAlchemyError as exc:
            await db.rollback()
            raise Internal("Failed to delete user") from exc

        logger.info("user_deleted", user_id=user_id)
        return user
