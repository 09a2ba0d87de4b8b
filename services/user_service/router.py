from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.config.database import get_db
from shared.security import Principal, limiter
from shared.security.dependencies import require_admin, require_authenticated, require_public

from .schemas import (
    AuthenticatedUser,
    RoleUpdate,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)
from .service import UserService

public_router = APIRouter(
    prefix="/auth", tags=["Authentication"], dependencies=[Depends(require_public)]
)
router = APIRouter(
    prefix="/admin/users", tags=["User administration"], dependencies=[Depends(require_admin)]
)


@public_router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new customer account",
)
@limiter.limit(settings.RATE_LIMIT_AUTH)
async def register(request: Request, payload: UserCreate, db: AsyncSession = Depends(get_db)):
    return await UserService.register(db, payload)


@public_router.post(
    "/authenticate",
    response_model=Optional[AuthenticatedUser],
    summary="Check credentials and return the principal subset, or null",
)
@limiter.limit(settings.RATE_LIMIT_AUTH)
async def authenticate(request: Request, payload: UserLogin, db: AsyncSession = Depends(get_db)):
    return await UserService.authenticate(db, payload.email, payload.password)


@public_router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and receive a JWT access token",
)
@limiter.limit(settings.RATE_LIMIT_AUTH)
async def login(request: Request, payload: UserLogin, db: AsyncSession = Depends(get_db)):
    return await UserService.login(db, payload)


@public_router.get(
    "/me",
    response_model=UserResponse,
    summary="Get the current authenticated user's profile",
)
async def get_me(
    principal: Principal = Depends(require_authenticated),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.get_user_by_id(db, principal.id)


@router.get("/", response_model=list[UserResponse])
async def list_users(db: AsyncSession = Depends(get_db)):
    return await UserService.list_users(db)


@router.patch("/{user_id}/role", response_model=UserResponse)
async def change_user_role(user_id: str, payload: RoleUpdate, db: AsyncSession = Depends(get_db)):
    return await UserService.change_role(db, user_id, payload.new_role)


@router.delete("/{user_id}", response_model=UserResponse)
async def delete_user(user_id: str, db: AsyncSession = Depends(get_db)):
    return await UserService.delete_user(db, user_id)
