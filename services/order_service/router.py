from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.config.database import get_db
from shared.security import Principal, limiter
from shared.security.dependencies import require_admin, require_authenticated

from .schemas import OrderCreate, OrderCreatedResponse, OrderDetails, OrderSummary, StatusUpdate
from .service import OrderService

# Checkout: any signed-in customer
checkout_router = APIRouter(prefix="/orders", tags=["Orders"])

# THIS PROTECTS THE ENTIRE BACK OFFICE ORDER VIEW
router = APIRouter(
    prefix="/admin/orders", tags=["Order administration"], dependencies=[Depends(require_admin)]
)


@checkout_router.post("/", response_model=OrderCreatedResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_CHECKOUT)
async def create_order(
    request: Request,
    payload: OrderCreate,
    principal: Principal = Depends(require_authenticated),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.create_order(db, principal, payload)


@router.get("/", response_model=list[OrderSummary])
async def list_orders(db: AsyncSession = Depends(get_db)):
    return await OrderService.list_orders(db)


@router.get("/{order_id}", response_model=Optional[OrderDetails])
async def get_order_details(order_id: str, db: AsyncSession = Depends(get_db)):
    return await OrderService.get_order_details(db, order_id)


@router.patch("/{order_id}/status", response_model=OrderDetails)
async def update_order_status(order_id: str, payload: StatusUpdate, db: AsyncSession = Depends(get_db)):
    return await OrderService.update_status(db, order_id, payload.status)
