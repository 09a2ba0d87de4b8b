"""
Checkout and order lifecycle.

``OrderService.create_order`` turns a customer's checkout request into a
priced, persisted order. Prices are always read from the catalog, every
referenced item must exist and be available, and the order, its items and
its payment are committed as one unit.
"""
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Mapping, Optional, Sequence

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from services.menu_service.models import MenuItem
from services.menu_service.repository import MenuItemRepository
from services.payment_service.models import Payment, PaymentMethod, PaymentStatus
from services.payment_service.repository import PaymentRepository
from services.user_service.repository import UserRepository
from shared.config import settings
from shared.errors import Conflict, Internal, NotFound, ServiceError, Unauthenticated
from shared.money import to_money
from shared.observability import (
    restaurant_checkout_duration_seconds,
    restaurant_checkout_total,
    restaurant_order_status_changes_total,
)
from shared.security.principal import Principal

from .models import Order, OrderItem, OrderStatus
from .repository import OrderRepository
from .schemas import OrderCreate
from .status_machine import INITIAL_STATUS, ensure_transition

logger = structlog.get_logger(__name__)

SERVICE_TAX_MULTIPLIER = Decimal("1.10")


@dataclass
class PriceBucket:
    """Running quantity and pre-tax subtotal for one distinct menu item."""
    menu_item_id: str
    quantity: int = 0
    subtotal: Decimal = Decimal("0.00")


def build_price_buckets(
    requested_ids: Sequence[str], menu_items: Mapping[str, MenuItem]
) -> Dict[str, PriceBucket]:
    """One bucket per distinct id, in first-requested order; each occurrence adds one unit."""
    buckets: Dict[str, PriceBucket] = {}
    for item_id in requested_ids:
        bucket = buckets.setdefault(item_id, PriceBucket(menu_item_id=item_id))
        bucket.quantity += 1
        bucket.subtotal += to_money(menu_items[item_id].price)
    return buckets


def apply_service_tax(subtotal: Decimal) -> Decimal:
    return to_money(subtotal * SERVICE_TAX_MULTIPLIER)


def payment_method_from_request(value: str) -> PaymentMethod:
    # "credit-card" -> CREDIT_CARD
    return PaymentMethod(value.upper().replace("-", "_"))


class OrderService:

    @staticmethod
    async def _resolve_menu_items(db: AsyncSession, requested_ids: Sequence[str]) -> Dict[str, MenuItem]:
        distinct_ids = list(dict.fromkeys(requested_ids))
        rows = await MenuItemRepository.get_by_ids(db, distinct_ids, lock=True)
        resolved = {row.id: row for row in rows}

        missing = [item_id for item_id in distinct_ids if item_id not in resolved]
        if missing:
            raise NotFound(f"Menu items not found: {', '.join(missing)}")

        unavailable = [item_id for item_id in distinct_ids if not resolved[item_id].available]
        if unavailable:
            names = ", ".join(resolved[item_id].name for item_id in unavailable)
            raise Conflict(f"Menu items not available: {names}")

        return resolved

    @staticmethod
    async def create_order(db: AsyncSession, principal: Principal, data: OrderCreate) -> Order:
        started = time.perf_counter()
        log = logger.bind(user_id=principal.id, requested_items=len(data.menu_item_ids))

        try:
            # A token can outlive the account it was issued for
            if await UserRepository.get_by_id(db, principal.id) is None:
                raise Unauthenticated("Account no longer exists")

            # 1. Resolve every referenced item before any write
            menu_items = await OrderService._resolve_menu_items(db, data.menu_item_ids)

            # 2. Price from the catalog rows, never from the request
            buckets = build_price_buckets(data.menu_item_ids, menu_items)

            # 3. Totals
            subtotal = sum((bucket.subtotal for bucket in buckets.values()), Decimal("0.00"))
            total = apply_service_tax(subtotal)

            # 4. Stage order, items and payment, then commit once
            order = Order(
                user_id=principal.id,
                status=INITIAL_STATUS,
                address=data.address,
                phone=data.phone,
                total=total,
                items=[
                    OrderItem(
                        menu_item_id=bucket.menu_item_id,
                        quantity=bucket.quantity,
                        subtotal=bucket.subtotal,
                    )
                    for bucket in buckets.values()
                ],
            )
            PaymentRepository.stage_payment(
                db,
                Payment(
                    order=order,
                    method=payment_method_from_request(data.payment_method),
                    status=PaymentStatus.PENDING,
                    amount=total,
                ),
            )
            order = await OrderRepository.create_order(db, order)

        except ServiceError as exc:
            await db.rollback()
            restaurant_checkout_total.labels(status="failed").inc()
            log.info("checkout_rejected", kind=exc.kind, detail=exc.message)
            raise
        except SQLAlchemyError as exc:
            await db.rollback()
            restaurant_checkout_total.labels(status="failed").inc()
            log.error("checkout_failed", error=str(exc))
            raise Internal("Failed to create order") from exc
        finally:
            restaurant_checkout_duration_seconds.observe(time.perf_counter() - started)

        restaurant_checkout_total.labels(status="success").inc()
        log.info("checkout_completed", order_id=order.id, total=str(order.total), lines=len(buckets))
        return order

    @staticmethod
    async def list_orders(db: AsyncSession) -> Sequence[Order]:
        return await OrderRepository.list_orders(db)

    @staticmethod
    async def get_order_details(db: AsyncSession, order_id: str) -> Optional[Order]:
        return await OrderRepository.get_order(db, order_id)

    @staticmethod
    async def update_status(db: AsyncSession, order_id: str, new_status: OrderStatus) -> Order:
        order = await OrderRepository.get_order(db, order_id, for_update=True)
        if not order:
            await db.rollback()
            raise NotFound(f"Order {order_id} not found")

        previous = order.status
        if settings.ORDER_STATUS_STRICT:
            try:
                ensure_transition(previous, new_status)
            except ServiceError:
                await db.rollback()
                raise

        order.status = new_status
        try:
            order = await OrderRepository.update_order(db, order)
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("order_status_update_failed", order_id=order_id, error=str(exc))
            raise Internal("Failed to update order status") from exc

        restaurant_order_status_changes_total.labels(
            from_status=previous.value, to_status=new_status.value
        ).inc()
        logger.info("order_status_changed", order_id=order_id, from_status=previous.value, to_status=new_status.value)
        return order
