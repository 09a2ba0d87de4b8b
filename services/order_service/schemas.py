from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from services.menu_service.schemas import MenuItemResponse
from services.payment_service.schemas import PaymentResponse

from .models import OrderStatus


class OrderCreate(BaseModel):
    # repeated ids are repeated units of the same item
    menu_item_ids: List[str] = Field(min_length=1)
    address: str = Field(min_length=6)
    phone: str = Field(min_length=6)
    payment_method: Literal["credit-card", "cash"]


class StatusUpdate(BaseModel):
    status: OrderStatus


class OrderItemResponse(BaseModel):
    id: str
    menu_item_id: str
    quantity: int
    subtotal: float

    class Config:
        from_attributes = True


class OrderItemWithMenuItem(OrderItemResponse):
    menu_item: Optional[MenuItemResponse] = None


class OrderUser(BaseModel):
    name: str
    email: str

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: str
    user_id: str
    status: OrderStatus
    address: str
    phone: str
    total: float
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrderCreatedResponse(OrderResponse):
    items: List[OrderItemResponse]
    payment: PaymentResponse


class OrderSummary(OrderResponse):
    user: Optional[OrderUser] = None
    items: List[OrderItemWithMenuItem] = []


class OrderDetails(OrderSummary):
    payment: Optional[PaymentResponse] = None
