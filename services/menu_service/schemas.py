from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

# Largest value a Numeric(10, 2) column holds
MAX_PRICE = 99_999_999.99


class MenuItemFields(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    currency: str = Field(min_length=1, max_length=8)
    price: float = Field(gt=0, le=MAX_PRICE, allow_inf_nan=False)


class MenuItemCreate(MenuItemFields):
    image: str = Field(min_length=1)  # data:<mime>;base64,<payload>


class MenuItemUpdate(MenuItemFields):
    image: Optional[str] = None


class AvailabilityUpdate(BaseModel):
    available: bool


class MenuItemResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    currency: str
    price: float
    available: bool
    image: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
