from pydantic import BaseModel

from .models import PaymentMethod, PaymentStatus

class PaymentResponse(BaseModel):
    id: str
    order_id: str
    method: PaymentMethod
    status: PaymentStatus
    amount: float

    class Config:
        from_attributes = True
