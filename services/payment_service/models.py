import enum

from sqlalchemy import Column, Enum, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from shared.config.database import Base, new_id


class PaymentMethod(str, enum.Enum):
    CREDIT_CARD = "CREDIT_CARD"
    CASH = "CASH"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class Payment(Base):
    """Recorded payment intent for an order; no gateway settlement happens here."""
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, unique=True)
    method = Column(Enum(PaymentMethod, name="payment_method"), nullable=False)
    status = Column(Enum(PaymentStatus, name="payment_status"), nullable=False, default=PaymentStatus.PENDING)
    amount = Column(Numeric(10, 2), nullable=False)  # always equals the order total

    order = relationship("Order", back_populates="payment")
