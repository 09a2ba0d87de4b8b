from sqlalchemy.ext.asyncio import AsyncSession

from .models import Payment

class PaymentRepository:
    @staticmethod
    def stage_payment(db: AsyncSession, payment: Payment) -> Payment:
        """Add the payment to the caller's unit of work; the caller commits."""
        db.add(payment)
        return payment
