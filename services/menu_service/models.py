from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Numeric, String, Text

from shared.config.database import Base, new_id, utcnow


class MenuItem(Base):
    __tablename__ = "menu_items"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_menu_items_price_non_negative"),)

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    currency = Column(String(8), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)  # authoritative, never taken from a checkout request
    available = Column(Boolean, nullable=False, default=True)
    image = Column(String(1024), nullable=True)  # URL returned by the image store
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
