from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String

from storefront.database import Base

PAYMENT_UNPAID = "unpaid"
PAYMENT_PAID = "paid"

STATUS_PENDING = "pending"
STATUS_PROCESSING = "processing"
STATUS_SHIPPED = "shipped"
STATUS_DELIVERED = "delivered"
STATUS_CANCELLED = "cancelled"


def utcnow():
    return datetime.now(timezone.utc)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reference = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, nullable=False)
    user_id = Column(String, index=True, nullable=True)       # absent for guest checkout
    items = Column(JSON, nullable=False, default=list)        # [{variant_id, title, quantity, price}]
    total_amount = Column(Float, nullable=False, default=0.0)  # naira
    payment_status = Column(String, nullable=False, default=PAYMENT_UNPAID)  # unpaid | paid
    status = Column(String, nullable=False, default=STATUS_PENDING)
    payment_details = Column(JSON, nullable=True)
    shopify_order_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, unique=True, index=True, nullable=False)
    items = Column(JSON, nullable=False, default=list)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
