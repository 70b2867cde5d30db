import enum

from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.db.base import Base
from storefront.models._ids import new_id


class PaymentMethod(str, enum.Enum):
    CASH = "Cash"
    TRANSFER = "Transfer"
    CARD = "Card"


class Sale(Base):
    """Sale header. Immutable once written; customer_id NULL means walk-in."""
    __tablename__ = "sales"

    id = Column(String(36), primary_key=True, default=new_id)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=True, index=True)
    total_amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(32), nullable=False, default=PaymentMethod.CASH.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    customer = relationship("Customer", backref="sales")
    items = relationship("SaleItem", back_populates="sale", order_by="SaleItem.position")


class SaleItem(Base):
    """One product line of a sale. unit_price is the selling price at sale time."""
    __tablename__ = "sale_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),)

    id = Column(String(36), primary_key=True, default=new_id)
    sale_id = Column(String(36), ForeignKey("sales.id"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    position = Column(Integer, nullable=False, default=0)  # cart order
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product", backref="sale_items")
