from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Text, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.db.base import Base
from storefront.models._ids import new_id


class Product(Base):
    """
    Stock item. ``quantity`` changes only through sale commits or direct edits.
    A product referenced by any sale line cannot be deleted.
    """
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),)

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False, index=True)
    cost_price = Column(Numeric(12, 2), nullable=False)
    selling_price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)
    image_url = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    category = relationship("Category", backref="products")
