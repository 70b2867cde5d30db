from sqlalchemy import Column, String, Numeric, DateTime
from sqlalchemy.sql import func
from storefront.db.base import Base
from storefront.models._ids import new_id


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    phone = Column(String(64), nullable=False)
    email = Column(String(255), nullable=True)
    # Informational only; never enforced against sales or payments.
    credit_limit = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
