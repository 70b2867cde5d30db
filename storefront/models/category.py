from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from storefront.db.base import Base
from storefront.models._ids import new_id


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
