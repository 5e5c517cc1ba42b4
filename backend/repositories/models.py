"""
SQLAlchemy ORM models for persistence.
"""
from sqlalchemy import Column, DateTime, Integer, JSON, String

from db import Base


class CollectionORM(Base):
    __tablename__ = "collections"

    id = Column(String, primary_key=True, index=True)
    # Insertion counter; gives the store a stable iteration order.
    seq = Column(Integer, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    places = Column(JSON, nullable=False, default=list)
