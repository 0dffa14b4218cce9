"""Book model definitions."""

import uuid

from sqlalchemy import Column, String
from backend.database import Base


class Book(Base):
    """Represents a catalog entry."""
    __tablename__ = "books"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code = Column(String(50), unique=True, nullable=True)  # ISBN/SKU
    title = Column(String(255), nullable=False, index=True)
    author = Column(String(255), nullable=True)
    price = Column(String(50), nullable=True)
    category = Column(String(100), nullable=True, index=True)
