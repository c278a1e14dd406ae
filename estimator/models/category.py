"""Category model."""
from sqlalchemy import Column, Integer, String
from estimator.database import Base


class Category(Base):
    """Line item category."""

    __tablename__ = 'categories'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    sort_order = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}')>"
