"""Materials catalog model."""
from sqlalchemy import Column, Integer, String, Float, Text, DateTime
from sqlalchemy.sql import func
from estimator.database import Base


class MaterialCatalogEntry(Base):
    """Reference material used to seed new line items."""

    __tablename__ = 'materials_library'

    id = Column(Integer, primary_key=True, autoincrement=True)
    category = Column(String(100), nullable=True)
    item_name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    unit = Column(String(16), nullable=False, default='EA')
    material_cost = Column(Float, nullable=False, default=0)
    typical_labor_hours = Column(Float, nullable=False, default=0)
    manufacturer = Column(String(200), nullable=True)
    part_number = Column(String(100), nullable=True)
    date_added = Column(DateTime, nullable=False, server_default=func.now())
    last_updated = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<MaterialCatalogEntry(id={self.id}, item='{self.item_name}', cost={self.material_cost})>"

    def to_dict(self):
        return {
            'id': self.id,
            'category': self.category,
            'item_name': self.item_name,
            'description': self.description,
            'unit': self.unit,
            'material_cost': self.material_cost,
            'typical_labor_hours': self.typical_labor_hours,
            'manufacturer': self.manufacturer,
            'part_number': self.part_number,
        }
