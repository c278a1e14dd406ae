"""LineItem model for estimate line items."""
from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey
from sqlalchemy.orm import relationship
from estimator.database import Base


class LineItem(Base):
    """
    Estimate Line Item.

    One priced unit of work. Rows without a description are never stored;
    the editing session keeps those as placeholders.
    """

    __tablename__ = 'line_items'

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    sort_order = Column(Integer, nullable=False, default=0)
    category = Column(String(100), nullable=True)
    description = Column(Text, nullable=False)
    quantity = Column(Float, nullable=False, default=1)
    unit = Column(String(16), nullable=False, default='EA')
    material_cost = Column(Float, nullable=False, default=0)
    material_markup_pct = Column(Float, nullable=False, default=0)
    labor_hours = Column(Float, nullable=False, default=0)
    labor_rate = Column(Float, nullable=False, default=75)
    labor_markup_pct = Column(Float, nullable=False, default=0)
    overhead_pct = Column(Float, nullable=False, default=10)
    profit_pct = Column(Float, nullable=False, default=10)
    spec_url = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    project = relationship('Project', back_populates='line_items')

    FIELDS = (
        'category', 'description', 'quantity', 'unit',
        'material_cost', 'material_markup_pct',
        'labor_hours', 'labor_rate', 'labor_markup_pct',
        'overhead_pct', 'profit_pct', 'spec_url', 'notes', 'sort_order',
    )

    def __repr__(self):
        return f"<LineItem(id={self.id}, project_id={self.project_id}, description='{self.description}', qty={self.quantity})>"

    def to_dict(self):
        data = {'id': self.id, 'project_id': self.project_id}
        for name in self.FIELDS:
            data[name] = getattr(self, name)
        return data
