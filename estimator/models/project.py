"""Project model."""
import enum
from sqlalchemy import Column, Integer, String, Float, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from estimator.database import Base


class ProjectStatus(enum.Enum):
    """Project status enum."""
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"


class Project(Base):
    """
    Estimate project.

    total_amount is a cached copy of the last computed grand total, kept for
    listings; it is rewritten after every line item change and never edited
    by hand.
    """

    __tablename__ = 'projects'

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_number = Column(String(32), unique=True, nullable=True)
    name = Column(String(200), nullable=False)
    client_name = Column(String(200), nullable=True)
    client_company = Column(String(200), nullable=True)
    client_email = Column(String(255), nullable=True)
    client_phone = Column(String(50), nullable=True)
    client_address = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ProjectStatus.DRAFT.value)
    notes = Column(Text, nullable=True)
    material_tax_rate_pct = Column(Float, nullable=False, default=0)
    contingency_pct = Column(Float, nullable=False, default=0)
    total_amount = Column(Float, nullable=False, default=0)
    date_created = Column(DateTime, nullable=False, server_default=func.now())
    date_modified = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    line_items = relationship(
        'LineItem',
        back_populates='project',
        cascade='all, delete-orphan',
        passive_deletes=True
    )

    EDITABLE_FIELDS = (
        'project_number', 'name', 'client_name', 'client_company', 'client_email',
        'client_phone', 'client_address', 'description', 'status', 'notes',
        'material_tax_rate_pct', 'contingency_pct',
    )

    def __repr__(self):
        return f"<Project(id={self.id}, number='{self.project_number}', name='{self.name}', total={self.total_amount})>"

    def to_dict(self):
        return {
            'id': self.id,
            'project_number': self.project_number,
            'name': self.name,
            'client_name': self.client_name,
            'client_company': self.client_company,
            'client_email': self.client_email,
            'client_phone': self.client_phone,
            'client_address': self.client_address,
            'description': self.description,
            'status': self.status,
            'notes': self.notes,
            'material_tax_rate_pct': self.material_tax_rate_pct,
            'contingency_pct': self.contingency_pct,
            'total_amount': self.total_amount,
            'date_created': self.date_created.isoformat() if self.date_created else None,
            'date_modified': self.date_modified.isoformat() if self.date_modified else None,
        }
