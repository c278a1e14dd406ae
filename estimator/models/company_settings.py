"""Company settings model (single row)."""
from sqlalchemy import Column, Integer, String, Float, Text, CheckConstraint
from estimator.database import Base


DEFAULT_PROPOSAL_TERMS = 'Payment due within 30 days. 50% deposit required to commence work.'


class CompanySettings(Base):
    """
    Company-wide settings.

    Source of default pricing values for new rows and new projects.
    """

    __tablename__ = 'company_settings'
    __table_args__ = (CheckConstraint('id = 1', name='ck_company_settings_singleton'),)

    id = Column(Integer, primary_key=True, default=1)
    company_name = Column(String(200), nullable=False, default='WhitTech.AI')
    address = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)
    logo_path = Column(String(500), nullable=True)
    default_labor_rate = Column(Float, nullable=False, default=75)
    default_material_markup_pct = Column(Float, nullable=False, default=0)
    default_labor_markup_pct = Column(Float, nullable=False, default=0)
    default_overhead_pct = Column(Float, nullable=False, default=10)
    default_profit_pct = Column(Float, nullable=False, default=10)
    tax_rate = Column(Float, nullable=False, default=0)
    default_contingency_pct = Column(Float, nullable=False, default=0)
    proposal_terms = Column(Text, nullable=True, default=DEFAULT_PROPOSAL_TERMS)

    EDITABLE_FIELDS = (
        'company_name', 'address', 'phone', 'email', 'website', 'logo_path',
        'default_labor_rate', 'default_material_markup_pct', 'default_labor_markup_pct',
        'default_overhead_pct', 'default_profit_pct', 'tax_rate',
        'default_contingency_pct', 'proposal_terms',
    )

    def __repr__(self):
        return f"<CompanySettings(company_name='{self.company_name}')>"

    def to_dict(self):
        return {name: getattr(self, name) for name in self.EDITABLE_FIELDS}
