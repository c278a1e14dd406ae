"""Models package - exports all SQLAlchemy models."""
from estimator.models.project import Project, ProjectStatus
from estimator.models.line_item import LineItem
from estimator.models.material import MaterialCatalogEntry
from estimator.models.category import Category
from estimator.models.company_settings import CompanySettings, DEFAULT_PROPOSAL_TERMS

__all__ = [
    'Project', 'ProjectStatus', 'LineItem',
    'MaterialCatalogEntry', 'Category',
    'CompanySettings', 'DEFAULT_PROPOSAL_TERMS',
]
