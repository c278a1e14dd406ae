"""
Unit tests for SQLAlchemy models.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from estimator.database import Database
from estimator.models import Project, LineItem, Category, CompanySettings, MaterialCatalogEntry


@pytest.fixture
def database():
    database = Database('sqlite://')
    database.create_all()
    yield database
    database.close()


@pytest.fixture
def session(database):
    session = database.new_session()
    yield session
    session.rollback()
    session.close()


class TestProjectModel:
    """Tests for Project model."""

    def test_create_project_defaults(self, session):
        project = Project(name='Warehouse Access Control')
        session.add(project)
        session.commit()

        assert project.id is not None
        assert project.status == 'draft'
        assert project.total_amount == 0
        assert project.material_tax_rate_pct == 0
        assert project.date_created is not None

    def test_project_number_unique(self, session):
        session.add(Project(name='A', project_number='EST-202601-001'))
        session.commit()
        session.add(Project(name='B', project_number='EST-202601-001'))

        with pytest.raises(IntegrityError):
            session.commit()

    def test_to_dict(self, session):
        project = Project(name='Clinic', client_name='Dr. Rivera')
        session.add(project)
        session.commit()

        data = project.to_dict()
        assert data['name'] == 'Clinic'
        assert data['client_name'] == 'Dr. Rivera'
        assert data['date_created'] is not None


class TestLineItemModel:
    """Tests for LineItem model."""

    def test_defaults(self, session):
        project = Project(name='Office')
        session.add(project)
        session.flush()

        item = LineItem(project_id=project.id, description='Cat6 drop')
        session.add(item)
        session.commit()

        assert item.quantity == 1
        assert item.unit == 'EA'
        assert item.labor_rate == 75
        assert item.overhead_pct == 10
        assert item.profit_pct == 10
        assert item.sort_order == 0

    def test_description_required(self, session):
        project = Project(name='Office')
        session.add(project)
        session.flush()
        session.add(LineItem(project_id=project.id))

        with pytest.raises(IntegrityError):
            session.commit()

    def test_project_must_exist(self, session):
        session.add(LineItem(project_id=999, description='Orphan'))

        with pytest.raises(IntegrityError):
            session.commit()

    def test_cascade_delete(self, session):
        project = Project(name='Office')
        session.add(project)
        session.flush()
        session.add_all([
            LineItem(project_id=project.id, description='One'),
            LineItem(project_id=project.id, description='Two'),
        ])
        session.commit()

        session.delete(project)
        session.commit()

        assert session.query(LineItem).count() == 0


class TestLookupModels:
    """Tests for categories, catalog and settings."""

    def test_category_name_unique(self, session):
        session.add(Category(name='Cameras', sort_order=1))
        session.commit()
        session.add(Category(name='Cameras', sort_order=2))

        with pytest.raises(IntegrityError):
            session.commit()

    def test_settings_single_row(self, session):
        session.add(CompanySettings(id=1))
        session.commit()
        session.add(CompanySettings(id=2))

        with pytest.raises(IntegrityError):
            session.commit()

    def test_material_to_dict(self, session):
        material = MaterialCatalogEntry(category='Cabling', item_name='Cat6 Cable', unit='FT',
                                        material_cost=0.35, typical_labor_hours=0.02)
        session.add(material)
        session.commit()

        data = material.to_dict()
        assert data['item_name'] == 'Cat6 Cable'
        assert data['material_cost'] == 0.35
