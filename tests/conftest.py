import pytest

from estimator import create_app, shutdown_app
from estimator.services.estimate_session import EstimateSession
from estimator.services.store_service import get_store


@pytest.fixture(scope='function')
def app():
    """Create application instance for testing (fresh in-memory database)."""
    app = create_app('config.TestConfig')
    yield app
    shutdown_app(app)


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def store(app):
    """Seeded store bound to the test database."""
    return get_store(app)


@pytest.fixture(scope='function')
def project(store):
    """Create a test project with 8% material tax and 5% contingency."""
    project_id = store.create_project({
        'name': 'Lobby Camera Upgrade',
        'client_name': 'Jane Client',
        'client_company': 'Acme Property Group',
        'material_tax_rate_pct': 8,
        'contingency_pct': 5,
    })
    return store.get_project(project_id)


@pytest.fixture(scope='function')
def estimate_session(store, project):
    """Loaded editing session with immediate (non-debounced) writes."""
    session = EstimateSession(store, project.id, debounce_seconds=0).load()
    yield session
    session.close()


@pytest.fixture
def sample_row_fields():
    """Line item whose total is 87.12 before project tax and contingency."""
    return {
        'description': 'Dome camera',
        'quantity': '2',
        'material_cost': '10',
        'material_markup_pct': '10',
        'labor_hours': '0.5',
        'labor_rate': '50',
        'labor_markup_pct': '0',
        'overhead_pct': '10',
        'profit_pct': '10',
    }
