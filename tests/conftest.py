"""
Pytest configuration and fixtures
"""
import pytest
from django.core.cache import cache

from authentication.models import User
from authentication.passwords import hash_password
import services.storage
from tests.factories import headers_for, make_project


@pytest.fixture(autouse=True)
def fast_hashing(settings):
    """bcrypt at production cost makes the suite needlessly slow"""
    settings.BCRYPT_ROUNDS = 4


@pytest.fixture(autouse=True)
def clean_cache():
    """Throttle counters and cached queries live in the default cache"""
    cache.clear()
    services.storage._storage_instance = None
    yield
    cache.clear()
    services.storage._storage_instance = None


@pytest.fixture
def customer(db):
    """Create a regular customer account"""
    return User.objects.create(
        name="Test Customer",
        email="customer@example.com",
        phone="+91 98765 43210",
        password=hash_password("customerpass123"),
    )


@pytest.fixture
def admin_user(db):
    """Create an admin account"""
    return User.objects.create(
        name="Test Admin",
        email="admin@example.com",
        password=hash_password("adminpass123"),
        role=User.ROLE_ADMIN,
    )


@pytest.fixture
def customer_headers(customer):
    return headers_for(customer)


@pytest.fixture
def admin_headers(admin_user):
    return headers_for(admin_user)


@pytest.fixture
def sample_project_data():
    """Valid project payload for the admin API"""
    return {
        "name": "Ghat Coco Idyll",
        "slug": "ghat-coco-idyll",
        "description": "Managed coconut farmland on the foothills of the Western Ghats.",
        "location": "Palakkad",
        "state": "Kerala",
        "district": "Palakkad",
        "project_type": "coconut",
        "price_per_sq_ft": "199.00",
        "total_area": "40.00",
        "min_investment": "1500000.00",
        "coordinates": {"lat": 10.7867, "lng": 76.6548},
        "features": ["Drip irrigation", "Gated boundary"],
        "amenities": ["Borewell"],
        "images": ["https://example.com/coco.jpg"],
        "expected_returns": [{"year": 3, "percentage": 8}, {"year": 5, "percentage": 12}],
        "featured": True,
    }


@pytest.fixture
def project(db):
    return make_project()


@pytest.fixture
def sample_lead_data(project):
    """Sample lead data for testing"""
    return {
        "name": "Test Lead",
        "email": "lead@example.com",
        "phone": "+91 98765 43210",
        "project_id": str(project.id),
        "budget": "25-50 lakhs",
        "purpose": "investment",
        "message": "Interested in a site visit next month",
        "interests": ["spice"],
        "utm_source": "google",
    }
