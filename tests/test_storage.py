"""
Tests for DatabaseStorage behaviour that the HTTP tests don't reach
"""
from unittest.mock import patch

import pytest
from django.db import DatabaseError as DjangoDatabaseError
from django.db import IntegrityError

from analytics.models import AnalyticsEvent, ProjectView
from authentication.models import User
from authentication.schemas import RegisterSchema
from content.schemas import TestimonialCreateSchema
from core.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from leads.schemas import LeadCreateSchema, LeadFilterSchema, LeadUpdateSchema
from projects.models import Project
from projects.schemas import ProjectCreateSchema, ProjectFilterSchema, ProjectUpdateSchema
from services.storage import DatabaseStorage, Page, close_storage, get_storage
from tests.factories import make_project


@pytest.fixture
def storage():
    return get_storage()


class TestPage:
    """Test Page metadata"""

    def test_meta(self):
        page = Page(items=["a", "b"], total=10, limit=2, offset=4)
        assert page.meta() == {"total": 10, "count": 2, "limit": 2, "offset": 4}


@pytest.mark.django_db
class TestProjectStorage:
    """Test project operations"""

    def test_listing_is_cached_until_a_write(self, storage, project):
        first = storage.get_projects(ProjectFilterSchema())
        # Bypass storage so the cache is not invalidated
        Project.objects.filter(id=project.id).update(name="Renamed Directly")

        cached = storage.get_projects(ProjectFilterSchema())
        assert cached.items[0].name == first.items[0].name

        storage.update_project(project.id, ProjectUpdateSchema(featured=True))
        fresh = storage.get_projects(ProjectFilterSchema())
        assert fresh.items[0].name == "Renamed Directly"

    def test_update_ignores_null_for_required_fields(self, storage, project):
        updated = storage.update_project(project.id, ProjectUpdateSchema(name=None, total_area=None))
        assert updated.name == project.name
        assert updated.total_area is None

    def test_update_with_same_slug_is_allowed(self, storage, project):
        updated = storage.update_project(project.id, ProjectUpdateSchema(slug=project.slug, name="Same Slug"))
        assert updated.name == "Same Slug"

    def test_delete_unknown_raises_not_found(self, storage):
        with pytest.raises(NotFoundError):
            storage.delete_project("00000000-0000-0000-0000-000000000000")

    def test_record_view_failure_is_swallowed(self, storage, project):
        with patch.object(ProjectView.objects, "create", side_effect=DjangoDatabaseError("disk full")):
            storage.record_project_view(project, ip_address="10.0.0.1")

        project.refresh_from_db()
        assert project.view_count == 0

    def test_database_errors_are_wrapped(self, storage):
        with patch.object(Project.objects, "filter", side_effect=DjangoDatabaseError("connection lost")):
            with pytest.raises(DatabaseError):
                storage.get_project("00000000-0000-0000-0000-000000000000")

    def test_integrity_errors_become_conflicts(self, storage, sample_project_data):
        data = ProjectCreateSchema(**sample_project_data)
        with patch.object(Project.objects, "create", side_effect=IntegrityError("duplicate key")):
            with pytest.raises(ConflictError):
                storage.create_project(data)


@pytest.mark.django_db
class TestLeadStorage:
    """Test lead operations"""

    def _lead(self, **overrides):
        values = {"name": "Test Lead", "email": "lead@example.com", "phone": "9876543210"}
        values.update(overrides)
        return LeadCreateSchema(**values)

    def test_duplicate_check_ignores_case(self, storage):
        storage.create_lead(self._lead(email="Lead@Example.com"))
        with pytest.raises(ConflictError):
            storage.create_lead(self._lead(email="lead@example.COM"))

    def test_email_stored_lowercase(self, storage):
        lead = storage.create_lead(self._lead(email="Mixed.Case@Example.com"))
        assert lead.email == "mixed.case@example.com"

    def test_analytics_failure_does_not_fail_lead(self, storage):
        with patch.object(AnalyticsEvent.objects, "create", side_effect=DjangoDatabaseError("boom")):
            lead = storage.create_lead(self._lead())
        assert lead.pk is not None

    def test_leads_page_size_is_clamped(self, storage, settings):
        settings.LEADS_MAX_PAGE_SIZE = 2
        for index in range(3):
            storage.create_lead(self._lead(email=f"lead{index}@example.com"))

        page = storage.get_leads(LeadFilterSchema(limit=100))

        assert page.limit == 2
        assert len(page.items) == 2
        assert page.total == 3

    def test_update_unknown_lead(self, storage):
        with pytest.raises(NotFoundError):
            storage.update_lead("00000000-0000-0000-0000-000000000000", LeadUpdateSchema(status="contacted"))

    def test_terminal_status_is_final_without_force(self, storage):
        lead = storage.create_lead(self._lead())
        storage.update_lead(lead.id, LeadUpdateSchema(status="lost"))
        with pytest.raises(ValidationError):
            storage.update_lead(lead.id, LeadUpdateSchema(status="contacted"))


@pytest.mark.django_db
class TestTestimonialStorage:
    """Test testimonial writes"""

    def test_create_testimonial(self, storage, project):
        data = TestimonialCreateSchema(name="Ravi", content="Great managed farmland experience",
                                       rating=5, project_id=project.id)

        testimonial = storage.create_testimonial(data)

        assert testimonial.pk is not None
        assert testimonial.project_id == project.id
        assert testimonial.approved is False

    def test_create_testimonial_unknown_project(self, storage):
        data = TestimonialCreateSchema(name="Ravi", content="Great managed farmland experience", rating=5,
                                       project_id="00000000-0000-0000-0000-000000000000")
        with pytest.raises(ValidationError):
            storage.create_testimonial(data)


@pytest.mark.django_db
class TestUserStorage:
    """Test account operations"""

    def test_create_user_lowercases_email_and_hashes_password(self, storage):
        user = storage.create_user(RegisterSchema(name="Priya", email="Priya@Example.com", password="longenough1"))
        assert user.email == "priya@example.com"
        assert user.password.startswith("$2")
        assert user.role == User.ROLE_CUSTOMER

    def test_unknown_email_still_runs_bcrypt(self, storage):
        with patch("services.storage.burn_password_check") as burn:
            assert storage.authenticate_user("nobody@example.com", "whatever") is None
        burn.assert_called_once_with("whatever")

    def test_get_unknown_user(self, storage):
        with pytest.raises(NotFoundError):
            storage.get_user("00000000-0000-0000-0000-000000000000")


@pytest.mark.django_db
class TestLifecycle:
    """Test storage singleton, health and close"""

    def test_get_storage_is_a_singleton(self):
        assert get_storage() is get_storage()

    def test_close_resets_singleton(self):
        first = get_storage()
        with patch("services.storage.connections") as connections:
            close_storage()
            close_storage()
        connections.close_all.assert_called_once_with()
        assert get_storage() is not first

    def test_health_check(self, storage):
        result = storage.health_check()
        assert result["status"] == "healthy"
        assert result["checks"] == {"database": "ok", "cache": "ok"}

    def test_default_cache(self, project):
        storage = DatabaseStorage()
        assert storage.get_project_by_slug(project.slug).id == project.id

    def test_summary(self, storage, project):
        make_project(name="Hidden Acres", slug="hidden-acres", active=False)
        storage.create_lead(LeadCreateSchema(name="Lead", email="a@example.com", phone="9876543210",
                                             project_id=project.id))

        summary = storage.get_analytics_summary(days=30)

        assert summary["leads"]["total"] == 1
        assert summary["leads"]["by_status"] == {"new": 1}
        assert summary["projects"]["active"] == 1
        assert summary["projects"]["inactive"] == 1
        assert summary["events"][AnalyticsEvent.EVENT_LEAD_CREATED] == 1
        assert summary["projects"]["top_viewed"][0]["inquiry_count"] == 1
