"""
Data access for the Farmland Estates API.

``DatabaseStorage`` is the only module that talks to the ORM. Routers call it
through ``get_storage()`` and never build querysets themselves. Every database
failure is logged with the operation name and its parameters, then surfaced as
an ``AppError`` subclass so the API handlers can map it to a response.
"""
import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.db import DatabaseError as DjangoDatabaseError
from django.db import IntegrityError, connection, connections, transaction
from django.db.models import Count, F, Q
from django.utils import timezone

from analytics.models import AnalyticsEvent, ProjectView
from authentication.models import User
from authentication.passwords import burn_password_check, hash_password, verify_password
from content.models import BlogPost, Testimonial
from core.exceptions import AppError, ConflictError, DatabaseError, NotFoundError, ValidationError
from leads.models import Lead
from projects.models import Project
from projects.schemas import ProjectFilterSchema
from services.cache import QueryCache

logger = logging.getLogger(__name__)

PROJECT_ORDERING = ("-featured", "name", "id")

PROJECT_CACHE_PREFIXES = ("projects", "project")
BLOG_CACHE_PREFIXES = ("blog", "blog_post")
TESTIMONIAL_CACHE_PREFIXES = ("testimonials",)

# Project columns that may be cleared through a partial update
NULLABLE_PROJECT_FIELDS = {"total_area", "available_area", "min_investment", "coordinates", "expected_returns"}
NULLABLE_BLOG_FIELDS = {"published_at", "reading_time"}


@dataclass
class Page:
    """One slice of an ordered listing plus the size of the full result"""
    items: List[Any]
    total: int
    limit: int
    offset: int
    extra: Dict[str, Any] = field(default_factory=dict)

    def meta(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "count": len(self.items),
            "limit": self.limit,
            "offset": self.offset,
            **self.extra,
        }


def _clamp(limit: int, maximum: int) -> int:
    return max(1, min(limit, maximum))


class DatabaseStorage:
    """ORM-backed storage with a read-through cache for public listings"""

    def __init__(self, cache: Optional[QueryCache] = None):
        self.cache = cache if cache is not None else QueryCache(ttl=settings.CACHE_TTL)

    @contextmanager
    def _operation(self, name: str, **context):
        try:
            yield
        except AppError:
            raise
        except IntegrityError as e:
            logger.warning(f"Integrity error in {name} {context}: {e}")
            raise ConflictError() from e
        except DjangoDatabaseError as e:
            logger.error(f"Storage operation {name} failed {context}: {e}", exc_info=True)
            raise DatabaseError() from e

    # Projects

    def get_projects(self, filters, include_inactive: bool = False) -> Page:
        """Filtered, paginated project listing in canonical order"""
        params = filters.model_dump()
        params["include_inactive"] = include_inactive
        return self.cache.get_or_load(
            "projects", params, lambda: self._query_projects(filters, include_inactive, params)
        )

    def _query_projects(self, filters, include_inactive: bool, params: Dict[str, Any]) -> Page:
        with self._operation("get_projects", filters=params):
            queryset = Project.objects.all()
            if not include_inactive:
                queryset = queryset.filter(active=True)
            if filters.type:
                queryset = queryset.filter(project_type=filters.type)
            if filters.featured is not None:
                queryset = queryset.filter(featured=filters.featured)
            if filters.location:
                queryset = queryset.filter(location__icontains=filters.location)
            if filters.min_price is not None:
                queryset = queryset.filter(price_per_sq_ft__gte=filters.min_price)
            if filters.max_price is not None:
                queryset = queryset.filter(price_per_sq_ft__lte=filters.max_price)

            limit = _clamp(filters.limit, settings.PROJECTS_MAX_PAGE_SIZE)
            total = queryset.count()
            items = list(queryset.order_by(*PROJECT_ORDERING)[filters.offset:filters.offset + limit])
        logger.debug(f"Loaded {len(items)} of {total} projects")
        return Page(items=items, total=total, limit=limit, offset=filters.offset)

    def get_featured_projects(self, limit: int = 6) -> List[Project]:
        return self.get_projects(ProjectFilterSchema(featured=True, limit=limit)).items

    def get_project_by_slug(self, slug: str) -> Project:
        """Active project by slug; inactive projects are indistinguishable from missing ones"""
        def load():
            with self._operation("get_project_by_slug", slug=slug):
                project = Project.objects.filter(slug=slug, active=True).first()
            if project is None:
                raise NotFoundError("Project not found")
            return project

        return self.cache.get_or_load("project", {"slug": slug}, load)

    def get_project(self, project_id) -> Project:
        with self._operation("get_project", project_id=project_id):
            project = Project.objects.filter(id=project_id).first()
        if project is None:
            raise NotFoundError("Project not found")
        return project

    def create_project(self, data, created_by: Optional[User] = None) -> Project:
        values = data.model_dump()
        with self._operation("create_project", slug=data.slug):
            if Project.objects.filter(slug=data.slug).exists():
                raise ConflictError("Project with this slug already exists")
            project = Project.objects.create(created_by=created_by, **values)
        self.cache.invalidate(PROJECT_CACHE_PREFIXES)
        logger.info(f"Project created: {project.slug} ({project.id})")
        return project

    def update_project(self, project_id, data) -> Project:
        changes = data.model_dump(exclude_unset=True)
        slug = changes.pop("slug", None)
        changes = {
            key: value for key, value in changes.items()
            if value is not None or key in NULLABLE_PROJECT_FIELDS
        }
        with self._operation("update_project", project_id=project_id, fields=sorted(changes)):
            with transaction.atomic():
                project = Project.objects.select_for_update().filter(id=project_id).first()
                if project is None:
                    raise NotFoundError("Project not found")
                if slug is not None and slug != project.slug:
                    raise ValidationError.for_field("slug", "Project slug cannot be changed", code="immutable")
                for name, value in changes.items():
                    setattr(project, name, value)
                project.save()
        self.cache.invalidate(PROJECT_CACHE_PREFIXES)
        logger.info(f"Project updated: {project.slug} fields={sorted(changes)}")
        return project

    def delete_project(self, project_id) -> Project:
        """Soft delete: the project stops appearing in public reads"""
        with self._operation("delete_project", project_id=project_id):
            project = Project.objects.filter(id=project_id).first()
            if project is None:
                raise NotFoundError("Project not found")
            if not project.active:
                return project
            project.active = False
            project.save(update_fields=["active", "updated_at"])
        self.cache.invalidate(PROJECT_CACHE_PREFIXES)
        logger.info(f"Project deactivated: {project.slug}")
        return project

    def record_project_view(self, project: Project, ip_address: Optional[str] = None,
                            user_agent: str = "", referrer: str = "", user: Optional[User] = None) -> None:
        """Best effort; a failure here never fails the read that triggered it"""
        try:
            with transaction.atomic():
                Project.objects.filter(pk=project.pk).update(view_count=F("view_count") + 1)
                ProjectView.objects.create(
                    project_id=project.pk,
                    user=user,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    referrer=referrer,
                )
        except DjangoDatabaseError as e:
            logger.warning(f"Failed to record view for project {project.pk}: {e}")

    # Leads

    def create_lead(self, data, metadata: Optional[Dict[str, Any]] = None) -> Lead:
        """Insert a lead unless the same email submitted within the duplicate window"""
        metadata = metadata or {}
        email = data.email.strip().lower()
        window_start = timezone.now() - timedelta(hours=settings.LEAD_DUPLICATE_WINDOW_HOURS)

        with self._operation("create_lead", email=email, project_id=data.project_id):
            if Lead.objects.filter(email__iexact=email, created_at__gte=window_start).exists():
                logger.warning(f"Duplicate lead submission rejected: {email}")
                raise ConflictError("Duplicate submission: this email was already submitted recently")

            project = None
            if data.project_id:
                project = Project.objects.filter(id=data.project_id, active=True).first()
                if project is None:
                    raise ValidationError.for_field("project_id", "Project does not exist", code="not_found")

            values = data.model_dump(exclude={"email", "project_id"})
            lead = Lead.objects.create(
                email=email,
                project_interest=project,
                ip_address=metadata.get("ip_address"),
                user_agent=metadata.get("user_agent", ""),
                referrer=metadata.get("referrer", ""),
                **values,
            )

        logger.info(f"Lead created: {lead.id} source={lead.source} project={data.project_id}")
        if project is not None:
            try:
                Project.objects.filter(pk=project.pk).update(inquiry_count=F("inquiry_count") + 1)
            except DjangoDatabaseError as e:
                logger.warning(f"Failed to count inquiry for project {project.pk}: {e}")
        self.record_event(
            AnalyticsEvent.EVENT_LEAD_CREATED,
            lead=lead,
            project=project,
            ip_address=metadata.get("ip_address"),
            page=data.landing_page,
            metadata={"source": lead.source, "utm_source": lead.utm_source},
        )
        return lead

    def get_leads(self, filters) -> Page:
        with self._operation("get_leads", filters=filters.model_dump()):
            queryset = Lead.objects.all()
            if filters.status:
                queryset = queryset.filter(status=filters.status)
            if filters.source:
                queryset = queryset.filter(source=filters.source)
            if filters.project_id:
                queryset = queryset.filter(project_interest_id=filters.project_id)
            if filters.date_from:
                queryset = queryset.filter(created_at__gte=filters.date_from)
            if filters.date_to:
                queryset = queryset.filter(created_at__lte=filters.date_to)

            limit = _clamp(filters.limit, settings.LEADS_MAX_PAGE_SIZE)
            total = queryset.count()
            items = list(queryset.order_by("-created_at", "id")[filters.offset:filters.offset + limit])
        return Page(items=items, total=total, limit=limit, offset=filters.offset)

    def get_lead(self, lead_id) -> Lead:
        with self._operation("get_lead", lead_id=lead_id):
            lead = Lead.objects.filter(id=lead_id).first()
        if lead is None:
            raise NotFoundError("Lead not found")
        return lead

    def update_lead(self, lead_id, data) -> Lead:
        """Apply an operator update; status may only move forward unless ``force`` is set"""
        changes = data.model_dump(exclude_unset=True)
        force = changes.pop("force", False)

        with self._operation("update_lead", lead_id=lead_id, fields=sorted(changes)):
            with transaction.atomic():
                lead = Lead.objects.select_for_update().filter(id=lead_id).first()
                if lead is None:
                    raise NotFoundError("Lead not found")

                new_status = changes.get("status")
                if new_status and new_status != lead.status:
                    if not force and not lead.is_forward_transition(new_status):
                        raise ValidationError.for_field(
                            "status",
                            f"Cannot move lead from {lead.status} to {new_status}",
                            code="invalid_transition",
                        )
                    now = timezone.now()
                    if new_status == Lead.STATUS_CONTACTED:
                        lead.last_contact_date = now
                    if new_status == Lead.STATUS_CONVERTED:
                        lead.conversion_date = now
                    elif lead.status == Lead.STATUS_CONVERTED:
                        lead.conversion_date = None
                    logger.info(f"Lead {lead.id} status {lead.status} -> {new_status}")
                    lead.status = new_status

                if "assigned_to_id" in changes:
                    assignee_id = changes["assigned_to_id"]
                    if assignee_id is not None and not User.objects.filter(
                        id=assignee_id, role=User.ROLE_ADMIN, is_active=True
                    ).exists():
                        raise ValidationError.for_field(
                            "assigned_to_id", "Assignee must be an active admin", code="not_found"
                        )
                    lead.assigned_to_id = assignee_id

                if changes.get("priority"):
                    lead.priority = changes["priority"]
                if "notes" in changes:
                    lead.notes = changes["notes"] or ""
                if "follow_up_date" in changes:
                    lead.follow_up_date = changes["follow_up_date"]
                lead.save()
        return lead

    # Users

    def create_user(self, data, role: str = User.ROLE_CUSTOMER) -> User:
        email = data.email.strip().lower()
        with self._operation("create_user", email=email):
            if User.objects.filter(email=email).exists():
                raise ConflictError("User with this email already exists", code="EMAIL_EXISTS")
            user = User.objects.create(
                name=data.name.strip(),
                email=email,
                phone=data.phone or "",
                password=hash_password(data.password),
                role=role,
            )
        logger.info(f"User registered: {user.id} role={user.role}")
        return user

    def get_user(self, user_id) -> User:
        with self._operation("get_user", user_id=user_id):
            user = User.objects.filter(id=user_id).first()
        if user is None:
            raise NotFoundError("User not found")
        return user

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Return the user for valid credentials, None otherwise"""
        email = email.strip().lower()
        with self._operation("authenticate_user", email=email):
            user = User.objects.filter(email=email).first()

        if user is None:
            burn_password_check(password)
            logger.warning(f"Login failed for unknown email: {email}")
            return None
        if not verify_password(password, user.password):
            logger.warning(f"Login failed for {email}: wrong password")
            return None
        if not user.is_active:
            logger.warning(f"Login refused for inactive account: {email}")
            return None

        with self._operation("record_login", user_id=user.id):
            User.objects.filter(pk=user.pk).update(
                last_login_at=timezone.now(), login_count=F("login_count") + 1
            )
            user.refresh_from_db(fields=["last_login_at", "login_count"])
        return user

    def update_user(self, user: User, data) -> User:
        changes = data.model_dump(exclude_unset=True)
        with self._operation("update_user", user_id=user.id, fields=sorted(changes)):
            if changes.get("new_password"):
                if not verify_password(changes.get("current_password") or "", user.password):
                    raise ValidationError.for_field(
                        "current_password", "Current password is incorrect", code="invalid_password"
                    )
                user.password = hash_password(changes["new_password"])
            if changes.get("name"):
                user.name = changes["name"].strip()
            if changes.get("phone") is not None:
                user.phone = changes["phone"]
            user.save()
        logger.info(f"Profile updated: {user.id} fields={sorted(changes)}")
        return user

    # Blog

    def _visible_posts(self):
        now = timezone.now()
        return BlogPost.objects.filter(published=True).filter(
            Q(published_at__isnull=True) | Q(published_at__lte=now)
        )

    def get_blog_posts(self, filters, published_only: bool = True) -> Page:
        params = filters.model_dump()
        params["published_only"] = published_only
        return self.cache.get_or_load(
            "blog", params, lambda: self._query_blog_posts(filters, published_only, params)
        )

    def _query_blog_posts(self, filters, published_only: bool, params: Dict[str, Any]) -> Page:
        with self._operation("get_blog_posts", filters=params):
            queryset = self._visible_posts() if published_only else BlogPost.objects.all()
            published = getattr(filters, "published", None)
            if not published_only and published is not None:
                queryset = queryset.filter(published=published)
            if filters.category:
                queryset = queryset.filter(category__iexact=filters.category)
            if filters.tag:
                # tags is a JSON list matched on its text form; sqlite keeps non-ASCII
                # characters as \uXXXX escapes, postgres stores them verbatim
                queryset = queryset.filter(
                    Q(tags__icontains=f'"{filters.tag}"') | Q(tags__icontains=json.dumps(filters.tag))
                )
            if filters.featured is not None:
                queryset = queryset.filter(featured=filters.featured)

            limit = _clamp(filters.limit, settings.BLOG_MAX_PAGE_SIZE)
            total = queryset.count()
            ordered = queryset.order_by(F("published_at").desc(nulls_last=True), "-created_at")
            items = list(ordered[filters.offset:filters.offset + limit])
        return Page(items=items, total=total, limit=limit, offset=filters.offset)

    def get_blog_post_by_slug(self, slug: str) -> BlogPost:
        def load():
            with self._operation("get_blog_post_by_slug", slug=slug):
                post = self._visible_posts().filter(slug=slug).first()
            if post is None:
                raise NotFoundError("Blog post not found")
            return post

        return self.cache.get_or_load("blog_post", {"slug": slug}, load)

    def get_blog_post(self, post_id) -> BlogPost:
        with self._operation("get_blog_post", post_id=post_id):
            post = BlogPost.objects.filter(id=post_id).first()
        if post is None:
            raise NotFoundError("Blog post not found")
        return post

    def record_blog_view(self, post: BlogPost) -> None:
        try:
            BlogPost.objects.filter(pk=post.pk).update(view_count=F("view_count") + 1)
        except DjangoDatabaseError as e:
            logger.warning(f"Failed to count view for blog post {post.pk}: {e}")

    def create_blog_post(self, data, author: Optional[User] = None) -> BlogPost:
        values = data.model_dump()
        if values["published"] and values["published_at"] is None:
            values["published_at"] = timezone.now()
        with self._operation("create_blog_post", slug=data.slug):
            if BlogPost.objects.filter(slug=data.slug).exists():
                raise ConflictError("Blog post with this slug already exists")
            post = BlogPost.objects.create(author=author, **values)
        self.cache.invalidate(BLOG_CACHE_PREFIXES)
        logger.info(f"Blog post created: {post.slug} published={post.published}")
        return post

    def update_blog_post(self, post_id, data) -> BlogPost:
        changes = {
            key: value for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key in NULLABLE_BLOG_FIELDS
        }
        with self._operation("update_blog_post", post_id=post_id, fields=sorted(changes)):
            post = BlogPost.objects.filter(id=post_id).first()
            if post is None:
                raise NotFoundError("Blog post not found")
            for name, value in changes.items():
                setattr(post, name, value)
            if post.published and post.published_at is None:
                post.published_at = timezone.now()
            post.save()
        self.cache.invalidate(BLOG_CACHE_PREFIXES)
        return post

    def unpublish_blog_post(self, post_id) -> BlogPost:
        with self._operation("unpublish_blog_post", post_id=post_id):
            post = BlogPost.objects.filter(id=post_id).first()
            if post is None:
                raise NotFoundError("Blog post not found")
            if post.published:
                post.published = False
                post.save(update_fields=["published", "updated_at"])
        self.cache.invalidate(BLOG_CACHE_PREFIXES)
        logger.info(f"Blog post unpublished: {post.slug}")
        return post

    # Testimonials

    def get_testimonials(self, featured: Optional[bool] = None, public: bool = True,
                         approved: Optional[bool] = None) -> List[Testimonial]:
        """Public reads only see approved, active testimonials"""
        params = {"featured": featured, "public": public, "approved": approved}

        def load():
            with self._operation("get_testimonials", **params):
                queryset = Testimonial.objects.all()
                if public:
                    queryset = queryset.filter(approved=True, active=True)
                elif approved is not None:
                    queryset = queryset.filter(approved=approved)
                if featured is not None:
                    queryset = queryset.filter(featured=featured)
                return list(queryset.order_by("-featured", "-created_at"))

        return self.cache.get_or_load("testimonials", params, load)

    def get_testimonial(self, testimonial_id) -> Testimonial:
        with self._operation("get_testimonial", testimonial_id=testimonial_id):
            testimonial = Testimonial.objects.filter(id=testimonial_id).first()
        if testimonial is None:
            raise NotFoundError("Testimonial not found")
        return testimonial

    def _check_project_reference(self, project_id) -> None:
        if project_id is not None and not Project.objects.filter(id=project_id).exists():
            raise ValidationError.for_field("project_id", "Project does not exist", code="not_found")

    def create_testimonial(self, data) -> Testimonial:
        with self._operation("create_testimonial", testimonial_name=data.name):
            self._check_project_reference(data.project_id)
            testimonial = Testimonial.objects.create(**data.model_dump())
        self.cache.invalidate(TESTIMONIAL_CACHE_PREFIXES)
        return testimonial

    def update_testimonial(self, testimonial_id, data) -> Testimonial:
        changes = {
            key: value for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key == "project_id"
        }
        with self._operation("update_testimonial", testimonial_id=testimonial_id, fields=sorted(changes)):
            testimonial = Testimonial.objects.filter(id=testimonial_id).first()
            if testimonial is None:
                raise NotFoundError("Testimonial not found")
            if "project_id" in changes:
                self._check_project_reference(changes["project_id"])
            for name, value in changes.items():
                setattr(testimonial, name, value)
            testimonial.save()
        self.cache.invalidate(TESTIMONIAL_CACHE_PREFIXES)
        return testimonial

    def deactivate_testimonial(self, testimonial_id) -> Testimonial:
        with self._operation("deactivate_testimonial", testimonial_id=testimonial_id):
            testimonial = Testimonial.objects.filter(id=testimonial_id).first()
            if testimonial is None:
                raise NotFoundError("Testimonial not found")
            if testimonial.active:
                testimonial.active = False
                testimonial.save(update_fields=["active", "updated_at"])
        self.cache.invalidate(TESTIMONIAL_CACHE_PREFIXES)
        return testimonial

    # Analytics

    def record_event(self, event: str, user: Optional[User] = None, project: Optional[Project] = None,
                     lead: Optional[Lead] = None, metadata: Optional[Dict[str, Any]] = None,
                     ip_address: Optional[str] = None, page: str = "") -> None:
        """Best effort analytics write; failures are logged and dropped"""
        try:
            AnalyticsEvent.objects.create(
                event=event,
                user=user,
                project=project,
                lead=lead,
                metadata=metadata or {},
                ip_address=ip_address,
                page=page or "",
            )
        except DjangoDatabaseError as e:
            logger.warning(f"Failed to record analytics event {event}: {e}")

    def get_analytics_summary(self, days: int = 30) -> Dict[str, Any]:
        since = timezone.now() - timedelta(days=days)
        with self._operation("get_analytics_summary", days=days):
            leads = Lead.objects.order_by()
            by_status = dict(leads.values_list("status").annotate(count=Count("id")))
            by_source = dict(
                leads.filter(created_at__gte=since).values_list("source").annotate(count=Count("id"))
            )
            projects = Project.objects.order_by()
            top_projects = Project.objects.filter(active=True).order_by("-view_count", "name")[:5]
            events = dict(
                AnalyticsEvent.objects.order_by()
                .filter(created_at__gte=since)
                .values_list("event")
                .annotate(count=Count("id"))
            )
            summary = {
                "period_days": days,
                "leads": {
                    "total": leads.count(),
                    "recent": leads.filter(created_at__gte=since).count(),
                    "by_status": by_status,
                    "by_source": by_source,
                },
                "projects": {
                    "active": projects.filter(active=True).count(),
                    "inactive": projects.filter(active=False).count(),
                    "featured": projects.filter(active=True, featured=True).count(),
                    "top_viewed": [
                        {
                            "id": str(project.id),
                            "slug": project.slug,
                            "name": project.name,
                            "view_count": project.view_count,
                            "inquiry_count": project.inquiry_count,
                        }
                        for project in top_projects
                    ],
                },
                "views": {"recent": ProjectView.objects.filter(viewed_at__gte=since).count()},
                "users": {"total": User.objects.count()},
                "events": events,
            }
        return summary

    # Lifecycle

    def health_check(self) -> Dict[str, Any]:
        with self._operation("health_check"):
            connection.ensure_connection()
            Project.objects.exists()

        cache_status = "ok"
        try:
            self.cache.backend.set("health:ping", "pong", timeout=5)
            if self.cache.backend.get("health:ping") != "pong":
                cache_status = "unavailable"
        except Exception as e:
            logger.warning(f"Cache health check failed: {e}")
            cache_status = "unavailable"

        return {
            "status": "healthy",
            "timestamp": timezone.now().isoformat(),
            "checks": {"database": "ok", "cache": cache_status},
        }

    def close(self) -> None:
        """Release database connections; safe to call more than once"""
        self.cache.clear()
        connections.close_all()
        logger.info("Storage closed")


# Global instance (lazy initialization)
_storage_instance = None


def get_storage() -> DatabaseStorage:
    """Get or create the process-wide storage instance"""
    global _storage_instance
    if _storage_instance is None:
        _storage_instance = DatabaseStorage(cache=QueryCache(ttl=settings.CACHE_TTL))
    return _storage_instance


def close_storage() -> None:
    global _storage_instance
    if _storage_instance is not None:
        _storage_instance.close()
        _storage_instance = None
