import uuid

from django.conf import settings
from django.db import models


class Project(models.Model):
    """A managed-farmland project listed on the site."""

    TYPE_COCONUT = "coconut"
    TYPE_SPICE = "spice"
    TYPE_BACKWATER = "backwater"
    TYPE_HILL_STATION = "hill-station"
    TYPE_CHOICES = [
        (TYPE_COCONUT, "Coconut"),
        (TYPE_SPICE, "Spice"),
        (TYPE_BACKWATER, "Backwater"),
        (TYPE_HILL_STATION, "Hill station"),
    ]

    LEGAL_STATUS_CHOICES = [
        ("clear", "Clear"),
        ("pending", "Pending"),
        ("disputed", "Disputed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    location = models.CharField(max_length=100, db_index=True)
    state = models.CharField(max_length=100, blank=True)
    district = models.CharField(max_length=100, blank=True)
    project_type = models.CharField(max_length=20, choices=TYPE_CHOICES, db_index=True)
    total_area = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)  # acres
    available_area = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price_per_sq_ft = models.DecimalField(max_digits=10, decimal_places=2, db_index=True)
    min_investment = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)
    coordinates = models.JSONField(null=True, blank=True)  # {"lat": ..., "lng": ...}
    features = models.JSONField(default=list, blank=True)
    amenities = models.JSONField(default=list, blank=True)
    images = models.JSONField(default=list, blank=True)
    expected_returns = models.JSONField(null=True, blank=True)  # "12-15%" or [{"year", "percentage"}]
    water_availability = models.CharField(max_length=100, blank=True)
    cottage_permitted = models.BooleanField(default=False)
    legal_status = models.CharField(max_length=20, choices=LEGAL_STATUS_CHOICES, default="clear")
    active = models.BooleanField(default=True, db_index=True)
    featured = models.BooleanField(default=False, db_index=True)
    view_count = models.PositiveIntegerField(default=0)
    inquiry_count = models.PositiveIntegerField(default=0)
    created_by = models.ForeignKey(
        "authentication.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_projects",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "projects"
        ordering = ["-featured", "name", "id"]
        indexes = [
            models.Index(fields=["active", "featured", "name"], name="idx_projects_listing"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.slug})"
