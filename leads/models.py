import uuid

from django.db import models


class Lead(models.Model):
    """A prospective buyer's enquiry submitted through the site."""

    STATUS_NEW = "new"
    STATUS_CONTACTED = "contacted"
    STATUS_QUALIFIED = "qualified"
    STATUS_CONVERTED = "converted"
    STATUS_LOST = "lost"
    STATUS_CHOICES = [
        (STATUS_NEW, "New"),
        (STATUS_CONTACTED, "Contacted"),
        (STATUS_QUALIFIED, "Qualified"),
        (STATUS_CONVERTED, "Converted"),
        (STATUS_LOST, "Lost"),
    ]
    # Position in the pipeline; terminal states share the last rank
    STATUS_RANK = {
        STATUS_NEW: 0,
        STATUS_CONTACTED: 1,
        STATUS_QUALIFIED: 2,
        STATUS_CONVERTED: 3,
        STATUS_LOST: 3,
    }
    TERMINAL_STATUSES = (STATUS_CONVERTED, STATUS_LOST)

    SOURCE_CHOICES = [
        ("website", "Website"),
        ("referral", "Referral"),
        ("social", "Social"),
        ("advertisement", "Advertisement"),
    ]

    PRIORITY_CHOICES = [
        ("low", "Low"),
        ("medium", "Medium"),
        ("high", "High"),
        ("urgent", "Urgent"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    email = models.EmailField(max_length=255, db_index=True)
    phone = models.CharField(max_length=20)
    project_interest = models.ForeignKey(
        "projects.Project",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="leads",
    )
    budget = models.CharField(max_length=50, blank=True)
    purpose = models.CharField(max_length=100, blank=True)
    requirements = models.TextField(blank=True)
    message = models.TextField(blank=True)
    interests = models.JSONField(default=list, blank=True)
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default="website", db_index=True)
    utm_source = models.CharField(max_length=100, blank=True)
    utm_medium = models.CharField(max_length=100, blank=True)
    utm_campaign = models.CharField(max_length=100, blank=True)
    referrer = models.TextField(blank=True)
    landing_page = models.TextField(blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)

    # Operator-managed fields
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_NEW, db_index=True)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default="medium")
    assigned_to = models.ForeignKey(
        "authentication.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_leads",
    )
    notes = models.TextField(blank=True)
    follow_up_date = models.DateTimeField(null=True, blank=True)
    last_contact_date = models.DateTimeField(null=True, blank=True)
    conversion_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "leads"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.name} <{self.email}> [{self.status}]"

    def is_forward_transition(self, new_status: str) -> bool:
        """True if moving to ``new_status`` keeps the pipeline monotonic"""
        if new_status == self.status:
            return True
        if self.status in self.TERMINAL_STATUSES:
            return False
        if new_status == self.STATUS_LOST:
            return True
        return self.STATUS_RANK[new_status] > self.STATUS_RANK[self.status]
