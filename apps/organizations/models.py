import uuid
from django.db import models


class Organization(models.Model):
    """
    A company or team that publishes apps.
    Users join an organization through their org_id.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    slug = models.SlugField(max_length=50, unique=True)
    description = models.TextField(max_length=500, blank=True)
    logo = models.URLField(max_length=255, blank=True)
    website = models.URLField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    # Store owner_id as UUID field (no FK to maintain app independence)
    owner_id = models.UUIDField(null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name
