import uuid
from django.db import models
from django.contrib.auth.models import AbstractUser


class UserRole(models.TextChoices):
    ADMIN = 'admin', 'Administrator'
    DEVELOPER = 'developer', 'Developer'
    VIEWER = 'viewer', 'Viewer'


class User(AbstractUser):
    """
    Custom User model for the Showcase platform.

    Login tracking uses Django's built-in ``last_login`` column.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(max_length=255, unique=True)
    name = models.CharField(max_length=100, blank=True)
    # Store org_id as UUID field (no FK to maintain app independence)
    org_id = models.UUIDField(null=True, blank=True, db_index=True)
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.VIEWER
    )
    avatar = models.URLField(max_length=500, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['username']

    def __str__(self):
        return self.email or self.username

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
