import uuid
from django.db import models


class EnumDefinition(models.Model):
    """
    An admin-editable list of choices, e.g. APP_PLATFORM.

    ``options`` is a list of ``{"id", "value", "label"}`` dicts; ``value`` is
    what gets stored on other records, ``label`` is what users see.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    key = models.CharField(max_length=100, unique=True)
    options = models.JSONField(default=list)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['key']

    def __str__(self):
        return self.key

    @property
    def values(self):
        return [option['value'] for option in self.options]
