from django.contrib import admin
from .models import TimelineEvent


@admin.register(TimelineEvent)
class TimelineEventAdmin(admin.ModelAdmin):
    list_display = ['title', 'type', 'date', 'is_public', 'app_id']
    list_filter = ['type', 'is_public']
    search_fields = ['title', 'description', 'version']
    date_hierarchy = 'date'
