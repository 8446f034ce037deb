from django.contrib import admin
from .models import Media


@admin.register(Media)
class MediaAdmin(admin.ModelAdmin):
    list_display = ['filename', 'type', 'app_id', 'mime_type', 'size', 'is_active', 'created_at']
    list_filter = ['type', 'is_active', 'mime_type']
    search_fields = ['filename', 'original_name']
    readonly_fields = ['created_at', 'updated_at']
