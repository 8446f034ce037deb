from django.contrib import admin
from .models import EnumDefinition


@admin.register(EnumDefinition)
class EnumDefinitionAdmin(admin.ModelAdmin):
    list_display = ['key', 'option_count', 'updated_at']
    search_fields = ['key']

    @admin.display(description='Options')
    def option_count(self, obj):
        return len(obj.options)
