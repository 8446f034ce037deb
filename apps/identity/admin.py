from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'name', 'role', 'is_active', 'last_login']
    list_filter = ['role', 'is_active', 'is_staff']
    search_fields = ['username', 'email', 'name']
    ordering = ['username']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Showcase', {'fields': ('name', 'role', 'org_id', 'avatar')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Showcase', {'fields': ('email', 'name', 'role')}),
    )
