from django.contrib import admin
from .models import App, AppVersion, AppLike, AppView


class AppVersionInline(admin.TabularInline):
    model = AppVersion
    extra = 0
    fields = ['version', 'released_at', 'is_latest', 'download_url']


@admin.register(App)
class AppAdmin(admin.ModelAdmin):
    list_display = ['title', 'slug', 'status', 'visibility', 'view_count', 'like_count', 'created_at']
    list_filter = ['status', 'visibility']
    search_fields = ['title', 'slug', 'short_desc']
    prepopulated_fields = {'slug': ('title',)}
    readonly_fields = ['view_count', 'like_count', 'created_at', 'updated_at']
    inlines = [AppVersionInline]


@admin.register(AppVersion)
class AppVersionAdmin(admin.ModelAdmin):
    list_display = ['app', 'version', 'released_at', 'is_latest']
    list_filter = ['is_latest']
    search_fields = ['app__title', 'version']


@admin.register(AppLike)
class AppLikeAdmin(admin.ModelAdmin):
    list_display = ['app', 'user_id', 'reaction', 'created_at']


@admin.register(AppView)
class AppViewAdmin(admin.ModelAdmin):
    list_display = ['app', 'user_id', 'viewed_at']
