"""
URL configuration for the Showcase project.
"""
from django.contrib import admin
from django.urls import path
from django.conf import settings
from django.conf.urls.static import static
from ninja import NinjaAPI

from apps.core.exceptions import ValidationFailed

api = NinjaAPI(
    title="Showcase API",
    version=settings.APP_VERSION,
    description="Catalog of showcased apps with media, timelines, users and organizations",
    docs_url="/docs",
)


@api.exception_handler(ValidationFailed)
def validation_failed(request, exc: ValidationFailed):
    return api.create_response(request, exc.to_response(), status=400)


from apps.core.api import router as health_router
from apps.identity.api import router as identity_router
from apps.organizations.api import router as organizations_router
from apps.catalog.api import router as catalog_router
from apps.media.api import app_media_router, router as media_router
from apps.timeline.api import router as timeline_router
from apps.enums.api import router as enums_router

api.add_router("/health", health_router)
api.add_router("/identity/", identity_router)
api.add_router("/organizations/", organizations_router)
api.add_router("/apps/", catalog_router)
api.add_router("/apps/", app_media_router)
api.add_router("/media/", media_router)
api.add_router("/timeline/", timeline_router)
api.add_router("/enums/", enums_router)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', api.urls),
]

# Serve media files in development
if settings.DEBUG:
    urlpatterns += static(
        getattr(settings, 'MEDIA_URL', '/media/'),
        document_root=getattr(settings, 'MEDIA_ROOT', settings.BASE_DIR / 'media')
    )
