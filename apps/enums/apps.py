from django.apps import AppConfig


class EnumsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.enums'
    label = 'enums'
