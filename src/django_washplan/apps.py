from django.apps import AppConfig


class DjangoWashplanConfig(AppConfig):
    name = "django_washplan"
    verbose_name = "Wash Plans"
    default_auto_field = "django.db.models.BigAutoField"
