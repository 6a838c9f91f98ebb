from django.apps import AppConfig


class StudyCoreConfig(AppConfig):
    name = "studycore"
    verbose_name = "Study scheduling and gamification"
    default_auto_field = "django.db.models.BigAutoField"
