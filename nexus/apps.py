from django.apps import AppConfig


class NexusConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'nexus'
    verbose_name = 'NEXUS activity'
