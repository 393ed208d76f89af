from django.apps import AppConfig


class VariantsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.variants'
    label = 'variants'
    verbose_name = 'Variantes de Produto'

    def ready(self):
        from . import signals  # noqa: F401
