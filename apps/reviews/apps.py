from django.apps import AppConfig


class ReviewsConfig(AppConfig):
    name = 'apps.reviews'
    label = 'reviews'
    verbose_name = 'Review drafts'

    def ready(self):
        from .catalog import validate_catalog
        validate_catalog()
