"""Django app configuration for catalog_engine."""
from django.apps import AppConfig
from django.utils.functional import cached_property


class CatalogEngineConfig(AppConfig):
    """Configuration for the catalog engine app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "catalog_engine"
    verbose_name = "Catalog Engine"

    @cached_property
    def service(self):
        """Process-wide CatalogService, built from settings on first use."""
        from .services import build_catalog_service

        return build_catalog_service()

    def shutdown(self):
        """Release the service's connections; call from the host's shutdown hook."""
        service = self.__dict__.pop("service", None)
        if service is None:
            return
        service.repository.close()
        service.gate.close()
