"""Django app configuration for Vaultman."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class VaultmanConfig(AppConfig):
    """Configuration for Vaultman app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "vaultman"
    verbose_name = _("Estoque Digital")
