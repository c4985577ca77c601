from newsletter_api.settings.loader import default_config_dir, load_settings
from newsletter_api.settings.models import (
    ApplicationSettings,
    DatabaseSettings,
    EmailClientSettings,
    LoggingSettings,
    Settings,
)

__all__ = [
    "load_settings",
    "default_config_dir",
    "Settings",
    "ApplicationSettings",
    "DatabaseSettings",
    "EmailClientSettings",
    "LoggingSettings",
]
