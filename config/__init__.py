"""Paperscope settings.

    from config import settings
    settings.db.path, settings.search.overfetch_factor, settings.ann.ef_search

Values come from PAPERSCOPE_* environment variables and an optional .env file.
Inspect them with ``python -m config.cli show`` or check them with
``python -m config.cli validate``.
"""

from typing import TYPE_CHECKING, cast

import config.settings as _settings_module
from config.settings import Settings, get_settings

# Static type for `settings`; at runtime it is whatever config.settings holds.
if TYPE_CHECKING:
    settings: Settings = _settings_module.settings
else:
    settings = cast(Settings, _settings_module.settings)


def reload_settings() -> Settings:
    """Re-read the environment and rebind `settings` here and in config.settings."""
    fresh = _settings_module.reload_settings()
    _settings_module.settings = fresh
    globals()["settings"] = fresh
    return cast(Settings, fresh)


__all__ = ["Settings", "get_settings", "reload_settings", "settings"]
