from typing import Any

from dbsettings.core.descriptor import SettingsModel
from dbsettings.services.settings_cache import SettingsCache

# Process-wide cache bound to the default SessionLocal.
# Lives for the life of the process; entries expire on their own.
settings_cache = SettingsCache()


def get_cached_setting(key: str, value_type: Any = str) -> Any:
    return settings_cache.get(key, value_type)


def invalidate_setting(key: str) -> None:
    settings_cache.clear_cache(key)


def invalidate_settings_cache() -> None:
    settings_cache.clear_all()


def update_settings(settings_obj: SettingsModel) -> None:
    settings_cache.update(settings_obj)
