from typing import Annotated

from fastapi import Depends

from dbsettings.core.settings_loader import settings_cache
from dbsettings.services.settings_cache import SettingsCache


# SETTINGS CACHE DEPENDENCY
# Override with app.dependency_overrides[get_settings_cache] in tests
def get_settings_cache() -> SettingsCache:
    return settings_cache


SettingsCacheDep = Annotated[SettingsCache, Depends(get_settings_cache)]
