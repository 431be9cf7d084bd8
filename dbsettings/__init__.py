from dbsettings.core.conversion import convert, register_converter, to_invariant_string
from dbsettings.core.descriptor import SettingElement, SettingsModel
from dbsettings.core.exceptions import (
    ConversionUnavailableError,
    SettingConversionError,
    SettingNotFoundError,
    SettingsError,
    StorageFailure,
    TypeMismatchError,
)
from dbsettings.models.setting import Setting
from dbsettings.services.settings_cache import SettingsCache

__all__ = [
    "SettingsCache", "Setting",
    "SettingsModel", "SettingElement",
    "convert", "register_converter", "to_invariant_string",
    "SettingsError", "SettingNotFoundError", "ConversionUnavailableError",
    "SettingConversionError", "TypeMismatchError", "StorageFailure",
]
