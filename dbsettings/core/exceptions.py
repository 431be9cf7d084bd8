"""
Settings cache exceptions.

Every error raised by the cache derives from SettingsError and carries a
message, a machine readable error code and a details dict.
"""

from typing import Any, Dict, Optional


class SettingsError(Exception):
    """Base exception for settings cache errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class SettingNotFoundError(SettingsError, LookupError):
    """Raised when no stored row exists for a setting key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(
            message=f"Setting not found: {key}",
            error_code="SETTING_NOT_FOUND",
            details={"key": key},
        )


class ConversionUnavailableError(SettingsError, TypeError):
    """Raised when no converter is registered for the requested type."""

    def __init__(self, target: Any):
        self.target = target
        super().__init__(
            message=f"No converter registered for {_type_name(target)}",
            error_code="CONVERSION_UNAVAILABLE",
            details={"type": _type_name(target)},
        )


class SettingConversionError(SettingsError, ValueError):
    """Raised when stored text cannot be parsed as the requested type."""

    def __init__(self, raw_value: Optional[str], target: Any, original_error: Optional[Exception] = None):
        self.raw_value = raw_value
        self.target = target
        details = {"raw_value": raw_value, "type": _type_name(target)}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message=f"Cannot convert {raw_value!r} to {_type_name(target)}",
            error_code="SETTING_CONVERSION_ERROR",
            details=details,
        )
        if original_error:
            self.__cause__ = original_error


class TypeMismatchError(SettingsError, TypeError):
    """Raised when a cached setting is requested as a different type than it was cached with."""

    def __init__(self, key: str, cached_type: Any, requested_type: Any):
        self.key = key
        self.cached_type = cached_type
        self.requested_type = requested_type
        super().__init__(
            message=(
                f"Setting {key} is cached as {_type_name(cached_type)}, "
                f"requested as {_type_name(requested_type)}"
            ),
            error_code="SETTING_TYPE_MISMATCH",
            details={
                "key": key,
                "cached_type": _type_name(cached_type),
                "requested_type": _type_name(requested_type),
            },
        )


class StorageFailure(SettingsError):
    """Raised when the settings transaction cannot be committed."""

    def __init__(self, message: str = "Settings storage write failed", original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(message=message, error_code="SETTINGS_STORAGE_FAILURE", details=details)
        if original_error:
            self.__cause__ = original_error


def _type_name(target: Any) -> str:
    return getattr(target, "__name__", None) or repr(target)
