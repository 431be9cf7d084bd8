import logging
from typing import Any, Dict, Type

from fastapi import APIRouter, HTTPException

from dbsettings.api.deps import SettingsCacheDep
from dbsettings.core.descriptor import SettingsModel
from dbsettings.core.exceptions import SettingNotFoundError, SettingsError, StorageFailure

logger = logging.getLogger(__name__)


def _http_error(e: SettingsError) -> HTTPException:
    """Map a settings error to the response the API returns for it"""
    if isinstance(e, SettingNotFoundError):
        return HTTPException(status_code=404, detail=e.message)
    if isinstance(e, StorageFailure):
        logger.error(f"Settings storage failed: {e.details}")
        return HTTPException(status_code=503, detail=e.message)

    # Unreadable stored values or conflicting cached types are server side faults
    logger.error(f"Settings error {e.error_code}: {e.message}")
    return HTTPException(status_code=500, detail=e.message)


def build_settings_router(model_cls: Type[SettingsModel]) -> APIRouter:
    """Expose the settings described by ``model_cls`` over HTTP."""
    router = APIRouter()

    @router.get("/", response_model=model_cls, name="list")
    def get_settings(cache: SettingsCacheDep):
        """Get every declared setting"""
        try:
            return cache.load(model_cls)
        except SettingsError as e:
            raise _http_error(e)

    @router.get("/{key}", name="value")
    def get_setting_value(key: str, cache: SettingsCacheDep) -> Dict[str, Any]:
        # Only declared settings are readable, always with their declared type
        try:
            field = model_cls.setting_field(key)
        except KeyError:
            raise HTTPException(status_code=404, detail="Setting not found")

        try:
            return {"key": key, "value": cache.get(key, field.annotation)}
        except SettingsError as e:
            raise _http_error(e)

    @router.put("/", response_model=model_cls, tags=["admin"], name="update")
    def update_settings(payload: model_cls, cache: SettingsCacheDep):
        """Write all declared settings and return the stored result"""
        try:
            cache.update(payload)
            return cache.load(model_cls)
        except SettingsError as e:
            raise _http_error(e)

    return router
