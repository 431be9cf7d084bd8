import logging
import time
from datetime import timedelta
from typing import Any, Callable, List, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dbsettings.config import settings
from dbsettings.core.cache import ExpiringCache
from dbsettings.core.conversion import convert, to_invariant_string
from dbsettings.core.descriptor import SettingsModel
from dbsettings.core.exceptions import SettingNotFoundError, StorageFailure
from dbsettings.database import SessionLocal
from dbsettings.models.setting import Setting

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=SettingsModel)


class SettingsCache:
    """
    Read-through cache for settings stored as text in a key/value table.

    Reads check the in-memory cache first and load the row on a miss. Writes
    go to the table in one transaction and then invalidate the written keys.
    ``model`` may be any mapped class with ``key`` (primary key) and
    ``value`` columns.
    """

    def __init__(
            self,
            session_factory: Callable[[], Session] = SessionLocal,
            model=Setting,
            ttl: Optional[timedelta] = None,
            allow_default_on_unknown_type: Optional[bool] = None,
            clock: Callable[[], float] = time.monotonic,
    ):
        self.session_factory = session_factory
        self.model = model
        self.ttl = ttl if ttl is not None else timedelta(minutes=settings.cache_ttl_minutes)
        if allow_default_on_unknown_type is None:
            allow_default_on_unknown_type = settings.allow_default_on_unknown_type
        self.allow_default_on_unknown_type = allow_default_on_unknown_type
        self._cache = ExpiringCache(self.ttl.total_seconds(), clock=clock)

    # --- READS ---

    def get(self, key: str, value_type: Type[T] = str) -> T:
        """
        Return the setting ``key`` converted to ``value_type``.
        Loads it from the table on a miss or after the entry expired.
        """
        return self._cache.get_or_load(key, value_type, lambda: self._load(key, value_type))

    def load(self, model_cls: Type[M]) -> M:
        """Build ``model_cls`` from the cached values of its setting fields."""
        values = {f.key: self.get(f.key, f.annotation) for f in model_cls.setting_fields()}
        return model_cls(**values)

    def _load(self, key: str, value_type: Any) -> Any:
        raw_value = self._fetch_raw(key)
        return convert(raw_value, value_type, allow_default=self.allow_default_on_unknown_type)

    def _fetch_raw(self, key: str) -> Optional[str]:
        """Read the stored text for ``key`` using a fresh session."""
        session = self.session_factory()
        try:
            row = session.query(self.model).filter(self.model.key == key).first()
            if row is None:
                raise SettingNotFoundError(key)
            logger.debug(f"Loaded setting {key} from storage")
            return row.value
        finally:
            session.close()

    # --- INVALIDATION ---

    def clear_cache(self, key: str) -> None:
        """Drop ``key`` from the cache. No-op when it is not cached."""
        self._cache.invalidate(key)

    def clear_all(self) -> None:
        self._cache.clear()

    def is_cached(self, key: str) -> bool:
        return self._cache.peek(key) is not None

    # --- WRITES ---

    def update(self, settings_obj: SettingsModel) -> None:
        """
        Write every setting field of ``settings_obj`` back to the table.

        All rows are written in one transaction and must already exist.
        Cache entries for every field are dropped only after the commit
        succeeded; on any failure the cache is left as it was.
        """
        items = list(settings_obj.setting_items())

        session = self.session_factory()
        try:
            for key, value in items:
                row = session.query(self.model).filter(self.model.key == key).first()
                if row is None:
                    session.rollback()
                    raise SettingNotFoundError(key)
                row.value = to_invariant_string(value)

            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Failed to save {len(items)} settings: {e}")
            raise StorageFailure(original_error=e)
        finally:
            session.close()

        # Unconditional: every written key is re-read on next access
        for key, _ in items:
            self.clear_cache(key)

        logger.info(f"Updated {len(items)} settings: {', '.join(key for key, _ in items)}")

    def initialize_defaults(self, defaults: SettingsModel) -> List[str]:
        """
        Seed rows for setting fields that do not exist yet.
        Existing values are never overwritten. Returns the keys created.
        """
        session = self.session_factory()
        try:
            existing = {
                row.key
                for row in session.query(self.model).filter(self.model.key.in_(defaults.setting_keys())).all()
            }

            created = []
            for key, value in defaults.setting_items():
                if key in existing:
                    continue
                session.add(self.model(key=key, value=to_invariant_string(value)))
                created.append(key)

            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageFailure("Failed to seed default settings", original_error=e)
        finally:
            session.close()

        if created:
            logger.info(f"Seeded default settings: {', '.join(created)}")
        return created
