from typing import ClassVar
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class Settings(BaseSettings):
    app_name: ClassVar[str] = "dbsettings"
    version: ClassVar[str] = "0.1.0"

    database_url: str = "sqlite:///./storage/database/settings.db"

    # Storage paths
    log_dir: Path = Path("storage/logs")
    log_level: str = "INFO"

    # --- CACHE ---
    # Entries expire this many minutes after they were loaded (absolute, not sliding)
    cache_ttl_minutes: int = Field(default=15, ge=1)

    # Legacy behaviour: return the type's default value instead of raising
    # when a setting is requested as a type no converter knows about.
    allow_default_on_unknown_type: bool = False

    model_config = SettingsConfigDict(env_file=".env",
                                      env_prefix="DBSETTINGS_",
                                      extra="ignore",
                                      env_ignore_empty=True,
                                      case_sensitive=False,
                                      )


settings = Settings()
