from datetime import datetime
from enum import Enum
from typing import Annotated, Optional

from dbsettings.core.descriptor import SettingElement, SettingsModel
from dbsettings.models.setting import Setting


class Verbosity(Enum):
    QUIET = "quiet"
    NORMAL = "normal"
    LOUD = "loud"


class ServerSettings(SettingsModel):
    MaxRetries: Annotated[int, SettingElement()] = 5
    SiteName: Annotated[str, SettingElement()] = "Example"
    MaintenanceMode: Annotated[bool, SettingElement()] = False
    Ratio: Annotated[float, SettingElement()] = 0.5
    LastRotation: Annotated[datetime, SettingElement()] = datetime(2024, 1, 31, 13, 45, 10)
    LogVerbosity: Annotated[Verbosity, SettingElement()] = Verbosity.NORMAL
    ContactEmail: Annotated[Optional[str], SettingElement()] = None

    # Not persisted
    display_hint: str = "unused"


STORED_DEFAULTS = {
    "MaxRetries": "5",
    "SiteName": "Example",
    "MaintenanceMode": "false",
    "Ratio": "0.5",
    "LastRotation": "2024-01-31T13:45:10",
    "LogVerbosity": "NORMAL",
    "ContactEmail": "",
}


class FakeClock:
    """Monotonic clock the tests move forward by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def stored_value(db, key: str):
    """Read a row straight from the table, bypassing the cache."""
    db.expire_all()
    row = db.query(Setting).filter(Setting.key == key).first()
    return row.value if row else None
