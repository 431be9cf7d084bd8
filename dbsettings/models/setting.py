from sqlalchemy import Column, String, Text
from dbsettings.database import Base


class Setting(Base):
    """A durably stored setting. The value is always kept as text."""
    __tablename__ = "settings"

    key = Column(String, primary_key=True, index=True)
    value = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Setting(key='{self.key}')>"
