import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dbsettings.database import Base
from dbsettings.models.setting import Setting
from dbsettings.services.settings_cache import SettingsCache
from tests.support import FakeClock, ServerSettings, STORED_DEFAULTS


# 1. SETUP TEST DATABASE
# SQLite in-memory with StaticPool: one shared connection, so every session
# (and every thread) sees the same data for the duration of a test.
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# 2. DB SESSION FIXTURE
@pytest.fixture(scope="function")
def db():
    """
    Creates a fresh database for every single test case.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(db):
    return TestingSessionLocal


@pytest.fixture(scope="function")
def clock():
    return FakeClock()


# 3. CACHE FIXTURE
@pytest.fixture(scope="function")
def cache(session_factory, clock) -> SettingsCache:
    return SettingsCache(session_factory=session_factory, clock=clock)


# 4. DATA FIXTURES
@pytest.fixture(scope="function")
def seeded(db):
    """Stores one row per ServerSettings field."""
    for key, value in STORED_DEFAULTS.items():
        db.add(Setting(key=key, value=value))
    db.commit()
    return ServerSettings()
