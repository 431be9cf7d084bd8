import pytest
from unittest.mock import MagicMock, patch
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from dbsettings import main
from dbsettings.config import Settings
from dbsettings.api.deps import get_settings_cache
from dbsettings.models.setting import Setting
from tests.conftest import engine as test_engine
from tests.support import ServerSettings, stored_value


@pytest.fixture(scope="function")
def client(cache):
    """
    App with the process-wide cache, engine and logging swapped for test doubles.
    Startup seeds the ServerSettings defaults.
    """
    with patch.object(main, "settings", Settings(database_url="sqlite:///:memory:")), \
            patch.object(main, "engine", test_engine), \
            patch.object(main, "settings_cache", cache), \
            patch.object(main, "log_config", MagicMock()):
        app = main.create_app(ServerSettings, defaults=ServerSettings())
        app.dependency_overrides[get_settings_cache] = lambda: cache

        with TestClient(app) as c:
            yield c

        app.dependency_overrides.clear()


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "dbsettings"}


def test_startup_seeds_defaults(client, db):
    assert stored_value(db, "MaxRetries") == "5"
    assert stored_value(db, "MaintenanceMode") == "false"


def test_list_settings(client):
    response = client.get("/api/settings/")
    assert response.status_code == 200

    data = response.json()
    assert data["MaxRetries"] == 5
    assert data["MaintenanceMode"] is False
    assert data["LogVerbosity"] == "normal"
    assert data["ContactEmail"] is None


def test_get_single_value_is_typed(client):
    response = client.get("/api/settings/Ratio")
    assert response.status_code == 200
    assert response.json() == {"key": "Ratio", "value": 0.5}


def test_get_undeclared_key(client):
    response = client.get("/api/settings/display_hint")
    assert response.status_code == 404


def test_get_declared_key_without_row(client, db):
    db.query(Setting).filter(Setting.key == "SiteName").delete()
    db.commit()

    response = client.get("/api/settings/SiteName")
    assert response.status_code == 404


def test_update_settings(client, db):
    assert client.get("/api/settings/MaxRetries").json()["value"] == 5

    payload = ServerSettings(MaxRetries=8, SiteName="Prod").model_dump(mode="json")
    response = client.put("/api/settings/", json=payload)

    assert response.status_code == 200
    assert response.json()["MaxRetries"] == 8
    assert stored_value(db, "SiteName") == "Prod"
    assert client.get("/api/settings/MaxRetries").json()["value"] == 8


def test_update_invalid_payload(client):
    response = client.put("/api/settings/", json={"MaxRetries": "many"})
    assert response.status_code == 422


def test_update_missing_row(client, db):
    db.query(Setting).filter(Setting.key == "Ratio").delete()
    db.commit()

    response = client.put("/api/settings/", json=ServerSettings().model_dump(mode="json"))
    assert response.status_code == 404


def test_update_storage_failure(client, db):
    failure = OperationalError("COMMIT", {}, Exception("database is locked"))

    with patch.object(Session, "commit", side_effect=failure):
        response = client.put("/api/settings/", json=ServerSettings(MaxRetries=8).model_dump(mode="json"))

    assert response.status_code == 503
    assert stored_value(db, "MaxRetries") == "5"


def test_list_with_unreadable_stored_value(client, db):
    row = db.query(Setting).filter(Setting.key == "MaxRetries").first()
    row.value = "many"
    db.commit()

    response = client.get("/api/settings/")
    assert response.status_code == 500
    assert response.json()["detail"] == "Cannot convert 'many' to int"

    response = client.get("/api/settings/MaxRetries")
    assert response.status_code == 500


def test_list_with_conflicting_cached_type(client, cache):
    # Another caller in the process cached the key as text
    cache.get("MaxRetries", str)

    response = client.get("/api/settings/")
    assert response.status_code == 500
    assert "cached as str" in response.json()["detail"]


def test_update_query_failure(client, db):
    failure = OperationalError("SELECT", {}, Exception("database is locked"))

    with patch.object(Session, "query", side_effect=failure):
        response = client.put("/api/settings/", json=ServerSettings(MaxRetries=8).model_dump(mode="json"))

    assert response.status_code == 503
    assert stored_value(db, "MaxRetries") == "5"
