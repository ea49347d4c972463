"""Integration tests covering CORS and storage configuration of the app factory."""

from pathlib import Path

import pytest
from flask.testing import FlaskClient

from forfettario.backend.app import REPOSITORY_EXTENSION, create_app
from forfettario.backend.services.year_service import (
    InMemoryYearRepository,
    SQLiteYearRepository,
)

ALLOWED_ORIGIN = "https://allowed.test"
ALLOWED_EMBEDDER = "https://embedder.test"
DISALLOWED_ORIGIN = "https://blocked.test"


@pytest.fixture()
def cors_client(monkeypatch: pytest.MonkeyPatch) -> FlaskClient:
    """Return a client configured with a known CORS allow-list."""

    monkeypatch.setenv(
        "FORFETTARIO_ALLOWED_ORIGINS",
        f" {ALLOWED_ORIGIN} ,{ALLOWED_EMBEDDER},,",
    )
    monkeypatch.delenv("FORFETTARIO_DB", raising=False)

    app = create_app()
    app.config.update(TESTING=True)

    with app.test_client() as client:
        yield client


def test_allowed_origin_receives_cors_headers(cors_client: FlaskClient) -> None:
    response = cors_client.get(
        "/api/v1/config/years",
        headers={"Origin": ALLOWED_ORIGIN},
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == ALLOWED_ORIGIN


def test_preflight_allows_year_updates(cors_client: FlaskClient) -> None:
    response = cors_client.options(
        "/api/v1/years/2024",
        headers={
            "Origin": ALLOWED_EMBEDDER,
            "Access-Control-Request-Method": "PUT",
        },
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == ALLOWED_EMBEDDER
    assert "PUT" in response.headers.get("Access-Control-Allow-Methods", "")


def test_disallowed_origin_does_not_receive_cors_headers(
    cors_client: FlaskClient,
) -> None:
    response = cors_client.post(
        "/api/v1/calculations",
        json={"inputs": {}},
        headers={"Origin": DISALLOWED_ORIGIN},
    )

    assert response.headers.get("Access-Control-Allow-Origin") is None


def test_missing_origins_emit_warning(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FORFETTARIO_ALLOWED_ORIGINS", raising=False)

    with pytest.warns(UserWarning, match="No allowed origins configured"):
        create_app(repository=InMemoryYearRepository())


def test_database_variable_selects_sqlite_storage(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("FORFETTARIO_ALLOWED_ORIGINS", ALLOWED_ORIGIN)
    monkeypatch.setenv("FORFETTARIO_DB", str(tmp_path / "years.db"))

    app = create_app()

    assert isinstance(app.extensions[REPOSITORY_EXTENSION], SQLiteYearRepository)
    assert (tmp_path / "years.db").exists()


def test_in_memory_storage_is_the_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FORFETTARIO_ALLOWED_ORIGINS", ALLOWED_ORIGIN)
    monkeypatch.delenv("FORFETTARIO_DB", raising=False)

    app = create_app()

    assert isinstance(app.extensions[REPOSITORY_EXTENSION], InMemoryYearRepository)
