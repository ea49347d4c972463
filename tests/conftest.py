"""Test configuration utilities and shared fixtures."""

import sys
from pathlib import Path

# Ensure the ``src`` directory is importable when tests are executed without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402

from forfettario.backend.app import create_app  # noqa: E402
from forfettario.backend.services.year_service import InMemoryYearRepository  # noqa: E402


@pytest.fixture()
def base_inputs() -> dict:
    """Valid wire-form calculator inputs (scenario from a 2024 tax return)."""

    return {
        "year": "2024",
        "revenue": "11552.62",
        "coeff": "0.67",
        "taxRate": "0.05",
        "inpsType": "gestione_separata",
        "inpsRate": "0.26",
        "inpsDeductible": True,
        "applyAcconti": True,
        "splitModel": "standard",
        "customSplitJune": "0.4",
        "customSplitNovember": "0.6",
    }


@pytest.fixture()
def repository() -> InMemoryYearRepository:
    return InMemoryYearRepository()


@pytest.fixture()
def app(repository: InMemoryYearRepository, monkeypatch: pytest.MonkeyPatch) -> Flask:
    """Return a configured Flask application for integration tests."""

    monkeypatch.setenv("FORFETTARIO_ALLOWED_ORIGINS", "http://localhost:3000")
    application = create_app(repository=repository)
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Provide a test client bound to the configured Flask app."""

    return app.test_client()
