import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient


TEST_ADMIN_SECRET = "test-admin-secret"


@pytest.fixture()
def app_ctx(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> dict:
    data_dir = tmp_path / "data"
    data_dir.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("ADMIN_SECRET", TEST_ADMIN_SECRET)
    monkeypatch.setenv("DATA_DIR", str(data_dir))
    monkeypatch.setenv("APP_VERSION", "test")
    for name in ("ENQUIRY_RATE_LIMIT", "ENQUIRY_RATE_WINDOW_MS", "RATE_LIMIT_MAX_CLIENTS"):
        monkeypatch.delenv(name, raising=False)

    for name in list(sys.modules.keys()):
        if name == "app" or name.startswith("app."):
            del sys.modules[name]

    import importlib

    main = importlib.import_module("app.main")
    return {"app": main.app, "data_dir": data_dir, "secret": TEST_ADMIN_SECRET}


@pytest.fixture()
def client(app_ctx: dict):
    with TestClient(app_ctx["app"]) as c:
        yield c


@pytest.fixture()
def data_dir(app_ctx: dict) -> Path:
    return app_ctx["data_dir"]


@pytest.fixture()
def admin_secret(app_ctx: dict) -> str:
    return app_ctx["secret"]


@pytest.fixture()
def enquiry_body():
    def _make(**overrides) -> dict:
        body = {
            "pgId": "pg-1",
            "name": "Asha Rao",
            "phone": " 98765-43210 ",
            "email": " Asha@Example.COM ",
            "roomSharing": "DOUBLE",
            "moveInDate": "2026-11-01",
            "message": "  Is breakfast included?  ",
        }
        body.update(overrides)
        return body

    return _make


@pytest.fixture()
def submit(client):
    def _submit(body: dict, ip: str = "192.0.2.10"):
        return client.post("/api/enquiries", json=body, headers={"X-Forwarded-For": ip})

    return _submit


@pytest.fixture()
def admin_headers(admin_secret: str) -> dict:
    return {"X-Admin-Key": admin_secret}
