import sys
from pathlib import Path

# Ensure repo root is on sys.path so `import src...` works
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import asyncio
import pytest
from fastapi.testclient import TestClient

from src.server import app as app_module
from src.server.db import init_db, create_user
from src.server.storage import init_storage


@pytest.fixture()
def temp_env(tmp_path, monkeypatch):
    """
    Creates an isolated storage/DB per test and patches src.server.app globals.

    Important: In FastAPI TestClient there is already a running event loop.
    So we must NOT call asyncio.run() from inside request handling.
    Instead we schedule tasks onto the currently running loop.
    """
    storage_root = tmp_path / "storage"
    storage = init_storage(storage_root)
    db = init_db(storage_root / "server.db")

    # Patch server globals
    monkeypatch.setattr(app_module, "STORAGE", storage, raising=True)
    monkeypatch.setattr(app_module, "DB", db, raising=True)

    # Patch create_task to schedule onto the current loop (no asyncio.run)
    def _create_task(coro, **kwargs):
        loop = asyncio.get_running_loop()
        return loop.create_task(coro, **kwargs)

    monkeypatch.setattr(app_module.asyncio, "create_task", _create_task, raising=True)

    return {"storage": storage, "db": db, "root": tmp_path}


@pytest.fixture()
def client(temp_env):
    # single portal per test; background report jobs run between requests
    with TestClient(app_module.app) as c:
        yield c


@pytest.fixture()
def patient(temp_env) -> str:
    create_user(temp_env["db"], "p1", "Asha Patient", "asha@example.com", "patient")
    return "p1"


@pytest.fixture()
def doctor(temp_env) -> str:
    create_user(temp_env["db"], "d1", "Dr. Rao", "rao@example.com", "doctor")
    return "d1"


@pytest.fixture()
def sample_reports_csv(tmp_path) -> Path:
    p = tmp_path / "reports.csv"
    p.write_text(
        "id,report\n"
        "1,Known diabetic. Glucose 210 mg/dL\n"
        "2,BP: 150/95 with persistent cough and fever\n"
        "3,Routine checkup. No complaints.\n"
        "4,\n",
        encoding="utf-8",
    )
    return p
