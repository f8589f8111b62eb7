import io
import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from todo_backend.db import Database
from todo_backend.logs import setup_logger
from todo_backend.repository import todo_repo
from todo_backend.services.todo_svc import TodoService


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("db") / "todo_test.db"
    # Point the service to this temp DB
    os.environ["TODO_DB_PATH"] = str(path)
    conn = sqlite3.connect(str(path))
    try:
        todo_repo.ensure_schema(conn)
        conn.commit()
    finally:
        conn.close()
    return str(path)


@pytest.fixture()
def log_stream():
    return io.StringIO()


@pytest.fixture()
def logger(log_stream):
    return setup_logger(
        "debug",
        "%Y-%m-%dT%H:%M:%S.%fZ",
        name="todo_backend.tests",
        stdout=log_stream,
        stderr=log_stream,
    )


@pytest.fixture()
def db(tmp_db_path):
    database = Database(tmp_db_path, pool_size=2, max_overflow=0, pool_timeout=1.0)
    yield database
    database.dispose()


@pytest.fixture()
def service(db, logger):
    return TodoService(db, logger)


@pytest.fixture()
def client(tmp_db_path, logger):
    from fastapi.testclient import TestClient
    from todo_backend.api import create_app
    from todo_backend.config import load_settings

    app = create_app(load_settings(environ={"TODO_DB_PATH": tmp_db_path}), logger)
    # entering the context runs the startup hooks
    with TestClient(app) as c:
        yield c


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path):
    # Safety: ensure we only ever wipe the temp DB, never a real one
    assert os.environ.get("TODO_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    conn = sqlite3.connect(tmp_db_path)
    try:
        conn.execute("DELETE FROM todo")
        # restart ids at 1 for every test
        conn.execute("DELETE FROM sqlite_sequence WHERE name='todo'")
        conn.commit()
    finally:
        conn.close()
    yield
