"""
Shared fixtures for the startup wrapper tests.

Databases are real SQLite files. A "crashed" database is produced by copying
the main file and its WAL while the writing connection is still open, which
leaves committed rows only in the WAL, as after a container was reclaimed
mid-run.
"""

import shutil
import sqlite3
import subprocess
import sys
import time
from pathlib import Path

import pytest

from startup_wrapper.local.config import SupervisorSettings
from startup_wrapper.local.database import DatabaseFiles
from startup_wrapper.local.supervisor import process_utils

WORKFLOW_ROWS = [(i, f"workflow-{i}") for i in range(1, 51)]

# Child that exits shortly after SIGTERM, like an application finishing in-flight work.
GRACEFUL_CHILD = """
import pathlib, signal, sys, time
def on_term(signum, frame):
    time.sleep(0.3)
    sys.exit(0)
signal.signal(signal.SIGTERM, on_term)
pathlib.Path(sys.argv[1]).touch()
while True:
    time.sleep(0.05)
"""

# Child that ignores SIGTERM and has to be killed.
STUBBORN_CHILD = """
import pathlib, signal, sys, time
signal.signal(signal.SIGTERM, signal.SIG_IGN)
pathlib.Path(sys.argv[1]).touch()
while True:
    time.sleep(0.05)
"""


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def db_files(data_dir: Path) -> DatabaseFiles:
    return DatabaseFiles(data_dir / "database.sqlite")


@pytest.fixture
def fast_settings(data_dir: Path) -> SupervisorSettings:
    """Settings with every wait ceiling shrunk to a fraction of a second."""
    return SupervisorSettings(
        DATA_DIR=data_dir,
        MOUNT_WAIT_TIMEOUT=0.3,
        MOUNT_POLL_INTERVAL=0.1,
        RECOVERY_SETTLE_DELAY=0,
        GRACEFUL_SHUTDOWN_TIMEOUT=1.0,
        SHUTDOWN_POLL_INTERVAL=0.05,
        SYNC_SETTLE_DELAY=0,
        SUPERVISOR_POLL_INTERVAL=0.05,
        APP_COMMAND=[sys.executable, "-c", "import time; time.sleep(30)"],
    )


@pytest.fixture
def sync_calls(monkeypatch):
    """Records filesystem sync calls instead of syncing the host."""
    calls = []
    monkeypatch.setattr("startup_wrapper.local.supervisor.shutdown.os.sync", lambda: calls.append(time.monotonic()))
    return calls


def read_workflows(db_path: Path):
    conn = sqlite3.connect(db_path)
    try:
        return conn.execute("SELECT id, name FROM workflows ORDER BY id").fetchall()
    finally:
        conn.close()


@pytest.fixture
def healthy_db(db_files: DatabaseFiles) -> DatabaseFiles:
    """A WAL-mode database that was closed cleanly: no sidecar files remain."""
    conn = sqlite3.connect(db_files.db_path)
    conn.execute("CREATE TABLE workflows (id INTEGER PRIMARY KEY, name TEXT)")
    conn.executemany("INSERT INTO workflows VALUES (?, ?)", WORKFLOW_ROWS)
    conn.commit()
    conn.execute("PRAGMA journal_mode=WAL")
    conn.close()
    return db_files


@pytest.fixture
def crashed_db(tmp_path: Path, db_files: DatabaseFiles) -> DatabaseFiles:
    """A database whose committed rows still live only in a non-empty WAL."""
    live = DatabaseFiles(tmp_path / "live" / "database.sqlite")
    live.db_path.parent.mkdir()

    conn = sqlite3.connect(live.db_path)
    conn.execute("CREATE TABLE workflows (id INTEGER PRIMARY KEY, name TEXT)")
    conn.commit()
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA wal_autocheckpoint=0")
    conn.executemany("INSERT INTO workflows VALUES (?, ?)", WORKFLOW_ROWS)
    conn.commit()
    try:
        shutil.copyfile(live.db_path, db_files.db_path)
        shutil.copyfile(live.wal_path, db_files.wal_path)
    finally:
        conn.close()

    assert db_files.wal_path.stat().st_size > 0
    return db_files


@pytest.fixture
def corrupt_db(db_files: DatabaseFiles) -> DatabaseFiles:
    """A main file the engine refuses to open, with WAL and SHM files beside it."""
    db_files.db_path.write_bytes(b"this is not a sqlite database " * 100)
    db_files.wal_path.write_bytes(b"\x00" * 4096)
    db_files.shm_path.write_bytes(b"\x00" * 32768)
    return db_files


def wait_for_file(path: Path, timeout: float = 10) -> None:
    deadline = time.monotonic() + timeout
    while not path.exists():
        if time.monotonic() > deadline:
            raise TimeoutError(f"{path} was not created within {timeout}s")
        time.sleep(0.02)


@pytest.fixture
def spawn_child(tmp_path: Path):
    """Starts a child script and waits until it has installed its signal handlers."""
    children = []

    def _spawn(script: str) -> subprocess.Popen:
        ready = tmp_path / f"child-{len(children)}.ready"
        child = process_utils.launch_process([sys.executable, "-c", script, str(ready)])
        children.append(child)
        wait_for_file(ready)
        return child

    yield _spawn

    for child in children:
        if child.poll() is None:
            child.kill()
            child.wait(timeout=5)
