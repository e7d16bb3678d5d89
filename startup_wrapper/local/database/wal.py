import sqlite3
import logging
from pathlib import Path
from contextlib import contextmanager
from typing import Generator, Optional

log = logging.getLogger(__name__)

WAL_SUFFIX = "-wal"
SHM_SUFFIX = "-shm"


class DatabaseFiles:
    """
    The on-disk triple of a WAL-mode SQLite database: the main file, the
    write-ahead log and the shared-memory index. Sidecar names follow the
    engine's convention of appending a suffix to the main file's name.
    """

    def __init__(self, db_path: Path):
        """
        :param db_path: The path to the main SQLite database file.
        """
        self.db_path = Path(db_path)
        self.wal_path = self.db_path.with_name(self.db_path.name + WAL_SUFFIX)
        self.shm_path = self.db_path.with_name(self.db_path.name + SHM_SUFFIX)

    def exists(self) -> bool:
        return self.db_path.is_file()

    def has_wal(self) -> bool:
        return self.wal_path.is_file()

    def has_shm(self) -> bool:
        return self.shm_path.is_file()

    @staticmethod
    def size(path: Path) -> int:
        """Returns the size of a file in bytes, or 0 if it cannot be read. For logging only."""
        try:
            return path.stat().st_size
        except OSError:
            return 0

    def remove_sidecars(self) -> None:
        """Deletes the WAL and SHM files, ignoring ones that are already gone."""
        for path in (self.wal_path, self.shm_path):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                log.error(f"Failed to remove '{path}': {e}")

    def __repr__(self) -> str:
        return f"DatabaseFiles({str(self.db_path)!r})"


@contextmanager
def _get_connection(db_path: Path, timeout: float = 10) -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager that opens a connection to an existing database file and
    always closes it.

    :param db_path: The path to the SQLite database file.
    :param timeout: Seconds the engine waits on a busy database before failing.
    """
    conn = sqlite3.connect(db_path, timeout=timeout)
    try:
        yield conn
    finally:
        conn.close()


def checkpoint(db_path: Path, timeout: float = 10) -> bool:
    """
    Folds all WAL-resident pages into the main database file and truncates
    the WAL, using the engine's `wal_checkpoint(TRUNCATE)` pragma.

    Calling it without a database file or without a WAL file is a successful
    no-op and never opens the database.

    :param db_path: The path to the main SQLite database file.
    :param timeout: Seconds the engine waits on a busy database before failing.
    :return: True if the WAL is empty or gone afterwards, False if the engine failed.
    """
    files = DatabaseFiles(db_path)
    log.info("Attempting SQLite WAL checkpoint...")

    if not files.exists():
        log.info("No database file found, skipping checkpoint")
        return True

    if not files.has_wal():
        log.info("No WAL file found, checkpoint not needed")
        return True

    log.info(f"WAL file size before checkpoint: {files.size(files.wal_path)} bytes")

    result: Optional[tuple] = None
    try:
        with _get_connection(files.db_path, timeout) as conn:
            result = conn.execute("PRAGMA wal_checkpoint(TRUNCATE);").fetchone()
    except sqlite3.Error as e:
        log.error(f"WAL checkpoint failed: {e}")
        return False

    # (busy, wal frames, checkpointed frames); busy=1 means it could not complete.
    if result is None or result[0] != 0:
        log.error(f"WAL checkpoint could not complete, database busy. Result: {result}")
        return False

    log.info(f"WAL checkpoint completed successfully. Result: {tuple(result)}")
    if files.has_wal():
        log.info(f"WAL file size after checkpoint: {files.size(files.wal_path)} bytes")
    else:
        log.info("WAL file removed after checkpoint")
    return True
