import time
import logging
from enum import Enum
from typing import Callable

from .wal import DatabaseFiles, checkpoint

log = logging.getLogger(__name__)


class RecoveryOutcome(Enum):
    NO_DATABASE = "no_database"
    CLEAN = "clean"
    RECOVERED = "recovered"
    DISCARDED = "discarded"


def recover_database(
    files: DatabaseFiles,
    settle_delay: float,
    checkpoint_fn: Callable[..., bool] = checkpoint,
    sleep: Callable[[float], None] = time.sleep,
) -> RecoveryOutcome:
    """
    Reconciles the database with WAL/SHM files left behind by a previous
    instance before the application is started.

    Leftover sidecars are checkpointed into the main file. If the checkpoint
    fails they are deleted, accepting the loss of their uncommitted pages, so
    that the container can still boot. This never raises.

    :param files: The database file triple to reconcile.
    :param settle_delay: Seconds to wait after deleting sidecars.
    :param checkpoint_fn: The checkpoint operation, taking the main file path.
    :param sleep: Sleep function, replaceable in tests.
    :return: What the reconciliation did.
    """
    log.info("Checking for SQLite database state...")

    if files.has_wal():
        log.info(f"Found WAL file: {files.wal_path} ({files.size(files.wal_path)} bytes)")
    if files.has_shm():
        log.info(f"Found SHM file: {files.shm_path}")

    if not files.exists():
        log.info("No existing database found, the application will create a new one")
        return RecoveryOutcome.NO_DATABASE

    log.info(f"Database file exists: {files.db_path} ({files.size(files.db_path)} bytes)")

    if not (files.has_wal() or files.has_shm()):
        return RecoveryOutcome.CLEAN

    log.info("WAL/SHM files found from previous instance, attempting to recover data by checkpointing WAL...")

    if checkpoint_fn(files.db_path):
        log.info("Successfully recovered WAL data to main database")
        outcome = RecoveryOutcome.RECOVERED
    else:
        log.warning("Could not checkpoint WAL, uncommitted pages will be lost. Removing stale WAL/SHM files...")
        files.remove_sidecars()
        sleep(settle_delay)
        outcome = RecoveryOutcome.DISCARDED

    if files.has_wal():
        log.info(f"WAL file size after recovery: {files.size(files.wal_path)} bytes")
    else:
        log.info("WAL file cleared successfully")
    return outcome
