import os
import time
import psutil
import logging
import subprocess
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, List, Optional

from startup_wrapper.local.database import checkpoint
from startup_wrapper.local.supervisor import process_utils

if TYPE_CHECKING:
    from startup_wrapper.local.config import SupervisorSettings

log = logging.getLogger(__name__)


class ShutdownState(Enum):
    RUNNING = "running"
    TERM_SENT = "term_sent"
    WAIT_CHILD = "wait_child"
    GRACEFUL_EXIT = "graceful_exit"
    FORCED_EXIT = "forced_exit"
    CHECKPOINTING = "checkpointing"
    SYNCING = "syncing"
    DONE = "done"


class ShutdownReport:
    """Records the path a shutdown took through the state machine."""

    def __init__(self, exit_code: int = 0):
        self.states: List[ShutdownState] = [ShutdownState.RUNNING]
        self.exit_code = exit_code
        self.kill_sent = False
        self.checkpoint_ok: Optional[bool] = None
        self.waited_seconds = 0.0

    @property
    def state(self) -> ShutdownState:
        return self.states[-1]

    def advance(self, state: ShutdownState) -> None:
        log.debug(f"Shutdown state: {self.state.name} -> {state.name}")
        self.states.append(state)

    def __repr__(self) -> str:
        path = " -> ".join(s.name for s in self.states)
        return f"ShutdownReport({path}, exit_code={self.exit_code})"


def _as_psutil(child: Optional[subprocess.Popen]) -> Optional[psutil.Process]:
    if child is None:
        return None
    try:
        return process_utils.get_process_from_pid(child.pid)
    except psutil.NoSuchProcess:
        return None


def _stop_child(
    child: subprocess.Popen,
    proc: psutil.Process,
    report: ShutdownReport,
    timeout: float,
    interval: float,
    sleep: Callable[[float], None],
) -> None:
    """Sends SIGTERM, waits up to the ceiling, then sends SIGKILL if the child is still alive."""
    log.info(f"Sending SIGTERM to application (PID: {proc.pid})...")
    process_utils.send_terminate(proc)
    report.advance(ShutdownState.TERM_SENT)

    log.info("Waiting for application to shutdown...")
    report.advance(ShutdownState.WAIT_CHILD)
    waited = 0.0
    while waited < timeout and process_utils.is_alive(proc):
        sleep(interval)
        waited += interval
    report.waited_seconds = waited

    if process_utils.is_alive(proc):
        log.warning("Application did not shutdown gracefully, forcing...")
        report.kill_sent = process_utils.send_kill(proc)
        report.advance(ShutdownState.FORCED_EXIT)
    else:
        log.info(f"Application shutdown completed after {waited:g} seconds")
        report.advance(ShutdownState.GRACEFUL_EXIT)

    # Reap the child if it has exited; a killed child may not be gone yet.
    child.poll()


def flush_database(db_path: Path, settle_delay: float, report: ShutdownReport, sleep: Callable[[float], None] = time.sleep) -> None:
    """
    Checkpoints the WAL into the main file, syncs buffered writes and holds for
    the settle delay so the mount can push them to the bucket. A failed
    checkpoint is logged and does not stop the sync.
    """
    report.advance(ShutdownState.CHECKPOINTING)
    log.info("Checkpointing SQLite WAL...")
    report.checkpoint_ok = checkpoint(db_path)
    if not report.checkpoint_ok:
        log.warning("Checkpoint may have failed")

    report.advance(ShutdownState.SYNCING)
    log.info("Syncing filesystem to the mount...")
    os.sync()
    sleep(settle_delay)


def graceful_shutdown(
    child: Optional[subprocess.Popen],
    settings: "SupervisorSettings",
    exit_code: int = 0,
    sleep: Callable[[float], None] = time.sleep,
) -> ShutdownReport:
    """
    Runs the ordered shutdown: stop the child if it is alive, checkpoint the
    database, sync and settle. Never raises for child or database errors.

    :param child: The application process, or None if it was never started.
    :param settings: Provides DB_PATH and the shutdown ceilings.
    :param exit_code: The exit code the wrapper will use once done.
    :param sleep: Sleep function, replaceable in tests.
    :return: The report of the states visited.
    """
    log.info("=" * 42)
    log.info("Starting graceful shutdown")
    log.info("=" * 42)

    report = ShutdownReport(exit_code)
    # Once reaped, the child's PID may belong to another process and must not be signalled.
    if child is not None and child.poll() is None:
        proc = _as_psutil(child)
        if process_utils.is_alive(proc):
            _stop_child(
                child, proc, report,
                timeout=settings.GRACEFUL_SHUTDOWN_TIMEOUT,
                interval=settings.SHUTDOWN_POLL_INTERVAL,
                sleep=sleep,
            )

    flush_database(settings.DB_PATH, settings.SYNC_SETTLE_DELAY, report, sleep)

    report.advance(ShutdownState.DONE)
    log.info("=" * 42)
    log.info(f"Graceful shutdown completed (exit code {report.exit_code})")
    log.info("=" * 42)
    return report
