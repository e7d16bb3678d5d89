import signal
import logging
import threading
import subprocess
from typing import Any, Dict, List, Optional

from startup_wrapper.local.config import SupervisorSettings
from startup_wrapper.local.database import DatabaseFiles, RecoveryOutcome, recover_database
from startup_wrapper.local.supervisor import mount, process_utils, shutdown

log = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGQUIT)


class StartupWrapper:
    """
    Supervises the single application process for its whole lifecycle:
    mount gate, database recovery, spawn, signal interception, ordered
    shutdown and exit code propagation.
    """

    def __init__(self, settings: Optional[SupervisorSettings] = None) -> None:
        """Initializes the wrapper state."""
        self.settings = settings or SupervisorSettings()
        self.db_files = DatabaseFiles(self.settings.DB_PATH)
        self.child: Optional[subprocess.Popen] = None
        self.received_signal: Optional[int] = None
        self.ignored_signals: List[int] = []
        self.shutdown_signal_received = threading.Event()
        self.last_report: Optional[shutdown.ShutdownReport] = None
        self._previous_handlers: Dict[int, Any] = {}

    #* --- Signal Handling ---
    def _handle_signal(self, signum: int, frame: Any) -> None:
        """Only records the request; the supervision loop does the work. Never logs."""
        if self.shutdown_signal_received.is_set():
            self.ignored_signals.append(signum)
            return
        self.received_signal = signum
        self.shutdown_signal_received.set()

    def install_signal_handlers(self) -> None:
        for sig in SHUTDOWN_SIGNALS:
            self._previous_handlers[sig] = signal.signal(sig, self._handle_signal)

    def restore_signal_handlers(self) -> None:
        for sig, handler in self._previous_handlers.items():
            signal.signal(sig, handler)
        self._previous_handlers.clear()

    #* --- Startup Steps ---
    def wait_for_mount(self) -> bool:
        """
        Waits for the data directory to become writable.

        :return: True when ready, False if a shutdown signal arrived first.
        :raises MountNotReadyError: If the wait budget ran out.
        """
        ready = mount.wait_for_mount(
            self.settings.DATA_DIR,
            timeout=self.settings.MOUNT_WAIT_TIMEOUT,
            interval=self.settings.MOUNT_POLL_INTERVAL,
            probe_name=self.settings.MOUNT_PROBE_NAME,
            stop_event=self.shutdown_signal_received,
        )
        if ready or self.shutdown_signal_received.is_set():
            return ready
        raise mount.MountNotReadyError(
            f"Data directory '{self.settings.DATA_DIR}' not writable after "
            f"{self.settings.MOUNT_WAIT_TIMEOUT} seconds"
        )

    def recover_database(self) -> RecoveryOutcome:
        return recover_database(self.db_files, self.settings.RECOVERY_SETTLE_DELAY)

    def start_child(self) -> subprocess.Popen:
        env_additions = self.settings.CHILD_ENVIRONMENT
        log.info(f"Configuring SQLite for the mount: {', '.join(f'{k}={v}' for k, v in env_additions.items())}")
        env = process_utils.build_child_environment(env_additions)
        self.child = process_utils.launch_process(list(self.settings.APP_COMMAND), env=env)
        return self.child

    #* --- Lifecycle ---
    def supervision_loop(self) -> Optional[int]:
        """
        Waits until the child exits or a shutdown signal arrives.

        :return: The child's normalised exit code, or None if a signal arrived first.
        """
        while not self.shutdown_signal_received.wait(self.settings.SUPERVISOR_POLL_INTERVAL):
            returncode = self.child.poll()
            if returncode is not None:
                exit_code = process_utils.normalise_exit_code(returncode)
                log.info(f"Application exited with code: {exit_code}")
                return exit_code
        log.info(f"Received {signal.Signals(self.received_signal).name}, stopping application")
        return None

    def run(self) -> int:
        """
        Runs the full lifecycle and returns the exit code for the container.

        :raises MountNotReadyError: If the mount never became writable.
        """
        log.info("=" * 42)
        log.info("Application container startup")
        log.info("=" * 42)

        self.install_signal_handlers()
        try:
            if not self.wait_for_mount():
                # Storage is not usable, there is nothing to checkpoint.
                log.info("Shutdown requested before the mount was ready, exiting")
                return 0

            self.recover_database()
            if self.shutdown_signal_received.is_set():
                log.info("Shutdown requested before the application was started")
                return self._finish(exit_code=0)

            log.info("=" * 42)
            log.info("Starting application...")
            log.info("=" * 42)
            try:
                self.start_child()
            except OSError:
                return self._finish(exit_code=process_utils.EXIT_COMMAND_NOT_FOUND)

            child_exit_code = self.supervision_loop()
            if child_exit_code is None:
                return self._finish(exit_code=0)
            return self._finish(exit_code=child_exit_code)
        finally:
            self.restore_signal_handlers()

    def _finish(self, exit_code: int) -> int:
        # Later signals are absorbed by the handler from here on.
        self.shutdown_signal_received.set()
        self.last_report = shutdown.graceful_shutdown(self.child, self.settings, exit_code=exit_code)
        for signum in self.ignored_signals:
            log.info(f"Ignored {signal.Signals(signum).name} received during shutdown")
        return self.last_report.exit_code
