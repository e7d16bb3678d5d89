"""
Container entry point for the startup wrapper.

Without arguments (or with 'run') it supervises the application. The
'checkpoint' and 'healthcheck' commands are one-off operator tools.
"""
import sys
import logging
from typing import Callable, Dict, List, Optional

import setproctitle

from startup_wrapper.log.setup import setup_logging
from startup_wrapper.local.config import SupervisorSettings
from startup_wrapper.local.database import checkpoint
from startup_wrapper.local.health import check_application_health
from startup_wrapper.local.supervisor import MountNotReadyError, StartupWrapper

log = logging.getLogger("startup_wrapper")

USAGE = """Usage: startup-wrapper [command] [--verbose]

Commands:
  run          Wait for the mount, recover the database and supervise the application (default)
  checkpoint   Fold the SQLite WAL into the main database file once
  healthcheck  Probe the application's health endpoint
  help         Show this message
"""


def run_supervisor(settings: SupervisorSettings) -> int:
    try:
        return StartupWrapper(settings).run()
    except MountNotReadyError as e:
        log.critical(f"Fatal startup error: {e}")
        return 1


def run_checkpoint(settings: SupervisorSettings) -> int:
    return 0 if checkpoint(settings.DB_PATH) else 1


def run_healthcheck(settings: SupervisorSettings) -> int:
    healthy = check_application_health(
        settings.HEALTHCHECK_URL,
        timeout=settings.HEALTHCHECK_TIMEOUT,
        retries=settings.HEALTHCHECK_RETRIES,
        delay=settings.HEALTHCHECK_RETRY_DELAY,
    )
    return 0 if healthy else 1


def print_help(settings: SupervisorSettings) -> int:
    print(USAGE)
    return 0


COMMANDS: Dict[str, Callable[[SupervisorSettings], int]] = {
    "run": run_supervisor,
    "checkpoint": run_checkpoint,
    "healthcheck": run_healthcheck,
    "help": print_help,
}


def main(argv: Optional[List[str]] = None, settings: Optional[SupervisorSettings] = None) -> int:
    """
    Parses the command line and runs the selected command.

    :param argv: Arguments without the program name; defaults to sys.argv[1:].
    :param settings: Settings to use; defaults to the module constants.
    :return: The process exit code.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    verbose = "--verbose" in args
    if verbose:
        args.remove("--verbose")

    setup_logging(logging.DEBUG if verbose else logging.INFO)

    command = args[0].lower() if args else "run"
    if command not in COMMANDS:
        log.error(f"Unknown command: '{command}'.")
        print(USAGE)
        return 2

    settings = settings or SupervisorSettings()
    if command == "run":
        setproctitle.setproctitle(settings.PROCESS_TITLE)
    log.debug(f"Executing command: {command}")
    return COMMANDS[command](settings)


if __name__ == "__main__":
    sys.exit(main())
