import time
import logging
import threading
from pathlib import Path
from typing import Optional

from startup_wrapper import settings

log = logging.getLogger(__name__)

PROBE_FILE_NAME = settings.MOUNT_PROBE_NAME


class MountNotReadyError(RuntimeError):
    """Raised when the data directory never became writable within the wait budget."""


def probe_writable(directory: Path, probe_name: str = PROBE_FILE_NAME) -> bool:
    """
    Checks that the directory accepts writes by creating and removing a probe file.

    :param directory: The mount point to probe.
    :param probe_name: The name of the transient probe file.
    :return: True if the probe file could be created and removed.
    """
    probe = Path(directory) / probe_name
    try:
        probe.touch()
        probe.unlink()
        return True
    except OSError as e:
        log.debug(f"Mount probe at '{probe}' failed: {e}")
        return False


def wait_for_mount(
    directory: Path,
    timeout: float,
    interval: float,
    probe_name: str = PROBE_FILE_NAME,
    stop_event: Optional[threading.Event] = None,
) -> bool:
    """
    Blocks until the mount point is writable or the wait budget runs out.

    :param directory: The mount point to wait for.
    :param timeout: Total seconds to keep polling.
    :param interval: Seconds between probes.
    :param probe_name: The name of the transient probe file.
    :param stop_event: If given and set, the wait is abandoned early.
    :return: True if the mount became ready, False on timeout or abandon.
    """
    log.info(f"Waiting for mount at {directory}...")

    elapsed = 0.0
    while elapsed < timeout:
        if probe_writable(directory, probe_name):
            log.info("Mount is ready!")
            return True

        log.info(f"Mount not ready yet, waiting... ({elapsed:g}/{timeout:g} seconds)")
        if stop_event is not None:
            if stop_event.wait(interval):
                log.info("Mount wait abandoned, shutdown requested")
                return False
        else:
            time.sleep(interval)
        elapsed += interval

    log.error(f"Mount not ready after {timeout:g} seconds")
    return False
