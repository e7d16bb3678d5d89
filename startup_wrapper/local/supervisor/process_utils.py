import os
import psutil
import logging
import subprocess
from typing import Any, Dict, List, Mapping, Optional

log = logging.getLogger(__name__)

# Exit status a shell reports when the command cannot be executed.
EXIT_COMMAND_NOT_FOUND = 127


#* --- Process Status ---
def get_process_from_pid(pid: int) -> psutil.Process:
    """A wrapper for psutil.Process for easy testing/mocking if needed."""
    return psutil.Process(pid)

def is_alive(proc: Optional[psutil.Process]) -> bool:
    """
    Liveness probe for a child process. Zombies count as dead: they have
    exited and only wait for their parent to reap them.
    """
    if proc is None:
        return False
    try:
        return proc.is_running() and proc.status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False

def normalise_exit_code(returncode: Optional[int]) -> int:
    """
    Converts a Popen return code into a process exit status. A negative code
    means the child died from a signal and becomes 128 + signal number.
    """
    if returncode is None:
        return 0
    if returncode < 0:
        return 128 + (-returncode)
    return returncode


#* --- Signals ---
def send_terminate(proc: psutil.Process) -> bool:
    """Sends SIGTERM. Returns False if the process was already gone."""
    try:
        proc.terminate()
        return True
    except psutil.NoSuchProcess:
        log.warning(f"Process {proc.pid} no longer exists, skipping termination.")
        return False

def send_kill(proc: psutil.Process) -> bool:
    """Sends SIGKILL. Returns False if the process was already gone."""
    try:
        proc.kill()
        return True
    except psutil.NoSuchProcess:
        log.warning(f"Process {proc.pid} no longer exists, skipping forceful kill.")
        return False


#* --- Process Creation ---
def _get_popen_creation_flags() -> Dict[str, Any]:
    """Returns keyword arguments for subprocess.Popen."""
    # A new session keeps terminal signals away from the child; the wrapper relays them.
    return {"start_new_session": True}

def build_child_environment(extra: Mapping[str, str]) -> Dict[str, str]:
    """Returns the inherited environment with the wrapper's additions applied."""
    env = dict(os.environ)
    env.update(extra)
    return env

def launch_process(command: List[str], env: Optional[Mapping[str, str]] = None) -> subprocess.Popen:
    """
    Launches the application process. Its stdout and stderr are inherited
    so the application's output streams straight through to the container log.

    :param command: The executable and its arguments.
    :param env: The full environment for the child, or None to inherit.
    :return: The Popen handle of the child.
    """
    log.info(f"Starting process: {' '.join(command)}...")
    try:
        p = subprocess.Popen(command, stdin=subprocess.DEVNULL, env=env, **_get_popen_creation_flags())
    except OSError as e:
        log.critical(f"Failed to start process '{command[0]}': {e}", exc_info=True)
        raise
    log.info(f"Process started with PID: {p.pid}")
    return p
