"""
This module contains the configuration constants for the startup wrapper.
It defines the data paths, the application command, and the fixed wait
ceilings used by the mount gate, the recovery step and the shutdown sequence.
"""

import os
import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

#* --- Process Identity ---
PROCESS_TITLE = "n8n - Startup Wrapper"

#* --- Data Paths ---
# The application already receives N8N_USER_FOLDER from the image, reuse it.
DATA_DIR = pathlib.Path(os.getenv("N8N_USER_FOLDER", "/home/node/.n8n"))
DB_FILE_NAME = "database.sqlite"
DB_PATH = DATA_DIR / DB_FILE_NAME
MOUNT_PROBE_NAME = ".mount-test"

#* --- Application Process ---
APP_COMMAND = ["/usr/local/bin/n8n"]
# Exported into the child's environment on top of the inherited one.
CHILD_ENVIRONMENT = {
    "SQLITE_MMAP_SIZE": "0",        # mmap is unreliable on FUSE mounts
    "DB_SQLITE_ENABLE_WAL": "true",
}

#* --- Wait Ceilings (seconds) ---
MOUNT_WAIT_TIMEOUT = 60
MOUNT_POLL_INTERVAL = 2
RECOVERY_SETTLE_DELAY = 2
GRACEFUL_SHUTDOWN_TIMEOUT = 30     # before force-killing
SHUTDOWN_POLL_INTERVAL = 1
SYNC_SETTLE_DELAY = 2              # lets the mount flush to the bucket
SUPERVISOR_POLL_INTERVAL = 0.5

#* --- Health Check ---
HEALTHCHECK_URL = os.getenv("HEALTHCHECK_URL", "http://localhost:5678/healthz")
HEALTHCHECK_TIMEOUT = 10
HEALTHCHECK_RETRIES = 3
HEALTHCHECK_RETRY_DELAY = 1

#* --- Logging ---
LOKI_ENABLED = os.getenv("LOKI_ENABLED", "False").lower() in ('true', '1', 't')
LOKI_URL = os.getenv("LOKI_URL", "http://localhost:3100")
LOKI_ORG_ID = os.getenv("LOKI_ORG_ID", "fake")
LOG_BUFFER_FLUSH_INTERVAL = 10
