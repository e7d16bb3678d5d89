import logging
import sys

from startup_wrapper import settings
from startup_wrapper.log.handler import LokiHandler

LOG_FORMAT = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class MainFormatter(logging.Formatter):
    """Timestamped formatter shared by every handler of the wrapper."""

    def __init__(self) -> None:
        super().__init__(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(console_level: int = logging.INFO) -> None:
    """
    Configures the root logger for the wrapper.
    This sets up a console handler and optionally a Loki handler, clearing any
    previously configured handlers to prevent duplication.

    The application's own output is inherited and never passes through here.

    :param console_level: The logging level for the console output (e.g., logging.INFO).
    """
    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(MainFormatter())
    root_logger.addHandler(console_handler)

    # --- Loki Handler (conditional) ---
    if settings.LOKI_ENABLED:
        try:
            loki_handler = LokiHandler(
                url=settings.LOKI_URL,
                org_id=settings.LOKI_ORG_ID,
                flush_interval=settings.LOG_BUFFER_FLUSH_INTERVAL,
            )
            loki_handler.setLevel(logging.INFO) # Avoid spamming Loki with DEBUG logs
            loki_handler.setFormatter(MainFormatter())
            root_logger.addHandler(loki_handler)
            root_logger.info(f"Grafana Loki logging handler initialized for {settings.LOKI_URL}.")
        except Exception as e:
            root_logger.error(f"Failed to initialize Grafana Loki logging handler: {e}")
