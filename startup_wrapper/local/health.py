import time
import logging
import requests

log = logging.getLogger(__name__)


def check_application_health(url: str, timeout: float = 10, retries: int = 3, delay: float = 1) -> bool:
    """
    Probes the application's health endpoint, as the image health check does.

    :param url: The health endpoint URL.
    :param timeout: Per-request timeout in seconds.
    :param retries: Number of attempts before giving up.
    :param delay: Delay in seconds between attempts.
    :return: True if the endpoint answered with a 2xx status.
    """
    for attempt in range(retries):
        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
            log.info(f"Application is healthy at '{url}' (HTTP {response.status_code}).")
            return True
        except requests.exceptions.RequestException as e:
            log.debug(f"Health check failed (attempt {attempt + 1}/{retries}): {e}")
            if attempt + 1 < retries:
                time.sleep(delay)

    log.error(f"Application did not answer the health check at '{url}' after {retries} attempts.")
    return False
