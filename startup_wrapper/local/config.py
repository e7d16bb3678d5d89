import logging
from pathlib import Path
from typing import Any, Dict

import startup_wrapper.settings as default_settings

log = logging.getLogger(__name__)


class SupervisorSettings:
    """
    Attribute-based access to the wrapper's configuration.

    Values come from the upper-case constants in `settings.py`. Keyword
    overrides are accepted for known keys only, which is how tests shrink the
    wait ceilings. There is no runtime override file.
    """

    def __init__(self, **overrides: Any) -> None:
        self._load_defaults()
        self._apply_overrides(overrides)

    def _load_defaults(self) -> None:
        """Loads all uppercase attributes from the settings module as defaults."""
        for key in dir(default_settings):
            if key.isupper():
                setattr(self, key, getattr(default_settings, key))

    def _apply_overrides(self, overrides: Dict[str, Any]) -> None:
        for key, value in overrides.items():
            if not hasattr(self, key):
                log.warning(f"Override setting '{key}' not found in default settings. Ignoring.")
                continue

            # Coerce path strings back to Path objects if necessary
            if isinstance(getattr(self, key), Path):
                value = Path(value)
            setattr(self, key, value)
            log.debug(f"Overridden setting: {key} = {value}")

        # DB_PATH follows DATA_DIR and DB_FILE_NAME unless it was overridden on its own.
        if {"DATA_DIR", "DB_FILE_NAME"} & overrides.keys() and "DB_PATH" not in overrides:
            self.DB_PATH = self.DATA_DIR / self.DB_FILE_NAME

    def get(self, item: str, default: Any = None) -> Any:
        """Provides dictionary-like access to settings with a default value."""
        return getattr(self, item, default)

    def as_dict(self) -> Dict[str, Any]:
        """Returns the entire configuration as a dictionary."""
        return {key: value for key, value in vars(self).items() if key.isupper()}
