from pathlib import Path

from startup_wrapper import settings
from startup_wrapper.local.config import SupervisorSettings


class TestSupervisorSettings:
    def test_defaults_come_from_settings_module(self):
        config = SupervisorSettings()
        assert config.GRACEFUL_SHUTDOWN_TIMEOUT == 30
        assert config.MOUNT_WAIT_TIMEOUT == 60
        assert config.MOUNT_POLL_INTERVAL == 2
        assert config.SHUTDOWN_POLL_INTERVAL == 1
        assert config.SYNC_SETTLE_DELAY == 2
        assert config.RECOVERY_SETTLE_DELAY == 2
        assert config.DB_PATH == settings.DATA_DIR / "database.sqlite"

    def test_overrides_shrink_ceilings(self):
        config = SupervisorSettings(GRACEFUL_SHUTDOWN_TIMEOUT=0.5)
        assert config.GRACEFUL_SHUTDOWN_TIMEOUT == 0.5
        # The module constants are untouched.
        assert settings.GRACEFUL_SHUTDOWN_TIMEOUT == 30

    def test_unknown_override_is_ignored(self):
        config = SupervisorSettings(NOT_A_SETTING=1)
        assert not hasattr(config, "NOT_A_SETTING")

    def test_data_dir_override_moves_database(self, tmp_path):
        config = SupervisorSettings(DATA_DIR=str(tmp_path))
        assert config.DATA_DIR == tmp_path
        assert isinstance(config.DATA_DIR, Path)
        assert config.DB_PATH == tmp_path / "database.sqlite"

    def test_explicit_db_path_wins(self, tmp_path):
        config = SupervisorSettings(DATA_DIR=tmp_path, DB_PATH=tmp_path / "other.sqlite")
        assert config.DB_PATH == tmp_path / "other.sqlite"

    def test_as_dict_and_get(self):
        config = SupervisorSettings()
        assert config.as_dict()["DB_FILE_NAME"] == "database.sqlite"
        assert config.get("MISSING", "fallback") == "fallback"
