"""Tests for the YAML configuration."""

from pathlib import Path

import pytest  # type: ignore[import-not-found]
import yaml  # type: ignore[import-untyped]

from toggl_timer.core.config import ConfigManager


@pytest.fixture
def temp_config_path(tmp_path: Path) -> Path:
    """Config file location inside a fresh directory."""
    return tmp_path / "config.yml"


class TestConfigManager:
    """Test loading and changing settings."""

    def test_initialization_creates_default_config(self, temp_config_path: Path) -> None:
        """Test a missing file is created with the defaults."""
        assert not temp_config_path.exists()

        config = ConfigManager(temp_config_path)

        assert temp_config_path.exists()
        assert config.get("version") == "1.0"
        assert config.get("api.base_url") == "https://api.track.toggl.com/api/v8"
        assert config.get("api.timeout") == 30
        assert config.get("api.app_name") == "toggl-timer"
        assert config.get("api.token") is None

    def test_load_existing_config(self, temp_config_path: Path) -> None:
        """Test stored values win over defaults."""
        config_data = {
            "version": "1.0",
            "api": {"token": "abc123", "timeout": 10},
        }

        with open(temp_config_path, "w") as f:
            yaml.dump(config_data, f)

        config = ConfigManager(temp_config_path)

        assert config.get("api.token") == "abc123"
        assert config.get("api.timeout") == 10
        # Defaults are merged in
        assert config.get("api.app_name") == "toggl-timer"
        assert config.get("advanced.log_level") == "WARNING"

    def test_get_nonexistent_key_returns_default(self, temp_config_path: Path) -> None:
        """Test unknown keys and keys below scalars give the default."""
        config = ConfigManager(temp_config_path)

        assert config.get("nonexistent.key") is None
        assert config.get("nonexistent.key", "default") == "default"
        assert config.get("api.timeout.nested", 42) == 42

    def test_set_value_persists(self, temp_config_path: Path) -> None:
        """Test a changed value is written to disk."""
        config = ConfigManager(temp_config_path)

        config.set("api.timeout", 60)

        assert config.get("api.timeout") == 60
        config2 = ConfigManager(temp_config_path)
        assert config2.get("api.timeout") == 60

    def test_timeout_range(self, temp_config_path: Path) -> None:
        """Test timeout range validation."""
        config = ConfigManager(temp_config_path)

        config.set("api.timeout", 1)
        config.set("api.timeout", 300)

        with pytest.raises(ValueError, match="Invalid configuration"):
            config.set("api.timeout", 0)
        with pytest.raises(ValueError, match="Invalid configuration"):
            config.set("api.timeout", 301)

    def test_invalid_set_keeps_previous_value(self, temp_config_path: Path) -> None:
        """Test a rejected value is neither applied nor saved."""
        config = ConfigManager(temp_config_path)
        config.set("api.timeout", 45)

        with pytest.raises(ValueError, match="api.timeout"):
            config.set("api.timeout", "slow")

        assert config.get("api.timeout") == 45
        assert ConfigManager(temp_config_path).get("api.timeout") == 45

    def test_base_url_must_be_http(self, temp_config_path: Path) -> None:
        """Test base_url pattern validation."""
        config = ConfigManager(temp_config_path)

        config.set("api.base_url", "http://localhost:8080/api/v8")

        with pytest.raises(ValueError):
            config.set("api.base_url", "ftp://example.com")

    def test_log_level_validation(self, temp_config_path: Path) -> None:
        """Test only known log level names are accepted."""
        config = ConfigManager(temp_config_path)

        for level in ["DEBUG", "INFO", "WARNING", "ERROR"]:
            config.set("advanced.log_level", level)
            assert config.get("advanced.log_level") == level

        with pytest.raises(ValueError):
            config.set("advanced.log_level", "TRACE")

    def test_reset_to_defaults(self, temp_config_path: Path) -> None:
        """Test reset drops the stored token."""
        config = ConfigManager(temp_config_path)
        config.set("api.token", "abc123")

        config.reset()

        assert config.get("api.token") is None

    def test_to_dict_is_copy(self, temp_config_path: Path) -> None:
        """Test to_dict hands out an independent copy."""
        config = ConfigManager(temp_config_path)

        config_dict = config.to_dict()
        config_dict["api"]["timeout"] = 99

        assert config.get("api.timeout") == 30

    def test_corrupted_config_creates_backup(self, temp_config_path: Path) -> None:
        """Test an invalid file is moved aside and replaced by defaults."""
        with open(temp_config_path, "w") as f:
            yaml.dump({"version": "1.0", "api": {"timeout": 5000}}, f)

        backup_path = temp_config_path.with_suffix(".yml.backup")

        with pytest.raises(ValueError, match="Config validation failed"):
            ConfigManager(temp_config_path)

        assert backup_path.exists()
        with open(temp_config_path) as f:
            new_config = yaml.safe_load(f)
        assert new_config["api"]["timeout"] == 30


class TestApiToken:
    """Test API token lookup."""

    def test_token_from_config(
        self, temp_config_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("TOGGL_API_TOKEN", raising=False)
        config = ConfigManager(temp_config_path)
        config.set("api.token", "from-file")

        assert config.api_token() == "from-file"

    def test_environment_overrides_config(
        self, temp_config_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test TOGGL_API_TOKEN wins over the config file."""
        monkeypatch.setenv("TOGGL_API_TOKEN", "from-env")
        config = ConfigManager(temp_config_path)
        config.set("api.token", "from-file")

        assert config.api_token() == "from-env"

    def test_no_token(self, temp_config_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("TOGGL_API_TOKEN", raising=False)

        assert ConfigManager(temp_config_path).api_token() is None
