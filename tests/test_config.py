"""Tests for requestlog.config"""

import pytest

from requestlog.config import Config, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("APP_ENV", "LOG_LEVEL", "LOG_DIR", "PORT", "LOG_COLOR", "CONFIG_PATH",
                "SLOW_REQUEST_MS"):
        monkeypatch.delenv(var, raising=False)


class TestDefaults:
    def test_default_values(self):
        config = load_config()
        assert config.environment == "development"
        assert config.port == 3002
        assert config.metrics_capacity == 1000
        assert config.slow_request_ms == 3000
        assert config.slow_operation_ms == 5000
        assert config.log_retention_days == 30
        assert config.health_path == "/api/health"

    def test_frozen(self):
        config = Config()
        with pytest.raises(AttributeError):
            config.port = 1


class TestMinLevel:
    def test_development_is_verbose(self):
        assert Config(environment="development").min_level == "verbose"

    def test_production_is_info(self):
        assert Config(environment="production").min_level == "info"
        assert Config(environment="production").is_production

    def test_explicit_level_wins(self):
        assert Config(environment="production", log_level="DEBUG").min_level == "debug"


class TestEnvOverrides:
    def test_env_vars_applied(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("LOG_COLOR", "false")
        config = load_config()
        assert config.environment == "production"
        assert config.port == 8080
        assert config.console_color is False


class TestYamlOverlay:
    def test_yaml_values_applied(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("port: 9000\nlog_dir: /tmp/x\nunknown_key: 1\n")
        config = load_config(str(path))
        assert config.port == 9000
        assert config.log_dir == "/tmp/x"

    def test_env_beats_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("port: 9000\n")
        monkeypatch.setenv("PORT", "7000")
        assert load_config(str(path)).port == 7000

    def test_config_path_env(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("slow_request_ms: 100\n")
        monkeypatch.setenv("CONFIG_PATH", str(path))
        assert load_config().slow_request_ms == 100

    def test_missing_file_uses_defaults(self, tmp_path):
        assert load_config(str(tmp_path / "nope.yaml")) == Config()

    def test_invalid_yaml_uses_defaults(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("port: [unclosed\n")
        assert load_config(str(path)) == Config()
        assert "Invalid YAML" in capsys.readouterr().err
