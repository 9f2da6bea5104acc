"""Tests for configuration loading."""

import pytest
import yaml

from bitwork.config import DEFAULT_SESSION_SECRET, AppConfig, load_config, validate_config


@pytest.fixture
def config_file(tmp_path):
    """Create a temporary config file."""
    config_data = {
        "database": {"url": "sqlite:///tmp/test.db", "echo": True},
        "web": {"session_secret": "file-secret", "page_size": 20},
        "auth": {"user_id_header": "X-Auth-User"},
        "log_level": "debug",
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config_data), encoding="utf-8")
    return str(path)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("BITWORK_SESSION_SECRET", raising=False)


class TestLoadConfig:
    def test_loads_valid_config(self, config_file):
        config = load_config(config_file)
        assert config.database.url == "sqlite:///tmp/test.db"
        assert config.database.echo is True
        assert config.web.session_secret == "file-secret"
        assert config.web.page_size == 20
        assert config.auth.user_id_header == "X-Auth-User"
        assert config.log_level == "DEBUG"

    def test_missing_file_raises(self):
        with pytest.raises(FileNotFoundError):
            load_config("nonexistent.yaml")

    def test_defaults_without_file(self):
        config = load_config()
        assert config.database.url == "sqlite:///data/bitwork.db"
        assert config.database.auto_create is True
        assert config.web.page_size == 12
        assert config.auth.user_id_header == "X-Forwarded-User"
        assert config.auth.email_header == "X-Forwarded-Email"

    def test_defaults_applied_for_missing_sections(self, tmp_path):
        path = tmp_path / "partial.yaml"
        path.write_text(yaml.dump({"web": {"page_size": 5}}), encoding="utf-8")
        config = load_config(str(path))
        assert config.web.page_size == 5
        assert config.web.session_secret == DEFAULT_SESSION_SECRET
        assert config.log_dir == "logs"

    def test_env_overrides_file(self, config_file, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgres://user:pw@db/bitwork")
        monkeypatch.setenv("BITWORK_SESSION_SECRET", "env-secret")
        config = load_config(config_file)
        assert config.database.url == "postgresql://user:pw@db/bitwork"
        assert config.web.session_secret == "env-secret"


class TestValidateConfig:
    def test_default_secret_warns(self):
        warnings = validate_config(AppConfig())
        assert any("session secret" in w.lower() for w in warnings)

    def test_sqlite_without_auto_create_warns(self):
        config = AppConfig()
        config.database.auto_create = False
        warnings = validate_config(config)
        assert any("auto_create" in w for w in warnings)

    def test_bad_page_size_warns(self):
        config = AppConfig()
        config.web.page_size = 0
        assert any("page size" in w.lower() for w in validate_config(config))

    def test_valid_config_no_warnings(self, config_file):
        assert validate_config(load_config(config_file)) == []
