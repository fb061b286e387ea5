"""
Tests for configuration management.
"""
import json
from unittest.mock import mock_open, patch

import pytest

from certmonitor.core.config import AppConfig, ConfigManager, load_config
from certmonitor.core.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep host environment and .env files out of the tests."""
    for name in ('URLS', 'TIMEOUT', 'MAX_WORKERS', 'LOG_LEVEL', 'LOG_FILE'):
        monkeypatch.delenv(f'CERTMONITOR_{name}', raising=False)
    with patch('certmonitor.core.config.load_dotenv'):
        yield


class TestConfigManager:
    """Test configuration manager functionality."""

    @patch('builtins.open', new_callable=mock_open, read_data="""
urls_to_check:
  - https://example.com
  - https://example.org
retriever:
  timeout: 5
  max_workers: 8
logging:
  level: "debug"
""")
    @patch('pathlib.Path.exists')
    def test_load_config_from_file(self, mock_exists, mock_file):
        """Test loading configuration from file."""
        mock_exists.return_value = True

        config = ConfigManager().load_config('test_config.yaml')

        assert config.urls_to_check == ["https://example.com", "https://example.org"]
        assert config.retriever.timeout == 5.0
        assert config.retriever.max_workers == 8
        assert config.logging.level == "DEBUG"

    def test_load_appsettings_json(self, tmp_path):
        """Test the JSON settings layout with its UrlsToCheck key."""
        settings = tmp_path / "appsettings.json"
        settings.write_text(json.dumps({
            "UrlsToCheck": ["https://example.com", None],
            "Logging": {"LogLevel": {"Default": "Information"}},
        }))

        config = ConfigManager().load_config(str(settings))

        assert config.urls_to_check == ["https://example.com", None]

    def test_null_url_list(self, tmp_path):
        settings = tmp_path / "config.yaml"
        settings.write_text("urls_to_check:\n")

        assert ConfigManager().load_config(str(settings)).urls_to_check == []

    @patch.dict('os.environ', {
        'CERTMONITOR_URLS': 'https://a.example.com, https://b.example.com',
        'CERTMONITOR_TIMEOUT': '3.5',
        'CERTMONITOR_MAX_WORKERS': '2',
        'CERTMONITOR_LOG_LEVEL': 'ERROR',
        'CERTMONITOR_LOG_FILE': 'custom.log',
    })
    def test_env_override(self):
        """Test that environment variables override file config."""
        manager = ConfigManager()

        file_config = {'urls_to_check': ['https://file.example.com'], 'retriever': {'timeout': 30}}
        with patch.object(manager, '_load_config_file', return_value=file_config):
            config = manager.load_config()

        assert config.urls_to_check == ['https://a.example.com', 'https://b.example.com']
        assert config.retriever.timeout == 3.5
        assert config.retriever.max_workers == 2
        assert config.logging.level == "ERROR"
        assert config.logging.file == "custom.log"

    def test_default_config(self):
        """Test default configuration values."""
        config = AppConfig()

        assert config.urls_to_check == []
        assert config.retriever.timeout == 10.0
        assert config.retriever.user_agent == "CertificateMonitor"
        assert config.retriever.max_workers == 4
        assert config.logging.level == "INFO"
        assert config.logging.file == "logs/certificateMonitor.log"
        assert config.logging.backup_count == 7

    def test_no_config_file_found(self, tmp_path, monkeypatch):
        """Test defaults are used when no default file exists."""
        monkeypatch.chdir(tmp_path)

        assert load_config().urls_to_check == []

    def test_default_lookup_finds_appsettings(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "appsettings.json").write_text('{"UrlsToCheck": ["https://example.com"]}')

        assert load_config().urls_to_check == ["https://example.com"]

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Config file not found"):
            ConfigManager().load_config(str(tmp_path / "missing.yaml"))

    def test_malformed_file(self, tmp_path):
        """Test unparsable files raise ConfigurationError."""
        settings = tmp_path / "config.yaml"
        settings.write_text("urls_to_check: [unclosed\n")

        with pytest.raises(ConfigurationError):
            ConfigManager().load_config(str(settings))

    def test_non_mapping_file(self, tmp_path):
        settings = tmp_path / "config.yaml"
        settings.write_text("- https://example.com\n")

        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            ConfigManager().load_config(str(settings))

    def test_merge_configs(self):
        """Test nested dictionaries are merged key by key."""
        manager = ConfigManager()

        merged = manager._merge_configs(
            {'retriever': {'timeout': 5, 'user_agent': 'agent'}, 'urls_to_check': ['a']},
            {'retriever': {'timeout': 1}},
        )

        assert merged == {'retriever': {'timeout': 1, 'user_agent': 'agent'}, 'urls_to_check': ['a']}


class TestConfigValidation:
    """Test configuration validation."""

    @pytest.mark.parametrize("retriever", [{'timeout': 0}, {'timeout': -1}, {'max_workers': 0}])
    def test_invalid_retriever_settings(self, tmp_path, retriever):
        settings = tmp_path / "config.yaml"
        settings.write_text(json.dumps({'retriever': retriever}))

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            ConfigManager().load_config(str(settings))

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            AppConfig(logging={'level': 'VERBOSE'})

    def test_non_string_url_rejected(self, tmp_path):
        settings = tmp_path / "config.yaml"
        settings.write_text("urls_to_check:\n  - 42\n")

        with pytest.raises(ConfigurationError):
            ConfigManager().load_config(str(settings))
