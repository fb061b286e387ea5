"""
Centralized configuration management with validation.
"""
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

DEFAULT_CONFIG_PATHS = ('config.yaml', 'config/config.yaml', 'appsettings.json')

ENV_PREFIX = 'CERTMONITOR_'


class RetrieverConfig(BaseModel):
    """Certificate retriever configuration."""
    timeout: float = 10.0
    user_agent: str = "CertificateMonitor"
    max_workers: int = 4
    ca_file: Optional[str] = None

    @field_validator('timeout')
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("Timeout must be greater than zero")
        return v

    @field_validator('max_workers')
    @classmethod
    def validate_max_workers(cls, v):
        if v < 1:
            raise ValueError("max_workers must be at least 1")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = "logs/certificateMonitor.log"
    backup_count: int = 7

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()


class AppConfig(BaseModel):
    """Main application configuration."""
    model_config = ConfigDict(populate_by_name=True)

    urls_to_check: List[Optional[str]] = Field(
        default_factory=list,
        validation_alias=AliasChoices('urls_to_check', 'UrlsToCheck'),
    )
    retriever: RetrieverConfig = Field(default_factory=RetrieverConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator('urls_to_check', mode='before')
    @classmethod
    def validate_urls(cls, v):
        return [] if v is None else v


class ConfigManager:
    """Loads configuration from a YAML/JSON file, .env and the environment."""

    def load_config(self, config_path: Optional[str] = None) -> AppConfig:
        """Load configuration from file and environment variables.

        Raises:
            ConfigurationError: If the file cannot be read or values are invalid
        """
        load_dotenv(find_dotenv(usecwd=True))

        file_config = self._load_config_file(config_path)
        env_config = self._load_env_config()
        merged_config = self._merge_configs(file_config, env_config)

        try:
            return AppConfig(**merged_config)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def _load_config_file(self, config_path: Optional[str] = None) -> Dict[str, Any]:
        """Load configuration from a YAML (or JSON) file."""
        if config_path is None:
            for path in DEFAULT_CONFIG_PATHS:
                if Path(path).exists():
                    config_path = path
                    break
            else:
                return {}
        elif not Path(config_path).exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Error loading config from {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")
        return data

    def _load_env_config(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config: Dict[str, Any] = {}

        urls = os.getenv(f'{ENV_PREFIX}URLS')
        if urls:
            env_config['urls_to_check'] = [url.strip() for url in urls.split(',') if url.strip()]

        if os.getenv(f'{ENV_PREFIX}TIMEOUT'):
            env_config.setdefault('retriever', {})['timeout'] = os.getenv(f'{ENV_PREFIX}TIMEOUT')
        if os.getenv(f'{ENV_PREFIX}MAX_WORKERS'):
            env_config.setdefault('retriever', {})['max_workers'] = os.getenv(f'{ENV_PREFIX}MAX_WORKERS')

        if os.getenv(f'{ENV_PREFIX}LOG_LEVEL'):
            env_config.setdefault('logging', {})['level'] = os.getenv(f'{ENV_PREFIX}LOG_LEVEL')
        if os.getenv(f'{ENV_PREFIX}LOG_FILE'):
            env_config.setdefault('logging', {})['file'] = os.getenv(f'{ENV_PREFIX}LOG_FILE')

        return env_config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result


config_manager = ConfigManager()


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load and return the application configuration."""
    return config_manager.load_config(config_path)
