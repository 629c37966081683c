"""
Configuration management for the chunked uploader.
Handles loading, validation, and persistence of configuration.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .api_client import DEFAULT_UPLOAD_ENDPOINT
from .logger import get_logger

logger = get_logger(__name__)

ACCESS_TOKEN_ENV = "CHUNKED_UPLOADER_ACCESS_TOKEN"


class Config(BaseModel):
    """Configuration model with validation."""

    model_config = ConfigDict(validate_assignment=True)

    # API settings
    access_token: str = Field(..., min_length=1, description="Bearer token for the upload API")
    upload_endpoint: str = Field(DEFAULT_UPLOAD_ENDPOINT, description="Upload API base URL")
    api_timeout: float = Field(60, gt=0, description="API request timeout in seconds")
    api_verify_ssl: bool = Field(True, description="Verify SSL certificates")

    # Upload settings
    request_concurrency: int = Field(5, ge=1, le=32, description="Maximum part uploads in flight")
    commit_max_attempts: int = Field(20, ge=1, le=100, description="Commit attempts before giving up")
    commit_retry_delay: float = Field(0.5, ge=0, le=10, description="Delay between commit attempts in seconds")

    # Logging settings
    log_level: str = Field("INFO", description="Logging level: DEBUG, INFO, WARNING, ERROR")
    log_dir: Optional[str] = Field(None, description="Log file directory (console only if unset)")

    @field_validator('upload_endpoint')
    @classmethod
    def validate_upload_endpoint(cls, v: str) -> str:
        if not v.startswith('http://') and not v.startswith('https://'):
            raise ValueError('Upload endpoint must start with http:// or https://')
        if not v.startswith('https://'):
            logger.warning('Using HTTP instead of HTTPS is insecure!')
        return v.rstrip('/')

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in allowed:
            raise ValueError(f'Log level must be one of: {", ".join(allowed)}')
        return v.upper()


class ConfigManager:
    """Manages configuration file loading and saving."""

    DEFAULT_CONFIG_PATH = Path.home() / ".chunked_uploader" / "config.json"

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager.

        Args:
            config_path: Optional custom config path
        """
        self.config_path = Path(config_path) if config_path else self.DEFAULT_CONFIG_PATH
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """Load configuration from file.

        The access token may be supplied or overridden through the
        CHUNKED_UPLOADER_ACCESS_TOKEN environment variable.

        Returns:
            Config object

        Raises:
            FileNotFoundError: If config file doesn't exist
            pydantic.ValidationError: If config is invalid
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            data = json.load(f)

        token = os.environ.get(ACCESS_TOKEN_ENV)
        if token:
            data['access_token'] = token

        self._config = Config(**data)
        return self._config

    def save(self, config: Config) -> None:
        """Save configuration to file (owner-only permissions).

        Args:
            config: Config object to save
        """
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, 'w') as f:
            json.dump(
                config.model_dump(exclude_none=True),
                f,
                indent=2,
                sort_keys=True
            )

        os.chmod(self.config_path, 0o600)

        self._config = config

    def get(self) -> Config:
        """Get current configuration (load if not cached)."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def update(self, updates: Dict[str, Any]) -> Config:
        """Update configuration fields and persist them.

        Args:
            updates: Dictionary of fields to update

        Returns:
            Updated Config object
        """
        updated_data = self.get().model_dump()
        updated_data.update(updates)

        new_config = Config(**updated_data)
        self.save(new_config)

        return new_config
