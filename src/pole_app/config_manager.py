"""Configuration Manager for the Pole Capture client."""
import os
from typing import ClassVar, Optional
from appdirs import user_cache_dir, user_data_dir
from pydantic import field_validator
from pydantic_settings import BaseSettings
from shared.errors import ConfigurationError
from shared.validation import Validator

APP_NAME = 'PoleCapture'
APP_AUTHOR = 'PoleCapture'


class ConfigManager(BaseSettings):
    """Manages client configuration settings using Pydantic BaseSettings."""

    # Backend settings
    api_base_url: str = ''
    api_anon_key: str = ''
    upload_url_endpoint: str = ''
    api_timeout: Optional[float] = None  # None leaves the transport default in place

    # List settings
    page_size: int = 20

    # Storage settings
    photo_dir: str = ''
    data_dir: str = ''
    device_id: str = ''

    # GPS settings
    location_timeout: float = 15.0  # seconds
    location_maximum_age: float = 10.0  # seconds

    # Upload settings
    upload_content_type: str = 'image/jpeg'

    class Config:
        env_prefix = 'POLE_'
        case_sensitive = False

    NETWORK_SETTINGS: ClassVar[tuple] = ('api_base_url', 'api_anon_key', 'upload_url_endpoint')

    @field_validator('page_size')
    @classmethod
    def page_size_within_server_limit(cls, value):
        return Validator.validate_page_size(value, 'page_size')

    @property
    def resolved_data_dir(self):
        return self.data_dir or user_data_dir(APP_NAME, APP_AUTHOR)

    @property
    def resolved_photo_dir(self):
        return self.photo_dir or os.path.join(user_cache_dir(APP_NAME, APP_AUTHOR), 'photos')

    def require(self, *keys):
        """Fail with a ConfigurationError naming every missing setting."""
        missing = [key for key in keys if not getattr(self, key, None)]
        if missing:
            env_names = ', '.join(f"POLE_{key.upper()}" for key in missing)
            raise ConfigurationError(f"Missing required configuration: {env_names}")
        return self

    def get(self, key, default=None):
        """Get a configuration value (backward compatibility)."""
        return getattr(self, key, default)

    def set(self, key, value):
        """Set a configuration value (backward compatibility)."""
        setattr(self, key, value)

    def get_all(self):
        """Get all configuration values as dictionary."""
        return self.model_dump()
