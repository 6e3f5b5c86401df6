"""
Configuration from environment variables and .env files.

Validated with pydantic-settings, then converted to an immutable ClientConfig.
"""

from typing import Dict, Literal, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, SettingsError

from .auth import auth_from_settings
from .config import ClientConfig, DEFAULT_MAX_RETRIES, DEFAULT_RETRY_BACKOFF, DEFAULT_TIMEOUT
from .exceptions import ConfigurationError
from .logging import LoggingConfig

ENV_PREFIX = "REQUEST_CLIENT_"


class ClientSettings(BaseSettings):
    """
    Request Client configuration from environment variables.

    Reads from:
    1. Keyword arguments (overrides)
    2. Environment variables (REQUEST_CLIENT_*)
    3. .env file
    4. Defaults

    Example .env file:
        REQUEST_CLIENT_BASE_URL=https://api.example.com
        REQUEST_CLIENT_DEFAULT_HEADERS={"X-Tenant": "acme"}
        REQUEST_CLIENT_AUTH_TYPE=bearer
        REQUEST_CLIENT_AUTH_TOKEN=secret-token
        REQUEST_CLIENT_MAX_RETRIES=2
        REQUEST_CLIENT_LOG_LEVEL=INFO
        REQUEST_CLIENT_LOG_FORMAT=pretty
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    base_url: str = Field(description="Base URL for all requests")
    default_headers: Dict[str, str] = Field(default_factory=dict, description="JSON object")

    # Auth
    auth_type: Literal["none", "basic", "bearer", "apikey", "api_key"] = Field(default="none")
    auth_username: Optional[str] = None
    auth_password: Optional[str] = None
    auth_token: Optional[str] = None
    api_key: Optional[str] = None
    api_key_placement: Literal["header", "query"] = Field(default="header")
    api_key_name: Optional[str] = None

    # Retry / timeout
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    retry_backoff: float = Field(default=DEFAULT_RETRY_BACKOFF, ge=0)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)

    # Transport
    verify_ssl: bool = Field(default=True)

    # Observer visibility
    disable_log_body: bool = Field(default=False)
    disable_log_headers: bool = Field(default=False)
    disable_log_query: bool = Field(default=False)

    # Logging (LOG_LEVEL включает LoggingObserver)
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None
    log_format: Literal["json", "pretty", "text"] = Field(default="text")

    @field_validator('auth_type', 'api_key_placement', 'log_format', mode='before')
    @classmethod
    def lower_case(cls, v):
        return v.lower() if isinstance(v, str) else v

    @field_validator('log_level', mode='before')
    @classmethod
    def upper_case(cls, v):
        return v.upper() if isinstance(v, str) else v

    def to_logging_config(self) -> Optional[LoggingConfig]:
        """LoggingConfig if LOG_LEVEL is set, else None."""
        if self.log_level is None:
            return None
        return LoggingConfig.create(level=self.log_level, format=self.log_format)

    def to_client_config(self) -> ClientConfig:
        """
        Convert to ClientConfig.

        Raises:
            ConfigurationError: incomplete auth settings or invalid base_url
        """
        auth = auth_from_settings(
            auth_type=self.auth_type,
            username=self.auth_username,
            password=self.auth_password,
            token=self.auth_token,
            api_key=self.api_key,
            api_key_placement=self.api_key_placement,
            api_key_name=self.api_key_name,
        )
        return ClientConfig.create(
            base_url=self.base_url,
            headers=self.default_headers,
            auth=auth,
            max_retries=self.max_retries,
            retry_backoff=self.retry_backoff,
            timeout=self.timeout,
            disable_log_body=self.disable_log_body,
            disable_log_headers=self.disable_log_headers,
            disable_log_query=self.disable_log_query,
            verify_ssl=self.verify_ssl,
            logging=self.to_logging_config(),
        )


def load_from_env(env_file: Optional[str] = None, **overrides) -> ClientConfig:
    """
    Load ClientConfig from environment variables.

    Priority (highest to lowest):
    1. **overrides - explicit parameters (same names as ClientSettings fields)
    2. Environment variables (REQUEST_CLIENT_*)
    3. .env file
    4. Defaults

    Args:
        env_file: Custom .env file path (default: ./.env if present)
        **overrides: Explicit setting overrides

    Returns:
        ClientConfig instance

    Raises:
        ConfigurationError: missing or invalid settings

    Example:
        >>> config = load_from_env()
        >>> config = load_from_env(env_file=".env.staging", max_retries=0)
    """
    kwargs = dict(overrides)
    if env_file is not None:
        kwargs['_env_file'] = env_file

    try:
        settings = ClientSettings(**kwargs)
    except (ValidationError, SettingsError) as e:
        raise ConfigurationError(f"Invalid environment configuration: {e}") from e

    return settings.to_client_config()


__all__ = ["ClientSettings", "load_from_env", "ENV_PREFIX"]
