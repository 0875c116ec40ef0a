"""
Event form configuration module.

Manages the server URL, API key, session user, calendar timezone and the
image constraints used by a form session. Configuration can be loaded
from a YAML file or environment variables.
"""

import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml
from platformdirs import user_config_dir

from eventform.datetime_sync import resolve_timezone
from eventform.models import UploadConstraints


# ============================================================================
# Constants
# ============================================================================

APP_NAME = "eventform"
APP_AUTHOR = "EventForm"
CONFIG_FILENAME = "eventform-config.yaml"

# Environment variable names
ENV_SERVER_URL = "EVENTFORM_SERVER_URL"
ENV_API_KEY = "EVENTFORM_API_KEY"
ENV_LOG_LEVEL = "EVENTFORM_LOG_LEVEL"
ENV_CONFIG_PATH = "EVENTFORM_CONFIG_PATH"
ENV_TIMEZONE = "EVENTFORM_TIMEZONE"

# Default values
DEFAULT_IMAGE_MAX_DIMENSION = 800  # pixels
DEFAULT_IMAGE_EXPIRATION = 60 * 60 * 24 * 30  # seconds
DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds
DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# URL validation regex
URL_PATTERN = re.compile(
    r"^https?://"  # http:// or https://
    r"(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+[A-Z]{2,6}\.?|"  # domain
    r"localhost|"  # localhost
    r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})"  # ...or ip
    r"(?::\d+)?"  # optional port
    r"(?:/?|[/?]\S+)$",
    re.IGNORECASE,
)

# Keys settable through `eventform config set`
SETTABLE_KEYS = (
    "server_url",
    "api_key",
    "user_uid",
    "timezone",
    "image_max_dimension",
    "image_expiration_seconds",
    "request_timeout",
    "log_level",
)


# ============================================================================
# Exceptions
# ============================================================================


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration validation fails."""

    pass


# ============================================================================
# Helper Functions
# ============================================================================


def get_default_config_dir() -> Path:
    """
    Get the default configuration directory for the current platform.

    Returns:
        Path to the platform-appropriate config directory
    """
    return Path(user_config_dir(APP_NAME, APP_AUTHOR))


def get_default_config_path() -> Path:
    return get_default_config_dir() / CONFIG_FILENAME


# ============================================================================
# FormConfig Class
# ============================================================================


class FormConfig:
    """
    Event form configuration manager.

    Configuration sources (in priority order):
    1. Environment variables
    2. Configuration file
    3. Default values

    Attributes:
        server_url: Event server URL (also serves the image endpoint)
        api_key: API key sent as bearer token
        user_uid: UID of the user the CLI acts for
        timezone: IANA zone of the date/time controls, "" for system local
        image_max_dimension: Largest side of uploaded images
        image_expiration_seconds: Lifetime requested for uploaded images
        request_timeout: HTTP timeout in seconds, 0 disables it
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        config_dir: Optional[Path] = None,
    ):
        """
        Initialize configuration.

        Args:
            config_path: Explicit path to config file (takes precedence)
            config_dir: Directory containing config file
        """
        if config_path:
            self._config_path = Path(config_path)
            self._config_dir = self._config_path.parent
        elif config_dir:
            self._config_dir = Path(config_dir)
            self._config_path = self._config_dir / CONFIG_FILENAME
        else:
            env_path = os.environ.get(ENV_CONFIG_PATH)
            if env_path:
                self._config_path = Path(env_path)
                self._config_dir = self._config_path.parent
            else:
                self._config_path = get_default_config_path()
                self._config_dir = self._config_path.parent

        self._server_url: str = ""
        self._api_key: str = ""
        self._user_uid: str = ""
        self._timezone: str = ""
        self._image_max_dimension: int = DEFAULT_IMAGE_MAX_DIMENSION
        self._image_expiration_seconds: int = DEFAULT_IMAGE_EXPIRATION
        self._request_timeout: float = DEFAULT_REQUEST_TIMEOUT
        self._log_level: str = DEFAULT_LOG_LEVEL

        self._load()

    @property
    def config_path(self) -> Path:
        return self._config_path

    # -------------------------------------------------------------------------
    # Configuration Properties
    # -------------------------------------------------------------------------

    @property
    def server_url(self) -> str:
        return os.environ.get(ENV_SERVER_URL, self._server_url)

    @server_url.setter
    def server_url(self, value: str) -> None:
        self._server_url = value

    @property
    def api_key(self) -> str:
        return os.environ.get(ENV_API_KEY, self._api_key)

    @api_key.setter
    def api_key(self, value: str) -> None:
        self._api_key = value

    @property
    def user_uid(self) -> str:
        return self._user_uid

    @user_uid.setter
    def user_uid(self, value: str) -> None:
        self._user_uid = value

    @property
    def timezone(self) -> str:
        return os.environ.get(ENV_TIMEZONE, self._timezone)

    @timezone.setter
    def timezone(self, value: str) -> None:
        self._timezone = value

    @property
    def image_max_dimension(self) -> int:
        return self._image_max_dimension

    @image_max_dimension.setter
    def image_max_dimension(self, value: int) -> None:
        self._image_max_dimension = int(value)

    @property
    def image_expiration_seconds(self) -> int:
        return self._image_expiration_seconds

    @image_expiration_seconds.setter
    def image_expiration_seconds(self, value: int) -> None:
        self._image_expiration_seconds = int(value)

    @property
    def request_timeout(self) -> float:
        return self._request_timeout

    @request_timeout.setter
    def request_timeout(self, value: float) -> None:
        self._request_timeout = float(value)

    @property
    def log_level(self) -> str:
        return os.environ.get(ENV_LOG_LEVEL, self._log_level)

    @log_level.setter
    def log_level(self, value: str) -> None:
        self._log_level = value.upper()

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def is_configured(self) -> bool:
        """Check if a server URL and session user are set."""
        return bool(self.server_url and self.user_uid)

    @property
    def upload_constraints(self) -> UploadConstraints:
        return UploadConstraints(
            max_dimension=self.image_max_dimension,
            expiration_seconds=self.image_expiration_seconds,
        )

    @property
    def http_timeout(self) -> Optional[float]:
        """Timeout for the HTTP clients; None when disabled."""
        return self.request_timeout if self.request_timeout > 0 else None

    def tzinfo(self):
        """Resolved calendar timezone, None for the system local zone."""
        return resolve_timezone(self.timezone)

    # -------------------------------------------------------------------------
    # Configuration Management
    # -------------------------------------------------------------------------

    def _load(self) -> None:
        """Load configuration from file."""
        if not self._config_path.exists():
            return

        try:
            with open(self._config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse config file: {e}")

        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a mapping")

        try:
            self._server_url = data.get("server_url", "") or ""
            self._api_key = data.get("api_key", "") or ""
            self._user_uid = data.get("user_uid", "") or ""
            self._timezone = data.get("timezone", "") or ""
            self._image_max_dimension = int(
                data.get("image_max_dimension", DEFAULT_IMAGE_MAX_DIMENSION)
            )
            self._image_expiration_seconds = int(
                data.get("image_expiration_seconds", DEFAULT_IMAGE_EXPIRATION)
            )
            self._request_timeout = float(
                data.get("request_timeout", DEFAULT_REQUEST_TIMEOUT)
            )
            self._log_level = str(data.get("log_level", DEFAULT_LOG_LEVEL)).upper()
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value in config file: {e}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "server_url": self._server_url,
            "api_key": self._api_key,
            "user_uid": self._user_uid,
            "timezone": self._timezone,
            "image_max_dimension": self._image_max_dimension,
            "image_expiration_seconds": self._image_expiration_seconds,
            "request_timeout": self._request_timeout,
            "log_level": self._log_level,
        }

    def save(self) -> None:
        """Save configuration to file."""
        self._config_dir.mkdir(parents=True, exist_ok=True)

        with open(self._config_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)

    def set_value(self, key: str, value: str) -> None:
        """
        Set a setting from its text form.

        Raises:
            ConfigError: If the key is unknown or the value has the wrong type
        """
        if key not in SETTABLE_KEYS:
            raise ConfigError(f"Unknown setting: {key}")
        try:
            setattr(self, key, value)
        except ValueError as e:
            raise ConfigError(f"Invalid value for {key}: {e}")

    def validate(self) -> None:
        """
        Validate the current configuration.

        Raises:
            ConfigValidationError: If configuration is invalid
        """
        if self.server_url and not URL_PATTERN.match(self.server_url):
            raise ConfigValidationError(
                f"Invalid server_url format: {self.server_url}"
            )

        if self.image_max_dimension <= 0:
            raise ConfigValidationError(
                f"image_max_dimension must be positive, got: {self.image_max_dimension}"
            )

        if self.image_expiration_seconds <= 0:
            raise ConfigValidationError(
                f"image_expiration_seconds must be positive, got: {self.image_expiration_seconds}"
            )

        if self.request_timeout < 0:
            raise ConfigValidationError(
                f"request_timeout must be non-negative, got: {self.request_timeout}"
            )

        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigValidationError(f"Invalid log_level: {self.log_level}")

        try:
            resolve_timezone(self.timezone)
        except ValueError as e:
            raise ConfigValidationError(str(e))
