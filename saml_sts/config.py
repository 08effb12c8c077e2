"""Construction-time configuration.

Values come from keyword arguments or, via ``Config.from_env()``, from
environment variables:

    - AWS_REGION: Region of the STS endpoint (default: us-east-1)
    - SAML_STS_CACHE_DIR: Directory of the credentials file (default: ~/.aws/saml-sts)
    - SAML_STS_PERSISTENCE: Store sessions on disk (default: true)
    - SAML_STS_CREDENTIALS_FILE: Credentials file name (default: credentials)
    - SAML_STS_SESSION_DURATION: Session duration in seconds (default: unset)
    - LOG_LEVEL: Logging level (default: INFO)
    - SAML_STS_JSON_LOGS: Render logs as JSON (default: false)
    - SAML_STS_CONNECT_TIMEOUT / SAML_STS_READ_TIMEOUT: STS timeouts in seconds
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from .credentials_store import StoreConfig
from .errors import ConfigError

DEFAULT_REGION = "us-east-1"
DEFAULT_CACHE_DIR = Path.home() / ".aws" / "saml-sts"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def parse_bool(value: Any) -> bool:
    """Parse a boolean from a native bool or its string representation.

    Raises:
        ConfigError: If the value is not a recognized boolean
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        if value.strip().lower() in ["true", "1", "yes"]:
            return True
        if value.strip().lower() in ["false", "0", "no"]:
            return False
    raise ConfigError(f"Invalid boolean value: {value!r}. Expected: true, false, 1, 0, yes or no")


def parse_positive_int(name: str, value: Any) -> int:
    """Parse a strictly positive integer setting.

    Raises:
        ConfigError: If the value is not a positive integer
    """
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid value for {name}: {value!r}. Expected a positive integer")
    if parsed <= 0:
        raise ConfigError(f"Invalid value for {name}: {value!r}. Expected a positive integer")
    return parsed


@dataclass
class Config:
    """Settings for the credentials manager.

    Persistence is an explicit flag. With ``persistence_enabled=False`` the
    cache directory is ignored and no file is ever read or written.
    """

    aws_region: str = DEFAULT_REGION
    cache_dir: Optional[Path] = DEFAULT_CACHE_DIR
    persistence_enabled: bool = True
    credentials_filename: str = "credentials"
    session_duration: Optional[int] = None
    log_level: str = "INFO"
    json_logs: bool = False
    connect_timeout: int = 5
    read_timeout: int = 10

    def __post_init__(self):
        self.log_level = self.log_level.upper()
        if self.log_level not in VALID_LOG_LEVELS:
            raise ConfigError(f"Invalid log level: {self.log_level}. Must be one of {VALID_LOG_LEVELS}")

        if self.session_duration is not None:
            self.session_duration = parse_positive_int("session_duration", self.session_duration)

        if self.cache_dir is not None:
            self.cache_dir = Path(self.cache_dir).expanduser()

        if self.persistence_enabled and self.cache_dir is None:
            raise ConfigError(
                "Persistence is enabled but no cache directory is configured",
                "Set SAML_STS_CACHE_DIR or disable persistence with SAML_STS_PERSISTENCE=false",
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Build a Config from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Raises:
            ConfigError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ

        session_duration = env.get("SAML_STS_SESSION_DURATION", "")
        return cls(
            aws_region=env.get("AWS_REGION", "") or DEFAULT_REGION,
            cache_dir=Path(env.get("SAML_STS_CACHE_DIR", "") or DEFAULT_CACHE_DIR),
            persistence_enabled=parse_bool(env.get("SAML_STS_PERSISTENCE", "true")),
            credentials_filename=env.get("SAML_STS_CREDENTIALS_FILE", "") or "credentials",
            session_duration=(
                parse_positive_int("SAML_STS_SESSION_DURATION", session_duration) if session_duration else None
            ),
            log_level=env.get("LOG_LEVEL", "INFO"),
            json_logs=parse_bool(env.get("SAML_STS_JSON_LOGS", "false")),
            connect_timeout=parse_positive_int("SAML_STS_CONNECT_TIMEOUT", env.get("SAML_STS_CONNECT_TIMEOUT", "5")),
            read_timeout=parse_positive_int("SAML_STS_READ_TIMEOUT", env.get("SAML_STS_READ_TIMEOUT", "10")),
        )

    def store_config(self) -> StoreConfig:
        """Credentials store location derived from this configuration."""
        return StoreConfig(
            persistence_enabled=self.persistence_enabled,
            directory=self.cache_dir if self.persistence_enabled else None,
            filename=self.credentials_filename,
        )


def get_config() -> Config:
    """Load ``.env`` from the working directory (or a parent) and build a Config from the environment."""
    load_dotenv(find_dotenv(usecwd=True))
    return Config.from_env()
