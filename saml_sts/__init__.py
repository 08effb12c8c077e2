"""Exchange SAML assertions for temporary AWS credentials and cache them per profile."""

from .auth import RoleResolver, RoleSelection, SessionExchanger, create_sts_client
from .config import Config, get_config
from .credentials_store import CredentialsStore, StoreConfig
from .errors import (
    ConfigError,
    FatalIOError,
    InvalidProfileError,
    ProfileNotFoundError,
    RoleMismatchError,
    RoleNotFoundError,
    SamlParseError,
    SamlStsError,
    StoreNotFoundError,
)
from .logging_config import configure_logging
from .manager import CredentialsManager
from .models import Role, Session
from .parser import AssertionParser, ParsedAssertion, SamlParser
from .version import __version__

__all__ = [
    "AssertionParser",
    "Config",
    "ConfigError",
    "CredentialsManager",
    "CredentialsStore",
    "FatalIOError",
    "InvalidProfileError",
    "ParsedAssertion",
    "ProfileNotFoundError",
    "Role",
    "RoleMismatchError",
    "RoleNotFoundError",
    "RoleResolver",
    "RoleSelection",
    "SamlParseError",
    "SamlParser",
    "SamlStsError",
    "Session",
    "SessionExchanger",
    "StoreConfig",
    "StoreNotFoundError",
    "__version__",
    "configure_logging",
    "create_sts_client",
    "get_config",
]
