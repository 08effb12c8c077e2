"""Error types raised by the SAML-to-STS credentials core.

Every condition a caller is expected to branch on has its own exception class.
STS failures are not wrapped: botocore exceptions propagate with their original
message so callers can inspect error codes themselves.

Usage:
    from saml_sts.errors import StoreNotFoundError

    try:
        session = store.load_credentials("work")
    except StoreNotFoundError:
        session = None
"""

from pathlib import Path
from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .models import Role


class SamlStsError(Exception):
    """Base class for all errors raised by saml_sts."""

    def __init__(self, message: str, suggestion: str = ""):
        full_message = message
        if suggestion:
            full_message += f"\n\n{suggestion}"
        super().__init__(full_message)
        self.message = message
        self.suggestion = suggestion

    def format(self) -> str:
        """Format error for console output with suggestions."""
        output = f"Error: {self.message}"
        if self.suggestion:
            output += f"\n   Hint: {self.suggestion}"
        return output


class RoleNotFoundError(SamlStsError):
    """Raised when a requested role ARN is not present in the SAML assertion.

    Attributes:
        role_arn: Role ARN that was requested
        available_roles: Roles found in the assertion, sorted by role ARN
    """

    def __init__(self, available_roles: Sequence["Role"], role_arn: Optional[str] = None):
        self.role_arn = role_arn
        self.available_roles = list(available_roles)

        if self.available_roles:
            listing = ", ".join(role.role_arn for role in self.available_roles)
            suggestion = f"Available roles: {listing}"
        else:
            suggestion = "The SAML assertion does not contain any roles"

        super().__init__(f"Role ARN {role_arn!r} not found in SAML assertion", suggestion)


class ProfileNotFoundError(SamlStsError):
    """Raised when the credentials store has no record for a profile."""

    def __init__(self, profile: str):
        self.profile = profile
        super().__init__(f"Profile {profile!r} not found in credentials store")


class InvalidProfileError(SamlStsError):
    """Raised when a profile name cannot be used as a credentials file section."""

    def __init__(self, profile: str, reason: str):
        self.profile = profile
        self.reason = reason
        super().__init__(
            f"Invalid profile name {profile!r}: {reason}",
            "Profile names must be non-empty and must not contain '[', ']' or line breaks",
        )


class RoleMismatchError(SamlStsError):
    """Raised when a stored session belongs to a different role than expected.

    Attributes:
        requested: Role ARN the caller expected
        found: Role ARN recorded in the stored session
    """

    def __init__(self, requested: str, found: str):
        self.requested = requested
        self.found = found
        super().__init__(
            f"Stored session is for role {found!r}, not the requested role {requested!r}",
            "Authenticate again to obtain credentials for the requested role",
        )


class StoreNotFoundError(SamlStsError):
    """Raised when the credentials file does not exist or persistence is disabled.

    This is an expected condition: callers use it to decide between loading an
    existing store and initializing a new one.

    Attributes:
        path: Credentials file path, or None when persistence is disabled
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = path
        if path is None:
            super().__init__("Credentials persistence is disabled")
        else:
            super().__init__(f"Credentials file not found: {path}")


class FatalIOError(SamlStsError):
    """Raised for any credentials store failure other than a missing file.

    The original exception is always chained as ``__cause__``.
    """

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to access credentials file {path}: {reason}")


class SamlParseError(SamlStsError):
    """Raised when a SAML response cannot be decoded or parsed."""


class ConfigError(SamlStsError, ValueError):
    """Raised when configuration values are missing or invalid."""
