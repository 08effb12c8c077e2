"""Value objects for roles and temporary AWS sessions.

A ``Session`` is the credential bundle returned by a successful
``AssumeRoleWithSAML`` call, bound to the role it was issued for and the profile
it is stored under. Sessions serialize to a flat, ini-friendly record so they can
live in a shared AWS-style credentials file next to unrelated profiles.

Record layout (one ini section per profile):

    [work]
    aws_access_key_id = ASIA...
    aws_secret_access_key = ...
    aws_session_token = ...
    aws_session_expiration = 2024-01-01T12:00:00+00:00
    aws_role_arn = arn:aws:iam::123456789012:role/Admin
    aws_role_name = Admin
    aws_principal_arn = arn:aws:iam::123456789012:saml-provider/Google
    aws_role_session_duration = 3600
    aws_saml_assertion = PHNhbWxwOlJlc3BvbnNl...
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, field_validator


def format_timestamp(value: datetime) -> str:
    """Render a datetime as an ISO-8601 string in UTC.

    Naive datetimes are assumed to already be in UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` or offset suffix) into an aware datetime."""
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Role:
    """An assumable IAM role advertised by the identity provider.

    Attributes:
        role_arn: ARN of the IAM role to assume
        principal_arn: ARN of the SAML provider trusted by the role
        session_duration: Session duration in seconds declared by the IdP, if any
    """

    role_arn: str
    principal_arn: str
    session_duration: Optional[int] = None

    @property
    def name(self) -> str:
        """Role name, i.e. the part of the ARN after the last slash."""
        return self.role_arn.rsplit("/", 1)[-1]


class SessionRecord(BaseModel):
    """Flat store representation of one session.

    Field aliases are the ini keys written to the credentials file. Keys that are
    not listed here (written by other tools) are ignored on read.
    """

    access_key_id: str = Field(..., alias="aws_access_key_id")
    secret_access_key: str = Field(..., alias="aws_secret_access_key")
    session_token: str = Field(..., alias="aws_session_token")
    expiration: str = Field(..., alias="aws_session_expiration")
    role_arn: str = Field(..., alias="aws_role_arn")
    role_name: Optional[str] = Field(None, alias="aws_role_name")
    principal_arn: str = Field(..., alias="aws_principal_arn")
    role_session_duration: Optional[str] = Field(None, alias="aws_role_session_duration")
    saml_assertion: str = Field(..., alias="aws_saml_assertion")

    class Config:
        populate_by_name = True
        extra = "ignore"

    @field_validator("expiration")
    @classmethod
    def validate_expiration(cls, v: str) -> str:
        """Validate that the expiration parses as an ISO-8601 timestamp"""
        try:
            parse_timestamp(v)
        except ValueError:
            raise ValueError(f"Invalid session expiration: {v!r}")
        return v

    @field_validator("role_session_duration")
    @classmethod
    def validate_role_session_duration(cls, v: Optional[str]) -> Optional[str]:
        """Validate that the role session duration is a positive integer"""
        if v is None or v == "":
            return None
        if not v.strip().isdigit() or int(v) <= 0:
            raise ValueError(f"Invalid role session duration: {v!r}")
        return v.strip()


@dataclass(frozen=True)
class Session:
    """Temporary AWS credentials for one role, stored under one profile.

    Sessions are immutable. Reusing stored credentials requires loading a fresh
    Session from the credentials store; nothing here refreshes credentials.
    """

    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: str = field(repr=False)
    expires_at: datetime
    role: Role
    saml_assertion: str = field(repr=False)
    profile: str

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Return True if the session expires at or before ``now`` (default: current UTC time)."""
        now = now or datetime.now(timezone.utc)
        return self.expires_at <= now

    def to_record(self, profile: Optional[str] = None) -> Dict[str, Dict[str, str]]:
        """Serialize to a store record keyed by profile name.

        Args:
            profile: Section name to use (defaults to the session's own profile)

        Returns:
            ``{profile: {ini_key: value}}``
        """
        record = SessionRecord(
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
            session_token=self.session_token,
            expiration=format_timestamp(self.expires_at),
            role_arn=self.role.role_arn,
            role_name=self.role.name,
            principal_arn=self.role.principal_arn,
            role_session_duration=(
                str(self.role.session_duration) if self.role.session_duration is not None else None
            ),
            saml_assertion=self.saml_assertion,
        )
        return {profile or self.profile: record.model_dump(by_alias=True, exclude_none=True)}

    @classmethod
    def from_record(cls, record: Mapping[str, Any], profile: str) -> "Session":
        """Rebuild a Session from one profile's flat record.

        Raises:
            pydantic.ValidationError: If required keys are missing or malformed
        """
        parsed = SessionRecord.model_validate(dict(record))
        duration = int(parsed.role_session_duration) if parsed.role_session_duration else None

        return cls(
            access_key_id=parsed.access_key_id,
            secret_access_key=parsed.secret_access_key,
            session_token=parsed.session_token,
            expires_at=parse_timestamp(parsed.expiration),
            role=Role(
                role_arn=parsed.role_arn,
                principal_arn=parsed.principal_arn,
                session_duration=duration,
            ),
            saml_assertion=parsed.saml_assertion,
            profile=profile,
        )

    def to_credential_process(self) -> Dict[str, Any]:
        """Return the JSON document expected by the AWS CLI ``credential_process`` setting."""
        return {
            "Version": 1,
            "AccessKeyId": self.access_key_id,
            "SecretAccessKey": self.secret_access_key,
            "SessionToken": self.session_token,
            "Expiration": format_timestamp(self.expires_at),
        }
