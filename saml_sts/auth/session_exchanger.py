"""Exchange a SAML assertion for temporary credentials via AWS STS.

The STS client is injected and owned by the exchanger instance. The exchange is
the only network call in the package and is never retried here: botocore retries
are disabled on clients built by ``create_sts_client`` and failures propagate
unchanged to the caller.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import boto3
import structlog
from botocore.config import Config as BotocoreConfig

from ..credentials_store import CredentialsStore
from ..models import Role, Session, parse_timestamp

logger = structlog.get_logger(__name__)

# STS validation message for DurationSeconds above the role's maximum session duration.
# Depends on upstream wording; if AWS changes it, the diagnostic silently stops firing.
MAX_DURATION_PATTERN = re.compile(r"value less than or equal to ([0-9]+)")


def create_sts_client(region: str, connect_timeout: int = 5, read_timeout: int = 10):
    """Build an STS client that does not retry failed calls.

    Args:
        region: AWS region for the STS endpoint
        connect_timeout: Connection timeout in seconds
        read_timeout: Read timeout in seconds

    Returns:
        boto3 STS client
    """
    session = boto3.Session(region_name=region)
    return session.client(
        "sts",
        config=BotocoreConfig(
            retries={"max_attempts": 1, "mode": "standard"},
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
        ),
    )


def parse_max_session_duration(message: str) -> Optional[int]:
    """Extract the maximum allowed session duration from an STS error message.

    Returns:
        Maximum duration in seconds, or None if the message does not match
    """
    match = MAX_DURATION_PATTERN.search(message or "")
    if not match:
        return None
    return int(match.group(1))


def _redact_response(response: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of an AssumeRoleWithSAML response with credential values removed."""
    redacted = dict(response)
    credentials = redacted.get("Credentials")
    if isinstance(credentials, dict):
        redacted["Credentials"] = {
            key: ("***" if key in ("SecretAccessKey", "SessionToken") else value)
            for key, value in credentials.items()
        }
    return redacted


def _expiration(value) -> datetime:
    """Normalize the STS expiration (datetime from boto3, or ISO string) to an aware datetime."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return parse_timestamp(str(value))


class SessionExchanger:
    """Calls ``AssumeRoleWithSAML`` and turns the response into a ``Session``.

    Usage:
        exchanger = SessionExchanger(create_sts_client("us-east-1"), store=store)
        session = exchanger.assume_role_with_saml(assertion, role, "work", custom_session_duration=3600)

    Attributes:
        sts_client: boto3 STS client used for the exchange
        store: Credentials store to persist sessions in, or None to only return them
    """

    def __init__(self, sts_client, store: Optional[CredentialsStore] = None):
        self.sts_client = sts_client
        self.store = store

    def assume_role_with_saml(
        self,
        saml_assertion: str,
        role: Role,
        profile: str,
        custom_session_duration: Optional[int] = None,
    ) -> Session:
        """Exchange the assertion for credentials of ``role``.

        A caller-supplied duration takes precedence over the role's declared
        duration. If neither is set, STS applies its own default.
        Surrounding whitespace is stripped from the assertion, so the session
        returned here matches the one later loaded from the credentials file.

        Args:
            saml_assertion: Base64-encoded SAML assertion
            role: Role to assume
            profile: Profile the session is stored under
            custom_session_duration: Session duration in seconds requested by the caller

        Returns:
            New Session (also persisted when a store is configured)

        Raises:
            botocore.exceptions.ClientError: If STS rejects the request
            FatalIOError: If the session cannot be written to the store
        """
        saml_assertion = saml_assertion.strip()
        session_duration = custom_session_duration if custom_session_duration is not None else role.session_duration

        request: Dict[str, Any] = {
            "PrincipalArn": role.principal_arn,
            "RoleArn": role.role_arn,
            "SAMLAssertion": saml_assertion,
        }
        if session_duration is not None:
            request["DurationSeconds"] = session_duration

        try:
            response = self.sts_client.assume_role_with_saml(**request)
        except Exception as e:
            max_duration = parse_max_session_duration(str(e))
            if max_duration is not None:
                logger.warning(
                    f"Session duration {session_duration} exceeds the maximum session duration of "
                    f"{max_duration} allowed for the role. Request a duration of at most {max_duration} "
                    f"seconds or set SAML_STS_SESSION_DURATION={max_duration} to suppress this warning",
                    role_arn=role.role_arn,
                    requested_duration=session_duration,
                    max_duration=max_duration,
                )
            else:
                logger.error(
                    "Failed to assume role with SAML",
                    role_arn=role.role_arn,
                    error=str(e),
                    error_type=type(e).__name__,
                )
            raise

        logger.info("Role has been assumed via SAML", role_arn=role.role_arn, profile=profile)
        logger.debug("AssumeRoleWithSAML response", role_arn=role.role_arn, response=_redact_response(response))

        credentials = response["Credentials"]
        session = Session(
            access_key_id=credentials["AccessKeyId"],
            secret_access_key=credentials["SecretAccessKey"],
            session_token=credentials["SessionToken"],
            expires_at=_expiration(credentials["Expiration"]),
            role=role,
            saml_assertion=saml_assertion,
            profile=profile,
        )

        if self.store is not None and self.store.enabled:
            self.store.save_credentials(profile, session)

        return session
