"""Credentials manager facade.

Wires a parser, role resolver, session exchanger and credentials store together
from a single ``Config``.

Usage:
    from saml_sts import CredentialsManager, get_config

    manager = CredentialsManager(get_config())
    selection = manager.prepare_role_with_saml(saml_response)
    session = manager.assume_role_with_saml(selection.saml_assertion, selection.role_to_assume, "work")
"""

from typing import Optional

import structlog

from .auth import RoleResolver, RoleSelection, SessionExchanger, create_sts_client
from .config import Config
from .credentials_store import CredentialsRecord, CredentialsStore
from .models import Role, Session
from .parser import SamlParser

logger = structlog.get_logger(__name__)


class CredentialsManager:
    """Resolves SAML roles, assumes them via STS and stores the resulting sessions."""

    def __init__(
        self,
        config: Optional[Config] = None,
        parser: Optional[SamlParser] = None,
        sts_client=None,
    ):
        """
        Initialize the manager

        Args:
            config: Configuration (defaults to ``Config()``)
            parser: SAML parser (defaults to ``AssertionParser``)
            sts_client: boto3 STS client (defaults to one built for ``config.aws_region``)
        """
        self.config = config or Config()
        self.store = CredentialsStore(self.config.store_config())
        self.resolver = RoleResolver(parser)

        if sts_client is None:
            sts_client = create_sts_client(
                self.config.aws_region,
                connect_timeout=self.config.connect_timeout,
                read_timeout=self.config.read_timeout,
            )
        self.exchanger = SessionExchanger(sts_client, store=self.store if self.store.enabled else None)

        logger.debug(
            "CredentialsManager initialized",
            region=self.config.aws_region,
            persistence_enabled=self.store.enabled,
        )

    def prepare_role_with_saml(self, saml_response: str, custom_role_arn: Optional[str] = None) -> RoleSelection:
        return self.resolver.prepare_role_with_saml(saml_response, custom_role_arn)

    def assume_role_with_saml(
        self,
        saml_assertion: str,
        role: Role,
        profile: str,
        custom_session_duration: Optional[int] = None,
    ) -> Session:
        """Assume ``role``, falling back to the configured session duration when none is given."""
        if custom_session_duration is None:
            custom_session_duration = self.config.session_duration
        return self.exchanger.assume_role_with_saml(saml_assertion, role, profile, custom_session_duration)

    def save_credentials(self, profile: str, session: Session) -> None:
        self.store.save_credentials(profile, session)

    def load_credentials(self, profile: str, role_arn: Optional[str] = None) -> Session:
        return self.store.load_credentials(profile, role_arn)

    def get_credentials_from_file(self) -> CredentialsRecord:
        return self.store.get_credentials_from_file()
