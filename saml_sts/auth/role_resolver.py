"""Role selection from a parsed SAML assertion."""

from dataclasses import dataclass, field
from typing import List, Optional

import structlog

from ..errors import RoleNotFoundError
from ..models import Role
from ..parser import AssertionParser, SamlParser

logger = structlog.get_logger(__name__)


@dataclass
class RoleSelection:
    """Outcome of role resolution.

    Attributes:
        role_to_assume: Selected role, or None when the choice is ambiguous
        available_roles: Every role in the assertion, sorted by role ARN
        saml_assertion: Assertion to pass to STS, unmodified
    """

    role_to_assume: Optional[Role]
    available_roles: List[Role] = field(default_factory=list)
    saml_assertion: str = ""


class RoleResolver:
    """Turns a SAML response into a single role decision.

    Parsing is delegated to a ``SamlParser``; the resolver only orders the roles
    and applies the selection policy.
    """

    def __init__(self, parser: Optional[SamlParser] = None):
        self.parser = parser or AssertionParser()

    def prepare_role_with_saml(self, saml_response: str, custom_role_arn: Optional[str] = None) -> RoleSelection:
        """Resolve which role to assume.

        Without ``custom_role_arn`` the only role is selected when there is exactly
        one; otherwise the caller has to pick from ``available_roles``. With
        ``custom_role_arn`` the role must match exactly.

        Args:
            saml_response: Raw SAML response from the IdP
            custom_role_arn: Role ARN requested by the caller

        Returns:
            RoleSelection with roles sorted by role ARN

        Raises:
            RoleNotFoundError: If ``custom_role_arn`` is not among the parsed roles
        """
        parsed = self.parser.parse_saml_response(saml_response, custom_role_arn)
        roles = sorted(parsed.roles, key=lambda role: role.role_arn) if parsed.roles else []

        if not custom_role_arn:
            logger.debug("No custom role ARN requested, returning all parsed roles", role_count=len(roles))
            return RoleSelection(
                role_to_assume=roles[0] if len(roles) == 1 else None,
                available_roles=roles,
                saml_assertion=parsed.saml_assertion,
            )

        custom_role = next((role for role in roles if role.role_arn == custom_role_arn), None)
        if custom_role is None:
            raise RoleNotFoundError(roles, role_arn=custom_role_arn)

        logger.debug(
            "Found requested custom role",
            role_arn=custom_role.role_arn,
            principal_arn=custom_role.principal_arn,
        )

        return RoleSelection(
            role_to_assume=custom_role,
            available_roles=roles,
            saml_assertion=parsed.saml_assertion,
        )
