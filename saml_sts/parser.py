"""SAML response parsing.

The role resolver only depends on the ``SamlParser`` protocol. ``AssertionParser``
is the default implementation: it reads the AWS role and session duration
attributes out of a base64-encoded SAML response.
"""

import base64
import binascii
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

import structlog

from .errors import SamlParseError
from .models import Role

logger = structlog.get_logger(__name__)

SAML_ASSERTION_NS = "{urn:oasis:names:tc:SAML:2.0:assertion}"
ROLE_ATTRIBUTE = "https://aws.amazon.com/SAML/Attributes/Role"
SESSION_DURATION_ATTRIBUTE = "https://aws.amazon.com/SAML/Attributes/SessionDuration"


@dataclass
class ParsedAssertion:
    """Roles and raw assertion extracted from a SAML response."""

    roles: List[Role] = field(default_factory=list)
    saml_assertion: str = ""


class SamlParser(Protocol):
    """Anything that can turn a raw SAML response into roles and an assertion."""

    def parse_saml_response(self, saml_response: str, custom_role_arn: Optional[str] = None) -> ParsedAssertion:
        ...


class AssertionParser:
    """Extract AWS roles from a base64-encoded SAML response.

    Each ``Role`` attribute value holds a role ARN and a SAML provider ARN
    separated by a comma, in either order. The optional ``SessionDuration``
    attribute applies to every role in the assertion.
    """

    def parse_saml_response(self, saml_response: str, custom_role_arn: Optional[str] = None) -> ParsedAssertion:
        """Parse a SAML response.

        Args:
            saml_response: Base64-encoded SAML response as posted by the IdP
            custom_role_arn: Role ARN the caller intends to assume (logged only)

        Returns:
            ParsedAssertion with the roles found and the unmodified response

        Raises:
            SamlParseError: If the response is not valid base64 or XML
        """
        try:
            document = base64.b64decode("".join(saml_response.split()), validate=True)
        except (binascii.Error, ValueError) as e:
            raise SamlParseError(f"SAML response is not valid base64: {e}") from e

        try:
            root = ET.fromstring(document)
        except ET.ParseError as e:
            raise SamlParseError(f"SAML response is not valid XML: {e}") from e

        session_duration = self._session_duration(root)
        roles = []
        for value in self._attribute_values(root, ROLE_ATTRIBUTE):
            role = self._parse_role(value, session_duration)
            if role:
                roles.append(role)

        logger.debug(
            "Parsed SAML response",
            role_count=len(roles),
            session_duration=session_duration,
            custom_role_arn=custom_role_arn,
        )

        return ParsedAssertion(roles=roles, saml_assertion=saml_response)

    @staticmethod
    def _attribute_values(root: ET.Element, name: str) -> List[str]:
        values = []
        for attribute in root.iter(f"{SAML_ASSERTION_NS}Attribute"):
            if attribute.get("Name") != name:
                continue
            for value in attribute.iter(f"{SAML_ASSERTION_NS}AttributeValue"):
                if value.text and value.text.strip():
                    values.append(value.text.strip())
        return values

    def _session_duration(self, root: ET.Element) -> Optional[int]:
        values = self._attribute_values(root, SESSION_DURATION_ATTRIBUTE)
        if not values:
            return None
        try:
            return int(values[0])
        except ValueError:
            logger.warning("Ignoring non-numeric SAML session duration", value=values[0])
            return None

    @staticmethod
    def _parse_role(value: str, session_duration: Optional[int]) -> Optional[Role]:
        parts = [part.strip() for part in value.split(",")]
        if len(parts) != 2:
            logger.warning("Ignoring malformed SAML role attribute", value=value)
            return None

        # Providers are not consistent about the order of the two ARNs
        if ":saml-provider/" in parts[0]:
            principal_arn, role_arn = parts
        else:
            role_arn, principal_arn = parts

        return Role(role_arn=role_arn, principal_arn=principal_arn, session_duration=session_duration)
