"""Unit tests for the default SAML response parser."""

import base64

import pytest

from saml_sts.errors import SamlParseError
from saml_sts.parser import ROLE_ATTRIBUTE, SESSION_DURATION_ATTRIBUTE, AssertionParser

PRINCIPAL = "arn:aws:iam::123456789012:saml-provider/Google"
ADMIN = "arn:aws:iam::123456789012:role/Admin"
READONLY = "arn:aws:iam::123456789012:role/ReadOnly"


def saml_response(role_values, session_duration=None):
    """Build a base64-encoded SAML response with the given attribute values."""
    attributes = "".join(f"<saml2:AttributeValue>{value}</saml2:AttributeValue>" for value in role_values)
    duration = ""
    if session_duration is not None:
        duration = (
            f'<saml2:Attribute Name="{SESSION_DURATION_ATTRIBUTE}">'
            f"<saml2:AttributeValue>{session_duration}</saml2:AttributeValue>"
            "</saml2:Attribute>"
        )
    document = (
        '<saml2p:Response xmlns:saml2p="urn:oasis:names:tc:SAML:2.0:protocol">'
        '<saml2:Assertion xmlns:saml2="urn:oasis:names:tc:SAML:2.0:assertion">'
        "<saml2:AttributeStatement>"
        f'<saml2:Attribute Name="{ROLE_ATTRIBUTE}">{attributes}</saml2:Attribute>'
        f"{duration}"
        "</saml2:AttributeStatement>"
        "</saml2:Assertion>"
        "</saml2p:Response>"
    )
    return base64.b64encode(document.encode()).decode()


class TestAssertionParser:
    """Test role extraction from SAML responses."""

    def test_extracts_roles(self):
        response = saml_response([f"{ADMIN},{PRINCIPAL}", f"{READONLY},{PRINCIPAL}"])

        parsed = AssertionParser().parse_saml_response(response)

        assert [role.role_arn for role in parsed.roles] == [ADMIN, READONLY]
        assert all(role.principal_arn == PRINCIPAL for role in parsed.roles)
        assert parsed.saml_assertion == response

    def test_principal_first_order(self):
        parsed = AssertionParser().parse_saml_response(saml_response([f"{PRINCIPAL}, {ADMIN}"]))

        assert parsed.roles[0].role_arn == ADMIN
        assert parsed.roles[0].principal_arn == PRINCIPAL

    def test_session_duration_applies_to_roles(self):
        parsed = AssertionParser().parse_saml_response(saml_response([f"{ADMIN},{PRINCIPAL}"], session_duration=3600))
        assert parsed.roles[0].session_duration == 3600

    def test_non_numeric_session_duration_ignored(self):
        parsed = AssertionParser().parse_saml_response(saml_response([f"{ADMIN},{PRINCIPAL}"], session_duration="long"))
        assert parsed.roles[0].session_duration is None

    def test_malformed_role_value_skipped(self):
        parsed = AssertionParser().parse_saml_response(saml_response(["not-a-role", f"{ADMIN},{PRINCIPAL}"]))
        assert [role.role_arn for role in parsed.roles] == [ADMIN]

    def test_no_roles(self):
        assert AssertionParser().parse_saml_response(saml_response([])).roles == []

    def test_invalid_base64(self):
        with pytest.raises(SamlParseError, match="not valid base64"):
            AssertionParser().parse_saml_response("***not base64***")

    def test_invalid_xml(self):
        with pytest.raises(SamlParseError, match="not valid XML"):
            AssertionParser().parse_saml_response(base64.b64encode(b"<unclosed>").decode())
