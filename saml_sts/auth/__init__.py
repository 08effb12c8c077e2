"""SAML role resolution and STS session exchange.

This module turns a SAML response into a role decision and exchanges the
assertion for temporary AWS credentials.
"""

from .role_resolver import RoleResolver, RoleSelection
from .session_exchanger import SessionExchanger, create_sts_client, parse_max_session_duration

__all__ = ["RoleResolver", "RoleSelection", "SessionExchanger", "create_sts_client", "parse_max_session_duration"]
