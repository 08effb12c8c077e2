"""Tests for error types."""

from pathlib import Path

from saml_sts.errors import (
    ConfigError,
    FatalIOError,
    InvalidProfileError,
    ProfileNotFoundError,
    RoleMismatchError,
    RoleNotFoundError,
    SamlStsError,
    StoreNotFoundError,
)
from saml_sts.models import Role


def test_all_errors_share_base_class():
    errors = [
        RoleNotFoundError([]),
        ProfileNotFoundError("work"),
        InvalidProfileError("", "name is empty"),
        RoleMismatchError("a", "b"),
        StoreNotFoundError(),
        FatalIOError(Path("/tmp/credentials"), "boom"),
        ConfigError("bad"),
    ]
    assert all(isinstance(error, SamlStsError) for error in errors)


def test_config_error_is_value_error():
    assert isinstance(ConfigError("bad"), ValueError)


def test_role_not_found_lists_roles():
    roles = [Role(role_arn="arn:aws:iam::1:role/A", principal_arn="p")]
    error = RoleNotFoundError(roles, role_arn="arn:aws:iam::1:role/B")

    assert error.available_roles == roles
    assert "arn:aws:iam::1:role/A" in error.suggestion
    assert "Hint:" in error.format()


def test_role_not_found_without_roles():
    assert "does not contain any roles" in str(RoleNotFoundError([]))


def test_role_mismatch_fields():
    error = RoleMismatchError(requested="arn:r1", found="arn:r2")

    assert error.requested == "arn:r1"
    assert error.found == "arn:r2"
    assert "arn:r1" in str(error) and "arn:r2" in str(error)


def test_store_not_found_disabled_message():
    assert str(StoreNotFoundError()) == "Credentials persistence is disabled"


def test_store_not_found_path_message():
    error = StoreNotFoundError(Path("/tmp/credentials"))
    assert error.path == Path("/tmp/credentials")
    assert "/tmp/credentials" in str(error)


def test_invalid_profile_carries_name_and_hint():
    error = InvalidProfileError("a]b", "name contains a section bracket")

    assert error.profile == "a]b"
    assert "section bracket" in error.message
    assert "Hint:" in error.format()
