"""Shared, multi-profile credentials file.

Sessions are stored in an AWS-style ini file, one section per profile. The file
may hold profiles written by other tools; updating one profile rewrites the
whole file but leaves every other section as it was read.

Writes take an exclusive ``flock`` on a sidecar ``<file>.lock``, go to a temporary
file in the same directory and are moved into place with ``os.replace``. The
resulting file is always mode 0600. Tools that write the same file without taking
the lock can still race with us; the last full-file write wins.

Usage:
    from saml_sts.credentials_store import CredentialsStore, StoreConfig

    store = CredentialsStore(StoreConfig(persistence_enabled=True, directory=Path("~/.aws/saml-sts")))
    store.save_credentials("work", session)
    session = store.load_credentials("work", role_arn="arn:aws:iam::123456789012:role/Admin")
"""

import configparser
import contextlib
import fcntl
import io
import os
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import structlog
from pydantic import ValidationError

from .errors import (
    FatalIOError,
    InvalidProfileError,
    ProfileNotFoundError,
    RoleMismatchError,
    StoreNotFoundError,
)
from .models import Session

logger = structlog.get_logger(__name__)

CredentialsRecord = Dict[str, Dict[str, str]]

#: Owner read/write only
CREDENTIALS_FILE_MODE = stat.S_IRUSR | stat.S_IWUSR
CREDENTIALS_DIR_MODE = 0o700


@dataclass
class StoreConfig:
    """Location of the credentials file.

    Attributes:
        persistence_enabled: When False, nothing is read or written and every read
            behaves as if the file did not exist
        directory: Directory holding the credentials file
        filename: Credentials file name inside ``directory``
    """

    persistence_enabled: bool = False
    directory: Optional[Path] = None
    filename: str = "credentials"

    @property
    def credentials_file(self) -> Optional[Path]:
        """Full path of the credentials file, or None when persistence is disabled."""
        if not self.persistence_enabled or self.directory is None:
            return None
        return Path(self.directory).expanduser() / self.filename


def validate_profile(profile: str) -> None:
    """Reject profile names that would corrupt the ini file when written as a section.

    Raises:
        InvalidProfileError: If the name is empty or contains ``[``, ``]``, CR or LF
    """
    if not profile:
        raise InvalidProfileError(profile, "name is empty")
    if "\r" in profile or "\n" in profile:
        raise InvalidProfileError(profile, "name contains a line break")
    if "[" in profile or "]" in profile:
        raise InvalidProfileError(profile, "name contains a section bracket")


def _new_parser() -> configparser.ConfigParser:
    # No interpolation: secrets and assertions may contain "%".
    # An empty default section name can never match a header, so a literal
    # [DEFAULT] profile is kept as an ordinary section.
    parser = configparser.ConfigParser(interpolation=None, inline_comment_prefixes=(), default_section="")
    # Preserve key case of sections written by other tools
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    return parser


def decode_credentials(contents: str) -> CredentialsRecord:
    """Parse ini text into ``{profile: {key: value}}``."""
    parser = _new_parser()
    parser.read_string(contents)
    return {section: dict(parser.items(section, raw=True)) for section in parser.sections()}


def encode_credentials(credentials: CredentialsRecord) -> str:
    """Render ``{profile: {key: value}}`` as ini text."""
    parser = _new_parser()
    for section, values in credentials.items():
        parser[section] = values
    buffer = io.StringIO()
    parser.write(buffer)
    return buffer.getvalue()


class CredentialsStore:
    """Read, merge-write and validate session records in one credentials file."""

    def __init__(self, config: Optional[StoreConfig] = None):
        """
        Initialize the store

        Args:
            config: Store location (defaults to persistence disabled)
        """
        self.config = config or StoreConfig()
        self.credentials_file = self.config.credentials_file

        logger.debug(
            "CredentialsStore initialized",
            persistence_enabled=self.credentials_file is not None,
            credentials_file=str(self.credentials_file) if self.credentials_file else None,
        )

    @property
    def enabled(self) -> bool:
        return self.credentials_file is not None

    def get_credentials_from_file(self) -> CredentialsRecord:
        """Read and decode the whole credentials file.

        Returns:
            Mapping of profile name to that profile's flat record

        Raises:
            StoreNotFoundError: If persistence is disabled or the file does not exist
            FatalIOError: If the file exists but cannot be read or parsed
        """
        if self.credentials_file is None:
            raise StoreNotFoundError()

        path = self.credentials_file
        try:
            contents = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            logger.debug("Credentials file not found", credentials_file=str(path))
            raise StoreNotFoundError(path) from e
        except OSError as e:
            raise FatalIOError(path, str(e)) from e

        try:
            credentials = decode_credentials(contents)
        except configparser.Error as e:
            raise FatalIOError(path, f"invalid ini content: {e}") from e

        logger.info("Loaded credentials", credentials_file=str(path), profiles=len(credentials))
        return credentials

    def save_credentials(self, profile: str, session: Session) -> None:
        """Store a session under ``profile``, keeping every other profile intact.

        Args:
            profile: Profile (ini section) to write
            session: Session to serialize

        Raises:
            InvalidProfileError: If ``profile`` cannot be used as a section name
            StoreNotFoundError: If persistence is disabled
            FatalIOError: If the existing file cannot be read or the new one written
        """
        validate_profile(profile)
        if self.credentials_file is None:
            raise StoreNotFoundError()

        path = self.credentials_file
        with self._locked():
            try:
                credentials = self.get_credentials_from_file()
            except StoreNotFoundError:
                credentials = None

            if credentials is not None:
                credentials[profile] = session.to_record(profile)[profile]
            else:
                credentials = session.to_record(profile)

            self._write(credentials)

        logger.info("Credentials stored", credentials_file=str(path), profile=profile)
        logger.debug("Credentials file profiles", credentials_file=str(path), profiles=sorted(credentials))

    def load_credentials(self, profile: str, role_arn: Optional[str] = None) -> Session:
        """Load the session stored under ``profile``.

        Args:
            profile: Profile to load
            role_arn: If given, the stored session must belong to this role

        Returns:
            Session rebuilt from the stored record

        Raises:
            StoreNotFoundError: If persistence is disabled or the file does not exist
            ProfileNotFoundError: If the file has no record for ``profile``
            RoleMismatchError: If the stored session is for a different role
            FatalIOError: If the record is incomplete or malformed
        """
        credentials = self.get_credentials_from_file()

        if profile not in credentials:
            raise ProfileNotFoundError(profile)

        try:
            session = Session.from_record(credentials[profile], profile)
        except ValidationError as e:
            raise FatalIOError(self.credentials_file, f"invalid record for profile {profile!r}: {e}") from e

        if role_arn and role_arn != session.role.role_arn:
            logger.warning(
                "Stored credentials are for a different role",
                profile=profile,
                found_role_arn=session.role.role_arn,
                requested_role_arn=role_arn,
            )
            raise RoleMismatchError(role_arn, session.role.role_arn)

        return session

    def delete_credentials(self, profile: str) -> bool:
        """Remove one profile from the credentials file.

        Returns:
            True if the profile was removed, False if it (or the file) did not exist

        Raises:
            InvalidProfileError: If ``profile`` cannot be used as a section name
        """
        validate_profile(profile)
        if self.credentials_file is None:
            return False

        with self._locked():
            try:
                credentials = self.get_credentials_from_file()
            except StoreNotFoundError:
                return False

            if profile not in credentials:
                return False

            del credentials[profile]
            self._write(credentials)

        logger.info("Credentials removed", credentials_file=str(self.credentials_file), profile=profile)
        return True

    def list_profiles(self) -> List[str]:
        """Return the sorted profile names in the credentials file (empty if none)."""
        try:
            return sorted(self.get_credentials_from_file())
        except StoreNotFoundError:
            return []

    @contextlib.contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold an exclusive advisory lock for a read-modify-write cycle."""
        path = self.credentials_file
        if path is None:
            raise StoreNotFoundError()
        lock_path = path.with_name(f"{path.name}.lock")

        try:
            self._ensure_directory(path.parent)
            lock_fd = os.open(lock_path, os.O_RDWR | os.O_CREAT, CREDENTIALS_FILE_MODE)
        except OSError as e:
            raise FatalIOError(path, f"cannot open lock file {lock_path}: {e}") from e

        try:
            fcntl.flock(lock_fd, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_fd, fcntl.LOCK_UN)
        finally:
            os.close(lock_fd)

    @staticmethod
    def _ensure_directory(directory: Path) -> None:
        if not directory.exists():
            directory.mkdir(mode=CREDENTIALS_DIR_MODE, parents=True, exist_ok=True)
            logger.debug("Created credentials directory", directory=str(directory))

    def _write(self, credentials: CredentialsRecord) -> None:
        """Atomically replace the credentials file and restrict its permissions."""
        path = self.credentials_file
        if path is None:
            raise StoreNotFoundError()
        contents = encode_credentials(credentials)

        try:
            temp_fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        except OSError as e:
            raise FatalIOError(path, str(e)) from e

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                f.write(contents)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(temp_path, CREDENTIALS_FILE_MODE)
            os.replace(temp_path, path)
            os.chmod(path, CREDENTIALS_FILE_MODE)
        except OSError as e:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(temp_path)
            raise FatalIOError(path, str(e)) from e
