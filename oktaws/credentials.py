"""
The shared AWS credentials file (~/.aws/credentials).

The file is read once when the store is loaded and rewritten in full, once,
by ``save``. Profiles are kept sorted by name so the output is deterministic.
"""

import configparser
import logging
import os
from dataclasses import dataclass, field

from .errors import StoreConflictError, StoreFormatError, StoreIOError

logger = logging.getLogger(__name__)

CREDENTIALS_FILE_ENV = "AWS_SHARED_CREDENTIALS_FILE"
LINE_ENDING = "\r\n"

# configparser treats its default section specially; credentials files may
# legitimately contain a profile called DEFAULT.
_NO_DEFAULT_SECTION = "\0"


@dataclass(frozen=True)
class StsCredentials:
    """Temporary keys written and refreshed by oktaws."""

    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: str = field(repr=False)

    def items(self):
        return [
            ("aws_access_key_id", self.access_key_id),
            ("aws_secret_access_key", self.secret_access_key),
            ("aws_session_token", self.session_token),
        ]


@dataclass(frozen=True)
class IamCredentials:
    """Long-lived keys managed by hand; only ever carried through untouched."""

    access_key_id: str
    secret_access_key: str = field(repr=False)

    def items(self):
        return [
            ("aws_access_key_id", self.access_key_id),
            ("aws_secret_access_key", self.secret_access_key),
        ]


def credentials_from_section(name, section):
    """Build Sts or Iam credentials from a section, telling them apart by the session token."""
    try:
        access_key_id = section["aws_access_key_id"]
        secret_access_key = section["aws_secret_access_key"]
    except KeyError as exc:
        raise StoreFormatError(f"Profile '{name}' is missing {exc.args[0]}") from exc

    if "aws_session_token" in section:
        return StsCredentials(access_key_id, secret_access_key, section["aws_session_token"])
    return IamCredentials(access_key_id, secret_access_key)


def _section_blocks(text):
    """Split *text* at every section header, keeping repeated sections apart."""
    blocks = [[]]
    for line in text.splitlines(keepends=True):
        if configparser.ConfigParser.SECTCRE.match(line.strip()):
            blocks.append([])
        blocks[-1].append(line)
    return ["".join(block) for block in blocks]


def parse_credentials(text):
    """Return ``{profile: credentials}``.

    A repeated section replaces the earlier one outright; its keys are not
    merged, so the entry is classified from the last section alone.
    """
    credentials = {}
    for block in _section_blocks(text):
        parser = configparser.ConfigParser(
            interpolation=None,
            strict=False,
            delimiters=("=",),
            default_section=_NO_DEFAULT_SECTION,
        )
        try:
            parser.read_string(block)
        except configparser.Error as exc:
            raise StoreFormatError(f"Could not parse credentials file: {exc}") from exc

        for name in parser.sections():
            credentials[name] = credentials_from_section(name, parser[name])
    return credentials


def serialize_credentials(credentials):
    lines = []
    for name in sorted(credentials):
        lines.append(f"[{name}]")
        lines.extend(f"{key}={value}" for key, value in credentials[name].items())
    return "".join(line + LINE_ENDING for line in lines)


def default_credentials_path():
    path = os.environ.get(CREDENTIALS_FILE_ENV)
    if path:
        return path
    home = os.path.expanduser("~")
    if home == "~":
        raise StoreIOError("The environment variable HOME must be set.")
    return os.path.join(home, ".aws", "credentials")


class CredentialsStore:
    """Owns the open credentials file and the profiles read from it."""

    def __init__(self, handle, credentials, path=None):
        self.handle = handle
        self.credentials = dict(credentials)
        self.path = path

    @classmethod
    def load(cls, path=None):
        """Open (creating if needed) the credentials file and read its profiles."""
        path = path or default_credentials_path()
        logger.debug("Loading AWS credentials from %s", path)
        try:
            directory = os.path.dirname(path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o600)
            handle = os.fdopen(fd, "r+", encoding="utf-8", newline="")
        except OSError as exc:
            raise StoreIOError(f"Could not open {path}: {exc}") from exc

        try:
            return cls.from_file(handle, path)
        except Exception:
            handle.close()
            raise

    @classmethod
    def from_file(cls, handle, path=None):
        try:
            text = handle.read()
            handle.seek(0)
        except OSError as exc:
            raise StoreIOError(f"Could not read {path or handle}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise StoreFormatError(f"{path or handle} is not valid UTF-8: {exc}") from exc
        return cls(handle, parse_credentials(text), path)

    def get(self, name):
        return self.credentials.get(name)

    def upsert(self, name, credentials):
        """Insert or refresh *name*; refuse to overwrite IAM keys."""
        existing = self.credentials.get(name)
        if isinstance(existing, IamCredentials):
            raise StoreConflictError(name)
        self.credentials[name] = credentials

    def save(self):
        """Replace the whole file with the current profiles."""
        logger.info("Saving AWS credentials")
        try:
            self.handle.seek(0)
            self.handle.write(serialize_credentials(self.credentials))
            self.handle.truncate()
            self.handle.flush()
            if self.path:
                os.chmod(self.path, 0o600)
        except OSError as exc:
            raise StoreIOError(f"Could not write {self.path or self.handle}: {exc}") from exc

    def close(self):
        self.handle.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
