"""
Organization configuration.

Every ``*.ini`` file in ~/.oktaws (or $OKTAWS_HOME) describes one Okta
organization, named after the file::

    [organization]
    username = alice
    role = Developer
    duration_seconds = 3600

    [profile production]
    application = AWS Production
    role = ReadOnly
"""

import configparser
import fnmatch
import getpass
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "OKTAWS_HOME"
DEFAULT_CONFIG_DIR = os.path.expanduser("~/.oktaws")
DEFAULT_REGION = "us-east-1"

ORGANIZATION_SECTION = "organization"
PROFILE_PREFIX = "profile "


@dataclass(frozen=True)
class Profile:
    name: str
    application_name: str
    role: str
    duration_seconds: Optional[int] = None


@dataclass
class Organization:
    name: str
    username: str
    url: Optional[str] = None
    region: str = DEFAULT_REGION
    profiles: List[Profile] = field(default_factory=list)

    def matching_profiles(self, pattern="*"):
        """Profiles whose name matches the glob *pattern*, in file order."""
        return [p for p in self.profiles if fnmatch.fnmatchcase(p.name, pattern)]


def config_dir():
    return os.environ.get(CONFIG_DIR_ENV) or DEFAULT_CONFIG_DIR


def _duration(value, where):
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(f"{where}: duration_seconds must be an integer, got {value!r}") from exc


def load_organization(path):
    """Read one organization file."""
    name = os.path.splitext(os.path.basename(path))[0]
    parser = configparser.ConfigParser(interpolation=None)
    try:
        with open(path, encoding="utf-8") as fh:
            parser.read_file(fh)
    except (OSError, configparser.Error) as exc:
        raise ConfigError(f"Could not read organization config {path}: {exc}") from exc

    org = parser[ORGANIZATION_SECTION] if parser.has_section(ORGANIZATION_SECTION) else {}
    default_role = org.get("role")
    default_duration = _duration(org.get("duration_seconds"), name)

    profiles = []
    for section in parser.sections():
        if not section.startswith(PROFILE_PREFIX):
            continue
        profile_name = section[len(PROFILE_PREFIX):].strip()
        values = parser[section]
        where = f"{name}/{profile_name}"

        application = values.get("application")
        if not application:
            raise ConfigError(f"{where}: no application configured")
        role = values.get("role", default_role)
        if not role:
            raise ConfigError(f"{where}: no role configured and no default role for {name}")
        duration = _duration(values.get("duration_seconds"), where)

        profiles.append(
            Profile(
                name=profile_name,
                application_name=application,
                role=role,
                duration_seconds=duration if duration is not None else default_duration,
            )
        )

    return Organization(
        name=name,
        username=org.get("username") or getpass.getuser(),
        url=org.get("url"),
        region=org.get("region") or DEFAULT_REGION,
        profiles=profiles,
    )


def load_organizations(pattern="*", directory=None):
    """Organizations whose name matches the glob *pattern*, sorted by name."""
    directory = directory or config_dir()
    if not os.path.isdir(directory):
        raise ConfigError(f"Configuration directory {directory} does not exist")

    organizations = []
    for filename in sorted(os.listdir(directory)):
        stem, ext = os.path.splitext(filename)
        if ext != ".ini" or not fnmatch.fnmatchcase(stem, pattern):
            continue
        organizations.append(load_organization(os.path.join(directory, filename)))

    if not organizations:
        raise ConfigError(f"No organizations found called {pattern}")

    logger.debug("Organizations: %r", organizations)
    return organizations
