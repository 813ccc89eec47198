"""
Decoding of the base64 SAML assertion Okta posts to AWS.
"""

import base64
import binascii
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional

from .errors import DocumentParseError, EncodingError
from .roles import Role

logger = logging.getLogger(__name__)

SAML_NAMESPACES = {"saml2": "urn:oasis:names:tc:SAML:2.0:assertion"}
SAML_ROLE_ATTRIBUTE = "https://aws.amazon.com/SAML/Attributes/Role"
SAML_SESSION_ATTRIBUTE = "https://aws.amazon.com/SAML/Attributes/SessionDuration"

ROLE_QUERY = f".//saml2:Attribute[@Name='{SAML_ROLE_ATTRIBUTE}']/saml2:AttributeValue"
SESSION_QUERY = f".//saml2:Attribute[@Name='{SAML_SESSION_ATTRIBUTE}']/saml2:AttributeValue"


@dataclass(frozen=True)
class SamlAssertion:
    """A parsed assertion.

    ``raw`` is the encoded form exactly as received; STS needs those bytes,
    not a re-serialization.
    """

    raw: str
    roles: frozenset
    session_duration: Optional[int] = None


def _decode(encoded):
    try:
        return base64.b64decode("".join(encoded.split()), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise EncodingError(f"SAML assertion is not valid base64: {exc}") from exc


def _text(node):
    return "".join(node.itertext()).strip()


def _session_duration(root):
    for node in root.findall(SESSION_QUERY, SAML_NAMESPACES):
        try:
            return int(_text(node))
        except ValueError:
            logger.debug("Ignoring non-numeric SessionDuration %r", _text(node))
    return None


def parse_assertion(encoded):
    """Decode and parse the SAML assertion.

    Every Role attribute value must parse; one bad value fails the whole
    assertion. No Role attribute at all gives an empty role set.
    """
    saml_xml = _decode(encoded)
    logger.debug("SAML: %s", saml_xml)

    try:
        root = ET.fromstring(saml_xml)
    except ET.ParseError as exc:
        raise DocumentParseError(f"SAML assertion is not valid XML: {exc}") from exc

    roles = frozenset(
        Role.parse(_text(node)) for node in root.findall(ROLE_QUERY, SAML_NAMESPACES)
    )

    return SamlAssertion(raw=encoded, roles=roles, session_duration=_session_duration(root))
