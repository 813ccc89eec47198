"""Exceptions raised by oktaws.

Everything derives from OktawsError so that the command line can report any
failure with its context and exit non-zero.
"""


class OktawsError(Exception):
    """Base class for all oktaws failures."""


# ---------------------------------------------------------------------------
# SAML assertion parsing
# ---------------------------------------------------------------------------


class AssertionParseError(OktawsError):
    """The SAML assertion could not be turned into a set of roles."""


class EncodingError(AssertionParseError):
    """The assertion is not valid base64 / UTF-8."""


class DocumentParseError(AssertionParseError):
    """The decoded assertion is not well-formed XML."""


class RoleFormatError(AssertionParseError):
    """A role attribute value is not a ``provider-arn,role-arn`` pair."""

    def __init__(self, text, cause):
        super().__init__(f"Invalid role {text!r}: {cause}")
        self.text = text
        self.cause = cause


# ---------------------------------------------------------------------------
# Okta
# ---------------------------------------------------------------------------


class ProtocolViolation(OktawsError):
    """Okta answered with something structurally invalid or unexpected."""

    def __init__(self, message, response=None):
        super().__init__(message)
        self.response = response


class AuthenticationFailure(OktawsError):
    """Okta refused the login, or MFA could not be completed."""

    def __init__(self, message, response=None):
        super().__init__(message)
        self.response = response


class OktaApiError(OktawsError):
    """Okta returned a non-2xx HTTP status."""

    def __init__(self, status_code, summary):
        super().__init__(f"Okta API error (HTTP {status_code}): {summary}")
        self.status_code = status_code
        self.summary = summary


class OktaConnectionError(OktawsError):
    """Okta could not be reached."""


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class NotFoundError(OktawsError):
    """No matching Okta application or SAML role."""


class RoleAssumptionError(OktawsError):
    """STS refused to exchange the assertion for credentials."""


class ConfigError(OktawsError):
    """Organization configuration is missing or invalid."""


class ProfileError(OktawsError):
    """A profile (or, without one, a whole organization) could not be refreshed."""

    def __init__(self, organization, profile, cause):
        where = f"{organization}/{profile}" if profile else organization
        super().__init__(f"{where}: {cause}")
        self.organization = organization
        self.profile = profile
        self.cause = cause


# ---------------------------------------------------------------------------
# Credentials store
# ---------------------------------------------------------------------------


class StoreConflictError(OktawsError):
    """Refusing to replace long-lived IAM keys with temporary ones."""

    def __init__(self, name):
        super().__init__(
            f"Profile '{name}' does not contain STS credentials. Ignoring"
        )
        self.name = name


class StoreFormatError(OktawsError):
    """The credentials file cannot be read as STS or IAM profiles."""


class StoreIOError(OktawsError):
    """The credentials file could not be opened, read or written."""
