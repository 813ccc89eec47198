"""
oktaws: generate temporary AWS credentials with Okta.

Logs in to each configured Okta organization (including MFA), fetches the
SAML assertion of every configured AWS app, assumes the configured role via
STS and writes the temporary keys to the shared AWS credentials file.
"""

__version__ = "0.14.1"
