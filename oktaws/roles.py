"""AWS role identifiers as found in the SAML Role attribute."""

from dataclasses import dataclass

from .errors import RoleFormatError


def _check_arn(arn, resource_prefix):
    """Raise ValueError unless *arn* is ``arn:partition:service:region:account:resource``."""
    parts = arn.split(":", 5)
    if len(parts) != 6 or parts[0] != "arn":
        raise ValueError(f"{arn!r} is not an ARN")
    _, partition, service, _region, _account, resource = parts
    if not partition or not service or not resource:
        raise ValueError(f"{arn!r} is not an ARN")
    if not resource.startswith(resource_prefix) or resource == resource_prefix:
        raise ValueError(f"{arn!r} is not a {resource_prefix.rstrip('/')} ARN")


@dataclass(frozen=True)
class Role:
    """A (SAML provider, IAM role) pair.

    The attribute value is a comma-separated pair of ARNs:
    ``arn:aws:iam::ACCT:saml-provider/P,arn:aws:iam::ACCT:role/R``.
    """

    provider_arn: str
    role_arn: str

    @classmethod
    def parse(cls, text):
        parts = text.split(",")
        if len(parts) < 2:
            raise RoleFormatError(text, f"Not enough elements in {text}")
        if len(parts) > 2:
            raise RoleFormatError(text, f"Too many elements in {text}")

        provider_arn, role_arn = parts
        try:
            _check_arn(provider_arn, "saml-provider/")
            _check_arn(role_arn, "role/")
        except ValueError as exc:
            raise RoleFormatError(text, exc) from exc

        return cls(provider_arn=provider_arn, role_arn=role_arn)

    @property
    def role_name(self):
        return self.role_arn.split("/")[-1]

    @property
    def account_id(self):
        return self.role_arn.split(":")[4]

    def __str__(self):
        return f"{self.provider_arn},{self.role_arn}"
