"""
STS role assumption.
"""

import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .credentials import StsCredentials
from .errors import RoleAssumptionError

logger = logging.getLogger(__name__)

MIN_SESSION_DURATION = 900      # STS minimum, 15 min
MAX_SESSION_DURATION = 43200    # STS maximum, 12 h
DEFAULT_SESSION_DURATION = 3600


def assume_role(role, saml_assertion, duration_seconds, region):
    """Call STS AssumeRoleWithSAML and return the temporary credentials."""
    duration = min(max(duration_seconds, MIN_SESSION_DURATION), MAX_SESSION_DURATION)
    logger.debug("Assuming %s for %s seconds", role.role_arn, duration)

    try:
        sts = boto3.client("sts", region_name=region)
        response = sts.assume_role_with_saml(
            RoleArn=role.role_arn,
            PrincipalArn=role.provider_arn,
            SAMLAssertion=saml_assertion,
            DurationSeconds=duration,
        )
    except (BotoCoreError, ClientError) as exc:
        raise RoleAssumptionError(f"Error assuming role {role.role_arn} ({exc})") from exc

    try:
        credentials = response["Credentials"]
        return StsCredentials(
            access_key_id=credentials["AccessKeyId"],
            secret_access_key=credentials["SecretAccessKey"],
            session_token=credentials["SessionToken"],
        )
    except KeyError as exc:
        raise RoleAssumptionError("Error fetching credentials from assumed AWS role") from exc
