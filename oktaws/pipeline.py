"""
Okta login -> SAML assertion -> STS -> credentials file, for every profile.
"""

import concurrent.futures
import logging
import threading

from .auth import LoginRequest, get_session_token
from .aws import DEFAULT_SESSION_DURATION, assume_role
from .errors import NotFoundError, OktawsError, ProfileError
from .okta import AWS_APP_NAME, OktaClient, organization_url

logger = logging.getLogger(__name__)

MAX_WORKERS = 10


def login(organization, prompter):
    """Log in to *organization* and return a client holding an Okta session."""
    client = OktaClient(organization_url(organization.name, organization.url))
    logger.info("Logging in to %s as %s", client.base_url, organization.username)

    password = prompter.password(organization.username)
    session_token = get_session_token(
        client, LoginRequest.from_credentials(organization.username, password), prompter
    )
    client.new_session(session_token)
    return client


def fetch_credentials(client, organization, profile):
    """Resolve one profile to temporary STS credentials."""
    logger.info("Requesting tokens for %s/%s", organization.name, profile.name)

    app_link = next(
        (
            link
            for link in client.app_links()
            if link.app_name == AWS_APP_NAME and link.label == profile.application_name
        ),
        None,
    )
    if app_link is None:
        raise NotFoundError(
            f"Could not find Okta application for profile {organization.name}/{profile.name}"
        )
    logger.debug("Application Link: %r", app_link)

    saml = client.get_saml_response(app_link.link_url)
    logger.debug("SAML Roles: %r", saml.roles)

    role = next(
        (r for r in sorted(saml.roles, key=str) if r.role_name == profile.role),
        None,
    )
    if role is None:
        raise NotFoundError(
            f"No matching role ({profile.role}) found for profile {profile.name}"
        )
    logger.debug("Found role: %s for profile %s", role.role_arn, profile.name)

    duration = profile.duration_seconds
    if duration is None:
        duration = saml.session_duration or DEFAULT_SESSION_DURATION

    return assume_role(role, saml.raw, duration, organization.region)


def refresh_organization(client, organization, profiles, store, lock, asynchronous=False):
    """Fetch credentials for *profiles* and upsert them into *store*.

    In asynchronous mode the profiles are resolved on a thread pool; only the
    upsert is done under *lock*.
    """

    def refresh(profile):
        try:
            credentials = fetch_credentials(client, organization, profile)
            with lock:
                store.upsert(profile.name, credentials)
        except OktawsError as exc:
            raise ProfileError(organization.name, profile.name, exc) from exc

    if not asynchronous:
        for profile in profiles:
            refresh(profile)
        return

    with concurrent.futures.ThreadPoolExecutor(max_workers=MAX_WORKERS) as executor:
        futures = [executor.submit(refresh, profile) for profile in profiles]
    for future in futures:
        future.result()


def run(organizations, profile_pattern, store, prompter, asynchronous=False):
    """Refresh every matching profile of every organization, then save once.

    Any failure propagates before ``save``, leaving the file untouched.
    """
    lock = threading.Lock()

    for organization in organizations:
        logger.info("Evaluating profiles in %s", organization.name)

        profiles = organization.matching_profiles(profile_pattern)
        if not profiles:
            logger.warning(
                "No profiles found matching %s in %s", profile_pattern, organization.name
            )
            continue

        try:
            client = login(organization, prompter)
        except OktawsError as exc:
            raise ProfileError(organization.name, None, exc) from exc

        refresh_organization(client, organization, profiles, store, lock, asynchronous)

    store.save()
