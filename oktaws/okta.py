"""
Thin client for the Okta endpoints oktaws needs.
"""

import logging
from dataclasses import dataclass
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup

from .auth import LoginResponse
from .errors import OktaApiError, OktaConnectionError, ProtocolViolation
from .saml import parse_assertion

logger = logging.getLogger(__name__)

AWS_APP_NAME = "amazon_aws"
REQUEST_TIMEOUT = 30  # seconds


def organization_url(name, url=None):
    """Return the base URL of an Okta organization.

    *url* wins when given; a bare hostname gets ``https://``.
    """
    if not url:
        return f"https://{name}.okta.com"
    if not url.startswith("http"):
        url = f"https://{url}"
    return url.rstrip("/")


@dataclass(frozen=True)
class AppLink:
    app_name: str
    label: str
    link_url: str

    @classmethod
    def from_json(cls, data):
        try:
            return cls(app_name=data["appName"], label=data["label"], link_url=data["linkUrl"])
        except (KeyError, TypeError) as exc:
            raise ProtocolViolation(f"Malformed app link: {data!r}", data) from exc


class OktaClient:
    def __init__(self, base_url, session=None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update(
            {"Content-Type": "application/json", "Accept": "application/json"}
        )

    def _url(self, path):
        return f"{self.base_url}/{path}"

    def _json(self, response):
        if response.status_code >= 400:
            summary = response.reason
            try:
                data = response.json()
            except ValueError:
                data = None
            if isinstance(data, dict):
                summary = data.get("errorSummary", summary)
            raise OktaApiError(response.status_code, summary)
        try:
            return response.json()
        except ValueError as exc:
            raise ProtocolViolation(
                f"Okta returned a non-JSON body from {response.url}", response.text
            ) from exc

    def _send(self, method, url, **kwargs):
        kwargs.setdefault("timeout", REQUEST_TIMEOUT)
        try:
            return self.session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            raise OktaConnectionError(f"Could not reach {url}: {exc}") from exc

    def get(self, path):
        return self._json(self._send("GET", self._url(path)))

    def post(self, path, payload):
        return self._json(self._send("POST", self._url(path), json=payload))

    # -- authentication -----------------------------------------------------

    def login(self, request):
        """POST /api/v1/authn with credentials or a state token."""
        return LoginResponse.from_json(self.post("api/v1/authn", request.to_json()))

    def verify(self, factor, state_token, pass_code=None):
        """POST /api/v1/authn/factors/{id}/verify.

        Without *pass_code* this issues the challenge (sends the SMS, the
        email...); with it, it completes the verification.
        """
        payload = {"stateToken": state_token}
        if pass_code is not None:
            payload["passCode"] = pass_code
        return LoginResponse.from_json(
            self.post(f"api/v1/authn/factors/{factor.id}/verify", payload)
        )

    def new_session(self, session_token):
        """Exchange a one-time session token for an Okta session cookie."""
        data = self.post("api/v1/sessions", {"sessionToken": session_token})
        try:
            session_id = data["id"]
        except (KeyError, TypeError) as exc:
            raise ProtocolViolation("No session id found in session response", data) from exc
        self.session.cookies.set("sid", session_id, domain=urlparse(self.base_url).hostname)
        return session_id

    # -- applications -------------------------------------------------------

    def app_links(self):
        """Return the AppLinks of the logged-in user."""
        data = self.get("api/v1/users/me/appLinks")
        if not isinstance(data, list):
            raise ProtocolViolation(f"Unexpected app links response: {data!r}", data)
        return [AppLink.from_json(link) for link in data]

    def get_saml_response(self, link_url):
        """Follow an app link and parse the SAML assertion it posts to AWS."""
        response = self._send(
            "GET", link_url, headers={"Accept": "text/html"}, allow_redirects=True
        )
        if response.status_code >= 400:
            raise OktaApiError(response.status_code, response.reason)

        saml_assertion = extract_saml_response(response.text)
        if not saml_assertion:
            raise ProtocolViolation(
                f"Could not find SAMLResponse in Okta response from {link_url}", response.text
            )
        return parse_assertion(saml_assertion)


def extract_saml_response(html):
    """Return the SAMLResponse value from an HTML form, or None."""
    soup = BeautifulSoup(html, "lxml")
    tag = soup.find("input", {"name": "SAMLResponse"})
    if not tag:
        return None
    return tag.get("value")
