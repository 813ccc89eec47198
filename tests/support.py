"""Fakes and fixture builders shared by the oktaws tests."""

import base64

from requests.cookies import RequestsCookieJar

from oktaws.auth import LoginResponse

ACCOUNT = "123456789012"
PROVIDER_ARN = f"arn:aws:iam::{ACCOUNT}:saml-provider/okta-idp"

SAML_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<saml2p:Response xmlns:saml2p="urn:oasis:names:tc:SAML:2.0:protocol"
                 Destination="https://signin.aws.amazon.com/saml" ID="id1" Version="2.0">
  <saml2:Issuer xmlns:saml2="urn:oasis:names:tc:SAML:2.0:assertion">http://www.okta.com/exk1</saml2:Issuer>
  <saml2:Assertion xmlns:saml2="urn:oasis:names:tc:SAML:2.0:assertion" ID="id2" Version="2.0">
    <saml2:AttributeStatement>
{attributes}
    </saml2:AttributeStatement>
  </saml2:Assertion>
</saml2p:Response>
"""


def role_arn(name, account=ACCOUNT):
    return f"arn:aws:iam::{account}:role/{name}"


def role_value(name, account=ACCOUNT):
    return f"arn:aws:iam::{account}:saml-provider/okta-idp,{role_arn(name, account)}"


def saml_attribute(name, values):
    rendered = "\n".join(
        f'        <saml2:AttributeValue xsi:type="xs:string" '
        f'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">{value}</saml2:AttributeValue>'
        for value in values
    )
    return (
        f'      <saml2:Attribute Name="{name}" '
        f'NameFormat="urn:oasis:names:tc:SAML:2.0:attrname-format:uri">\n'
        f"{rendered}\n"
        f"      </saml2:Attribute>"
    )


def build_saml(role_values=(), session_duration=None, include_roles=True):
    """Return a base64 SAML response carrying *role_values*."""
    attributes = [
        saml_attribute("https://aws.amazon.com/SAML/Attributes/RoleSessionName", ["alice@example.com"])
    ]
    if include_roles:
        attributes.append(saml_attribute("https://aws.amazon.com/SAML/Attributes/Role", role_values))
    if session_duration is not None:
        attributes.append(
            saml_attribute("https://aws.amazon.com/SAML/Attributes/SessionDuration", [session_duration])
        )
    xml = SAML_TEMPLATE.format(attributes="\n".join(attributes))
    return base64.b64encode(xml.encode("utf-8")).decode("ascii")


def saml_form(saml_response):
    return f"""<!DOCTYPE html>
<html><body>
<form id="appForm" action="https://signin.aws.amazon.com/saml" method="POST">
  <input name="SAMLResponse" type="hidden" value="{saml_response}"/>
  <input name="RelayState" type="hidden" value=""/>
</form>
</body></html>"""


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, text="", reason="OK", url="https://example.okta.com"):
        self.status_code = status_code
        self._json = json_data
        self.text = text
        self.reason = reason
        self.url = url

    def json(self):
        if self._json is None:
            raise ValueError("No JSON object could be decoded")
        return self._json


class FakeSession:
    """Stands in for requests.Session; answers from a queue and records calls."""

    def __init__(self, responses=()):
        self.headers = {}
        self.cookies = RequestsCookieJar()
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


# ---------------------------------------------------------------------------
# Okta login
# ---------------------------------------------------------------------------


def factor_json(factor_id, factor_type="sms", provider="OKTA", **profile):
    return {"id": factor_id, "factorType": factor_type, "provider": provider, "profile": profile}


def login_response(status, state_token=None, session_token=None, factors=None):
    data = {"status": status, "expiresAt": "2026-10-19T10:00:00.000Z"}
    if state_token:
        data["stateToken"] = state_token
    if session_token:
        data["sessionToken"] = session_token
    if factors is not None:
        data["_embedded"] = {"factors": factors, "user": {"id": "00u1", "profile": {"login": "alice"}}}
    return LoginResponse.from_json(data)


class FakeOktaClient:
    """Answers login/verify from a queue of LoginResponse objects."""

    def __init__(self, responses=()):
        self.responses = list(responses)
        self.calls = []

    def _next(self):
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def login(self, request):
        self.calls.append(("login", request))
        return self._next()

    def verify(self, factor, state_token, pass_code=None):
        self.calls.append(("verify", factor.id, state_token, pass_code))
        return self._next()


class ScriptedPrompter:
    def __init__(self, password="hunter2", factor_index=0, passcode="123456"):
        self._password = password
        self.factor_index = factor_index
        self._passcode = passcode
        self.calls = []

    def password(self, username):
        self.calls.append(("password", username))
        return self._password

    def choose_factor(self, factors):
        self.calls.append(("choose_factor", list(factors)))
        return factors[self.factor_index]

    def passcode(self, factor):
        self.calls.append(("passcode", factor.id))
        return self._passcode
