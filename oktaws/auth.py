"""
Okta primary authentication and MFA.

The login is a strictly linear state machine: credentials (or a state token)
are submitted once, an MFA factor is chosen, primed, and verified with a
passcode. The two points where a human has to answer are explicit phases
(``AWAITING_FACTOR_CHOICE`` and ``MFA_CHALLENGE_ISSUED``); the answers come
from an injected prompter so the machine can run without a terminal.
"""

import getpass
import logging
from dataclasses import dataclass, field
from enum import Enum

from .errors import AuthenticationFailure, OktaApiError, OktawsError, ProtocolViolation

logger = logging.getLogger(__name__)

FACTOR_LABELS = {
    "token:software:totp": "TOTP Authenticator",
    "push": "Okta Verify Push",
    "sms": "SMS",
    "call": "Voice Call",
    "token:hotp": "HOTP Token",
    "email": "Email",
}


# ---------------------------------------------------------------------------
# Wire types
# ---------------------------------------------------------------------------


class LoginStatus(Enum):
    """Values of the ``status`` field of an /api/v1/authn response."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    PASSWORD_WARN = "PASSWORD_WARN"
    PASSWORD_EXPIRED = "PASSWORD_EXPIRED"
    RECOVERY = "RECOVERY"
    RECOVERY_CHALLENGE = "RECOVERY_CHALLENGE"
    PASSWORD_RESET = "PASSWORD_RESET"
    LOCKED_OUT = "LOCKED_OUT"
    MFA_ENROLL = "MFA_ENROLL"
    MFA_ENROLL_ACTIVATE = "MFA_ENROLL_ACTIVATE"
    MFA_REQUIRED = "MFA_REQUIRED"
    MFA_CHALLENGE = "MFA_CHALLENGE"
    SUCCESS = "SUCCESS"


@dataclass
class LoginRequest:
    username: str = None
    password: str = field(default=None, repr=False)
    state_token: str = field(default=None, repr=False)

    @classmethod
    def from_credentials(cls, username, password):
        return cls(username=username, password=password)

    @classmethod
    def from_state_token(cls, token):
        return cls(state_token=token)

    def to_json(self):
        payload = {
            "username": self.username,
            "password": self.password,
            "stateToken": self.state_token,
        }
        return {key: value for key, value in payload.items() if value is not None}


@dataclass(frozen=True)
class Factor:
    """One enrolled MFA factor as listed in ``_embedded.factors``."""

    id: str
    factor_type: str
    provider: str = ""
    detail: str = ""

    @classmethod
    def from_json(cls, data):
        try:
            factor_id = data["id"]
            factor_type = data["factorType"]
        except (KeyError, TypeError) as exc:
            raise ProtocolViolation(f"Malformed factor: {data!r}") from exc
        profile = data.get("profile") or {}
        detail = profile.get("phoneNumber") or profile.get("email") or ""
        return cls(
            id=factor_id,
            factor_type=factor_type,
            provider=data.get("provider", ""),
            detail=detail,
        )

    def __str__(self):
        label = FACTOR_LABELS.get(self.factor_type, self.factor_type)
        if self.provider:
            label = f"{label} ({self.provider})"
        if self.detail:
            label = f"{label} {self.detail}"
        return label


@dataclass
class LoginResponse:
    status: LoginStatus
    state_token: str = field(default=None, repr=False)
    session_token: str = field(default=None, repr=False)
    factors: list = field(default_factory=list)
    user: dict = None
    raw: dict = field(default=None, repr=False)

    @classmethod
    def from_json(cls, data):
        if not isinstance(data, dict):
            raise ProtocolViolation(f"Unexpected login response: {data!r}", data)
        try:
            status = LoginStatus(data.get("status"))
        except ValueError as exc:
            raise ProtocolViolation(f"Unknown login status {data.get('status')!r}", data) from exc

        embedded = data.get("_embedded") or {}
        return cls(
            status=status,
            state_token=data.get("stateToken"),
            session_token=data.get("sessionToken"),
            factors=[Factor.from_json(f) for f in embedded.get("factors") or []],
            user=embedded.get("user"),
            raw=data,
        )


# ---------------------------------------------------------------------------
# Prompting
# ---------------------------------------------------------------------------


class ConsolePrompter:
    """Asks the operator on the terminal."""

    def password(self, username):
        return getpass.getpass(f"Password for {username}: ")

    def choose_factor(self, factors):
        print("\nAvailable MFA factors:")
        for i, factor in enumerate(factors):
            print(f"  [{i + 1}] {factor}")

        while True:
            try:
                choice = int(input("\nSelect MFA factor: ").strip()) - 1
                if 0 <= choice < len(factors):
                    return factors[choice]
            except ValueError:
                pass
            print("Invalid selection, please try again.")

    def passcode(self, factor):
        return input(f"Enter {factor} code: ").strip()


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class LoginPhase(Enum):
    UNAUTHENTICATED = "unauthenticated"
    PASSWORD_WARN = "password_warn"
    MFA_REQUIRED = "mfa_required"
    AWAITING_FACTOR_CHOICE = "awaiting_factor_choice"
    MFA_CHALLENGE_ISSUED = "mfa_challenge_issued"
    SUCCESS = "success"
    FAILED = "failed"


class LoginSession:
    """One login attempt against an Okta organization.

    ``client`` needs ``login(request)`` and
    ``verify(factor, state_token, pass_code=None)``, both returning a
    LoginResponse.
    """

    def __init__(self, client):
        self.client = client
        self.phase = LoginPhase.UNAUTHENTICATED
        self.state_token = None
        self.session_token = None
        self.factors = []
        self.factor = None

    def submit(self, request):
        self._expect(LoginPhase.UNAUTHENTICATED)
        logger.debug(
            "Attempting to login with %s",
            "State Token" if request.state_token else "Credentials",
        )
        response = self._call(self.client.login, request)
        logger.debug("Login response: %r", response)
        self.state_token = response.state_token

        if response.status is LoginStatus.SUCCESS:
            self._succeed(response)
        elif response.status is LoginStatus.MFA_REQUIRED:
            logger.info("MFA required")
            self.phase = LoginPhase.MFA_REQUIRED
            self.factors = list(response.factors)
            if not self.factors:
                self._fail(AuthenticationFailure("MFA required, and no available factors", response.raw))
            if len(self.factors) == 1:
                logger.info("Only one factor available, using it")
                self.select_factor(self.factors[0])
            else:
                self.phase = LoginPhase.AWAITING_FACTOR_CHOICE
        else:
            if response.status is LoginStatus.PASSWORD_WARN:
                self.phase = LoginPhase.PASSWORD_WARN
            self._fail(
                AuthenticationFailure(
                    f"Unsupported login status {response.status.value}: {response.raw}",
                    response.raw,
                )
            )
        return self.phase

    def select_factor(self, factor):
        """Prime *factor*: a verify call without passcode (sends the SMS, etc.)."""
        self._expect(LoginPhase.MFA_REQUIRED, LoginPhase.AWAITING_FACTOR_CHOICE)
        if factor not in self.factors:
            self._fail(AuthenticationFailure(f"Factor {factor} was not offered by Okta"))
        if not self.state_token:
            self._fail(ProtocolViolation("No state token found in response"))

        logger.debug("Factor: %r", factor)
        self.factor = factor
        response = self._call(self.client.verify, factor, self.state_token)
        logger.debug("Factor prompt response: %r", response)

        if not response.state_token:
            self._fail(
                ProtocolViolation("No state token found in factor prompt response", response.raw)
            )
        self.state_token = response.state_token
        self.phase = LoginPhase.MFA_CHALLENGE_ISSUED
        return self.phase

    def provide_passcode(self, passcode):
        self._expect(LoginPhase.MFA_CHALLENGE_ISSUED)
        response = self._call(self.client.verify, self.factor, self.state_token, passcode)
        logger.debug("Factor provided response: %r", response)

        if response.status is not LoginStatus.SUCCESS:
            self._fail(AuthenticationFailure(f"Non MFA success: {response.raw}", response.raw))
        self._succeed(response)
        return self.phase

    # -- helpers ------------------------------------------------------------

    def _expect(self, *phases):
        if self.phase not in phases:
            raise ProtocolViolation(f"Login cannot proceed from phase {self.phase.value}")

    def _call(self, func, *args):
        try:
            return func(*args)
        except OktaApiError as exc:
            self.phase = LoginPhase.FAILED
            if exc.status_code in (401, 403):
                raise AuthenticationFailure(exc.summary) from exc
            raise
        except OktawsError:
            self.phase = LoginPhase.FAILED
            raise

    def _succeed(self, response):
        if not response.session_token:
            self._fail(ProtocolViolation("No session token found in response", response.raw))
        self.session_token = response.session_token
        self.state_token = None
        self.phase = LoginPhase.SUCCESS

    def _fail(self, error):
        self.phase = LoginPhase.FAILED
        raise error


def get_session_token(client, request, prompter):
    """Run a login to completion and return the Okta session token."""
    session = LoginSession(client)
    session.submit(request)

    if session.phase is LoginPhase.AWAITING_FACTOR_CHOICE:
        session.select_factor(prompter.choose_factor(session.factors))

    if session.phase is LoginPhase.MFA_CHALLENGE_ISSUED:
        session.provide_passcode(prompter.passcode(session.factor))

    return session.session_token
