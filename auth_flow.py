"""
Two-phase Google sign-in.

Phase one confirms who the user is (OpenID Connect ID token). Phase two asks
the same user for the Classroom scopes and yields the access token. Both
phases are driven by the installed-app loopback flow, with a manual
copy/paste fallback for environments where a local server cannot be started.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import id_token
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

import settings
from errors import AuthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    subject: str
    email: str
    name: str = ""


@dataclass(frozen=True)
class SessionContext:
    """Everything a signed-in session owns. Lives until the process exits."""
    identity: Identity
    credentials: Credentials

    @property
    def access_token(self) -> str:
        return self.credentials.token


@dataclass(frozen=True)
class AuthResult:
    session: Optional[SessionContext] = None
    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.session is not None


def prompt_for_redirect(auth_url: str) -> str:
    """Ask the user to authorize in a browser and paste the redirect URL back."""
    print('\nPlease visit this URL to authorize the application:\n')
    print(auth_url)
    print('\n' + '='*60)
    print('\nAfter authorizing, copy the FULL URL from your browser\'s address bar')
    print('='*60 + '\n')
    return input('Paste the full redirect URL here: ')


class AuthFlowCoordinator:
    """
    Drives sign-in: identity first, then the scoped grant.

    Callbacks are optional and fire in order:
        on_identity_confirmed(identity) once the ID token is verified
        on_token_acquired(session) once the grant succeeded
        on_auth_error(error) if either phase failed

    Nothing is retried. A failed sign-in must be started again by the caller.
    """

    def __init__(
        self,
        client_config: Dict[str, Any],
        on_identity_confirmed: Optional[Callable[[Identity], None]] = None,
        on_token_acquired: Optional[Callable[[SessionContext], None]] = None,
        on_auth_error: Optional[Callable[[AuthError], None]] = None,
        flow_factory: Callable[..., Any] = InstalledAppFlow.from_client_config,
        redirect_prompt: Callable[[str], str] = prompt_for_redirect,
        open_browser: bool = False,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ):
        self.client_config = client_config
        self.client_id = settings.client_id_from_config(client_config)
        self.on_identity_confirmed = on_identity_confirmed
        self.on_token_acquired = on_token_acquired
        self.on_auth_error = on_auth_error
        self._flow_factory = flow_factory
        self._redirect_prompt = redirect_prompt
        self._open_browser = open_browser
        self._host = host or settings.redirect_host()
        self._port = port if port is not None else settings.redirect_port()

    def begin_sign_in(self) -> AuthResult:
        logger.info("Starting sign-in")
        try:
            identity = self.confirm_identity()
        except AuthError as e:
            return self._fail(e)
        return self.handle_identity_confirmed(identity)

    def handle_identity_confirmed(self, identity: Identity) -> AuthResult:
        """Announce the identity and immediately request the Classroom grant."""
        logger.info(f"Identity confirmed for {identity.email or identity.subject}")
        if self.on_identity_confirmed:
            self.on_identity_confirmed(identity)

        try:
            credentials = self.request_grant(identity)
        except AuthError as e:
            return self._fail(e)

        session = SessionContext(identity=identity, credentials=credentials)
        logger.info("Access token acquired")
        if self.on_token_acquired:
            self.on_token_acquired(session)
        return AuthResult(session=session)

    def confirm_identity(self) -> Identity:
        creds = self._run_flow(settings.IDENTITY_SCOPES)

        raw_token = getattr(creds, 'id_token', None)
        if not raw_token:
            raise AuthError("Sign-in did not return an ID token")

        try:
            claims = id_token.verify_oauth2_token(raw_token, Request(), audience=self.client_id)
        except ValueError as e:
            raise AuthError(f"ID token could not be verified: {e}") from e
        except GoogleAuthError as e:
            raise AuthError(f"ID token verification failed: {e}") from e

        return Identity(
            subject=claims['sub'],
            email=claims.get('email', ''),
            name=claims.get('name', ''),
        )

    def request_grant(self, identity: Identity) -> Credentials:
        kwargs = {'login_hint': identity.email} if identity.email else {}
        creds = self._run_flow(settings.CLASSROOM_SCOPES, **kwargs)
        if not getattr(creds, 'token', None):
            raise AuthError("Grant did not return an access token")
        return creds

    def _run_flow(self, scopes, **auth_kwargs) -> Credentials:
        flow = self._flow_factory(self.client_config, scopes)
        try:
            try:
                return flow.run_local_server(
                    host=self._host,
                    port=self._port,
                    authorization_prompt_message='Please visit this URL to authorize: {url}',
                    success_message='Authorization successful! You may close this window.',
                    open_browser=self._open_browser,
                    **auth_kwargs
                )
            except OSError as e:
                logger.warning(f"Could not start local server: {e}")
                return self._run_manual_flow(flow, **auth_kwargs)
        except OAuth2Error as e:
            raise AuthError(f"Authorization failed: {e.error}") from e
        except Warning as e:
            # oauthlib warns when fewer scopes were granted than requested
            raise AuthError(f"Authorization incomplete: {e}") from e
        except (GoogleAuthError, requests.exceptions.RequestException) as e:
            raise AuthError(f"Token exchange failed: {e}") from e

    def _run_manual_flow(self, flow, **auth_kwargs) -> Credentials:
        flow.redirect_uri = f'http://{self._host}:{self._port}/'
        auth_url, _ = flow.authorization_url(prompt='consent', **auth_kwargs)

        try:
            redirect_response = (self._redirect_prompt(auth_url) or '').strip()
        except EOFError as e:
            raise AuthError("Sign-in abandoned") from e
        if not redirect_response:
            raise AuthError("Sign-in abandoned")

        # oauthlib refuses plain http redirect URLs
        flow.fetch_token(authorization_response=redirect_response.replace('http://', 'https://', 1))
        return flow.credentials

    def _fail(self, error: AuthError) -> AuthResult:
        logger.error(f"Sign-in failed: {error}")
        if self.on_auth_error:
            self.on_auth_error(error)
        return AuthResult(error=error)
