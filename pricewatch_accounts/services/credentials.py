"""
Integration with the credential store.

The credential store owns everything about a user's credentials: password
hashing, sessions, token issuance and the e-mails sent for verification and
password recovery. It speaks the GoTrue REST protocol under ``/auth/v1``;
account erasure is a remote procedure under ``/rest/v1/rpc``.

Nothing here is retried. A failed call may already have had side effects
(e.g. a verification e-mail went out), so failures are reported to the user
instead.
"""

from datetime import datetime, timedelta
from functools import wraps
from typing import Any, Dict, Optional, Tuple
import logging

import requests
from pytz import UTC
from werkzeug.local import LocalProxy

from ..context import get_application_config, get_application_global
from ..domain import Session, User, user_from_store
from .exceptions import CredentialStoreError, CredentialStoreUnavailable

logger = logging.getLogger(__name__)

SIGNUP = 'signup'
RECOVERY = 'recovery'
EMAIL_CHANGE = 'email_change'
EMAIL = 'email'
INVITE = 'invite'
MAGICLINK = 'magiclink'
VERIFICATION_TYPES = (SIGNUP, RECOVERY, EMAIL_CHANGE, EMAIL, INVITE,
                      MAGICLINK)
"""Kinds of e-mailed token that :meth:`.verify` can redeem."""

SIGN_OUT_IGNORED = (401, 403, 404)
"""Statuses meaning the session is already gone; sign-out succeeded."""


class CredentialStoreSession(object):
    """
    An HTTP session with the credential store.

    The underlying :class:`requests.Session` keeps connections alive across
    calls made during one application context.
    """

    def __init__(self, base_url: str, api_key: str,
                 timeout: Tuple[float, float] = (3.05, 10.0),
                 deletion_rpc: str = 'delete_user_account') -> None:
        """Create a new HTTP session."""
        self._base_url = base_url.rstrip('/')
        self._api_key = api_key
        self._timeout = timeout
        self._deletion_rpc = deletion_rpc
        self._session = requests.Session()
        self._adapter = requests.adapters.HTTPAdapter(max_retries=0)
        self._session.mount('http://', self._adapter)
        self._session.mount('https://', self._adapter)
        self._session.headers.update({'apikey': api_key,
                                      'Accept': 'application/json'})
        logger.debug('New CredentialStoreSession at %s', self._base_url)

    def status(self) -> bool:
        """Check the availability of the credential store."""
        try:
            response = self._session.get(f'{self._base_url}/auth/v1/health',
                                         timeout=self._timeout)
        except requests.exceptions.RequestException:
            return False
        return bool(response.ok)

    def sign_up(self, email: str, password: str, redirect_to: str,
                captcha_token: Optional[str] = None) -> Optional[User]:
        """
        Create credentials for a new user.

        The store sends the verification e-mail; the link in it leads back to
        ``redirect_to``.

        Returns
        -------
        :class:`.User` or None
            None if the store did not disclose the user.

        Raises
        ------
        :class:`.CredentialStoreError`

        """
        payload: Dict[str, Any] = {'email': email, 'password': password}
        if captcha_token:
            payload['gotrue_meta_security'] = {'captcha_token': captcha_token}
        data = self._request('POST', '/auth/v1/signup', json=payload,
                             params={'redirect_to': redirect_to})
        user_data = data.get('user', data) if isinstance(data, dict) else None
        if not user_data or 'id' not in user_data:
            return None
        return user_from_store(user_data)

    def sign_in(self, email: str, password: str) -> Session:
        """
        Authenticate with e-mail and password.

        Raises
        ------
        :class:`.CredentialStoreError`
            E.g. if the credentials are wrong or the e-mail is unconfirmed.

        """
        data = self._request('POST', '/auth/v1/token',
                             params={'grant_type': 'password'},
                             json={'email': email, 'password': password})
        return self._to_session(data)

    def sign_out(self, access_token: str) -> None:
        """Revoke the session that ``access_token`` belongs to."""
        try:
            self._request('POST', '/auth/v1/logout', token=access_token)
        except CredentialStoreUnavailable:
            raise
        except CredentialStoreError as e:
            if e.status in SIGN_OUT_IGNORED:
                logger.debug('Session already gone at sign-out: %i', e.status)
                return None
            raise

    def get_user(self, access_token: str) -> User:
        """
        Ask the store who ``access_token`` belongs to.

        This is the authoritative check that a session is still valid; it is
        not answered from anything cached on our side.
        """
        return user_from_store(self._request('GET', '/auth/v1/user',
                                             token=access_token))

    def update_password(self, access_token: str, password: str) -> User:
        """Set a new password for the user who owns ``access_token``."""
        data = self._request('PUT', '/auth/v1/user', token=access_token,
                             json={'password': password})
        return user_from_store(data)

    def request_password_reset(self, email: str, redirect_to: str) -> None:
        """Ask the store to e-mail a password reset link."""
        self._request('POST', '/auth/v1/recover', json={'email': email},
                      params={'redirect_to': redirect_to})

    def resend_verification(self, email: str, redirect_to: str) -> None:
        """Ask the store to send the sign-up verification e-mail again."""
        self._request('POST', '/auth/v1/resend',
                      json={'type': SIGNUP, 'email': email},
                      params={'redirect_to': redirect_to})

    def verify(self, token_hash: str, verification_type: str) -> Session:
        """Redeem a token from an e-mailed link for a session."""
        data = self._request('POST', '/auth/v1/verify',
                             json={'type': verification_type,
                                   'token_hash': token_hash})
        return self._to_session(data)

    def delete_account(self, access_token: str) -> None:
        """
        Erase the account of the user who owns ``access_token``.

        The remote procedure identifies the user from the token alone, so a
        session can only ever erase its own account.
        """
        self._request('POST', f'/rest/v1/rpc/{self._deletion_rpc}',
                      token=access_token, json={})

    def _request(self, method: str, path: str, token: Optional[str] = None,
                 params: Optional[dict] = None,
                 json: Optional[dict] = None) -> Any:
        headers = {'Authorization': f'Bearer {token or self._api_key}'}
        try:
            response = self._session.request(method,
                                             f'{self._base_url}{path}',
                                             params=params, json=json,
                                             headers=headers,
                                             timeout=self._timeout)
        except requests.exceptions.RequestException as e:
            logger.error('Credential store unreachable: %s %s: %s',
                         method, path, e)
            raise CredentialStoreUnavailable(f'Connection failed: {e}') from e

        if not response.ok:
            error = _to_error(response)
            logger.debug('Credential store responded to %s %s with %i: %s',
                         method, path, response.status_code, error.message)
            raise error

        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise CredentialStoreUnavailable('Could not decode response') \
                from e

    def _to_session(self, data: Any) -> Session:
        try:
            access_token = data['access_token']
        except (KeyError, TypeError) as e:
            raise CredentialStoreError('No session in response') from e
        expires_at: Optional[datetime] = None
        if data.get('expires_at'):
            expires_at = datetime.fromtimestamp(int(data['expires_at']),
                                                tz=UTC)
        elif data.get('expires_in'):
            expires_at = datetime.now(tz=UTC) \
                + timedelta(seconds=int(data['expires_in']))
        user = user_from_store(data['user']) if data.get('user') else None
        return Session(access_token=access_token,
                       refresh_token=data.get('refresh_token') or '',
                       user=user, expires_at=expires_at)


def _to_error(response: requests.Response) -> CredentialStoreError:
    """Pull the message and machine code out of an error response."""
    message, code = '', None
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        message = str(data.get('msg') or data.get('error_description')
                      or data.get('message') or data.get('error') or '')
        code = data.get('error_code')
        if code is None and isinstance(data.get('code'), str):
            code = data['code']
    if not message:
        message = response.text or response.reason or 'Unknown error'
    return CredentialStoreError(message, response.status_code, code)


def init_app(app: Optional[LocalProxy] = None) -> None:
    """Set default configuration parameters for an application instance."""
    config = get_application_config(app)
    config.setdefault('CREDENTIAL_STORE_URL', 'http://localhost:54321')
    config.setdefault('CREDENTIAL_STORE_API_KEY', '')
    config.setdefault('CREDENTIAL_STORE_CONNECT_TIMEOUT', '3.05')
    config.setdefault('CREDENTIAL_STORE_READ_TIMEOUT', '10')
    config.setdefault('ACCOUNT_DELETION_RPC', 'delete_user_account')


def get_session(app: Optional[LocalProxy] = None) -> CredentialStoreSession:
    """Get a new session with the credential store."""
    config = get_application_config(app)
    base_url = config.get('CREDENTIAL_STORE_URL', 'http://localhost:54321')
    api_key = config.get('CREDENTIAL_STORE_API_KEY', '')
    timeout = (float(config.get('CREDENTIAL_STORE_CONNECT_TIMEOUT', '3.05')),
               float(config.get('CREDENTIAL_STORE_READ_TIMEOUT', '10')))
    deletion_rpc = config.get('ACCOUNT_DELETION_RPC', 'delete_user_account')
    return CredentialStoreSession(base_url, api_key, timeout=timeout,
                                  deletion_rpc=deletion_rpc)


def current_session() -> CredentialStoreSession:
    """Get/create :class:`.CredentialStoreSession` for this context."""
    g = get_application_global()
    if not g:
        return get_session()
    if 'credentials' not in g:
        g.credentials = get_session()
    return g.credentials     # type: ignore


@wraps(CredentialStoreSession.sign_up)
def sign_up(email: str, password: str, redirect_to: str,
            captcha_token: Optional[str] = None) -> Optional[User]:
    """Create credentials for a new user."""
    return current_session().sign_up(email, password, redirect_to,
                                     captcha_token=captcha_token)


@wraps(CredentialStoreSession.sign_in)
def sign_in(email: str, password: str) -> Session:
    """Authenticate with e-mail and password."""
    return current_session().sign_in(email, password)


@wraps(CredentialStoreSession.sign_out)
def sign_out(access_token: str) -> None:
    """Revoke a session."""
    return current_session().sign_out(access_token)


@wraps(CredentialStoreSession.get_user)
def get_user(access_token: str) -> User:
    """Ask the store who a token belongs to."""
    return current_session().get_user(access_token)


@wraps(CredentialStoreSession.update_password)
def update_password(access_token: str, password: str) -> User:
    """Set a new password."""
    return current_session().update_password(access_token, password)


@wraps(CredentialStoreSession.request_password_reset)
def request_password_reset(email: str, redirect_to: str) -> None:
    """Ask the store to e-mail a password reset link."""
    return current_session().request_password_reset(email, redirect_to)


@wraps(CredentialStoreSession.resend_verification)
def resend_verification(email: str, redirect_to: str) -> None:
    """Ask the store to send the verification e-mail again."""
    return current_session().resend_verification(email, redirect_to)


@wraps(CredentialStoreSession.verify)
def verify(token_hash: str, verification_type: str) -> Session:
    """Redeem a token from an e-mailed link."""
    return current_session().verify(token_hash, verification_type)


@wraps(CredentialStoreSession.delete_account)
def delete_account(access_token: str) -> None:
    """Erase the account that owns a token."""
    return current_session().delete_account(access_token)
