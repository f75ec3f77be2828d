"""Flask configuration."""
import secrets
import os
import re

#################### General config for app ####################
# ENV_NAME (local, integration, production) is read straight from the
# process environment by :mod:`pricewatch_accounts.features`.

SITE_URL = os.environ.get('SITE_URL', '')
"""Public origin of the site, e.g. ``https://pricewatch.example``.

Used to build the redirect targets embedded in verification and password
reset emails. If empty, the origin of the incoming request is used."""

VERIFICATION_CALLBACK_PATH = os.environ.get('VERIFICATION_CALLBACK_PATH',
                                            '/auth/callback')
"""Where the credential store sends users after they click a sign-up link."""

RESET_PASSWORD_PATH = os.environ.get('RESET_PASSWORD_PATH', '/reset-password')
"""Where the credential store sends users after they click a reset link."""

DEFAULT_LOGIN_REDIRECT_URL = os.environ.get('DEFAULT_LOGIN_REDIRECT_URL',
                                            '/dashboard')
"""Page to send a user to after verification, if no ``next`` was given."""

VERIFICATION_FAILED_REDIRECT_URL = os.environ.get(
    'VERIFICATION_FAILED_REDIRECT_URL',
    '/login?error=verification_failed'
)
"""Page to send a user to when an emailed link is invalid or expired."""

_relative_urls = r"(^\/(?:[^\/\\]+\/)*[^\/\\]*$)"
_site_urls = rf"(^{re.escape(SITE_URL)}/.*$)" if SITE_URL else r"(?!)"
LOGIN_REDIRECT_REGEX = os.environ.get('LOGIN_REDIRECT_REGEX',
                                      f"{_relative_urls}|{_site_urls}")
"""Regex to check the ``next`` param of the verification callback.

Only values that match this regex will be followed. All others go to
``DEFAULT_LOGIN_REDIRECT_URL``. The default allows relative URLs and URLs on
``SITE_URL``."""


#################### Credential store ####################
CREDENTIAL_STORE_URL = os.environ.get('CREDENTIAL_STORE_URL',
                                      'http://localhost:54321')
"""Base URL of the credential store (GoTrue compatible).

The auth API is expected under ``/auth/v1`` and remote procedures under
``/rest/v1/rpc``."""

CREDENTIAL_STORE_API_KEY = os.environ.get('CREDENTIAL_STORE_API_KEY', '')
"""Public (anon) API key sent with every request to the credential store."""

CREDENTIAL_STORE_CONNECT_TIMEOUT = os.environ.get(
    'CREDENTIAL_STORE_CONNECT_TIMEOUT',
    '3.05'
)
CREDENTIAL_STORE_READ_TIMEOUT = os.environ.get('CREDENTIAL_STORE_READ_TIMEOUT',
                                               '10')
"""Timeouts (seconds) for calls to the credential store. Calls are never
retried."""

ACCOUNT_DELETION_RPC = os.environ.get('ACCOUNT_DELETION_RPC',
                                      'delete_user_account')
"""Remote procedure that erases the calling user's account and data."""


#################### Sessions ####################
JWT_SECRET = os.environ.get('JWT_SECRET', secrets.token_urlsafe(16))
"""Secret used to sign the session cookie."""

AUTH_SESSION_COOKIE_NAME = os.environ.get('AUTH_SESSION_COOKIE_NAME',
                                          'pw_session')
AUTH_SESSION_COOKIE_DOMAIN = os.environ.get('AUTH_SESSION_COOKIE_DOMAIN') or None
AUTH_SESSION_COOKIE_SECURE = bool(int(os.environ.get('AUTH_SESSION_COOKIE_SECURE', '1')))

SESSION_DURATION = os.environ.get('SESSION_DURATION', '604800')
"""Lifetime (seconds) of the session cookie.

The credential store decides when its own tokens expire; this only bounds how
long the browser keeps the cookie."""


#################### Account rules ####################
CAPTCHA_REQUIRED = bool(int(os.environ.get('CAPTCHA_REQUIRED', '0')))
"""If set, registration requires a ``captchaToken``.

The token is passed through to the credential store, which verifies it."""

DELETE_CONFIRMATION_TEXT = os.environ.get('DELETE_CONFIRMATION_TEXT', 'USUŃ')
"""Text the user must type, exactly, to delete their account."""

EMAIL_MAX_LENGTH = os.environ.get('EMAIL_MAX_LENGTH', '255')
PASSWORD_MIN_LENGTH = os.environ.get('PASSWORD_MIN_LENGTH', '8')
PASSWORD_MAX_LENGTH = os.environ.get('PASSWORD_MAX_LENGTH', '72')
"""The credential store rejects passwords longer than this (bcrypt limit).

Only enforced up front on the reset flow."""


#################### Minor configs ##############################
SECRET_KEY = os.environ.get('SECRET_KEY', secrets.token_urlsafe(16))
"""Sets the `Flask` secret key. Not directly used by the accounts API."""

LOGLEVEL = os.environ.get('LOGLEVEL', 'INFO')
LOG_JSON = bool(int(os.environ.get('LOG_JSON', '1')))
"""Emit log records as JSON lines."""

VERSION = '1.0.0'
"""The application version."""
