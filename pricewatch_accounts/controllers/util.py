"""Helpers shared by the account controllers."""

from typing import Optional, Tuple
import logging

from ..context import get_application_config
from ..cookies import pack_session
from ..domain import Session, User
from ..services import credentials
from ..services.exceptions import CredentialStoreError, \
    CredentialStoreUnavailable

logger = logging.getLogger(__name__)

ResponseData = Tuple[dict, int, dict]

SESSION_COOKIE = 'auth_session_cookie'
"""Key under ``data['cookies']``; the route layer maps it to
``AUTH_SESSION_COOKIE_NAME``."""


def session_cookie(session: Session) -> dict:
    """Generate the ``cookies`` entry that persists ``session``."""
    config = get_application_config()
    duration = int(config.get('SESSION_DURATION', '604800'))
    cookie = pack_session(session, config['JWT_SECRET'], duration)
    return {SESSION_COOKIE: (cookie, duration)}


def clear_session_cookie() -> dict:
    """Generate the ``cookies`` entry that unsets the session cookie."""
    return {SESSION_COOKIE: ('', 0)}


def redirect_url(origin: str, path_key: str, default: str) -> str:
    """
    Build an absolute URL on this site, for links in e-mails.

    ``SITE_URL`` wins over the origin of the request, which is only a
    fallback for local development.
    """
    config = get_application_config()
    site = (config.get('SITE_URL') or origin or '').rstrip('/')
    return f'{site}{config.get(path_key, default)}'


def authenticated_user(session: Optional[Session]) -> Optional[User]:
    """
    Ask the credential store who owns ``session``.

    Only the store can tell whether the tokens in a session cookie are still
    valid, so every security decision goes through here.

    Raises
    ------
    :class:`.CredentialStoreUnavailable`
        The store could not be asked. This is not the same as "no user".

    """
    if session is None:
        return None
    try:
        return credentials.get_user(session.access_token)
    except CredentialStoreUnavailable:
        raise
    except CredentialStoreError as e:
        logger.debug('Session rejected by credential store: %s', e.status)
        return None
