"""
Controllers for logging in and out.

A successful login yields a session from the credential store. That session
is handed back to the route layer as a cookie; nothing about it is kept
here. Logging out revokes the session at the store and clears the cookie.
"""

from datetime import datetime
from typing import Optional

from pytz import UTC
from werkzeug.datastructures import MultiDict
import logging

from .. import errors, features, status
from ..domain import Session
from ..services import credentials
from ..services.exceptions import CredentialStoreError
from .forms import LoginForm, field_errors
from .util import ResponseData, authenticated_user, clear_session_cookie, \
    session_cookie

logger = logging.getLogger(__name__)


@features.gated(features.AUTH)
def login(form_data: MultiDict) -> ResponseData:
    """
    Log in with e-mail and password.

    Parameters
    ----------
    form_data : MultiDict
        Should include ``email`` and ``password``.

    Returns
    -------
    dict
        Response content. On success, also includes ``cookies``.
    int
        Status code. 200 if all goes well.
    dict
        Headers to add to the response.

    """
    form = LoginForm(form_data)
    if not form.validate():
        logger.debug('Login form is not valid')
        return errors.validation_failed(field_errors(form)).response()

    try:
        session = credentials.sign_in(form.email.data, form.password.data)
    except CredentialStoreError as e:
        return errors.map_sign_in_error(e).response()
    except Exception:
        logger.exception('Unexpected error during login')
        return errors.INTERNAL_ERROR.response()

    user = session.user
    logger.info('Logged in user %s', session.user_id)
    data = {
        'message': 'Login successful',
        'user': {'id': user.user_id, 'email': user.email} if user else None,
        'cookies': session_cookie(session)
    }
    return data, status.HTTP_200_OK, {}


@features.gated(features.AUTH)
def logout(session: Optional[Session]) -> ResponseData:
    """
    Log the user out.

    Parameters
    ----------
    session : :class:`.Session` or None
        If not None, it is revoked at the credential store. With no session
        there is nothing to revoke, and the cookie is simply cleared.

    """
    logger.debug('Request to log out')
    if session is not None:
        try:
            credentials.sign_out(session.access_token)
        except CredentialStoreError as e:
            logger.error('Logout failed: %s', e)
            return errors.LOGOUT_ERROR.response()
        except Exception:
            logger.exception('Unexpected error during logout')
            return errors.LOGOUT_ERROR.response()
    data = {'message': 'Logged out successfully',
            'cookies': clear_session_cookie()}
    return data, status.HTTP_200_OK, {}


@features.gated(features.AUTH)
def check(session: Optional[Session]) -> ResponseData:
    """
    Report on the current session.

    A session that the credential store does not recognize, or that it
    could not be asked about, is reported as unauthenticated.
    """
    try:
        user = authenticated_user(session)
    except CredentialStoreError as e:
        logger.error('Could not check session: %s', e)
        user = None
    data = {
        'authenticated': user is not None,
        'user': user.to_dict() if user else None,
        'current_user_id': user.user_id if user else None,
        'timestamp': datetime.now(tz=UTC).isoformat()
    }
    return data, status.HTTP_200_OK, {}
