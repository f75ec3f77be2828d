"""
Controllers for password recovery and password change.

Recovery is two steps. :func:`forgot_password` has the credential store
e-mail a reset link; following that link yields a short-lived session (see
:func:`.registration.confirm`), with which :func:`reset_password` sets the
new password. :func:`change_password` is for users who are logged in and
still know their current password.
"""

from typing import Optional

from werkzeug.datastructures import MultiDict
import logging

from .. import errors, features, status
from ..domain import Session
from ..services import credentials
from ..services.exceptions import CredentialStoreError, \
    CredentialStoreUnavailable
from .forms import ChangePasswordForm, EmailForm, ResetPasswordForm, \
    field_errors
from .util import ResponseData, authenticated_user, redirect_url, \
    session_cookie

logger = logging.getLogger(__name__)

RESET_LINK_SENT = 'Jeśli konto istnieje, otrzymasz link do zresetowania hasła'
"""The only answer to a reset request, whatever actually happened."""


@features.gated(features.AUTH)
def forgot_password(form_data: MultiDict, origin: str) -> ResponseData:
    """
    Request a password reset e-mail.

    The response does not reveal whether the address belongs to an account:
    failures at the credential store are logged, and the same message is
    returned regardless.
    """
    form = EmailForm(form_data)
    if not form.validate():
        return errors.validation_failed(field_errors(form),
                                        'Nieprawidłowy adres email').response()

    target = redirect_url(origin, 'RESET_PASSWORD_PATH', '/reset-password')
    try:
        credentials.request_password_reset(form.email.data, target)
    except CredentialStoreError as e:
        logger.info('Password reset e-mail not sent: %s', e)
    except Exception:
        logger.exception('Unexpected error while requesting password reset')
        return errors.INTERNAL_ERROR.response()
    return {'message': RESET_LINK_SENT}, status.HTTP_200_OK, {}


@features.gated(features.AUTH)
def reset_password(form_data: MultiDict,
                   session: Optional[Session]) -> ResponseData:
    """
    Set a new password, using the session obtained from a reset link.

    Parameters
    ----------
    form_data : MultiDict
        Should include ``password``.
    session : :class:`.Session` or None
        Must come from a reset link (see :attr:`.Session.recovery`), and
        must be recognized by the credential store. An ordinary login
        session is refused; it has to go through :func:`change_password`.

    """
    form = ResetPasswordForm(form_data)
    if not form.validate():
        return errors.validation_failed(field_errors(form),
                                        'Nieprawidłowe hasło').response()

    if session is None or not session.recovery:
        logger.info('Password reset without a reset-link session')
        return errors.INVALID_TOKEN.response()
    try:
        user = authenticated_user(session)
        if user is None:
            return errors.INVALID_TOKEN.response()
        credentials.update_password(session.access_token, form.password.data)
    except CredentialStoreError as e:
        return errors.map_reset_error(e).response()
    except Exception:
        logger.exception('Unexpected error during password reset')
        return errors.INTERNAL_ERROR.response()

    logger.info('Password reset for user %s', user.user_id)
    data = {'message': 'Hasło zostało pomyślnie zmienione'}
    return data, status.HTTP_200_OK, {}


@features.gated(features.AUTH)
def change_password(form_data: MultiDict,
                    session: Optional[Session]) -> ResponseData:
    """
    Change the password of the logged-in user.

    The current password is always checked by signing in with it, even
    though the user already has a session. The new password is then set
    with the session that sign-in produced, and that session replaces the
    old one in the cookie.

    Parameters
    ----------
    form_data : MultiDict
        Should include ``currentPassword`` and ``newPassword``.
    session : :class:`.Session` or None

    """
    try:
        user = authenticated_user(session)
    except CredentialStoreError:
        logger.exception('Could not check session before password change')
        return errors.INTERNAL_ERROR.response()
    if user is None:
        return errors.NOT_AUTHORIZED.response()

    form = ChangePasswordForm(form_data)
    if not form.validate():
        return errors.validation_failed(field_errors(form)).response()

    try:
        fresh = credentials.sign_in(user.email, form.currentPassword.data)
    except CredentialStoreUnavailable:
        logger.exception('Could not re-authenticate user %s', user.user_id)
        return errors.INTERNAL_ERROR.response()
    except CredentialStoreError as e:
        logger.info('Re-authentication failed for user %s: %s',
                    user.user_id, e)
        return errors.INVALID_CURRENT_PASSWORD.response()
    except Exception:
        logger.exception('Unexpected error during re-authentication')
        return errors.INTERNAL_ERROR.response()

    try:
        credentials.update_password(fresh.access_token,
                                    form.newPassword.data)
    except CredentialStoreError as e:
        return errors.map_change_error(e).response()
    except Exception:
        logger.exception('Unexpected error during password change')
        return errors.INTERNAL_ERROR.response()

    logger.info('Password changed for user %s', user.user_id)
    data = {'message': 'Password changed successfully',
            'cookies': session_cookie(fresh)}
    return data, status.HTTP_200_OK, {}
