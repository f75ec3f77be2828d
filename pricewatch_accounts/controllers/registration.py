"""
Controllers for registration and e-mail verification.

Users register with an e-mail address and a password. The credential store
sends a verification e-mail whose link leads back to :func:`confirm`, which
redeems the token for a session. Until then the user cannot log in.
"""

from typing import Optional

from werkzeug.datastructures import MultiDict
import logging

from .. import errors, features, status
from ..next_page import good_next_page
from ..context import get_application_config
from ..services import credentials
from ..services.exceptions import CredentialStoreError
from .forms import EmailForm, RegisterForm, field_errors
from .util import ResponseData, redirect_url, session_cookie

logger = logging.getLogger(__name__)

VERIFICATION_SENT = 'Verification email sent successfully'


def _callback_url(origin: str) -> str:
    return redirect_url(origin, 'VERIFICATION_CALLBACK_PATH', '/auth/callback')


@features.gated(features.AUTH)
def register(form_data: MultiDict, origin: str) -> ResponseData:
    """
    Create a new account.

    Parameters
    ----------
    form_data : MultiDict
        Should include ``email`` and ``password``; may include
        ``captchaToken``, which is passed on to the credential store.
    origin : str
        Origin of the request, used to build the verification link if
        ``SITE_URL`` is not configured.

    Returns
    -------
    dict
        Response content.
    int
        Status code. 201 if all goes well.
    dict
        Headers to add to the response.

    """
    form = RegisterForm(form_data)
    if not form.validate():
        logger.debug('Registration form is not valid')
        return errors.validation_failed(field_errors(form)).response()

    email = form.email.data
    try:
        user = credentials.sign_up(email, form.password.data,
                                   _callback_url(origin),
                                   captcha_token=form.captchaToken.data)
    except CredentialStoreError as e:
        return errors.map_sign_up_error(e).response()
    except Exception:
        logger.exception('Unexpected error during registration')
        return errors.INTERNAL_ERROR.response()

    logger.info('Registered user %s', user.user_id if user else None)
    data = {
        'message': 'Registration successful. '
                   'Check your email to verify your account.',
        'email': email
    }
    return data, status.HTTP_201_CREATED, {}


@features.gated(features.AUTH)
def resend_verification(form_data: MultiDict, origin: str) -> ResponseData:
    """
    Send the verification e-mail again.

    The response is the same whether or not the address belongs to an
    account, and whether or not that account is already verified.
    """
    form = EmailForm(form_data)
    if not form.validate():
        return errors.validation_failed(field_errors(form),
                                        'Nieprawidłowy adres email').response()

    try:
        credentials.resend_verification(form.email.data,
                                        _callback_url(origin))
    except CredentialStoreError as e:
        result = errors.map_resend_error(e)
        if result is not None:
            return result.response()
    except Exception:
        logger.exception('Unexpected error while resending verification')
        return errors.INTERNAL_ERROR.response()
    return {'message': VERIFICATION_SENT}, status.HTTP_200_OK, {}


@features.gated(features.AUTH)
def confirm(token_hash: Optional[str], verification_type: Optional[str],
            next_page: Optional[str]) -> ResponseData:
    """
    Redeem the token from an e-mailed link, and log the user in.

    Parameters
    ----------
    token_hash : str
    verification_type : str
        One of :const:`.credentials.VERIFICATION_TYPES`.
    next_page : str
        Where to go afterwards. Ignored unless it is a local page.

    Returns
    -------
    dict
        On success, includes ``cookies``.
    int
        Always 303 (See Other).
    dict
        Includes ``Location``.

    """
    config = get_application_config()
    failed = config.get('VERIFICATION_FAILED_REDIRECT_URL',
                        '/login?error=verification_failed')
    if not token_hash \
            or verification_type not in credentials.VERIFICATION_TYPES:
        logger.debug('Verification link is incomplete')
        return {}, status.HTTP_303_SEE_OTHER, {'Location': failed}

    try:
        session = credentials.verify(token_hash, str(verification_type))
    except CredentialStoreError as e:
        logger.info('Verification failed: %s', e)
        return {}, status.HTTP_303_SEE_OTHER, {'Location': failed}
    except Exception:
        logger.exception('Unexpected error during verification')
        return {}, status.HTTP_303_SEE_OTHER, {'Location': failed}

    logger.info('Verified %s link for user %s', verification_type,
                session.user_id)
    if verification_type == credentials.RECOVERY:
        session = session._replace(recovery=True)
        if not next_page:
            next_page = config.get('RESET_PASSWORD_PATH', '/reset-password')
    data = {'cookies': session_cookie(session)}
    location = good_next_page(next_page or '')
    return data, status.HTTP_303_SEE_OTHER, {'Location': location}
