"""Controller for closing an account."""

from typing import Optional

from werkzeug.datastructures import MultiDict
import logging

from .. import errors, features, status
from ..domain import Session
from ..services import credentials
from ..services.exceptions import CredentialStoreError
from .forms import DeleteAccountForm, field_errors
from .util import ResponseData, authenticated_user, clear_session_cookie

logger = logging.getLogger(__name__)


@features.gated(features.AUTH)
def delete_account(form_data: MultiDict,
                   session: Optional[Session]) -> ResponseData:
    """
    Permanently erase the account of the logged-in user, then log them out.

    Parameters
    ----------
    form_data : MultiDict
        Should include ``confirmation``, which must be exactly
        ``DELETE_CONFIRMATION_TEXT``.
    session : :class:`.Session` or None

    Returns
    -------
    dict
        Response content. On success, includes ``cookies``.
    int
        Status code. 200 if the account was erased.
    dict
        Headers to add to the response.

    """
    try:
        user = authenticated_user(session)
    except CredentialStoreError:
        logger.exception('Could not check session before account deletion')
        return errors.INTERNAL_ERROR.response()
    if user is None or session is None:
        return errors.NOT_AUTHORIZED.response()

    form = DeleteAccountForm(form_data)
    if not form.validate():
        problems = field_errors(form)
        result = errors.validation_failed(problems)._replace(
            detail=problems[0].message if problems else None
        )
        return result.response()

    try:
        credentials.delete_account(session.access_token)
    except CredentialStoreError as e:
        logger.error('Could not delete account of user %s: %s',
                     user.user_id, e)
        return errors.DELETE_ERROR.response()
    except Exception:
        logger.exception('Unexpected error during account deletion')
        return errors.DELETE_ERROR.response()
    logger.info('Deleted account of user %s', user.user_id)

    # Erasure already happened; from here on failures are only logged.
    try:
        credentials.sign_out(session.access_token)
    except CredentialStoreError as e:
        logger.error('Sign-out after account deletion failed: %s', e)
    except Exception:
        logger.exception('Unexpected error signing out deleted account')

    data = {'message': 'Account deleted successfully',
            'cookies': clear_session_cookie()}
    return data, status.HTTP_200_OK, {}
