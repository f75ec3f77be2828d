"""
Stable, user-facing error taxonomy for account operations.

The front end branches on ``code`` and shows ``error`` (and ``message``, if
present) to the user. Nothing from the credential store is passed through
verbatim: the store's own wording is logged here and replaced with one of
the results below.

The ``map_*`` functions translate a :class:`.CredentialStoreError` raised
during a given operation. Store messages are matched as case-insensitive
substrings; machine codes and HTTP status are checked as well, since newer
versions of the store send them.
"""

from typing import Iterable, NamedTuple, Optional, Tuple
import logging

from . import status
from .domain import FieldError
from .services.exceptions import CredentialStoreError, \
    CredentialStoreUnavailable

logger = logging.getLogger(__name__)

VALIDATION = 'VALIDATION'
UNAUTHORIZED = 'UNAUTHORIZED'
FORBIDDEN = 'FORBIDDEN'
CONFLICT = 'CONFLICT'
RATE_LIMITED = 'RATE_LIMITED'
WEAK_PASSWORD = 'WEAK_PASSWORD'
FEATURE_DISABLED = 'FEATURE_DISABLED'
INTERNAL = 'INTERNAL'

KINDS = (VALIDATION, UNAUTHORIZED, FORBIDDEN, CONFLICT, RATE_LIMITED,
         WEAK_PASSWORD, FEATURE_DISABLED, INTERNAL)


class ErrorResult(NamedTuple):
    """A failed account operation, as the client should see it."""

    kind: str
    message: str
    """Short, displayable error text. Rendered as ``error``."""
    http_status: int
    code: Optional[str] = None
    detail: Optional[str] = None
    """Longer explanation, rendered as ``message``."""
    details: Optional[Tuple[FieldError, ...]] = None
    """Per-field problems; only for validation failures."""

    def to_dict(self) -> dict:
        """Render as a response body."""
        data: dict = {'error': self.message}
        if self.detail is not None:
            data['message'] = self.detail
        if self.code is not None:
            data['code'] = self.code
        if self.details is not None:
            data['details'] = [error.to_dict() for error in self.details]
        return data

    def response(self) -> Tuple[dict, int, dict]:
        """Render as controller response data."""
        return self.to_dict(), self.http_status, {}


def validation_failed(details: Iterable[FieldError],
                      message: str = 'Nieprawidłowe dane wejściowe') \
        -> ErrorResult:
    """Generate a result for input that did not pass validation."""
    return ErrorResult(VALIDATION, message, status.HTTP_400_BAD_REQUEST,
                       code='VALIDATION_ERROR', details=tuple(details))


FEATURE_UNAVAILABLE = ErrorResult(
    FEATURE_DISABLED, 'Funkcjonalność jest niedostępna',
    status.HTTP_503_SERVICE_UNAVAILABLE, code='FEATURE_DISABLED'
)
NOT_AUTHORIZED = ErrorResult(
    UNAUTHORIZED, 'Unauthorized', status.HTTP_401_UNAUTHORIZED,
    code='UNAUTHORIZED', detail='Brak autoryzacji'
)
INTERNAL_ERROR = ErrorResult(
    INTERNAL, 'Wystąpił błąd serwera, spróbuj ponownie później',
    status.HTTP_500_INTERNAL_SERVER_ERROR, code='INTERNAL_ERROR'
)
RATE_LIMIT_EXCEEDED = ErrorResult(
    RATE_LIMITED, 'Zbyt wiele prób. Spróbuj ponownie za minutę',
    status.HTTP_429_TOO_MANY_REQUESTS, code='RATE_LIMIT_EXCEEDED'
)

# Registration.
EMAIL_ALREADY_EXISTS = ErrorResult(
    CONFLICT, 'Email jest już zarejestrowany', status.HTTP_409_CONFLICT,
    code='EMAIL_ALREADY_EXISTS'
)
REGISTRATION_WEAK_PASSWORD = ErrorResult(
    WEAK_PASSWORD, 'Hasło nie spełnia wymagań bezpieczeństwa',
    status.HTTP_400_BAD_REQUEST, code='WEAK_PASSWORD'
)
REGISTRATION_ERROR = ErrorResult(
    INTERNAL, 'Wystąpił błąd podczas rejestracji',
    status.HTTP_500_INTERNAL_SERVER_ERROR, code='REGISTRATION_ERROR'
)

# Login and logout.
INVALID_CREDENTIALS = ErrorResult(
    UNAUTHORIZED, 'Nieprawidłowy email lub hasło',
    status.HTTP_401_UNAUTHORIZED, code='INVALID_CREDENTIALS'
)
EMAIL_NOT_VERIFIED = ErrorResult(
    FORBIDDEN, 'Potwierdź email przed logowaniem', status.HTTP_403_FORBIDDEN,
    code='EMAIL_NOT_VERIFIED'
)
AUTH_ERROR = ErrorResult(
    INTERNAL, 'Wystąpił błąd podczas logowania',
    status.HTTP_500_INTERNAL_SERVER_ERROR, code='AUTH_ERROR'
)
LOGOUT_ERROR = ErrorResult(
    INTERNAL, 'Wystąpił błąd podczas wylogowania',
    status.HTTP_500_INTERNAL_SERVER_ERROR, code='LOGOUT_ERROR'
)

# Password reset and change.
INVALID_TOKEN = ErrorResult(
    UNAUTHORIZED, 'Link wygasł lub jest nieprawidłowy',
    status.HTTP_401_UNAUTHORIZED, code='INVALID_TOKEN'
)
RESET_WEAK_PASSWORD = ErrorResult(
    WEAK_PASSWORD, 'Hasło jest zbyt słabe. Użyj silniejszego hasła',
    status.HTTP_422_UNPROCESSABLE_ENTITY, code='WEAK_PASSWORD'
)
RESET_FAILED = ErrorResult(
    VALIDATION, 'Nie udało się zresetować hasła', status.HTTP_400_BAD_REQUEST,
    code='UPDATE_FAILED'
)
INVALID_CURRENT_PASSWORD = ErrorResult(
    UNAUTHORIZED, 'Current password is incorrect',
    status.HTTP_401_UNAUTHORIZED, code='INVALID_CURRENT_PASSWORD',
    detail='Nieprawidłowe aktualne hasło'
)
CHANGE_WEAK_PASSWORD = ErrorResult(
    WEAK_PASSWORD, 'Hasło jest zbyt słabe. Użyj silniejszego hasła',
    status.HTTP_400_BAD_REQUEST, code='WEAK_PASSWORD'
)
CHANGE_FAILED = ErrorResult(
    VALIDATION, 'Nie udało się zmienić hasła', status.HTTP_400_BAD_REQUEST,
    code='UPDATE_FAILED'
)

# Verification e-mail and account deletion.
RESEND_ERROR = ErrorResult(
    INTERNAL, 'Wystąpił błąd podczas wysyłania emaila',
    status.HTTP_500_INTERNAL_SERVER_ERROR, code='RESEND_ERROR'
)
DELETE_ERROR = ErrorResult(
    INTERNAL, 'Wystąpił błąd serwera, spróbuj ponownie później',
    status.HTTP_500_INTERNAL_SERVER_ERROR, code='DELETE_ERROR'
)


def _mentions(error: CredentialStoreError, *phrases: str) -> bool:
    text = (error.message or '').lower()
    return any(phrase.lower() in text for phrase in phrases)


def _has_code(error: CredentialStoreError, *codes: str) -> bool:
    return error.code is not None and error.code in codes


def _log(operation: str, error: CredentialStoreError) -> None:
    logger.info('%s refused by credential store (status %s, code %s): %s',
                operation, error.status, error.code, error.message)


def is_rate_limited(error: CredentialStoreError) -> bool:
    """Whether the store refused because of too many attempts."""
    if isinstance(error, CredentialStoreUnavailable):
        return False
    if error.status == status.HTTP_429_TOO_MANY_REQUESTS:
        return True
    if error.code is not None and error.code.startswith('over_') \
            and error.code.endswith('rate_limit'):
        return True
    return _mentions(error, 'rate limit', 'too many')


def is_weak_password(error: CredentialStoreError) -> bool:
    """Whether the store refused a new password for being too weak."""
    return _has_code(error, 'weak_password') or _mentions(error, 'weak')


def map_sign_up_error(error: CredentialStoreError) -> ErrorResult:
    """Translate a failure to create credentials."""
    _log('Sign-up', error)
    if isinstance(error, CredentialStoreUnavailable):
        return REGISTRATION_ERROR
    if _has_code(error, 'user_already_exists', 'email_exists') \
            or _mentions(error, 'already registered',
                         'already been registered'):
        return EMAIL_ALREADY_EXISTS
    if is_rate_limited(error):
        return RATE_LIMIT_EXCEEDED
    if is_weak_password(error) or _mentions(error, 'password'):
        return REGISTRATION_WEAK_PASSWORD
    return REGISTRATION_ERROR


def map_sign_in_error(error: CredentialStoreError) -> ErrorResult:
    """Translate a failed password sign-in."""
    _log('Sign-in', error)
    if isinstance(error, CredentialStoreUnavailable):
        return AUTH_ERROR
    if _has_code(error, 'email_not_confirmed') \
            or _mentions(error, 'email not confirmed'):
        return EMAIL_NOT_VERIFIED
    if _has_code(error, 'invalid_credentials') \
            or _mentions(error, 'invalid login credentials'):
        return INVALID_CREDENTIALS
    if is_rate_limited(error):
        return RATE_LIMIT_EXCEEDED
    return AUTH_ERROR


def map_resend_error(error: CredentialStoreError) -> Optional[ErrorResult]:
    """
    Translate a failure to resend the verification e-mail.

    Returns
    -------
    :class:`.ErrorResult` or None
        None means the failure must be reported to the client as a success,
        so that the response does not reveal whether the address is
        registered or already verified.

    """
    _log('Resend verification', error)
    if isinstance(error, CredentialStoreUnavailable):
        return RESEND_ERROR
    if is_rate_limited(error):
        return RATE_LIMIT_EXCEEDED
    if _mentions(error, 'already verified', 'email not found'):
        return None
    return RESEND_ERROR


def map_reset_error(error: CredentialStoreError) -> ErrorResult:
    """Translate a failure to set a password via an e-mailed reset link."""
    _log('Password reset', error)
    if isinstance(error, CredentialStoreUnavailable):
        return INTERNAL_ERROR
    if is_weak_password(error):
        return RESET_WEAK_PASSWORD
    return RESET_FAILED


def map_change_error(error: CredentialStoreError) -> ErrorResult:
    """Translate a failure to change the password of a signed-in user."""
    _log('Password change', error)
    if isinstance(error, CredentialStoreUnavailable):
        return INTERNAL_ERROR
    if is_weak_password(error):
        return CHANGE_WEAK_PASSWORD
    return CHANGE_FAILED

