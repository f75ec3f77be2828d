"""
Provides forms for registration, login, password and account management.

Field names match the keys of the JSON request bodies. The checks themselves
live in :mod:`pricewatch_accounts.validation`; the validators here only hook
them into WTForms, and record the machine-readable problem code on the field
so that :func:`field_errors` can report it.
"""

from typing import Any, List

from wtforms import Form, PasswordField, StringField
from wtforms.validators import StopValidation

from .. import validation
from ..context import get_application_config
from ..domain import FieldError

GENERIC = 'INVALID'
"""Code reported for WTForms' own errors, which carry no code."""


def _setting(name: str, default: Any) -> Any:
    return get_application_config().get(name, default)


def _stop(field: Any, problem: validation.Problem) -> None:
    if problem is None:
        return None
    code, message = problem
    field.problem_code = code
    raise StopValidation(message)


class ValidEmail(object):
    """The field must hold a plausible, not overly long, e-mail address."""

    def __call__(self, form: Form, field: Any) -> None:
        max_length = int(_setting('EMAIL_MAX_LENGTH',
                                  validation.EMAIL_MAX_LENGTH))
        _stop(field, validation.validate_email(field.data, max_length))


class NewPassword(object):
    """
    The field must hold an acceptable new password.

    Parameters
    ----------
    bounded : bool
        Also enforce ``PASSWORD_MAX_LENGTH``.
    label : str
        Name of the field in messages.

    """

    def __init__(self, bounded: bool = False, label: str = 'Hasło') -> None:
        self.bounded = bounded
        self.label = label

    def __call__(self, form: Form, field: Any) -> None:
        min_length = int(_setting('PASSWORD_MIN_LENGTH',
                                  validation.PASSWORD_MIN_LENGTH))
        max_length = None
        if self.bounded:
            max_length = int(_setting('PASSWORD_MAX_LENGTH', 72))
        _stop(field, validation.validate_password(field.data, min_length,
                                                  max_length, self.label))


class Required(object):
    """The field must not be empty."""

    def __init__(self, message: str = 'To pole jest wymagane') -> None:
        self.message = message

    def __call__(self, form: Form, field: Any) -> None:
        _stop(field, validation.validate_required(field.data, self.message))


class Confirmation(object):
    """The field must match ``DELETE_CONFIRMATION_TEXT`` exactly."""

    def __call__(self, form: Form, field: Any) -> None:
        expected = _setting('DELETE_CONFIRMATION_TEXT', 'USUŃ')
        _stop(field, validation.validate_confirmation(field.data, expected))


class CaptchaToken(object):
    """Only required when ``CAPTCHA_REQUIRED`` is set."""

    def __call__(self, form: Form, field: Any) -> None:
        if _setting('CAPTCHA_REQUIRED', False) in (True, '1', 1):
            _stop(field, validation.validate_required(field.data))


class RegisterForm(Form):
    """New account."""

    email = StringField('Email', validators=[ValidEmail()])
    password = PasswordField('Password', validators=[NewPassword()])
    captchaToken = StringField('Captcha token', validators=[CaptchaToken()])


class LoginForm(Form):
    """Log in form."""

    email = StringField('Email', validators=[ValidEmail()])
    password = PasswordField('Password',
                             validators=[Required('Hasło jest wymagane')])


class EmailForm(Form):
    """Just an address; for password recovery and verification e-mails."""

    email = StringField('Email', validators=[ValidEmail()])


class ResetPasswordForm(Form):
    password = PasswordField('New password',
                             validators=[NewPassword(bounded=True)])


class ChangePasswordForm(Form):
    currentPassword = PasswordField(
        'Current password',
        validators=[Required('Aktualne hasło jest wymagane')]
    )
    newPassword = PasswordField('New password',
                                validators=[NewPassword(label='Nowe hasło')])


class DeleteAccountForm(Form):
    confirmation = StringField('Confirmation', validators=[Confirmation()])


def field_errors(form: Form) -> List[FieldError]:
    """Collect the problems found by :meth:`Form.validate`, by field."""
    errors = []
    for field in form:
        for message in field.errors:
            code = getattr(field, 'problem_code', GENERIC)
            errors.append(FieldError(field.name, code, message))
    return errors
