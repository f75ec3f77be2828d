"""
Input validation for account operations.

These are plain functions with no side effects. Each returns ``None`` if the
value is acceptable, or a ``(code, message)`` pair describing the problem.
Problems are returned rather than raised so that a caller can collect them
for every field before responding; see :mod:`.controllers.forms`.

Codes are stable and meant for machines. Messages are meant for users.
"""

import re
from typing import Optional, Tuple

EMPTY = 'EMPTY'
INVALID_FORMAT = 'INVALID_FORMAT'
TOO_LONG = 'TOO_LONG'
TOO_SHORT = 'TOO_SHORT'
MISMATCH = 'MISMATCH'

EMAIL_MAX_LENGTH = 255
PASSWORD_MIN_LENGTH = 8

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
"""Two-part ``local@domain.tld``. Deliberately loose; the store has the final
say on deliverability."""

Problem = Optional[Tuple[str, str]]


def validate_email(value: Optional[str],
                   max_length: int = EMAIL_MAX_LENGTH) -> Problem:
    """Check that ``value`` looks like an e-mail address."""
    if value is None or not str(value).strip():
        return EMPTY, 'Email jest wymagany'
    value = str(value)
    if not EMAIL_PATTERN.match(value):
        return INVALID_FORMAT, 'Wprowadź prawidłowy adres email'
    if len(value) > max_length:
        return TOO_LONG, 'Email jest za długi'
    return None


def validate_password(value: Optional[str],
                      min_length: int = PASSWORD_MIN_LENGTH,
                      max_length: Optional[int] = None,
                      label: str = 'Hasło') -> Problem:
    """
    Check the length of a new password.

    Parameters
    ----------
    value : str
    min_length : int
    max_length : int or None
        Only enforced where the credential store imposes a limit of its own.
    label : str
        How the field is named in messages, e.g. ``Nowe hasło``.

    """
    if value is None or value == '':
        return EMPTY, f'{label} jest wymagane'
    if len(value) < min_length:
        return TOO_SHORT, f'{label} musi mieć minimum {min_length} znaków'
    if max_length is not None and len(value) > max_length:
        return TOO_LONG, f'{label} może mieć maksymalnie {max_length} znaki'
    return None


def validate_required(value: Optional[str],
                      message: str = 'To pole jest wymagane') -> Problem:
    """Check that a value was provided at all."""
    if value is None or value == '':
        return EMPTY, message
    return None


def validate_confirmation(value: Optional[str], expected: str) -> Problem:
    """Exact, case-sensitive comparison. Nothing is trimmed."""
    if value != expected:
        return MISMATCH, f'Wpisz "{expected}" aby potwierdzić'
    return None
