"""Defines the core data structures for the pricewatch accounts service."""

from typing import Any, Optional, NamedTuple
from datetime import datetime


class User(NamedTuple):
    """A user as known to the credential store."""

    user_id: str
    email: str
    verified: bool = False
    """Whether the user has confirmed their e-mail address."""

    def to_dict(self) -> dict:
        """Public representation, as returned by the API."""
        return {'id': self.user_id, 'email': self.email,
                'emailVerified': self.verified}


class Session(NamedTuple):
    """
    An authenticated session issued by the credential store.

    This service never creates sessions itself. The credential store hands
    back a token pair on sign-in (or on redemption of an e-mailed link), and
    the route layer persists it in a signed cookie.
    """

    access_token: str
    refresh_token: str = ''
    user: Optional[User] = None
    expires_at: Optional[datetime] = None
    recovery: bool = False
    """Established by following a password reset link, rather than by
    logging in. Only such a session may set a new password without the
    current one."""

    @property
    def user_id(self) -> Optional[str]:
        return self.user.user_id if self.user is not None else None


class FieldError(NamedTuple):
    """A problem with a single input field."""

    field: str
    code: str
    message: str

    def to_dict(self) -> dict:
        return dict(self._asdict())


def user_from_store(data: Any) -> User:
    """Build a :class:`.User` from a credential store user payload."""
    return User(
        user_id=str(data['id']),
        email=data.get('email') or '',
        verified=bool(data.get('email_confirmed_at')
                      or data.get('confirmed_at'))
    )
