"""
Session cookie codec.

The credential store hands us a token pair on sign-in. We keep it in the
browser in a signed cookie, so that no session state lives on this side.
The signature only protects the integrity of the cookie; whether the tokens
inside are still good is for the credential store to say.
"""

from datetime import datetime, timedelta
from typing import Optional

import dateutil.parser
import jwt
from pytz import UTC

from .domain import Session, User
from .services.exceptions import InvalidSessionCookie


def pack_session(session: Session, secret: str, duration: int) -> str:
    """
    Generate a signed cookie value for a :class:`.Session`.

    Parameters
    ----------
    session : :class:`.Session`
    secret : str
        Used to sign the cookie (HS256).
    duration : int
        Seconds after which the cookie itself is no longer accepted.

    Returns
    -------
    str

    """
    expires: Optional[str] = None
    if session.expires_at is not None:
        expires = session.expires_at.isoformat()
    cookie_data = {
        'access_token': session.access_token,
        'refresh_token': session.refresh_token,
        'expires': expires,
        'recovery': session.recovery,
        'exp': datetime.now(tz=UTC) + timedelta(seconds=duration)
    }
    if session.user is not None:
        cookie_data.update({
            'user_id': session.user.user_id,
            'email': session.user.email,
            'verified': session.user.verified
        })
    return jwt.encode(cookie_data, secret, algorithm='HS256')


def unpack_session(cookie: str, secret: str) -> Session:
    """
    Load a :class:`.Session` from a signed cookie value.

    Raises
    ------
    :class:`.InvalidSessionCookie`
        If the cookie is malformed, was not signed with ``secret``, or has
        outlived its ``exp`` claim.

    """
    try:
        cookie_data = dict(jwt.decode(cookie, secret, algorithms=['HS256']))
        access_token = cookie_data['access_token']
        expires_at = None
        if cookie_data.get('expires'):
            expires_at = dateutil.parser.parse(cookie_data['expires'])
    except jwt.exceptions.ExpiredSignatureError as e:
        raise InvalidSessionCookie('Session cookie has expired') from e
    except (KeyError, ValueError, OverflowError,
            jwt.exceptions.InvalidTokenError) as e:
        raise InvalidSessionCookie('Session cookie is malformed') from e
    if not access_token or not isinstance(access_token, str):
        raise InvalidSessionCookie('Session cookie has no access token')

    user: Optional[User] = None
    if cookie_data.get('user_id'):
        user = User(user_id=str(cookie_data['user_id']),
                    email=cookie_data.get('email') or '',
                    verified=bool(cookie_data.get('verified')))
    return Session(access_token=access_token,
                   refresh_token=cookie_data.get('refresh_token') or '',
                   user=user, expires_at=expires_at,
                   recovery=cookie_data.get('recovery') is True)
