"""Helpers for testing the accounts service without a credential store."""

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple
import uuid

from pytz import UTC

from ..domain import Session, User
from ..services.credentials import RECOVERY, SIGNUP
from ..services.exceptions import CredentialStoreError


class FakeCredentialStore(object):
    """
    Stands in for :class:`.credentials.CredentialStoreSession`.

    Keeps users, sessions and outstanding e-mail tokens in memory, and fails
    the way the real store does, with the same messages and codes.
    """

    def __init__(self) -> None:
        self.users: Dict[str, dict] = {}
        self.sessions: Dict[str, str] = {}
        self.tokens: Dict[str, Tuple[str, str]] = {}
        self.outbox: List[Tuple[str, str, str]] = []
        """``(email, kind, token_hash)`` for every e-mail "sent"."""
        self.erased: List[str] = []
        self.fail_sign_out = False

    def status(self) -> bool:
        return True

    def _user(self, user_id: str) -> User:
        data = self.users[user_id]
        return User(user_id, data['email'], data['verified'])

    def _find(self, email: str) -> Optional[dict]:
        for data in self.users.values():
            if data['email'].lower() == email.lower():
                return data
        return None

    def _session(self, user_id: str) -> Session:
        token = uuid.uuid4().hex
        self.sessions[token] = user_id
        return Session(access_token=token, refresh_token=uuid.uuid4().hex,
                       user=self._user(user_id),
                       expires_at=datetime.now(tz=UTC) + timedelta(hours=1))

    def _mail(self, email: str, kind: str, user_id: str) -> None:
        token_hash = uuid.uuid4().hex
        self.tokens[token_hash] = (user_id, kind)
        self.outbox.append((email, kind, token_hash))

    def _owner(self, access_token: str) -> str:
        try:
            return self.sessions[access_token]
        except KeyError as e:
            raise CredentialStoreError('invalid JWT: unable to parse or '
                                       'verify signature', 403,
                                       'bad_jwt') from e

    def sign_up(self, email: str, password: str, redirect_to: str,
                captcha_token: Optional[str] = None) -> Optional[User]:
        if self._find(email) is not None:
            raise CredentialStoreError('User already registered', 422,
                                       'user_already_exists')
        user_id = str(uuid.uuid4())
        self.users[user_id] = {'id': user_id, 'email': email,
                               'password': password, 'verified': False}
        self._mail(email, SIGNUP, user_id)
        return self._user(user_id)

    def sign_in(self, email: str, password: str) -> Session:
        data = self._find(email)
        if data is None or data['password'] != password:
            raise CredentialStoreError('Invalid login credentials', 400,
                                       'invalid_credentials')
        if not data['verified']:
            raise CredentialStoreError('Email not confirmed', 400,
                                       'email_not_confirmed')
        return self._session(data['id'])

    def sign_out(self, access_token: str) -> None:
        if self.fail_sign_out:
            raise CredentialStoreError('Internal server error', 500)
        self.sessions.pop(access_token, None)

    def get_user(self, access_token: str) -> User:
        return self._user(self._owner(access_token))

    def update_password(self, access_token: str, password: str) -> User:
        user_id = self._owner(access_token)
        if password == self.users[user_id]['password']:
            raise CredentialStoreError('New password should be different '
                                       'from the old password.', 422,
                                       'same_password')
        self.users[user_id]['password'] = password
        return self._user(user_id)

    def request_password_reset(self, email: str, redirect_to: str) -> None:
        data = self._find(email)
        if data is not None:
            self._mail(data['email'], RECOVERY, data['id'])

    def resend_verification(self, email: str, redirect_to: str) -> None:
        data = self._find(email)
        if data is not None and not data['verified']:
            self._mail(data['email'], SIGNUP, data['id'])

    def verify(self, token_hash: str, verification_type: str) -> Session:
        try:
            user_id, kind = self.tokens.pop(token_hash)
        except KeyError as e:
            raise CredentialStoreError('Email link is invalid or has '
                                       'expired', 403, 'otp_expired') from e
        if kind != verification_type:
            raise CredentialStoreError('Email link is invalid or has '
                                       'expired', 403, 'otp_expired')
        self.users[user_id]['verified'] = True
        return self._session(user_id)

    def delete_account(self, access_token: str) -> None:
        user_id = self._owner(access_token)
        del self.users[user_id]
        for token, owner in list(self.sessions.items()):
            if owner == user_id:
                del self.sessions[token]
        self.erased.append(user_id)

    def last_token(self, email: str, kind: str) -> str:
        """The token hash in the latest e-mail of ``kind`` to ``email``."""
        for address, sent_kind, token_hash in reversed(self.outbox):
            if address == email and sent_kind == kind:
                return token_hash
        raise KeyError(f'No {kind} e-mail to {email}')
