"""Tests for :mod:`pricewatch_accounts.controllers.authentication`."""

from unittest import TestCase, mock
from datetime import datetime, timedelta
from typing import Any

from pytz import UTC
from werkzeug.datastructures import MultiDict

from ... import status
from ...cookies import unpack_session
from ...domain import Session, User
from ...factory import create_web_app
from ...services import credentials
from ...services.exceptions import CredentialStoreError, \
    CredentialStoreUnavailable
from ..authentication import login, logout, check

USER = User('u-1', 'jan@example.com', True)
SESSION = Session('at-1', 'rt-1', USER,
                  datetime.now(tz=UTC) + timedelta(hours=1))


class ControllerTestCase(TestCase):
    """Runs each test in an application context, with a mock store."""

    def setUp(self):
        self.app = create_web_app()
        self.app.config['JWT_SECRET'] = 'foosecret'
        self.app.config['SESSION_DURATION'] = '500'
        self.context = self.app.app_context()
        self.context.push()
        patcher = mock.patch(f'{credentials.__name__}.current_session')
        self.store = patcher.start().return_value
        self.addCleanup(patcher.stop)

    def tearDown(self):
        self.context.pop()


class TestLogin(ControllerTestCase):
    """Tests for :func:`.login`."""

    def test_success(self):
        """A session cookie is issued."""
        self.store.sign_in.return_value = SESSION
        data, code, headers = login(MultiDict({'email': 'jan@example.com',
                                               'password': 'hunter22'}))
        self.assertEqual(code, status.HTTP_200_OK)
        self.assertEqual(data['message'], 'Login successful')
        self.assertEqual(data['user'], {'id': 'u-1',
                                        'email': 'jan@example.com'})
        cookie, max_age = data['cookies']['auth_session_cookie']
        self.assertEqual(max_age, 500)
        self.assertEqual(unpack_session(cookie, 'foosecret').access_token,
                         'at-1')
        self.store.sign_in.assert_called_once_with('jan@example.com',
                                                   'hunter22')

    def test_invalid_form(self):
        """Every bad field is reported, and the store is not called."""
        data, code, _ = login(MultiDict({'email': 'jan', 'password': ''}))
        self.assertEqual(code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(data['code'], 'VALIDATION_ERROR')
        self.assertEqual(
            {(d['field'], d['code']) for d in data['details']},
            {('email', 'INVALID_FORMAT'), ('password', 'EMPTY')}
        )
        messages = {d['field']: d['message'] for d in data['details']}
        self.assertEqual(messages['password'], 'Hasło jest wymagane')
        self.store.sign_in.assert_not_called()

    def test_short_password_is_fine(self):
        """Login does not check password length; the store does."""
        self.store.sign_in.return_value = SESSION
        _, code, _ = login(MultiDict({'email': 'jan@example.com',
                                      'password': 'x'}))
        self.assertEqual(code, status.HTTP_200_OK)

    def test_wrong_password(self):
        self.store.sign_in.side_effect = \
            CredentialStoreError('Invalid login credentials', 400)
        data, code, _ = login(MultiDict({'email': 'jan@example.com',
                                         'password': 'wrong'}))
        self.assertEqual(code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(data, {'error': 'Nieprawidłowy email lub hasło',
                                'code': 'INVALID_CREDENTIALS'})
        self.assertNotIn('cookies', data)

    def test_not_verified(self):
        self.store.sign_in.side_effect = \
            CredentialStoreError('Email not confirmed', 400)
        data, code, _ = login(MultiDict({'email': 'jan@example.com',
                                         'password': 'hunter22'}))
        self.assertEqual(code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(data['code'], 'EMAIL_NOT_VERIFIED')

    def test_store_unavailable(self):
        self.store.sign_in.side_effect = CredentialStoreUnavailable('down')
        data, code, _ = login(MultiDict({'email': 'jan@example.com',
                                         'password': 'hunter22'}))
        self.assertEqual(code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(data['code'], 'AUTH_ERROR')

    def test_unexpected_error(self):
        self.store.sign_in.side_effect = RuntimeError('oops')
        data, code, _ = login(MultiDict({'email': 'jan@example.com',
                                         'password': 'hunter22'}))
        self.assertEqual(code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(data['code'], 'INTERNAL_ERROR')

    @mock.patch('pricewatch_accounts.features.is_enabled',
                return_value=False)
    def test_disabled(self, mock_is_enabled):
        data, code, _ = login(MultiDict({'email': 'jan@example.com',
                                         'password': 'hunter22'}))
        self.assertEqual(code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(data['code'], 'FEATURE_DISABLED')
        self.store.sign_in.assert_not_called()


class TestLogout(ControllerTestCase):
    """Tests for :func:`.logout`."""

    def test_logout(self):
        """The session is revoked and the cookie cleared."""
        data, code, _ = logout(SESSION)
        self.assertEqual(code, status.HTTP_200_OK)
        self.assertEqual(data['message'], 'Logged out successfully')
        self.assertEqual(data['cookies'], {'auth_session_cookie': ('', 0)})
        self.store.sign_out.assert_called_once_with('at-1')

    def test_no_session(self):
        """Nothing to revoke, but the cookie is still cleared."""
        data, code, _ = logout(None)
        self.assertEqual(code, status.HTTP_200_OK)
        self.assertIn('cookies', data)
        self.store.sign_out.assert_not_called()

    def test_failure(self):
        self.store.sign_out.side_effect = CredentialStoreError('boom', 500)
        data, code, _ = logout(SESSION)
        self.assertEqual(code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(data, {'error': 'Wystąpił błąd podczas wylogowania',
                                'code': 'LOGOUT_ERROR'})


class TestCheck(ControllerTestCase):
    """Tests for :func:`.check`."""

    def test_authenticated(self):
        self.store.get_user.return_value = USER
        data, code, _ = check(SESSION)
        self.assertEqual(code, status.HTTP_200_OK)
        self.assertTrue(data['authenticated'])
        self.assertEqual(data['user'], {'id': 'u-1',
                                        'email': 'jan@example.com',
                                        'emailVerified': True})
        self.assertEqual(data['current_user_id'], 'u-1')
        self.store.get_user.assert_called_once_with('at-1')

    def test_no_session(self):
        data, code, _ = check(None)
        self.assertEqual(code, status.HTTP_200_OK)
        self.assertFalse(data['authenticated'])
        self.assertIsNone(data['user'])
        self.assertIsNone(data['current_user_id'])

    def test_rejected_session(self):
        """A session the store does not recognize is not authenticated."""
        for exc in (CredentialStoreError('invalid JWT', 403),
                    CredentialStoreUnavailable('down')):
            self.store.get_user.side_effect = exc
            data, code, _ = check(SESSION)
            self.assertEqual(code, status.HTTP_200_OK)
            self.assertFalse(data['authenticated'])
