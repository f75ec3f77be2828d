"""Tests for :mod:`pricewatch_accounts.errors`."""

from unittest import TestCase

from .. import errors
from ..domain import FieldError
from ..services.exceptions import CredentialStoreError, \
    CredentialStoreUnavailable


class TestErrorResult(TestCase):
    """Tests for :class:`.errors.ErrorResult`."""

    def test_minimal(self):
        result = errors.ErrorResult(errors.INTERNAL, 'Oops', 500)
        self.assertEqual(result.to_dict(), {'error': 'Oops'})

    def test_full(self):
        result = errors.validation_failed(
            [FieldError('email', 'EMPTY', 'Email jest wymagany')]
        )
        self.assertEqual(result.http_status, 400)
        self.assertEqual(result.to_dict(), {
            'error': 'Nieprawidłowe dane wejściowe',
            'code': 'VALIDATION_ERROR',
            'details': [{'field': 'email', 'code': 'EMPTY',
                         'message': 'Email jest wymagany'}]
        })

    def test_unauthorized(self):
        data, code, headers = errors.NOT_AUTHORIZED.response()
        self.assertEqual(code, 401)
        self.assertEqual(data, {'error': 'Unauthorized',
                                'message': 'Brak autoryzacji',
                                'code': 'UNAUTHORIZED'})

    def test_kinds(self):
        """Every predefined result has a kind from the taxonomy."""
        for value in vars(errors).values():
            if isinstance(value, errors.ErrorResult):
                self.assertIn(value.kind, errors.KINDS)


class TestMapSignUpError(TestCase):
    """Tests for :func:`.errors.map_sign_up_error`."""

    def test_already_registered(self):
        for error in (CredentialStoreError('User already registered', 422),
                      CredentialStoreError('A user with this email address '
                                           'has already been registered',
                                           422),
                      CredentialStoreError('whatever', 422,
                                           'user_already_exists')):
            result = errors.map_sign_up_error(error)
            self.assertEqual(result.code, 'EMAIL_ALREADY_EXISTS')
            self.assertEqual(result.http_status, 409)

    def test_weak_password(self):
        for error in (CredentialStoreError('Password should be at least 6 '
                                           'characters', 422),
                      CredentialStoreError('nope', 422, 'weak_password')):
            result = errors.map_sign_up_error(error)
            self.assertEqual(result.code, 'WEAK_PASSWORD')
            self.assertEqual(result.http_status, 400)

    def test_rate_limited(self):
        result = errors.map_sign_up_error(
            CredentialStoreError('Email rate limit exceeded', 429,
                                 'over_email_send_rate_limit')
        )
        self.assertEqual(result.http_status, 429)

    def test_other(self):
        """Unknown failures do not leak the store's text."""
        result = errors.map_sign_up_error(
            CredentialStoreError('Database error saving new user', 500)
        )
        self.assertEqual(result.code, 'REGISTRATION_ERROR')
        self.assertEqual(result.http_status, 500)
        self.assertNotIn('Database', str(result.to_dict()))

    def test_unavailable(self):
        result = errors.map_sign_up_error(
            CredentialStoreUnavailable('Connection failed: password reset')
        )
        self.assertEqual(result.code, 'REGISTRATION_ERROR')


class TestMapSignInError(TestCase):
    """Tests for :func:`.errors.map_sign_in_error`."""

    def test_not_confirmed(self):
        for error in (CredentialStoreError('Email not confirmed', 400),
                      CredentialStoreError('x', 400, 'email_not_confirmed')):
            result = errors.map_sign_in_error(error)
            self.assertEqual(result.code, 'EMAIL_NOT_VERIFIED')
            self.assertEqual(result.http_status, 403)

    def test_invalid_credentials(self):
        for error in (CredentialStoreError('Invalid login credentials', 400),
                      CredentialStoreError('x', 400, 'invalid_credentials')):
            result = errors.map_sign_in_error(error)
            self.assertEqual(result.code, 'INVALID_CREDENTIALS')
            self.assertEqual(result.http_status, 401)

    def test_case_insensitive(self):
        result = errors.map_sign_in_error(
            CredentialStoreError('INVALID LOGIN CREDENTIALS', 400)
        )
        self.assertEqual(result.code, 'INVALID_CREDENTIALS')

    def test_other(self):
        result = errors.map_sign_in_error(CredentialStoreError('Boom', 500))
        self.assertEqual(result.code, 'AUTH_ERROR')
        self.assertEqual(result.http_status, 500)


class TestMapResendError(TestCase):
    """Tests for :func:`.errors.map_resend_error`."""

    def test_rate_limited(self):
        for error in (CredentialStoreError('Too many requests', 400),
                      CredentialStoreError('Rate limit reached', 400),
                      CredentialStoreError('x', 429)):
            result = errors.map_resend_error(error)
            self.assertEqual(result.code, 'RATE_LIMIT_EXCEEDED')
            self.assertEqual(result.to_dict()['error'],
                             'Zbyt wiele prób. Spróbuj ponownie za minutę')

    def test_not_revealed(self):
        """Already verified and unknown addresses look like success."""
        for message in ('Email already verified', 'Email not found'):
            self.assertIsNone(
                errors.map_resend_error(CredentialStoreError(message, 400))
            )

    def test_other(self):
        result = errors.map_resend_error(CredentialStoreError('Boom', 500))
        self.assertEqual(result.code, 'RESEND_ERROR')


class TestMapUpdateErrors(TestCase):
    """Tests for :func:`.errors.map_reset_error` and ``map_change_error``."""

    def test_reset_weak(self):
        result = errors.map_reset_error(
            CredentialStoreError('Password is too weak', 422)
        )
        self.assertEqual(result.http_status, 422)
        self.assertEqual(result.code, 'WEAK_PASSWORD')

    def test_reset_other(self):
        result = errors.map_reset_error(
            CredentialStoreError('New password should be different', 422)
        )
        self.assertEqual(result.http_status, 400)
        self.assertEqual(result.code, 'UPDATE_FAILED')

    def test_change_weak(self):
        result = errors.map_change_error(
            CredentialStoreError('x', 422, 'weak_password')
        )
        self.assertEqual(result.http_status, 400)
        self.assertEqual(result.code, 'WEAK_PASSWORD')

    def test_change_other(self):
        """The store's own wording is not passed on."""
        result = errors.map_change_error(
            CredentialStoreError('New password should be different', 422)
        )
        self.assertEqual(result.to_dict(), {
            'error': 'Nie udało się zmienić hasła', 'code': 'UPDATE_FAILED'
        })
