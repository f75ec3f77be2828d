"""Provides the JSON API for account management."""

from typing import Optional
from datetime import timedelta

from flask import Blueprint, request, current_app, jsonify, make_response, \
    Response
from werkzeug.datastructures import MultiDict
import logging

from .. import status
from ..cookies import unpack_session
from ..domain import Session
from ..services import credentials
from ..services.exceptions import InvalidSessionCookie
from ..controllers import account, authentication, flags, passwords, \
    registration

logger = logging.getLogger(__name__)
blueprint = Blueprint('auth', __name__, url_prefix='/auth')


def form_data() -> MultiDict:
    """
    Get the JSON body of the request as form data.

    A body that is missing or is not a JSON object counts as empty. Values
    that are not strings are dropped, and so fail validation as missing.
    """
    payload = request.get_json(force=True, silent=True)
    if not isinstance(payload, dict):
        payload = {}
    return MultiDict({key: value for key, value in payload.items()
                      if isinstance(value, str)})


def request_session() -> Optional[Session]:
    """
    Get the session presented with the request, if any.

    A bearer token in the ``Authorization`` header wins over the session
    cookie. A cookie that cannot be decoded counts as no session at all.
    """
    header = request.headers.get('Authorization', '')
    if header.lower().startswith('bearer '):
        token = header[7:].strip()
        if token:
            return Session(access_token=token)

    cookie_name = current_app.config['AUTH_SESSION_COOKIE_NAME']
    cookie = request.cookies.get(cookie_name)
    if not cookie:
        return None
    try:
        return unpack_session(cookie, current_app.config['JWT_SECRET'])
    except InvalidSessionCookie as e:
        logger.debug('Ignoring session cookie: %s', e)
        return None


def request_origin() -> str:
    """Origin (scheme and host) of the current request."""
    return request.host_url.rstrip('/')


def set_cookies(response: Response, cookies: Optional[dict]) -> None:
    """
    Update a :class:`.Response` with cookies from controller data.

    Contollers seeking to update cookies must include a 'cookies' key
    in their response data; :func:`respond` takes it out of the body.
    """
    if cookies is None:
        return None
    for cookie_key, (cookie_value, expires) in cookies.items():
        cookie_name = current_app.config[f'{cookie_key.upper()}_NAME']
        max_age = timedelta(seconds=expires)
        logger.debug('Set cookie %s, max_age %s', cookie_name, max_age)
        domain = current_app.config['AUTH_SESSION_COOKIE_DOMAIN']
        params = dict(httponly=True, domain=domain, samesite='Lax')
        if current_app.config['AUTH_SESSION_COOKIE_SECURE']:
            params.update({'secure': True})
        response.set_cookie(cookie_name, cookie_value, max_age=max_age,
                            **params)


def respond(data: dict, code: int, headers: dict) -> Response:
    """Serialize controller data, and apply any cookies."""
    cookies = data.pop('cookies', None)
    if code == status.HTTP_303_SEE_OTHER:
        response = make_response('', code, headers)
    else:
        response = make_response(jsonify(data), code, headers)
    set_cookies(response, cookies)
    return response


@blueprint.after_request
def apply_response_headers(response: Response) -> Response:
    """Prevent UI redress attacks."""
    response.headers['Content-Security-Policy'] = "frame-ancestors 'none'"
    response.headers['X-Frame-Options'] = 'DENY'
    return response


@blueprint.route('/register', methods=['POST'])
def register() -> Response:
    """Create a new account."""
    return respond(*registration.register(form_data(), request_origin()))


@blueprint.route('/login', methods=['POST'])
def login() -> Response:
    """Log in with e-mail and password."""
    return respond(*authentication.login(form_data()))


@blueprint.route('/logout', methods=['POST'])
def logout() -> Response:
    """Log out, and clear the session cookie."""
    return respond(*authentication.logout(request_session()))


@blueprint.route('/forgot-password', methods=['POST'])
def forgot_password() -> Response:
    """Request a password reset e-mail."""
    return respond(*passwords.forgot_password(form_data(), request_origin()))


@blueprint.route('/reset-password', methods=['POST'])
def reset_password() -> Response:
    """Set a new password after following a reset link."""
    return respond(*passwords.reset_password(form_data(), request_session()))


@blueprint.route('/change-password', methods=['POST'])
def change_password() -> Response:
    """Change the password of the logged-in user."""
    return respond(*passwords.change_password(form_data(),
                                              request_session()))


@blueprint.route('/resend-verification', methods=['POST'])
def resend_verification() -> Response:
    """Send the verification e-mail again."""
    return respond(*registration.resend_verification(form_data(),
                                                     request_origin()))


@blueprint.route('/delete-account', methods=['POST'])
def delete_account() -> Response:
    """Erase the account of the logged-in user."""
    return respond(*account.delete_account(form_data(), request_session()))


@blueprint.route('/check', methods=['GET'])
def check() -> Response:
    """Report on the current session."""
    return respond(*authentication.check(request_session()))


@blueprint.route('/callback', methods=['GET'])
def callback() -> Response:
    """Landing page for links in verification and reset e-mails."""
    return respond(*registration.confirm(request.args.get('token_hash'),
                                         request.args.get('type'),
                                         request.args.get('next')))


@blueprint.route('/features', methods=['GET'])
def features() -> Response:
    """Report which features are switched on."""
    return respond(*flags.list_features())


@blueprint.route('/status', methods=['GET'])
def service_status() -> Response:
    """Health check."""
    available = credentials.current_session().status()
    code = status.HTTP_200_OK if available \
        else status.HTTP_503_SERVICE_UNAVAILABLE
    data = {'status': 'ok' if available else 'unavailable',
            'version': current_app.config.get('VERSION')}
    return respond(data, code, {})
