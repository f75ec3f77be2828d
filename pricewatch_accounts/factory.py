"""Application factory for the accounts service."""

from flask import Flask, jsonify, Response
from werkzeug.exceptions import HTTPException

from . import app_logging
from .errors import INTERNAL_ERROR
from .routes import api
from .services import credentials


def create_web_app() -> Flask:
    """Initialize and configure the accounts application."""
    app = Flask('pricewatch_accounts')
    app.config.from_pyfile('config.py')

    app_logging.setup_logger(app.config['LOGLEVEL'], app.config['LOG_JSON'])
    credentials.init_app(app)
    app.register_blueprint(api.blueprint)
    register_error_handlers(app)
    return app


def register_error_handlers(app: Flask) -> None:
    """Render errors as JSON, so that no HTML escapes the API."""
    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException) -> Response:
        code = (error.name or 'Error').upper().replace(' ', '_')
        response = jsonify({'error': error.description, 'code': code})
        response.status_code = error.code or 500
        return response

    @app.errorhandler(Exception)
    def handle_exception(error: Exception) -> Response:
        if isinstance(error, HTTPException):
            return handle_http_exception(error)
        app.logger.exception('Unhandled error: %s', error)
        response = jsonify(INTERNAL_ERROR.to_dict())
        response.status_code = INTERNAL_ERROR.http_status
        return response
