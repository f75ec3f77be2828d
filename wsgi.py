"""Web Server Gateway Interface entry-point."""

import os

from pricewatch_accounts.factory import create_web_app

__flask_app__ = None


def application(environ, start_response):    # type: ignore
    """WSGI application."""
    for key, value in environ.items():
        # uWSGI may pass the container ID as SERVER_NAME. Request headers
        # (HTTP_*) are not configuration.
        if key == 'SERVER_NAME' or key.startswith('HTTP_') \
                or not isinstance(value, str):
            continue
        os.environ[key] = str(value)

    global __flask_app__
    if __flask_app__ is None:
        __flask_app__ = create_web_app()
    return __flask_app__(environ, start_response)
