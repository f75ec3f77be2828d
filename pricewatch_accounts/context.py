"""Helpers for getting at application config and globals."""

import os
from typing import Any, Optional

from flask import g, current_app, has_app_context


def get_application_config(app: Optional[object] = None) -> Any:
    """
    Get a configuration from the current app, or fall back to env.

    Parameters
    ----------
    app : :class:`flask.Flask`

    Returns
    -------
    dict-like
        This is either the current Flask application configuration, or
        ``os.environ``. Either of these should support the ``get()`` method.
    """
    if app is not None:
        return getattr(app, 'config')
    if has_app_context():
        return current_app.config
    return os.environ


def get_application_global() -> Optional[Any]:
    """
    Get the current global state of the app, if there is one.

    Returns
    -------
    :data:`flask.g` or None
    """
    if has_app_context():
        return g
    return None
