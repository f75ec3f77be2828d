"""
Feature flags, per deployment environment.

Every account operation is behind a flag so that it can be switched off in
one environment without a deploy. The table below is the whole
configuration; it is read at import and never changed afterwards.

The gate is fail-open: a flag that is not in the table for an environment,
or an environment that is not in the table, counts as enabled. Turning a
feature off always takes an explicit ``False`` here.
"""

import os
from functools import wraps
from typing import Any, Callable, Dict, Optional, Tuple
import logging

from .errors import FEATURE_UNAVAILABLE

logger = logging.getLogger(__name__)

LOCAL = 'local'
INTEGRATION = 'integration'
PRODUCTION = 'production'
ENVIRONMENTS = (LOCAL, INTEGRATION, PRODUCTION)

DEFAULT_ENVIRONMENT = LOCAL
"""Used when ``ENV_NAME`` is unset or names an unknown environment."""

AUTH = 'auth'
SETTINGS = 'settings'
OFFER_DETAILS = 'offerdetails'
OFFERS = 'offers'
FLAGS = (AUTH, SETTINGS, OFFER_DETAILS, OFFERS)

FAIL_OPEN = True
"""What an unconfigured flag or environment evaluates to."""

FEATURE_FLAGS: Dict[str, Dict[str, bool]] = {
    LOCAL: {
        AUTH: True,
        SETTINGS: True,
        OFFER_DETAILS: True,
        OFFERS: True,
    },
    INTEGRATION: {
        AUTH: True,
        SETTINGS: True,
        OFFER_DETAILS: True,
        OFFERS: True,
    },
    PRODUCTION: {
        AUTH: True,
        SETTINGS: True,
        OFFER_DETAILS: True,
        OFFERS: True,
    },
}


def is_valid_environment(value: Any) -> bool:
    """Whether ``value`` names a known environment."""
    return value in ENVIRONMENTS


def is_valid_flag(value: Any) -> bool:
    """Whether ``value`` names a known feature flag."""
    return value in FLAGS


def current_environment() -> str:
    """Get the environment from ``ENV_NAME``, falling back to ``local``."""
    env_name = os.environ.get('ENV_NAME')
    if is_valid_environment(env_name):
        return str(env_name)
    return DEFAULT_ENVIRONMENT


def is_enabled(flag: str, environment: Optional[str] = None,
               flags: Optional[Dict[str, Dict[str, bool]]] = None) -> bool:
    """
    Check whether a feature is enabled.

    Parameters
    ----------
    flag : str
        One of :const:`FLAGS`; unknown flags are enabled.
    environment : str
        Overrides the environment from ``ENV_NAME``. Unknown environments
        use the default (``local``) configuration.
    flags : dict
        Overrides :const:`FEATURE_FLAGS`.

    Returns
    -------
    bool

    """
    if flags is None:
        flags = FEATURE_FLAGS
    env = environment if environment is not None else current_environment()
    if not is_valid_environment(env):
        env = DEFAULT_ENVIRONMENT
    config = flags.get(env)
    if config is None or flag not in config:
        return FAIL_OPEN
    return config[flag] is True


def all_flags(environment: Optional[str] = None,
              flags: Optional[Dict[str, Dict[str, bool]]] = None) \
        -> Dict[str, bool]:
    """Get the state of every known flag in an environment."""
    return {flag: is_enabled(flag, environment, flags) for flag in FLAGS}


def gated(flag: str) -> Callable:
    """
    Generate a decorator that short-circuits a controller when disabled.

    The wrapped controller must return ``(data, status, headers)``. When the
    flag is off, it is not called at all and a 503 is returned instead.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Tuple[dict, int, dict]:
            if not is_enabled(flag):
                logger.info('Feature %s is disabled; refused %s',
                            flag, func.__name__)
                return FEATURE_UNAVAILABLE.response()
            return func(*args, **kwargs)    # type: ignore
        return wrapper
    return decorator
