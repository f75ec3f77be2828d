"""Next page handling."""
import re

from .context import get_application_config


def good_next_page(next_page: str) -> str:
    """Checks if a next_page is good and returns it.

    If not good, it will return the default.
    """
    config = get_application_config()
    default = config.get('DEFAULT_LOGIN_REDIRECT_URL', '/dashboard')
    pattern = config.get('LOGIN_REDIRECT_REGEX')
    good = (next_page and len(next_page) < 300 and
            (next_page == default
             or (pattern and re.match(pattern, next_page)))
            )
    return next_page if good else default
