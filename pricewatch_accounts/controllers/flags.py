"""Controller for reporting which features are switched on."""

from .. import features, status
from .util import ResponseData


def list_features() -> ResponseData:
    """Get the state of every feature flag in the current environment."""
    environment = features.current_environment()
    data = {'environment': environment,
            'flags': features.all_flags(environment)}
    return data, status.HTTP_200_OK, {}
