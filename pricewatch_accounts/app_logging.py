"""Log configuration for the accounts service."""

import logging
from typing import Union

from pythonjsonlogger.json import JsonFormatter


def setup_logger(level: Union[int, str] = logging.INFO,
                 json: bool = True) -> None:
    """Attach a single stream handler to the root logger."""
    logHandler = logging.StreamHandler()
    if json:
        formatter: logging.Formatter = JsonFormatter(
            '%(asctime)s %(levelname)s %(name)s %(message)s',
            rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s %(levelname)s %(name)s: %(message)s'
        )
    logHandler.setFormatter(formatter)
    logger = logging.getLogger()
    for handler in list(logger.handlers):
        if getattr(handler, '_pricewatch', False):
            logger.removeHandler(handler)
    logHandler._pricewatch = True    # type: ignore
    logger.addHandler(logHandler)
    if isinstance(level, str):
        level = int(level) if level.isdigit() else level.upper()
    logger.setLevel(level)
