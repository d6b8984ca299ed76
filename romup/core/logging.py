"""Logging helpers for the romup package."""

import logging

ROOT_LOGGER_NAME = 'romup'


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger in the ``romup`` family.

    Names outside the family are prefixed, so ``get_logger('upload')`` and
    ``get_logger('romup.upload')`` return the same logger. Records propagate
    to the root logger; when nothing has configured logging yet the level
    defaults to WARNING so library use stays quiet.

    Args:
        name: Logger name, usually dotted under ``romup``

    Returns:
        The logger
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + '.'):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    logger.propagate = True

    if not logging.getLogger().handlers:
        logger.setLevel(logging.WARNING)

    return logger


def configure_logging(level: int = logging.INFO) -> None:
    """
    Set the level of every romup logger created so far.

    Args:
        level: Logging level applied to the romup logger family
    """
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)

    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if not isinstance(logger, logging.Logger):
            continue
        if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + '.'):
            logger.setLevel(level)
            logger.propagate = True
