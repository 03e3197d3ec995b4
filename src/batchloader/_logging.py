__all__ = ['init_loguru']

import sys

from loguru import logger

_DEFAULT_FMT = (
    '<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green>'
    ' | '
    '<level>{level: <8}</level>'
    ' | '
    '<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>'
    ' | '
    '<level>{message}</level>'
)
_NAME = __name__.partition('.')[0]


def init_loguru(
    level: str = 'DEBUG', *, sink=sys.stderr, fmt: str = _DEFAULT_FMT
) -> int:
    """
    Show records of batch dispatching.

    Records are disabled on import, as loguru suggests for libraries.
    This enables them, and routes them (and only them) to `sink`.
    Returns id of handler, pass it to `logger.remove` to stop.
    """
    logger.enable(_NAME)
    return logger.add(sink, level=level, format=fmt, filter=_NAME)
