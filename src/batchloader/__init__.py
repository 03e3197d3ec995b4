# flake8: noqa
"""Batched and cached loading of keys"""

from loguru import logger

from ._cache import ResultCache, Stats, cache_status
from ._futures import Deferred
from ._keys import make_key
from ._loader import BatchLoader
from ._logging import init_loguru
from ._schedule import defer, defer_by
from ._types import BatchFn, KeyFn, Schedule

__all__ = [
    'BatchFn',
    'BatchLoader',
    'Deferred',
    'KeyFn',
    'ResultCache',
    'Schedule',
    'Stats',
    'cache_status',
    'defer',
    'defer_by',
    'init_loguru',
    'make_key',
]

logger.disable(__name__)
