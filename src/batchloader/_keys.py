__all__ = ['make_key']

from collections.abc import Hashable, Mapping, Set
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class _Frozen:
    """Memorizes hash to not recompute it on cache search/update"""

    items: Hashable
    hashvalue: int

    def __eq__(self, value: object) -> bool:
        return type(value) is _Frozen and self.items == value.items

    def __hash__(self) -> int:
        return self.hashvalue


def _freeze(obj: object) -> Hashable:
    match obj:
        case Mapping():
            return frozenset((k, _freeze(v)) for k, v in obj.items())
        case Set():
            return frozenset(_freeze(x) for x in obj)
        case list() | tuple():
            return type(obj).__name__, *(_freeze(x) for x in obj)
        case _:
            return obj  # type: ignore[return-value]


def make_key(key: object) -> Hashable:
    """Turn load key into cache key.

    Hashable keys are used as is. Lists, sets and mappings are frozen
    recursively, so that equal containers share cache entry.

    >>> make_key(1)
    1
    >>> make_key([1, {'a': 2}]) == make_key([1, {'a': 2}])
    True
    """
    if type(key) in {int, str, bytes}:
        return key
    try:
        hash(key)
    except TypeError:
        items = _freeze(key)
        return _Frozen(items, hash(items))
    return key  # type: ignore[return-value]
