__all__ = ['ResultCache', 'Stats', 'cache_status']

from collections.abc import Hashable, Iterator, KeysView, MutableMapping
from dataclasses import dataclass, field
from weakref import WeakValueDictionary


@dataclass
class Stats:
    hits: int = 0
    misses: int = 0
    dropped: int = 0

    def __bool__(self) -> bool:
        return any(self.__dict__.values())

    def __repr__(self) -> str:
        fields = ', '.join(f'{k}={v}' for k, v in self.__dict__.items() if v)
        return f'{self.__class__.__name__}({fields})'


def cache_status() -> str:
    """List all alive caches, one per line."""
    return '\n'.join(
        f'{id_:x}: {value!r}' for id_, value in sorted(_REFS.items())
    )


_REFS: MutableMapping[int, 'ResultCache'] = WeakValueDictionary()


@dataclass(repr=False, slots=True, weakref_slot=True)
class ResultCache[K: Hashable, T]:
    """Unbound key -> result mapping. Never overwrites existing entries."""

    store: dict[K, T] = field(default_factory=dict)
    stats: Stats = field(default_factory=Stats)

    def __post_init__(self) -> None:
        _REFS[id(self)] = self

    def __len__(self) -> int:
        return len(self.store)

    def __iter__(self) -> Iterator[K]:
        return iter(self.store)

    def __contains__(self, key: K) -> bool:
        return key in self.store

    def keys(self) -> KeysView[K]:
        return self.store.keys()

    def get(self, key: K, /) -> T | None:
        if (value := self.store.get(key)) is not None:
            self.stats.hits += 1
            return value

        self.stats.misses += 1
        return None

    def set(self, key: K, value: T, /) -> bool:
        if key in self.store:
            return False
        self.store[key] = value
        return True

    def delete(self, key: K, /) -> None:
        if self.store.pop(key, None) is not None:
            self.stats.dropped += 1

    def clear(self) -> None:
        self.stats.dropped += len(self.store)
        self.store.clear()

    def __repr__(self) -> str:
        args = [f'items={len(self.store)}']
        if self.stats:
            args.append(f'stats={self.stats}')
        return f'{type(self).__name__}({", ".join(args)})'
