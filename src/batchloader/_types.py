from collections.abc import Awaitable, Callable, Hashable, Sequence
from dataclasses import dataclass
from typing import Any

type KeyFn[H: Hashable] = Callable[[Any], H]

type Outcomes[R] = Sequence[R | BaseException]
type BatchFn[K, R] = Callable[
    [Sequence[K]], Outcomes[R] | Awaitable[Outcomes[R]]
]

type Get[T] = Callable[[], T]
type Schedule = Callable[[Get[object]], object]


@dataclass(frozen=True, slots=True)
class Some[T]:
    x: T
