"""Set and closure helpers."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Iterable, Iterator

T = TypeVar("T", bound="Hashable")


def unique(items: Iterable[T]) -> list[T]:
    """Return the items without duplicates, keeping the first occurrence.

    Example:
        >>> unique(["b", "a", "b"])
        ['b', 'a']

    """
    return list(dict.fromkeys(items))


def walk_closure(start: Iterable[T], expand: Callable[[T], Iterable[T]]) -> Iterator[T]:
    """Yield every item reachable from ``start``, each exactly once.

    Items are processed from a worklist: an item is popped, marked as seen and
    yielded, afterwards ``expand`` is called for it and the returned items that
    were not seen yet are appended to the worklist. The walk ends when the
    worklist is empty.

    Args:
        start: The initial items.
        expand: Returns the direct successors of an item.

    Example:
        >>> edges = {"a": ["b"], "b": ["c", "a"], "c": []}
        >>> list(walk_closure(["a"], edges.__getitem__))
        ['a', 'b', 'c']

    """
    wanted = deque(unique(start))
    seen: set[T] = set()
    while wanted:
        item = wanted.popleft()
        if item in seen:
            continue
        seen.add(item)
        yield item
        wanted.extend(nxt for nxt in expand(item) if nxt not in seen)
