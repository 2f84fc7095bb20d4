"""Small ordered containers used by buffering operators."""

from __future__ import annotations

from collections import deque
from typing import Generic, Iterator, TypeVar

T = TypeVar("T")


class Queue(Generic[T]):
    """Double-ended queue. Popping an empty queue returns None."""

    __slots__ = ("_items",)

    def __init__(self, items=None) -> None:
        self._items: deque[T] = deque(items or ())

    def push_right(self, value: T) -> None:
        self._items.append(value)

    def push_left(self, value: T) -> None:
        self._items.appendleft(value)

    def pop_left(self) -> T | None:
        return self._items.popleft() if self._items else None

    def pop_right(self) -> T | None:
        return self._items.pop() if self._items else None

    def peek_left(self) -> T | None:
        return self._items[0] if self._items else None

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __repr__(self) -> str:
        return f"Queue({list(self._items)!r})"


class SizedList(Generic[T]):
    """A list with a fixed number of slots, each defaulting to None.

    trim() drops trailing empty slots, which lets a caller treat the list
    as "the set of still-live entries" without renumbering them.
    """

    __slots__ = ("_slots",)

    def __init__(self, size: int = 0) -> None:
        self._slots: list[T | None] = [None] * size

    @property
    def size(self) -> int:
        return len(self._slots)

    @size.setter
    def size(self, value: int) -> None:
        current = len(self._slots)
        if value < current:
            del self._slots[value:]
        else:
            self._slots.extend([None] * (value - current))

    def trim(self) -> SizedList[T]:
        while self._slots and self._slots[-1] is None:
            self._slots.pop()
        return self

    def __getitem__(self, index: int) -> T | None:
        return self._slots[index]

    def __setitem__(self, index: int, value: T | None) -> None:
        self._slots[index] = value

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[T | None]:
        return iter(self._slots)

    def __repr__(self) -> str:
        return f"SizedList({self._slots!r})"
