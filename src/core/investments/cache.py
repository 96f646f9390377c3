from functools import wraps
from threading import Lock
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class SingleEntryCache(Generic[T]):
    """Holds one cached value under a fixed key.

    A miss always calls the loader. An eviction that races with an in-flight
    load wins: the loaded value is returned to its caller but not stored, so
    the next read goes back to the loader.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        self._lock = Lock()
        self._value: Optional[T] = None
        self._present = False
        self._generation = 0

    def get_or_load(self, loader: Callable[[], T]) -> T:
        with self._lock:
            if self._present:
                return self._value
            generation = self._generation
        value = loader()
        with self._lock:
            if generation == self._generation:
                self._value = value
                self._present = True
        return value

    def evict(self) -> None:
        with self._lock:
            self._value = None
            self._present = False
            self._generation += 1

    @property
    def is_populated(self) -> bool:
        with self._lock:
            return self._present


def evicts_listing_cache(method):
    """Evict ``self._listing_cache`` after the wrapped method returns."""

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        result = method(self, *args, **kwargs)
        self._listing_cache.evict()
        return result

    return wrapper
