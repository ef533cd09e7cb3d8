from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from typing import Any, Final, Generic, TypeVar

from lazywire.exceptions import LazyWireCircularDependencyError
from lazywire.lock_mode import LockMode

T = TypeVar("T")

logger = logging.getLogger(__name__)

_MISSING_CACHE: Final[Any] = object()


class DeferredResolver(Generic[T]):
    """Construct a value on first use, exactly once, and cache it.

    The factory runs inside a lock (``LockMode.THREAD``) so concurrent first
    calls observe one construction and a fully built instance. Failures are
    raised to the caller and are not cached: the next ``obtain`` call runs the
    factory again.
    """

    __slots__ = ("_constructing_thread", "_factory", "_label", "_lock", "_value")

    def __init__(
        self,
        factory: Callable[[], T],
        *,
        lock_mode: LockMode = LockMode.THREAD,
        label: Any = None,
    ) -> None:
        """Initialize a resolver around ``factory``.

        Args:
            factory: Zero-argument construction callback.
            lock_mode: Locking strategy around the check-construct-cache sequence.
            label: Value describing what is constructed, used in logs and errors.

        """
        self._factory = factory
        self._label = label
        self._value: Any = _MISSING_CACHE
        self._constructing_thread: int | None = None
        self._lock: AbstractContextManager[Any] = (
            threading.RLock() if lock_mode is LockMode.THREAD else nullcontext()
        )

    @property
    def is_resolved(self) -> bool:
        """Return true once the factory has completed successfully."""
        return self._value is not _MISSING_CACHE

    def obtain(self) -> T:
        """Return the cached value, constructing it on the first call.

        Raises:
            LazyWireCircularDependencyError: If the factory re-enters this
                resolver on the constructing thread.

        """
        value = self._value
        if value is not _MISSING_CACHE:
            return value

        with self._lock:
            value = self._value
            if value is not _MISSING_CACHE:
                return value

            current_thread = threading.get_ident()
            if self._constructing_thread == current_thread:
                raise LazyWireCircularDependencyError(self._label, [self._label])

            self._constructing_thread = current_thread
            logger.debug("Deferred construction started for %r", self._label)
            try:
                value = self._factory()
            except Exception:
                logger.debug(
                    "Deferred construction failed for %r; it will be retried on next access",
                    self._label,
                )
                raise
            finally:
                self._constructing_thread = None

            self._value = value
            logger.debug("Deferred construction finished for %r", self._label)
            return value

    def __repr__(self) -> str:
        state = "resolved" if self.is_resolved else "pending"
        return f"{type(self).__name__}({self._label!r}, {state})"
