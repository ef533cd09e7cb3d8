from __future__ import annotations

from enum import Enum


class LockMode(Enum):
    """Select locking behavior for cached construction.

    Use these values for the container-level default or for a single
    ``DeferredResolver``. ``THREAD`` guards check-construct-cache sequences so
    concurrent first accesses build one instance; ``NONE`` skips locking for
    strictly single-threaded programs.
    """

    THREAD = "thread"
    """Guard cached values with ``threading.RLock``."""

    NONE = "none"
    """Disable locking around cache reads/writes."""
