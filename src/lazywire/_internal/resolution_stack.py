from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from lazywire.exceptions import LazyWireCircularDependencyError

# Keys currently being built on this thread or task, outermost first.
_resolution_stack: ContextVar[tuple[Any, ...]] = ContextVar(
    "lazywire_resolution_stack",
    default=(),
)


@contextmanager
def building(dependency: Any) -> Generator[None, None, None]:
    """Track ``dependency`` as being built for the duration of the block.

    Raises:
        LazyWireCircularDependencyError: If ``dependency`` is already being
            built further up the stack.

    """
    stack = _resolution_stack.get()
    if dependency in stack:
        raise LazyWireCircularDependencyError(dependency, list(stack))

    token = _resolution_stack.set((*stack, dependency))
    try:
        yield
    finally:
        _resolution_stack.reset(token)
