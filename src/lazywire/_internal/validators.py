from __future__ import annotations

import inspect
from typing import Any

from lazywire._internal.providers import Lifetime
from lazywire._internal.type_checks import is_protocol_class
from lazywire.exceptions import LazyWireInvalidRegistrationError


class DependecyRegistrationValidator:
    """Validates dependency registrations before creating provider specs."""

    def validate_concrete_type(self, concrete_type: object) -> None:
        """Validate that a concrete provider is instantiable."""
        if not inspect.isclass(concrete_type):
            msg = f"Concrete provider must be a class, got {concrete_type!r}."
            raise LazyWireInvalidRegistrationError(msg)

        if is_protocol_class(concrete_type) or inspect.isabstract(concrete_type):
            msg = f"Concrete provider '{concrete_type.__qualname__}' cannot be an abstract class."
            raise LazyWireInvalidRegistrationError(msg)

    def validate_factory(self, factory: object) -> None:
        """Validate that a factory provider can be called."""
        if not callable(factory):
            msg = f"Factory provider must be callable, got {factory!r}."
            raise LazyWireInvalidRegistrationError(msg)

    def validate_lifetime(self, lifetime: object, *, method_name: str) -> Lifetime:
        """Validate and return an explicit lifetime value."""
        if not isinstance(lifetime, Lifetime):
            msg = f"{method_name}() parameter 'lifetime' must be Lifetime, got {lifetime!r}."
            raise LazyWireInvalidRegistrationError(msg)
        return lifetime

    def validate_implementation(self, contract: type[Any], implementation: type[Any]) -> None:
        """Validate that an implementation of an ABC contract actually subclasses it.

        Protocol contracts are structural, so any implementation is accepted.
        """
        if is_protocol_class(contract):
            return
        if not issubclass(implementation, contract):
            msg = (
                f"Implementation '{implementation.__qualname__}' does not subclass "
                f"contract '{contract.__qualname__}'."
            )
            raise LazyWireInvalidRegistrationError(msg)
