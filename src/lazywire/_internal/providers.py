from __future__ import annotations

import inspect
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from inspect import Parameter
from typing import Any, TypeAlias, get_type_hints

from lazywire.exceptions import LazyWireInvalidRegistrationError

UserDependency: TypeAlias = Any
"""A dependency that been registered or trying to be resolved from the user's code."""

_VARIADIC_KINDS = {Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD}


class Lifetime(Enum):
    """Define cache behavior for provider results."""

    TRANSIENT = "transient"
    """Disable caching and build a new value for every resolution call."""

    SCOPED = "scoped"
    """Cache one value per resolving container.

    A child container builds its own value instead of reusing the parent's, even
    when the registration lives on the parent.
    """

    SINGLETON = "singleton"
    """Cache one value in the container that owns the registration.

    Every descendant container shares that value. It is built against the
    owning container, so its dependencies come from the owner scope.
    """


@dataclass(frozen=True, slots=True)
class ProviderDependency:
    """Describe one provider parameter filled from the container."""

    name: str
    provides: UserDependency
    kind: inspect._ParameterKind
    has_default: bool


@dataclass(kw_only=True)
class ProviderSpec:
    """Describe how a single dependency key is produced and cached.

    Exactly one provider source is set: an instance, a concrete type or a
    factory callable.
    """

    provides: UserDependency
    """The dependency key that this provider supplies."""

    instance: Any | None = None
    """A pre-built value, for instance registrations."""
    concrete_type: type[Any] | None = None
    """A class instantiated to produce the value, for concrete registrations."""
    factory: Callable[..., Any] | None = None
    """A callable invoked to produce the value, for factory registrations."""
    dependencies: list[ProviderDependency] = field(default_factory=list)
    """Parameters resolved from the container when the provider is called."""
    arguments: Mapping[str, Any] = field(default_factory=dict)
    """Explicit parameter values that take precedence over resolution."""
    has_instance: bool = False
    """True for instance registrations, so ``None`` can be registered as a value."""

    lifetime: Lifetime = Lifetime.TRANSIENT
    """Caching policy of the provided value."""

    @property
    def provider(self) -> Callable[..., Any] | None:
        """Return the callable that builds the value, if any."""
        return self.concrete_type if self.concrete_type is not None else self.factory


class ProvidersRegistrations:
    """Store provider specs of one container indexed by dependency key.

    Registration keys are unique: adding a spec for an existing dependency key
    replaces the previous spec.
    """

    def __init__(self) -> None:
        self._registrations_by_type: dict[UserDependency, ProviderSpec] = {}
        self._lock = threading.Lock()

    def add(self, spec: ProviderSpec) -> ProviderSpec | None:
        """Add a provider specification and return the one it replaced, if any.

        Args:
            spec: Provider specification to register.

        """
        with self._lock:
            previous_spec = self._registrations_by_type.get(spec.provides)
            self._registrations_by_type[spec.provides] = spec
        return previous_spec

    def find_by_type(self, dep_type: UserDependency) -> ProviderSpec | None:
        """Get a provider specification by dependency key, if it exists.

        Args:
            dep_type: Dependency key to look up.

        """
        try:
            return self._registrations_by_type.get(dep_type)
        except TypeError:
            # Unhashable keys can never be registered.
            return None

    def __len__(self) -> int:
        return len(self._registrations_by_type)


@dataclass(slots=True)
class ProviderDependenciesExtractor:
    """Infer provider dependencies from constructor or factory annotations."""

    def extract_from_concrete_type(
        self,
        concrete_type: type[Any],
        *,
        arguments: Mapping[str, Any],
    ) -> list[ProviderDependency]:
        """Return the dependencies of ``concrete_type.__init__``.

        Args:
            concrete_type: Concrete class provider to inspect.
            arguments: Explicit parameter values; these parameters are not inferred.

        """
        return self._extract_dependencies(
            provider=concrete_type,
            provider_name=concrete_type.__qualname__,
            arguments=arguments,
            explicit={},
        )

    def extract_from_factory(
        self,
        factory: Callable[..., Any],
        *,
        explicit: Mapping[str, Any],
    ) -> list[ProviderDependency]:
        """Return the dependencies of a factory callable.

        Args:
            factory: Factory callable to inspect.
            explicit: Parameter name to dependency key mapping that bypasses
                annotation inference.

        """
        return self._extract_dependencies(
            provider=factory,
            provider_name=self._provider_name(factory),
            arguments={},
            explicit=explicit,
        )

    def validate_arguments(
        self,
        concrete_type: type[Any],
        arguments: Mapping[str, Any],
    ) -> None:
        """Ensure explicit ``arguments`` name existing constructor parameters."""
        parameters = self._provider_parameters(concrete_type)
        unknown = sorted(set(arguments) - {parameter.name for parameter in parameters})
        if unknown:
            msg = (
                f"Explicit arguments {unknown} do not match any parameter of "
                f"'{concrete_type.__qualname__}.__init__'."
            )
            raise LazyWireInvalidRegistrationError(msg)

    def _extract_dependencies(
        self,
        *,
        provider: Callable[..., Any],
        provider_name: str,
        arguments: Mapping[str, Any],
        explicit: Mapping[str, Any],
    ) -> list[ProviderDependency]:
        parameters = self._provider_parameters(provider)
        needs_inference = any(
            parameter.name not in arguments and parameter.name not in explicit
            for parameter in parameters
        )
        hints = (
            self._resolved_type_hints(provider, provider_name=provider_name)
            if needs_inference
            else {}
        )

        dependencies: list[ProviderDependency] = []
        for parameter in parameters:
            if parameter.name in arguments:
                continue
            has_default = parameter.default is not Parameter.empty
            annotation = explicit.get(parameter.name, hints.get(parameter.name, Parameter.empty))
            if annotation is Parameter.empty:
                if has_default:
                    continue
                msg = (
                    f"Cannot infer dependency for required parameter '{parameter.name}' of "
                    f"'{provider_name}'; add a type annotation or pass it in 'arguments'."
                )
                raise LazyWireInvalidRegistrationError(msg)
            dependencies.append(
                ProviderDependency(
                    name=parameter.name,
                    provides=annotation,
                    kind=parameter.kind,
                    has_default=has_default,
                ),
            )
        return dependencies

    def _provider_parameters(self, provider: Callable[..., Any]) -> list[Parameter]:
        try:
            signature = inspect.signature(provider)
        except (TypeError, ValueError):
            return []
        return [
            parameter
            for parameter in signature.parameters.values()
            if parameter.kind not in _VARIADIC_KINDS
        ]

    def _resolved_type_hints(
        self,
        provider: Callable[..., Any],
        *,
        provider_name: str,
    ) -> dict[str, Any]:
        if inspect.isclass(provider):
            target: Any = provider.__init__
        elif inspect.isroutine(provider):
            target = provider
        else:
            target = type(provider).__call__
        try:
            hints = get_type_hints(target, include_extras=True)
        except (NameError, TypeError) as error:
            msg = f"Cannot resolve type annotations of '{provider_name}': {error}"
            raise LazyWireInvalidRegistrationError(msg) from error
        hints.pop("return", None)
        return hints

    def _provider_name(self, provider: Callable[..., Any]) -> str:
        return getattr(provider, "__qualname__", repr(provider))
