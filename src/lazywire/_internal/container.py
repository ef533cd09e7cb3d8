from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from inspect import Parameter
from typing import Any, Final, Literal, TypeVar, cast, overload

from typing_extensions import Self

from lazywire._internal.autoregistration import ConcreteTypeAutoregistrationPolicy
from lazywire._internal.lazy import LazyRegistrar
from lazywire._internal.markers import build_component_key
from lazywire._internal.providers import (
    Lifetime,
    ProviderDependenciesExtractor,
    ProviderSpec,
    ProvidersRegistrations,
)
from lazywire._internal.resolution_stack import building
from lazywire._internal.validators import DependecyRegistrationValidator
from lazywire.exceptions import (
    LazyWireDependencyNotRegisteredError,
    LazyWireInvalidRegistrationError,
)
from lazywire.lock_mode import LockMode

T = TypeVar("T")

logger = logging.getLogger(__name__)

_MISSING_CACHE: Final[Any] = object()


class Container:
    """Manage dependency registration, resolution and child containers.

    Dependency keys are usually concrete types, protocols, or
    ``typing.Annotated`` tokens (for example ``Annotated[Db, Component("ro")]``).

    Containers form a hierarchy: ``create_child`` returns a container that sees
    every registration of its ancestors and may add or override its own. A
    resolve walks from the addressed container up to the root and uses the
    nearest registration; the addressed container is the one dependencies are
    resolved against.

    ``add_lazy`` binds an interface to an implementation behind a lazy proxy:
    resolving the interface returns a forwarding object, and the implementation
    is built from the resolving container on the first member access.
    """

    def __init__(
        self,
        default_lifetime: Lifetime = Lifetime.TRANSIENT,
        *,
        lock_mode: LockMode = LockMode.THREAD,
        autoregister_concrete_types: bool = True,
        parent: Container | None = None,
    ) -> None:
        """Initialize a container and configure default registration behavior.

        Args:
            default_lifetime: Default lifetime used by registrations that omit
                ``lifetime``.
            lock_mode: Lock strategy for cached values and lazy proxies.
            autoregister_concrete_types: Enable on-demand concrete type
                autoregistration during resolution.
            parent: Parent container. Prefer ``create_child`` over passing this
                directly.

        Examples:
            .. code-block:: python

                container = Container()

                strict_container = Container(autoregister_concrete_types=False)

                single_threaded = Container(lock_mode=LockMode.NONE)

        """
        self._default_lifetime = default_lifetime
        self._lock_mode = lock_mode
        self._autoregister_concrete_types = autoregister_concrete_types
        self._parent = parent

        self._concrete_autoregistration_policy = ConcreteTypeAutoregistrationPolicy()
        self._provider_dependencies_extractor = ProviderDependenciesExtractor()
        self._dependency_registration_validator = DependecyRegistrationValidator()
        self._providers_registrations = ProvidersRegistrations()
        self._lazy_registrar = LazyRegistrar()

        self._cache: dict[Any, Any] = {}
        self._cache_locks: dict[Any, threading.RLock] = {}
        self._cache_locks_guard = threading.Lock()
        self._autoregistration_lock = threading.Lock()

    @property
    def parent(self) -> Container | None:
        """Return the parent container, or ``None`` for a root container."""
        return self._parent

    @property
    def lock_mode(self) -> LockMode:
        """Return the lock strategy used for cached values and lazy proxies."""
        return self._lock_mode

    def create_child(self) -> Container:
        """Return a child container inheriting this container's registrations.

        The child shares ``SINGLETON`` values of its ancestors but builds its own
        ``SCOPED`` values. Registrations added to the child are invisible to
        this container.
        """
        return type(self)(
            self._default_lifetime,
            lock_mode=self._lock_mode,
            autoregister_concrete_types=self._autoregister_concrete_types,
            parent=self,
        )

    # region Registration Methods
    def add_instance(
        self,
        instance: Any,
        *,
        provides: Any | Literal["infer"] = "infer",
        component: object | None = None,
    ) -> Self:
        """Register a pre-built instance as a provider.

        Re-registering the same dependency key overrides the previous spec.

        Args:
            instance: Instance value to return on resolution.
            provides: Dependency key to bind. Use ``"infer"`` to bind by
                ``type(instance)``.
            component: Optional component marker value used to register under
                ``Annotated[provides, Component(...)]``.

        Returns:
            This container, for chaining.

        """
        resolved_provides = type(instance) if provides == "infer" else provides
        self._register(
            ProviderSpec(
                provides=build_component_key(resolved_provides, component),
                instance=instance,
                has_instance=True,
                lifetime=Lifetime.SINGLETON,
            ),
        )
        return self

    def add_concrete(
        self,
        concrete_type: type[Any],
        *,
        provides: Any | Literal["infer"] = "infer",
        component: object | None = None,
        lifetime: Lifetime | Literal["from_container"] = "from_container",
        arguments: Mapping[str, Any] | None = None,
    ) -> Self:
        """Register a concrete type provider.

        Dependencies are inferred from constructor annotations. ``arguments``
        supplies explicit values for constructor parameters; those parameters
        are never resolved from the container.

        Args:
            concrete_type: Concrete class to instantiate.
            provides: Dependency key produced by this provider. ``"infer"`` uses
                ``concrete_type`` directly.
            component: Optional component marker value used to register under
                ``Annotated[provides, Component(...)]``.
            lifetime: Provider lifetime, or ``"from_container"`` to inherit the
                container default.
            arguments: Explicit constructor arguments by parameter name.

        Returns:
            This container, for chaining.

        Raises:
            LazyWireInvalidRegistrationError: If ``concrete_type`` is not an
                instantiable class, ``arguments`` name unknown parameters, or a
                required parameter has no annotation.

        Examples:
            .. code-block:: python

                container.add_concrete(SqlRepo, provides=Repo)
                container.add_concrete(Client, arguments={"timeout": 5.0})

        """
        self._dependency_registration_validator.validate_concrete_type(concrete_type)
        explicit_arguments = dict(arguments or {})
        self._provider_dependencies_extractor.validate_arguments(concrete_type, explicit_arguments)
        dependencies = self._provider_dependencies_extractor.extract_from_concrete_type(
            concrete_type,
            arguments=explicit_arguments,
        )
        resolved_provides = concrete_type if provides == "infer" else provides
        self._register(
            ProviderSpec(
                provides=build_component_key(resolved_provides, component),
                concrete_type=concrete_type,
                dependencies=dependencies,
                arguments=explicit_arguments,
                lifetime=self._resolve_registration_lifetime(lifetime, method_name="add_concrete"),
            ),
        )
        return self

    def add_factory(
        self,
        factory: Callable[..., Any],
        *,
        provides: Any,
        component: object | None = None,
        lifetime: Lifetime | Literal["from_container"] = "from_container",
        dependencies: Mapping[str, Any] | Literal["infer"] = "infer",
    ) -> Self:
        """Register a factory callable provider.

        Factory parameters are resolved from the container. A parameter whose
        dependency key is ``Container`` receives the container performing the
        resolve, which may be a child of the container the factory was
        registered on.

        Args:
            factory: Callable producing the dependency value.
            provides: Dependency key produced by this provider.
            component: Optional component marker value used to register under
                ``Annotated[provides, Component(...)]``.
            lifetime: Provider lifetime, or ``"from_container"`` to inherit the
                container default.
            dependencies: Explicit mapping from parameter name to dependency key,
                or ``"infer"`` for annotation inference.

        Returns:
            This container, for chaining.

        Raises:
            LazyWireInvalidRegistrationError: If ``factory`` is not callable or
                its dependencies cannot be inferred.

        Examples:
            .. code-block:: python

                def build_client(settings: Settings) -> Client:
                    return Client(settings.url)


                container.add_factory(build_client, provides=Client)

        """
        self._dependency_registration_validator.validate_factory(factory)
        explicit = {} if dependencies == "infer" else dict(dependencies)
        provider_dependencies = self._provider_dependencies_extractor.extract_from_factory(
            factory,
            explicit=explicit,
        )
        self._register(
            ProviderSpec(
                provides=build_component_key(provides, component),
                factory=factory,
                dependencies=provider_dependencies,
                lifetime=self._resolve_registration_lifetime(lifetime, method_name="add_factory"),
            ),
        )
        return self

    def add_lazy(
        self,
        contract: type[Any],
        implementation: type[Any],
        *,
        component: object | None = None,
        lifetime: Lifetime | Literal["from_container"] = "from_container",
        arguments: Mapping[str, Any] | None = None,
    ) -> Self:
        """Register ``implementation`` for ``contract`` behind a lazy proxy.

        Resolving ``contract`` returns a proxy that implements every member of
        the contract. The implementation is resolved from the container that
        performed the resolve, on the first member access, and at most once per
        proxy. Failures to build it are raised from that member access and are
        retried on the next one.

        Args:
            contract: Interface to proxy: a ``typing.Protocol`` class or an ABC
                whose public members are all abstract.
            implementation: Concrete class built on first use.
            component: Optional component name qualifying both registrations.
            lifetime: Lifetime applied to the implementation and to the proxy.
            arguments: Explicit constructor arguments of ``implementation``.

        Returns:
            This container, for chaining.

        Raises:
            LazyWireNotAnInterfaceError: If ``contract`` is not a pure interface.
                Nothing is registered in that case.
            LazyWireContractAccessError: If ``contract`` is restricted and its
                module did not call ``grant_proxy_access``.
            LazyWireInvalidRegistrationError: If the implementation registration
                is invalid.

        Examples:
            .. code-block:: python

                container.add_lazy(Mailer, SmtpMailer, lifetime=Lifetime.SINGLETON)
                mailer = container.resolve(Mailer)  # SmtpMailer is not built yet
                mailer.send("hello")  # SmtpMailer is built here

        """
        self._lazy_registrar.register(
            container=self,
            contract=contract,
            implementation=implementation,
            component=component,
            lifetime=lifetime,
            arguments=arguments,
        )
        return self

    def _register(self, spec: ProviderSpec) -> None:
        previous_spec = self._providers_registrations.add(spec)
        if previous_spec is not None:
            self._cache.pop(spec.provides, None)
        logger.debug(
            "Registered provides=%r lifetime=%s provider=%r",
            spec.provides,
            spec.lifetime.value,
            spec.provider if spec.provider is not None else spec.instance,
        )

    def _resolve_registration_lifetime(
        self,
        lifetime: Lifetime | Literal["from_container"],
        *,
        method_name: str,
    ) -> Lifetime:
        if lifetime == "from_container":
            return self._default_lifetime
        return self._dependency_registration_validator.validate_lifetime(
            lifetime,
            method_name=method_name,
        )

    # endregion Registration Methods

    # region Resolution

    def is_registered(self, dependency: Any) -> bool:
        """Return true when this container or one of its ancestors can provide ``dependency``.

        Autoregistration is not considered.
        """
        return self._find_registration(dependency) is not None

    @overload
    def resolve(self, dependency: type[T]) -> T: ...

    @overload
    def resolve(self, dependency: Any) -> Any: ...

    def resolve(self, dependency: Any) -> Any:
        """Resolve a dependency from this container.

        Args:
            dependency: Dependency key to resolve.

        Returns:
            Resolved dependency value. For lazily registered contracts this is
            a proxy; building the implementation is deferred to its first member
            access.

        Raises:
            LazyWireDependencyNotRegisteredError: If no registration exists for
                ``dependency`` (or one of its dependencies) in this container or
                its ancestors, and the key is not eligible for autoregistration.
            LazyWireCircularDependencyError: If building the dependency requires
                itself without a lazy proxy in between.

        """
        if dependency is Container or dependency is type(self):
            return self

        found = self._find_registration(dependency)
        if found is None:
            found = self._autoregister(dependency)
        owner, spec = found

        if spec.has_instance:
            return spec.instance
        if spec.lifetime is Lifetime.TRANSIENT:
            return self._build(spec)
        if spec.lifetime is Lifetime.SINGLETON:
            # Singletons are built against the container that owns the registration.
            return owner._get_or_build_cached(spec, builder=owner)
        return self._get_or_build_cached(spec, builder=self)

    def _find_registration(self, dependency: Any) -> tuple[Container, ProviderSpec] | None:
        container: Container | None = self
        while container is not None:
            spec = container._providers_registrations.find_by_type(dependency)
            if spec is not None:
                return container, spec
            container = container._parent
        return None

    def _autoregister(self, dependency: Any) -> tuple[Container, ProviderSpec]:
        if not (
            self._autoregister_concrete_types
            and self._concrete_autoregistration_policy.is_eligible_concrete(dependency)
        ):
            raise LazyWireDependencyNotRegisteredError(dependency)
        with self._autoregistration_lock:
            spec = self._providers_registrations.find_by_type(dependency)
            if spec is None:
                try:
                    self.add_concrete(dependency)
                except LazyWireInvalidRegistrationError as error:
                    raise LazyWireDependencyNotRegisteredError(dependency) from error
                spec = cast("ProviderSpec", self._providers_registrations.find_by_type(dependency))
        return self, spec

    def _get_or_build_cached(self, spec: ProviderSpec, *, builder: Container) -> Any:
        value = self._cache.get(spec.provides, _MISSING_CACHE)
        if value is not _MISSING_CACHE:
            return value

        if self._lock_mode is LockMode.NONE:
            value = builder._build(spec)
            self._cache[spec.provides] = value
            return value

        with self._cache_lock_for(spec.provides):
            value = self._cache.get(spec.provides, _MISSING_CACHE)
            if value is _MISSING_CACHE:
                value = builder._build(spec)
                self._cache[spec.provides] = value
            return value

    def _cache_lock_for(self, dependency: Any) -> threading.RLock:
        with self._cache_locks_guard:
            lock = self._cache_locks.get(dependency)
            if lock is None:
                lock = threading.RLock()
                self._cache_locks[dependency] = lock
            return lock

    def _build(self, spec: ProviderSpec) -> Any:
        provider = cast("Callable[..., Any]", spec.provider)
        with building(spec.provides):
            args: list[Any] = []
            kwargs: dict[str, Any] = dict(spec.arguments)
            for dependency in spec.dependencies:
                if dependency.has_default and not self._can_resolve(dependency.provides):
                    continue
                value = self.resolve(dependency.provides)
                if dependency.kind is Parameter.POSITIONAL_ONLY:
                    args.append(value)
                else:
                    kwargs[dependency.name] = value
            return provider(*args, **kwargs)

    def _can_resolve(self, dependency: Any) -> bool:
        if dependency is Container or dependency is type(self):
            return True
        if self._find_registration(dependency) is not None:
            return True
        return (
            self._autoregister_concrete_types
            and self._concrete_autoregistration_policy.is_eligible_concrete(dependency)
        )

    # endregion Resolution

    def __repr__(self) -> str:
        depth = 0
        container = self._parent
        while container is not None:
            depth += 1
            container = container._parent
        return (
            f"{type(self).__name__}(registrations={len(self._providers_registrations)}, "
            f"depth={depth})"
        )


__all__ = ["Container"]
