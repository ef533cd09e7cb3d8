from __future__ import annotations

from typing import Any


class LazyWireError(Exception):
    """Represent a base class for all lazywire-specific failures.

    Catch this type when you want to handle any lazywire error path without
    matching each concrete exception class individually.
    """


class LazyWireConfigurationError(LazyWireError):
    """Signal a setup mistake detected at registration or proxy synthesis time.

    Configuration errors are never deferred to resolution or member access and
    are not meant to be recovered from: fix the registration instead.
    """


class LazyWireInvalidRegistrationError(LazyWireConfigurationError):
    """Signal invalid registration arguments.

    Raised by registration APIs such as ``Container.add_concrete``,
    ``Container.add_factory``, ``Container.add_instance`` and
    ``Container.add_lazy`` when arguments are invalid.

    Typical fixes include registering a non-abstract class, passing a valid
    ``lifetime`` and naming only existing constructor parameters in
    ``arguments``.
    """


class LazyWireNotSupportedError(LazyWireConfigurationError):
    """Signal a registration shape that lazywire does not support."""


class LazyWireNotAnInterfaceError(LazyWireNotSupportedError):
    """Signal a lazy registration whose contract is not a pure interface.

    Lazy proxies are only synthesized for ``typing.Protocol`` classes and for
    ``abc.ABC`` classes whose public members are all abstract. Concrete classes
    cannot be proxied because part of their behavior lives in the class itself.
    """

    def __init__(self, contract: Any, reason: str) -> None:
        self.contract = contract
        self.reason = reason
        name = getattr(contract, "__qualname__", repr(contract))
        super().__init__(f"Cannot register '{name}' lazily: {reason}.")


class LazyWireContractAccessError(LazyWireConfigurationError):
    """Signal synthesis of a proxy for a restricted contract without a grant.

    A contract is restricted when its module path or qualified name contains a
    private (single underscore) segment. The declaring module must call
    ``lazywire.grant_proxy_access(__name__)`` before such a contract can be
    proxied.
    """

    def __init__(self, contract: type[Any]) -> None:
        self.contract = contract
        super().__init__(
            f"Contract '{contract.__module__}.{contract.__qualname__}' is inaccessible "
            f"to the proxy synthesizer; call grant_proxy_access({contract.__module__!r}) "
            "in the declaring module.",
        )


class LazyWireUnsupportedMemberError(LazyWireConfigurationError):
    """Signal a contract member that cannot be forwarded by a proxy.

    Class-level members (``classmethod``, ``staticmethod`` and plain class
    attributes) do not depend on an instance and therefore cannot be deferred.
    """

    def __init__(self, contract: type[Any], member_name: str, reason: str) -> None:
        self.contract = contract
        self.member_name = member_name
        super().__init__(
            f"Member '{contract.__qualname__}.{member_name}' cannot be proxied: {reason}.",
        )


class LazyWireResolutionError(LazyWireError):
    """Signal that a container scope cannot build a requested dependency.

    For lazily registered contracts this is raised on the first member access
    of the proxy, not by ``resolve``. The failure is never cached, so the same
    proxy retries construction on its next member access.
    """


class LazyWireDependencyNotRegisteredError(LazyWireResolutionError):
    """Signal that a dependency key has no provider in the addressed scope.

    Lookup walks from the resolving container up through its parents, so a key
    registered only on a child container is invisible to its parent.

    Typical fixes include registering the dependency explicitly, resolving from
    the child container that owns the registration, or enabling
    autoregistration for eligible concrete types.
    """

    def __init__(self, dependency: Any) -> None:
        self.dependency = dependency
        super().__init__(f"Dependency '{_describe(dependency)}' is not registered.")


class LazyWireCircularDependencyError(LazyWireResolutionError):
    """Signal a dependency cycle that cannot be built eagerly.

    Register one of the participants with ``Container.add_lazy`` to break the
    cycle: the proxy is created without constructing its target.
    """

    def __init__(self, dependency: Any, chain: list[Any]) -> None:
        self.dependency = dependency
        self.chain = chain
        path = " -> ".join(_describe(item) for item in [*chain, dependency])
        super().__init__(f"Circular dependency detected: {path}.")


def _describe(dependency: Any) -> str:
    return getattr(dependency, "__qualname__", None) or repr(dependency)
