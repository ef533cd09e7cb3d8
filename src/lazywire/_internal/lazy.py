from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Generic, Literal, TypeVar

from lazywire._internal.deferred import DeferredResolver
from lazywire._internal.markers import build_component_key, build_lazy_target_key
from lazywire._internal.providers import Lifetime
from lazywire._internal.proxies import ProxyBlueprint, ProxySynthesizer, proxy_synthesizer
from lazywire._internal.validators import DependecyRegistrationValidator

if TYPE_CHECKING:
    from lazywire._internal.container import Container

T = TypeVar("T")

logger = logging.getLogger(__name__)


class LazyProxyFactory(Generic[T]):
    """Container factory producing a new lazy proxy on every call.

    The proxy is bound to the container passed in, which is the container that
    performed the resolve, so the real implementation honors that container's
    registrations and scoped lifetimes.
    """

    def __init__(self, blueprint: ProxyBlueprint[T], target_key: Any) -> None:
        self._blueprint = blueprint
        self._target_key = target_key

    def __call__(self, scope: Container) -> T:
        target_key = self._target_key

        def construct() -> T:
            return scope.resolve(target_key)

        resolver = DeferredResolver(construct, lock_mode=scope.lock_mode, label=target_key)
        return self._blueprint.create(resolver)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._blueprint.contract.__qualname__})"


class LazyRegistrar:
    """Register implementations behind lazy proxies on a container.

    Two registrations are recorded per call. The implementation goes under an
    internal key (the contract annotated with ``LazyTargetMarker``), configured
    exactly as requested. The public contract key gets a ``LazyProxyFactory``
    with the same component and lifetime.
    """

    def __init__(self, synthesizer: ProxySynthesizer | None = None) -> None:
        self._synthesizer = synthesizer or proxy_synthesizer
        self._validator = DependecyRegistrationValidator()

    def register(
        self,
        *,
        container: Container,
        contract: type[Any],
        implementation: type[Any],
        component: object | None,
        lifetime: Lifetime | Literal["from_container"],
        arguments: Mapping[str, Any] | None,
    ) -> None:
        """Record the implementation and proxy registrations on ``container``.

        The proxy blueprint is synthesized first, so an invalid contract fails
        before anything is registered.
        """
        blueprint = self._synthesizer.get_blueprint(contract)
        self._validator.validate_concrete_type(implementation)
        self._validator.validate_implementation(contract, implementation)

        target_key = build_lazy_target_key(contract, component)
        container.add_concrete(
            implementation,
            provides=target_key,
            lifetime=lifetime,
            arguments=arguments,
        )
        container.add_factory(
            LazyProxyFactory(blueprint, target_key),
            provides=build_component_key(contract, component),
            lifetime=lifetime,
            dependencies={"scope": type(container)},
        )
        logger.debug(
            "Registered lazy contract=%s implementation=%s component=%r",
            contract.__qualname__,
            implementation.__qualname__,
            component,
        )
