from lazywire._internal.access import grant_proxy_access
from lazywire._internal.container import Container
from lazywire._internal.deferred import DeferredResolver
from lazywire._internal.markers import Component
from lazywire._internal.providers import Lifetime
from lazywire._internal.proxies import is_lazy_proxy, is_proxy_resolved
from lazywire.exceptions import (
    LazyWireCircularDependencyError,
    LazyWireConfigurationError,
    LazyWireContractAccessError,
    LazyWireDependencyNotRegisteredError,
    LazyWireError,
    LazyWireInvalidRegistrationError,
    LazyWireNotAnInterfaceError,
    LazyWireNotSupportedError,
    LazyWireResolutionError,
    LazyWireUnsupportedMemberError,
)
from lazywire.lock_mode import LockMode

__all__ = [
    "Component",
    "Container",
    "DeferredResolver",
    "LazyWireCircularDependencyError",
    "LazyWireConfigurationError",
    "LazyWireContractAccessError",
    "LazyWireDependencyNotRegisteredError",
    "LazyWireError",
    "LazyWireInvalidRegistrationError",
    "LazyWireNotAnInterfaceError",
    "LazyWireNotSupportedError",
    "LazyWireResolutionError",
    "LazyWireUnsupportedMemberError",
    "Lifetime",
    "LockMode",
    "grant_proxy_access",
    "is_lazy_proxy",
    "is_proxy_resolved",
]
