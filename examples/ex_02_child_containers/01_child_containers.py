"""Child containers: a lazy proxy builds its target from the resolving scope.

The parent registers the lazy service but not its dependency. A child
container supplies the dependency, so proxies resolved from the child work
while proxies resolved from the parent fail on first use.
"""

from __future__ import annotations

from typing import Protocol

from lazywire import Container, LazyWireDependencyNotRegisteredError


class Tenant(Protocol):
    def name(self) -> str: ...


class Greeter(Protocol):
    def greet(self) -> str: ...


class AcmeTenant:
    def name(self) -> str:
        return "acme"


class TenantGreeter:
    def __init__(self, tenant: Tenant) -> None:
        self._tenant = tenant

    def greet(self) -> str:
        return f"hello {self._tenant.name()}"


def main() -> None:
    root = Container()
    root.add_lazy(Greeter, TenantGreeter)

    greeter = root.resolve(Greeter)
    try:
        greeter.greet()
    except LazyWireDependencyNotRegisteredError as error:
        print(type(error).__name__)  # => LazyWireDependencyNotRegisteredError

    child = root.create_child().add_concrete(AcmeTenant, provides=Tenant)
    print(child.resolve(Greeter).greet())  # => hello acme


if __name__ == "__main__":
    main()
