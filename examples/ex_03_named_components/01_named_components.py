"""Named components: several lazy registrations of one interface.

Each component gets its own implementation arguments and lifetime. Singleton
components are shared with child containers, scoped ones are not.
"""

from __future__ import annotations

from typing import Annotated, Protocol

from lazywire import Component, Container, Lifetime


class Cache(Protocol):
    def region(self) -> str: ...


class RegionCache:
    def __init__(self, region: str) -> None:
        self._region = region

    def region(self) -> str:
        return self._region


EuCache = Annotated[Cache, Component("eu")]
UsCache = Annotated[Cache, Component("us")]


def main() -> None:
    root = Container()
    root.add_lazy(
        Cache,
        RegionCache,
        component="eu",
        lifetime=Lifetime.SINGLETON,
        arguments={"region": "eu-west-1"},
    )
    root.add_lazy(
        Cache,
        RegionCache,
        component="us",
        lifetime=Lifetime.SCOPED,
        arguments={"region": "us-east-1"},
    )
    child = root.create_child()

    print(root.resolve(EuCache).region())  # => eu-west-1
    print(root.resolve(UsCache).region())  # => us-east-1
    print(f"eu_shared={root.resolve(EuCache) is child.resolve(EuCache)}")  # => eu_shared=True
    print(f"us_shared={root.resolve(UsCache) is child.resolve(UsCache)}")  # => us_shared=False


if __name__ == "__main__":
    main()
