"""Lazy proxies: defer building an expensive service until it is used.

Register an interface with ``add_lazy`` and resolve it. The returned proxy
implements the interface, but the real service is built only when one of its
members is first accessed.
"""

from __future__ import annotations

from typing import Protocol

from lazywire import Container, Lifetime, is_proxy_resolved


class ReportStore(Protocol):
    def save(self, name: str) -> str: ...


class S3ReportStore:
    instances = 0

    def __init__(self) -> None:
        S3ReportStore.instances += 1

    def save(self, name: str) -> str:
        return f"s3://reports/{name}"


class ReportService:
    def __init__(self, store: ReportStore) -> None:
        self.store = store


def main() -> None:
    container = Container()
    container.add_lazy(ReportStore, S3ReportStore, lifetime=Lifetime.SINGLETON)

    service = container.resolve(ReportService)
    print(f"store_built={is_proxy_resolved(service.store)}")  # => store_built=False
    print(f"instances={S3ReportStore.instances}")  # => instances=0

    print(service.store.save("daily.csv"))  # => s3://reports/daily.csv
    print(f"store_built={is_proxy_resolved(service.store)}")  # => store_built=True
    print(f"instances={S3ReportStore.instances}")  # => instances=1


if __name__ == "__main__":
    main()
