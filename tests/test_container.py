"""Tests for resolution, lifetimes and child containers."""

from __future__ import annotations

from typing import Annotated, Protocol

import pytest

from lazywire import (
    Component,
    Container,
    LazyWireCircularDependencyError,
    LazyWireDependencyNotRegisteredError,
    Lifetime,
    is_proxy_resolved,
)


class Clock:
    pass


class Greeter:
    def __init__(self, clock: Clock, greeting: str = "hello") -> None:
        self.clock = clock
        self.greeting = greeting


class Database(Protocol):
    def query(self) -> str: ...


class PrimaryDatabase:
    def query(self) -> str:
        return "primary"


class ReplicaDatabase:
    def query(self) -> str:
        return "replica"


class Repository:
    def __init__(
        self,
        primary: Annotated[Database, Component("primary")],
        replica: Annotated[Database, Component("replica")],
    ) -> None:
        self.primary = primary
        self.replica = replica


class Unresolvable:
    def __init__(self, name) -> None:  # type: ignore[no-untyped-def]
        self.name = name


class ICycleA(Protocol):
    def ping(self) -> str: ...


class ICycleB(Protocol):
    def pong(self) -> str: ...


class CycleA:
    def __init__(self, b: ICycleB) -> None:
        self.b = b

    def ping(self) -> str:
        return "ping->" + self.b.pong()


class CycleB:
    def __init__(self, a: ICycleA) -> None:
        self.a = a

    def pong(self) -> str:
        return "pong"


class TestResolve:
    def test_autoregisters_concrete_types(self, container: Container) -> None:
        greeter = container.resolve(Greeter)

        assert isinstance(greeter, Greeter)
        assert isinstance(greeter.clock, Clock)
        assert greeter.greeting == "hello"

    def test_strict_container_requires_registration(
        self,
        container_no_autoregister: Container,
    ) -> None:
        with pytest.raises(LazyWireDependencyNotRegisteredError, match="Clock"):
            container_no_autoregister.resolve(Clock)

    def test_protocols_are_never_autoregistered(self, container: Container) -> None:
        with pytest.raises(LazyWireDependencyNotRegisteredError, match="Database"):
            container.resolve(Database)

    def test_autoregistration_failure_reports_not_registered(self, container: Container) -> None:
        with pytest.raises(LazyWireDependencyNotRegisteredError) as exc_info:
            container.resolve(Unresolvable)

        assert exc_info.value.dependency is Unresolvable

    def test_resolving_container_key_returns_resolving_container(
        self,
        container: Container,
    ) -> None:
        child = container.create_child()

        assert container.resolve(Container) is container
        assert child.resolve(Container) is child

    def test_components_select_registrations(self, container: Container) -> None:
        container.add_concrete(PrimaryDatabase, provides=Database, component="primary")
        container.add_concrete(ReplicaDatabase, provides=Database, component="replica")

        repository = container.resolve(Repository)

        assert repository.primary.query() == "primary"
        assert repository.replica.query() == "replica"

    def test_explicit_arguments_override_resolution(self, container: Container) -> None:
        clock = Clock()
        container.add_concrete(Greeter, arguments={"clock": clock, "greeting": "hi"})

        greeter = container.resolve(Greeter)

        assert greeter.clock is clock
        assert greeter.greeting == "hi"

    def test_factory_receives_positional_only_dependencies(self, container: Container) -> None:
        def build_greeter(clock: Clock, /) -> Greeter:
            return Greeter(clock, greeting="built")

        container.add_factory(build_greeter, provides=Greeter)

        assert container.resolve(Greeter).greeting == "built"

    def test_factory_explicit_dependencies(self, container: Container) -> None:
        clock = Clock()
        container.add_instance(clock, component="fixed")

        def build_greeter(source):  # type: ignore[no-untyped-def]
            return Greeter(source)

        container.add_factory(
            build_greeter,
            provides=Greeter,
            dependencies={"source": Annotated[Clock, Component("fixed")]},
        )

        assert container.resolve(Greeter).clock is clock

    def test_factory_receives_resolving_child_container(self, container: Container) -> None:
        seen: list[Container] = []

        def build_clock(scope: Container) -> Clock:
            seen.append(scope)
            return Clock()

        container.add_factory(build_clock, provides=Clock)
        child = container.create_child()
        child.resolve(Clock)

        assert seen == [child]

    def test_add_instance_returns_same_object(self, container: Container) -> None:
        clock = Clock()
        container.add_instance(clock)

        assert container.resolve(Clock) is clock
        assert container.is_registered(Clock)

    def test_add_instance_accepts_none(self, container: Container) -> None:
        container.add_instance(None, provides=Annotated[str, Component("missing")])

        assert container.resolve(Annotated[str, Component("missing")]) is None

    def test_reregistration_replaces_cached_value(self, container: Container) -> None:
        container.add_concrete(PrimaryDatabase, provides=Database, lifetime=Lifetime.SINGLETON)
        assert container.resolve(Database).query() == "primary"

        container.add_concrete(ReplicaDatabase, provides=Database, lifetime=Lifetime.SINGLETON)

        assert container.resolve(Database).query() == "replica"


class TestLifetimes:
    def test_transient_builds_every_time(self, container: Container) -> None:
        container.add_concrete(Clock, lifetime=Lifetime.TRANSIENT)

        assert container.resolve(Clock) is not container.resolve(Clock)

    def test_singleton_is_shared_with_children(self, container: Container) -> None:
        container.add_concrete(Clock, lifetime=Lifetime.SINGLETON)
        child = container.create_child()

        assert child.resolve(Clock) is container.resolve(Clock)
        assert child.create_child().resolve(Clock) is container.resolve(Clock)

    def test_scoped_is_cached_per_container(self, container: Container) -> None:
        container.add_concrete(Clock, lifetime=Lifetime.SCOPED)
        child = container.create_child()

        assert container.resolve(Clock) is container.resolve(Clock)
        assert child.resolve(Clock) is child.resolve(Clock)
        assert child.resolve(Clock) is not container.resolve(Clock)

    def test_default_lifetime_applies_to_registrations(
        self,
        container_singleton: Container,
    ) -> None:
        container_singleton.add_concrete(Clock)

        assert container_singleton.resolve(Clock) is container_singleton.resolve(Clock)

    def test_singleton_dependencies_come_from_owner(self, container: Container) -> None:
        container.add_concrete(Greeter, lifetime=Lifetime.SINGLETON)
        child = container.create_child()
        child.add_concrete(Clock, lifetime=Lifetime.SINGLETON)

        greeter = child.resolve(Greeter)

        assert greeter.clock is not child.resolve(Clock)


class TestChildContainers:
    def test_child_sees_parent_registrations(self, container_no_autoregister: Container) -> None:
        container_no_autoregister.add_concrete(Clock)
        child = container_no_autoregister.create_child()

        assert child.is_registered(Clock)
        assert isinstance(child.resolve(Clock), Clock)

    def test_parent_does_not_see_child_registrations(
        self,
        container_no_autoregister: Container,
    ) -> None:
        child = container_no_autoregister.create_child().add_concrete(Clock)

        assert child.parent is container_no_autoregister
        assert not container_no_autoregister.is_registered(Clock)
        with pytest.raises(LazyWireDependencyNotRegisteredError):
            container_no_autoregister.resolve(Clock)

    def test_child_registration_overrides_parent(self, container: Container) -> None:
        container.add_concrete(PrimaryDatabase, provides=Database)
        child = container.create_child().add_concrete(ReplicaDatabase, provides=Database)

        assert container.resolve(Database).query() == "primary"
        assert child.resolve(Database).query() == "replica"

    def test_child_inherits_configuration(self) -> None:
        root = Container(Lifetime.SINGLETON, autoregister_concrete_types=False)
        child = root.create_child()

        child.add_concrete(Clock)

        assert child.resolve(Clock) is child.resolve(Clock)
        with pytest.raises(LazyWireDependencyNotRegisteredError):
            child.resolve(Greeter)

    def test_repr_reports_depth(self, container: Container) -> None:
        container.add_concrete(Clock)
        grandchild = container.create_child().create_child()

        assert repr(container) == "Container(registrations=1, depth=0)"
        assert repr(grandchild) == "Container(registrations=0, depth=2)"


class TestCircularDependencies:
    def test_eager_cycle_is_detected(self, container: Container) -> None:
        container.add_concrete(CycleA, provides=ICycleA)
        container.add_concrete(CycleB, provides=ICycleB)

        with pytest.raises(LazyWireCircularDependencyError, match="Circular dependency") as exc_info:
            container.resolve(ICycleA)

        assert exc_info.value.dependency is ICycleA

    def test_lazy_registration_breaks_cycle(self, container: Container) -> None:
        container.add_concrete(CycleA, provides=ICycleA, lifetime=Lifetime.SINGLETON)
        container.add_lazy(ICycleB, CycleB, lifetime=Lifetime.SINGLETON)

        a = container.resolve(ICycleA)

        assert not is_proxy_resolved(a.b)
        assert a.ping() == "ping->pong"
        assert container.resolve(ICycleB).pong() == "pong"
