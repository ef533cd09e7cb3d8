from __future__ import annotations

import abc
import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Protocol

from typing_extensions import get_protocol_members

from lazywire._internal.type_checks import is_protocol_class, is_runtime_class
from lazywire.exceptions import LazyWireNotAnInterfaceError, LazyWireUnsupportedMemberError

_MACHINERY_BASES: tuple[type[Any], ...] = (object, abc.ABC, Generic, Protocol)  # type: ignore[arg-type]
_MISSING: Any = object()


class MemberKind(Enum):
    """Kind of contract member a proxy has to forward."""

    METHOD = "method"
    PROPERTY_GET = "property_get"
    PROPERTY_SET = "property_set"


_KIND_ORDER = {MemberKind.METHOD: 0, MemberKind.PROPERTY_GET: 1, MemberKind.PROPERTY_SET: 2}


@dataclass(frozen=True, slots=True)
class MemberDescriptor:
    """Describe one member of a contract as seen by the proxy synthesizer."""

    name: str
    kind: MemberKind
    signature: inspect.Signature | None = None
    """Declared signature for methods and property accessors, if one exists."""
    is_async: bool = False
    doc: str | None = None


@dataclass(frozen=True, slots=True)
class ContractShape:
    """Ordered member set that a forwarding object for ``contract`` must implement."""

    contract: type[Any]
    members: tuple[MemberDescriptor, ...]

    @property
    def method_names(self) -> tuple[str, ...]:
        return tuple(member.name for member in self.members if member.kind is MemberKind.METHOD)

    @property
    def property_names(self) -> tuple[str, ...]:
        return tuple(
            member.name for member in self.members if member.kind is MemberKind.PROPERTY_GET
        )


class ContractInspector:
    """Enumerate the members of an interface contract.

    A contract is either a ``typing.Protocol`` class or an ``abc.ABC`` whose
    public members are all abstract. Members inherited from base contracts are
    included, whatever their visibility.
    """

    def __init__(self) -> None:
        self._shapes_cache: dict[type[Any], ContractShape] = {}

    def validate(self, contract: Any) -> type[Any]:
        """Return ``contract`` when it is a pure interface.

        Raises:
            LazyWireNotAnInterfaceError: If ``contract`` is not a class, is a
                concrete class, or is an ABC with implemented public members.

        """
        if not is_runtime_class(contract):
            raise LazyWireNotAnInterfaceError(contract, "it is not a class")
        if is_protocol_class(contract):
            return contract
        is_abc = isinstance(contract, abc.ABCMeta)
        implemented = self._implemented_public_members(contract) if is_abc else []
        # An ABC without abstract members is still an interface when it implements nothing.
        if not is_abc or (not inspect.isabstract(contract) and implemented):
            raise LazyWireNotAnInterfaceError(
                contract,
                "it is a concrete class; only Protocol classes and fully abstract ABCs "
                "can be proxied",
            )
        if implemented:
            raise LazyWireNotAnInterfaceError(
                contract,
                f"abstract class implements member '{implemented[0]}'",
            )
        return contract

    def inspect(self, contract: Any) -> ContractShape:
        """Return the ordered member descriptors of ``contract``.

        Raises:
            LazyWireNotAnInterfaceError: If ``contract`` is not a pure interface.
            LazyWireUnsupportedMemberError: If a member cannot be forwarded.

        """
        cached = self._shapes_cache.get(contract)
        if cached is not None:
            return cached

        contract = self.validate(contract)
        if is_protocol_class(contract):
            member_names = get_protocol_members(contract)
        else:
            member_names = frozenset(contract.__abstractmethods__)

        members: list[MemberDescriptor] = []
        for name in member_names:
            # Declaring __eq__ sets __hash__ to None; there is nothing to forward.
            if name == "__hash__" and self._lookup_raw(contract, name) is None:
                continue
            members.extend(self._describe_member(contract, name))
        members.sort(key=lambda member: (member.name, _KIND_ORDER[member.kind]))

        shape = ContractShape(contract=contract, members=tuple(members))
        self._shapes_cache[contract] = shape
        return shape

    def _describe_member(self, contract: type[Any], name: str) -> list[MemberDescriptor]:
        raw = self._lookup_raw(contract, name)

        if isinstance(raw, (staticmethod, classmethod)):
            raise LazyWireUnsupportedMemberError(
                contract,
                name,
                f"{type(raw).__name__} members do not depend on an instance",
            )
        if isinstance(raw, property):
            return self._describe_property(name, raw)
        if inspect.isfunction(raw):
            signature = inspect.signature(raw)
            return [
                MemberDescriptor(
                    name=name,
                    kind=MemberKind.METHOD,
                    signature=signature,
                    is_async=inspect.iscoroutinefunction(raw),
                    doc=inspect.getdoc(raw),
                ),
            ]

        annotation = self._lookup_annotation(contract, name)
        if annotation is not _MISSING:
            return [
                MemberDescriptor(name=name, kind=MemberKind.PROPERTY_GET),
                MemberDescriptor(name=name, kind=MemberKind.PROPERTY_SET),
            ]

        raise LazyWireUnsupportedMemberError(
            contract,
            name,
            "only methods, properties and annotated attributes can be forwarded",
        )

    def _describe_property(self, name: str, raw: property) -> list[MemberDescriptor]:
        descriptors: list[MemberDescriptor] = []
        if raw.fget is not None:
            descriptors.append(
                MemberDescriptor(
                    name=name,
                    kind=MemberKind.PROPERTY_GET,
                    signature=inspect.signature(raw.fget),
                    doc=inspect.getdoc(raw),
                ),
            )
        if raw.fset is not None:
            descriptors.append(
                MemberDescriptor(
                    name=name,
                    kind=MemberKind.PROPERTY_SET,
                    signature=inspect.signature(raw.fset),
                ),
            )
        return descriptors

    def _lookup_raw(self, contract: type[Any], name: str) -> Any:
        for klass in contract.__mro__:
            if name in vars(klass):
                return vars(klass)[name]
        return _MISSING

    def _lookup_annotation(self, contract: type[Any], name: str) -> Any:
        for klass in contract.__mro__:
            annotations = inspect.get_annotations(klass)
            if name in annotations:
                return annotations[name]
        return _MISSING

    def _implemented_public_members(self, contract: type[Any]) -> list[str]:
        implemented: list[str] = []
        for klass in contract.__mro__:
            if klass in _MACHINERY_BASES:
                continue
            for name, value in vars(klass).items():
                if name.startswith("_"):
                    continue
                if getattr(value, "__isabstractmethod__", False):
                    continue
                if name in contract.__abstractmethods__:
                    continue
                implemented.append(name)
        return implemented
