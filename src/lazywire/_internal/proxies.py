from __future__ import annotations

import logging
import threading
import types
from collections.abc import Callable
from dataclasses import dataclass
from textwrap import dedent
from typing import Any, Final, Generic, TypeVar, cast

from lazywire._internal.access import ProxyAccessGrants, proxy_access_grants
from lazywire._internal.contracts import (
    ContractInspector,
    ContractShape,
    MemberDescriptor,
    MemberKind,
)
from lazywire._internal.deferred import DeferredResolver
from lazywire.exceptions import LazyWireContractAccessError

T = TypeVar("T")

logger = logging.getLogger(__name__)

RESOLVER_ATTRIBUTE: Final[str] = "_lazywire_resolver"

_METHOD_TEMPLATE = dedent(
    """
    def {function_name}(self, /, *args, **kwargs):
        return self.{resolver}.obtain().{member}(*args, **kwargs)
    """,
)

_ASYNC_METHOD_TEMPLATE = dedent(
    """
    async def {function_name}(self, /, *args, **kwargs):
        return await self.{resolver}.obtain().{member}(*args, **kwargs)
    """,
)

_GETTER_TEMPLATE = dedent(
    """
    def {function_name}(self):
        return self.{resolver}.obtain().{member}
    """,
)

_SETTER_TEMPLATE = dedent(
    """
    def {function_name}(self, value):
        self.{resolver}.obtain().{member} = value
    """,
)


class LazyProxy:
    """Base class mixed into every synthesized proxy class."""

    __slots__ = ()

    __lazywire_contract__: type[Any]

    def __repr__(self) -> str:
        resolver = cast("DeferredResolver[Any]", getattr(self, RESOLVER_ATTRIBUTE))
        state = "resolved" if resolver.is_resolved else "pending"
        return f"<lazy {self.__lazywire_contract__.__qualname__} proxy ({state})>"


@dataclass(frozen=True, slots=True)
class ProxyBlueprint(Generic[T]):
    """Reusable proxy class for one contract."""

    contract: type[T]
    shape: ContractShape
    proxy_class: type[Any]

    def create(self, resolver: DeferredResolver[T]) -> T:
        """Return a new proxy forwarding to the value produced by ``resolver``."""
        proxy = self.proxy_class.__new__(self.proxy_class)
        object.__setattr__(proxy, RESOLVER_ATTRIBUTE, resolver)
        return cast("T", proxy)


class ProxySynthesizer:
    """Build forwarding classes for interface contracts.

    Synthesis is purely structural: only the contract's members are inspected,
    never the implementation behind it. Each forwarder is compiled from a source
    template and placed on a class created with ``types.new_class`` that
    subclasses the contract, so proxies pass ``isinstance`` checks.
    """

    def __init__(
        self,
        inspector: ContractInspector | None = None,
        grants: ProxyAccessGrants | None = None,
    ) -> None:
        self._inspector = inspector or ContractInspector()
        self._grants = grants or proxy_access_grants
        self._blueprints: dict[type[Any], ProxyBlueprint[Any]] = {}
        self._lock = threading.Lock()

    def get_blueprint(self, contract: type[T]) -> ProxyBlueprint[T]:
        """Return the cached blueprint for ``contract``, synthesizing it on first use.

        Raises:
            LazyWireNotAnInterfaceError: If ``contract`` is not a pure interface.
            LazyWireContractAccessError: If ``contract`` is restricted and its
                declaring module has not granted proxy access.
            LazyWireUnsupportedMemberError: If a member cannot be forwarded.

        """
        blueprint = self._blueprints.get(contract)
        if blueprint is None:
            with self._lock:
                blueprint = self._blueprints.get(contract)
                if blueprint is None:
                    blueprint = self._synthesize(contract)
                    self._blueprints[contract] = blueprint

        # Grants can be revoked after the class was synthesized.
        self._ensure_accessible(blueprint.contract)
        return blueprint

    def _synthesize(self, contract: type[T]) -> ProxyBlueprint[T]:
        contract = self._inspector.validate(contract)
        self._ensure_accessible(contract)

        shape = self._inspector.inspect(contract)
        class_name = f"{contract.__name__}LazyProxy"
        namespace = self._build_namespace(shape=shape, class_name=class_name)

        def exec_body(body: dict[str, Any]) -> None:
            body.update(namespace)

        proxy_class = types.new_class(class_name, (LazyProxy, contract), exec_body=exec_body)
        logger.info(
            "Synthesized lazy proxy class=%s contract=%s.%s members=%d",
            class_name,
            contract.__module__,
            contract.__qualname__,
            len(shape.members),
        )
        return ProxyBlueprint(contract=contract, shape=shape, proxy_class=proxy_class)

    def _ensure_accessible(self, contract: type[Any]) -> None:
        if not self._grants.can_proxy(contract):
            raise LazyWireContractAccessError(contract)

    def _build_namespace(self, *, shape: ContractShape, class_name: str) -> dict[str, Any]:
        functions = self._compile_forwarders(shape=shape, class_name=class_name)
        namespace: dict[str, Any] = {
            "__slots__": (RESOLVER_ATTRIBUTE,),
            "__module__": __name__,
            "__qualname__": class_name,
            "__lazywire_contract__": shape.contract,
        }

        getters: dict[str, Callable[..., Any]] = {}
        setters: dict[str, Callable[..., Any]] = {}
        docs: dict[str, str | None] = {}
        for member, function in zip(shape.members, functions, strict=True):
            if member.kind is MemberKind.METHOD:
                namespace[member.name] = function
            elif member.kind is MemberKind.PROPERTY_GET:
                getters[member.name] = function
                docs[member.name] = member.doc
            else:
                setters[member.name] = function

        for name in {*getters, *setters}:
            namespace[name] = property(getters.get(name), setters.get(name), doc=docs.get(name))
        return namespace

    def _compile_forwarders(
        self,
        *,
        shape: ContractShape,
        class_name: str,
    ) -> list[Callable[..., Any]]:
        function_names = [f"_forward_{index}" for index in range(len(shape.members))]
        source = "\n".join(
            self._render_forwarder(member=member, function_name=function_name)
            for member, function_name in zip(shape.members, function_names, strict=True)
        )
        filename = f"<lazywire-proxy:{shape.contract.__module__}.{shape.contract.__qualname__}>"
        code = compile(source, filename, "exec")
        generated: dict[str, Any] = {}
        exec(code, generated)  # noqa: S102

        functions: list[Callable[..., Any]] = []
        for member, function_name in zip(shape.members, function_names, strict=True):
            function = generated[function_name]
            function.__name__ = member.name
            function.__qualname__ = f"{class_name}.{member.name}"
            function.__module__ = __name__
            function.__doc__ = member.doc
            if member.kind is MemberKind.METHOD and member.signature is not None:
                function.__signature__ = member.signature
            functions.append(function)
        return functions

    def _render_forwarder(self, *, member: MemberDescriptor, function_name: str) -> str:
        if member.kind is MemberKind.METHOD:
            template = _ASYNC_METHOD_TEMPLATE if member.is_async else _METHOD_TEMPLATE
        elif member.kind is MemberKind.PROPERTY_GET:
            template = _GETTER_TEMPLATE
        else:
            template = _SETTER_TEMPLATE
        return template.format(
            function_name=function_name,
            resolver=RESOLVER_ATTRIBUTE,
            member=member.name,
        )


proxy_synthesizer = ProxySynthesizer()
"""Process-wide synthesizer; blueprints are shared by every container."""


def is_lazy_proxy(candidate: object) -> bool:
    """Return true when ``candidate`` is a lazy proxy created by lazywire."""
    return isinstance(candidate, LazyProxy)


def get_proxy_resolver(proxy: object) -> DeferredResolver[Any]:
    """Return the deferred resolver bound to ``proxy``.

    Raises:
        TypeError: If ``proxy`` is not a lazy proxy.

    """
    if not isinstance(proxy, LazyProxy):
        msg = f"Expected a lazy proxy, got {type(proxy).__qualname__}."
        raise TypeError(msg)
    return cast("DeferredResolver[Any]", getattr(proxy, RESOLVER_ATTRIBUTE))


def is_proxy_resolved(proxy: object) -> bool:
    """Return true once the real object behind ``proxy`` has been constructed.

    Reading this flag never triggers construction.

    Raises:
        TypeError: If ``proxy`` is not a lazy proxy.

    """
    return get_proxy_resolver(proxy).is_resolved
