from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, NamedTuple


class Component(NamedTuple):
    """Differentiate multiple providers for the same base type.

    Attach ``Component`` metadata to ``typing.Annotated`` so lazywire treats each
    annotated key as distinct at runtime. Registration methods accept a
    ``component=`` argument that builds the same key for you.

    Examples:
        .. code-block:: python

            from typing import Annotated, TypeAlias


            class Database: ...


            ReplicaDb: TypeAlias = Annotated[Database, Component("replica")]
            PrimaryDb: TypeAlias = Annotated[Database, Component("primary")]

    """

    value: Any


@dataclass(frozen=True)
class LazyTargetMarker:
    """Marker for the registration that builds the real object behind a lazy proxy.

    The public contract key resolves to a proxy; the same contract annotated with
    this marker resolves to the real implementation. All instances compare
    equal, so keys built independently match.
    """


def _build_annotated(params: tuple[object, ...]) -> Any:
    """Return Annotated[...] with a pre-built params tuple."""
    try:
        return Annotated.__class_getitem__(params)  # type: ignore[attr-defined]
    except AttributeError:
        return Annotated.__getitem__(params)  # type: ignore[attr-defined]


def build_annotated_key(base: Any, *metadata: object) -> Any:
    """Return ``base`` annotated with ``metadata``, or ``base`` itself when empty."""
    if not metadata:
        return base
    return _build_annotated((base, *metadata))


def build_component_key(base: Any, component: object | None) -> Any:
    """Return the registration key for ``base`` qualified by an optional component."""
    if component is None:
        return base
    if not isinstance(component, Component):
        component = Component(component)
    return build_annotated_key(base, component)


def build_lazy_target_key(contract: Any, component: object | None) -> Any:
    """Return the internal key of the real registration behind a lazy contract."""
    metadata: list[object] = [LazyTargetMarker()]
    if component is not None:
        metadata.append(component if isinstance(component, Component) else Component(component))
    return build_annotated_key(contract, *metadata)
