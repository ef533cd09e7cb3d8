from __future__ import annotations

import datetime
import decimal
import inspect
import pathlib
import uuid
from dataclasses import dataclass
from typing import Any, TypeGuard

from lazywire._internal.type_checks import is_protocol_class, is_runtime_class


@dataclass(frozen=True, slots=True)
class ConcreteTypeAutoregistrationPolicy:
    """Internal policy for concrete-type autoregistration eligibility."""

    ignored_base_types: tuple[type[Any], ...] = (
        pathlib.PurePath,
        datetime.datetime,
        datetime.date,
        datetime.time,
        datetime.timedelta,
        uuid.UUID,
        decimal.Decimal,
    )

    def is_eligible_concrete(self, candidate: object) -> TypeGuard[type[Any]]:
        """Return true when a candidate can be auto-registered as a concrete provider.

        Interfaces are never eligible: a contract has to be bound to an
        implementation explicitly, either eagerly or with ``add_lazy``.

        Args:
            candidate: Value being checked for eligibility or runtime type constraints.

        """
        if not is_runtime_class(candidate):
            return False
        if candidate.__module__ == "builtins":
            return False
        if is_protocol_class(candidate) or inspect.isabstract(candidate):
            return False
        if issubclass(candidate, type):
            return False
        return not issubclass(candidate, self.ignored_base_types)
