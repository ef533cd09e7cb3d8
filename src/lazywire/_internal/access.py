from __future__ import annotations

import logging
import threading
from typing import Any

logger = logging.getLogger(__name__)


def _is_private_segment(segment: str) -> bool:
    return segment.startswith("_") and not segment.startswith("__")


class ProxyAccessGrants:
    """Record which modules trust the proxy synthesizer with their private contracts.

    Python has no enforced visibility, so lazywire treats a single leading
    underscore in a module path or qualified name as "internal". Proxying such a
    contract requires the declaring module, or one of its parent packages, to
    opt in explicitly.
    """

    def __init__(self) -> None:
        self._granted_modules: set[str] = set()
        self._lock = threading.Lock()

    def grant(self, module_name: str) -> None:
        """Allow proxies for restricted contracts declared in ``module_name`` and below."""
        with self._lock:
            self._granted_modules.add(module_name)
        logger.debug("Proxy access granted for module=%s", module_name)

    def revoke(self, module_name: str) -> None:
        """Remove a grant previously recorded with ``grant``.

        Later registrations of the module's restricted contracts fail. Proxies
        created from registrations made before the revoke keep working.
        """
        with self._lock:
            self._granted_modules.discard(module_name)

    def is_restricted(self, contract: type[Any]) -> bool:
        """Return true when the contract is declared with restricted visibility."""
        segments = [*contract.__module__.split("."), *contract.__qualname__.split(".")]
        return any(_is_private_segment(segment) for segment in segments)

    def is_granted(self, contract: type[Any]) -> bool:
        """Return true when the contract's declaring module is covered by a grant."""
        module_name = contract.__module__
        with self._lock:
            granted = tuple(self._granted_modules)
        return any(
            module_name == granted_module or module_name.startswith(f"{granted_module}.")
            for granted_module in granted
        )

    def can_proxy(self, contract: type[Any]) -> bool:
        """Return true when the synthesizer may build a proxy for ``contract``."""
        return not self.is_restricted(contract) or self.is_granted(contract)


proxy_access_grants = ProxyAccessGrants()
"""Process-wide grants consulted by the proxy synthesizer."""


def grant_proxy_access(module_name: str) -> None:
    """Trust the lazy proxy synthesizer with restricted contracts of a module.

    Call this from the module that declares the contracts, typically at import
    time.

    Args:
        module_name: Declaring module, usually ``__name__``. Grants cover
            submodules too.

    Examples:
        .. code-block:: python

            grant_proxy_access(__name__)


            class _InternalService(Protocol):
                def get(self) -> str: ...

    """
    proxy_access_grants.grant(module_name)
