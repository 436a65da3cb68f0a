"""Protocol interfaces for convoflow's external collaborators.

The binder only talks to these Protocols. Structural typing, no inheritance
required, easy to test with isinstance().
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from convoflow.binding.routing import DispatchTarget, RouteInfo


# ---------------------------------------------------------------------------
# Session storage
# ---------------------------------------------------------------------------

@runtime_checkable
class ISessionBackend(Protocol):
    """Key-value store backing session-scoped conversation registries."""

    def get(self, key: str) -> str | None: ...

    def setex(self, key: str, ttl: int, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def compare_and_set(self, key: str, expected: str | None, value: str, ttl: int) -> bool:
        """Write ``value`` only if the stored value still equals ``expected``.

        ``expected=None`` means the key must be absent.
        """
        ...

    def compare_and_delete(self, key: str, expected: str) -> bool:
        """Delete ``key`` only if the stored value still equals ``expected``."""
        ...

    def ping(self) -> bool: ...


# ---------------------------------------------------------------------------
# Randomness
# ---------------------------------------------------------------------------

@runtime_checkable
class IRandomSource(Protocol):
    """Cryptographically secure random byte source."""

    def next_bytes(self, n: int) -> bytes: ...


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------

@runtime_checkable
class IRouteResolver(Protocol):
    """Resolves a dispatch target into its flow id and action name."""

    def resolve(self, target: DispatchTarget) -> RouteInfo | None: ...


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

@runtime_checkable
class IStatefulHandler(Protocol):
    """Handler that exports and imports its own stateful fields."""

    def export_state(self) -> dict[str, Any]: ...

    def import_state(self, state: dict[str, Any]) -> None: ...
