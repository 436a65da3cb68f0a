"""Per-handler-type metadata: state guards, stateful fields, init routines.

Metadata is declared once at startup through HandlerMetadataCatalog.register()
or the ``conversational`` class decorator, then looked up by the handler's
concrete type on every request.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Any, TypeVar, Union

from pydantic import BaseModel, field_validator

from convoflow.core.exceptions import HandlerRegistrationError, MetadataNotFoundError
from convoflow.core.protocols import IStatefulHandler

H = TypeVar("H", bound=type)


class StatefulField(BaseModel):
    """A handler value carried across steps under ``name``.

    ``attribute`` is the instance attribute actually read and written, when it
    differs from the stored name (e.g. ``_count`` stored as ``count``).
    """

    model_config = {"frozen": True}

    name: str
    attribute: str | None = None

    @property
    def target(self) -> str:
        return self.attribute or self.name

    def read(self, handler: object) -> Any:
        return getattr(handler, self.target, None)

    def write(self, handler: object, value: Any) -> None:
        setattr(handler, self.target, value)


class HandlerMetadata(BaseModel):
    """Immutable metadata for one handler type."""

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    handler_type: type
    guards: Mapping[str, frozenset[str]]
    stateful_fields: tuple[StatefulField, ...] = ()
    init_routines: tuple[str, ...] = ()

    @field_validator("guards", mode="after")
    @classmethod
    def _freeze_guards(cls, value: Mapping[str, frozenset[str]]) -> Mapping[str, frozenset[str]]:
        return MappingProxyType(dict(value))

    def acceptable_states(self, action: str) -> frozenset[str]:
        """States from which ``action`` may run. Undeclared actions get none."""
        return self.guards.get(action, frozenset())

    def field_names(self) -> list[str]:
        return [f.name for f in self.stateful_fields]

    def init_callables(self, handler: object) -> list[Callable[[], Any]]:
        routines = []
        for name in self.init_routines:
            routine = getattr(handler, name, None)
            if not callable(routine):
                raise MetadataNotFoundError(
                    f"Init routine {self.handler_type.__qualname__}.{name} is not callable"
                )
            routines.append(routine)
        return routines

    def export_state(self, handler: object) -> dict[str, Any]:
        """Read every stateful field off ``handler``."""
        if isinstance(handler, IStatefulHandler):
            exported = handler.export_state()
            return {f.name: exported[f.name] for f in self.stateful_fields if f.name in exported}
        return {f.name: f.read(handler) for f in self.stateful_fields}

    def import_state(self, handler: object, values: Mapping[str, Any]) -> None:
        """Write the declared fields present in ``values`` onto ``handler``."""
        state = {f.name: values[f.name] for f in self.stateful_fields if f.name in values}
        if isinstance(handler, IStatefulHandler):
            handler.import_state(state)
            return
        for field in self.stateful_fields:
            if field.name in state:
                field.write(handler, state[field.name])


class HandlerMetadataCatalog:
    """Handler type -> HandlerMetadata, filled at startup."""

    def __init__(self) -> None:
        self._metadata: dict[type, HandlerMetadata] = {}

    def register(
        self,
        handler_type: type,
        *,
        guards: Mapping[str, Iterable[str]],
        stateful: Iterable[Union[str, StatefulField]] = (),
        init: Iterable[str] = (),
    ) -> HandlerMetadata:
        if handler_type in self._metadata:
            raise HandlerRegistrationError(f"Handler {handler_type.__qualname__} is already registered")

        fields = tuple(
            f if isinstance(f, StatefulField) else StatefulField(name=f) for f in stateful
        )
        names = [f.name for f in fields]
        if len(set(names)) != len(names):
            raise HandlerRegistrationError(
                f"Handler {handler_type.__qualname__} declares a stateful field twice: {names}"
            )

        metadata = HandlerMetadata(
            handler_type=handler_type,
            guards={action: frozenset(states) for action, states in guards.items()},
            stateful_fields=fields,
            init_routines=tuple(init),
        )
        self._metadata[handler_type] = metadata
        return metadata

    def conversational(
        self,
        *,
        guards: Mapping[str, Iterable[str]],
        stateful: Iterable[Union[str, StatefulField]] = (),
        init: Iterable[str] = (),
    ) -> Callable[[H], H]:
        """Class decorator form of register()."""

        def decorator(handler_type: H) -> H:
            self.register(handler_type, guards=guards, stateful=stateful, init=init)
            return handler_type

        return decorator

    def find(self, handler_type: type) -> HandlerMetadata | None:
        return self._metadata.get(handler_type)

    def require(self, handler_type: type) -> HandlerMetadata:
        metadata = self.find(handler_type)
        if metadata is None:
            raise MetadataNotFoundError(
                f"Handler metadata for {handler_type.__qualname__} is not registered"
            )
        return metadata

    def __contains__(self, handler_type: object) -> bool:
        return handler_type in self._metadata
