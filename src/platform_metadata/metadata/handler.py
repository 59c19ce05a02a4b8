"""Resource handler protocol and the type-tag keyed handler registry.

Extensions implement :class:`ResourceHandler` for each resource type they
manage.  Callers hand the initializer a :class:`HandlerRegistry` mapping each
``resource_type`` tag to its handler.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Protocol, runtime_checkable

from platform_metadata.metadata.resource import ResourceDescriptor
from platform_metadata.resource.errors import UnknownResourceTypeError


@runtime_checkable
class ResourceHandler(Protocol):
    """Validates and creates resources of one type."""

    def validate(self, resource_group: Sequence[ResourceDescriptor]) -> None:
        """Check a group of descriptors that should describe the same resource.

        Each descriptor is client-supplied and may be invalid on its own; where
        the group holds more than one, they must also agree on the details of
        the resource.  Raise on any failure.
        """
        ...

    def ensure(self, resources: Sequence[ResourceDescriptor]) -> None:
        """Create each described resource if it does not already exist.

        All *resources* are creatable.  Implementations should consider
        warning or failing when an existing resource does not match its
        descriptor.
        """
        ...


class HandlerRegistry:
    """Explicit ``resource_type`` -> handler mapping."""

    def __init__(self, handlers: Mapping[str, ResourceHandler] | None = None) -> None:
        self._handlers: dict[str, ResourceHandler] = {}
        for resource_type, handler in (handlers or {}).items():
            self.register(resource_type, handler)

    def register(self, resource_type: str, handler: ResourceHandler) -> None:
        if resource_type in self._handlers:
            msg = f"Handler already registered for resource type: {resource_type}"
            raise ValueError(msg)
        self._handlers[resource_type] = handler

    def get(self, resource_type: str) -> ResourceHandler:
        handler = self._handlers.get(resource_type)
        if handler is None:
            msg = (
                f"Unknown resource type: {resource_type}, "
                f"known types: {sorted(self._handlers)}"
            )
            raise UnknownResourceTypeError(msg)
        return handler

    def types(self) -> list[str]:
        return list(self._handlers)

    def __contains__(self, resource_type: object) -> bool:
        return resource_type in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)
