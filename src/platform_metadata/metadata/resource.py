"""Resource descriptor model and the nested-resource collector."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import StrEnum
from typing import Protocol, runtime_checkable


class ResourceInitialization(StrEnum):
    """How a resource is initialized, as seen by the declaring component."""

    OWNED = "owned"
    UNOWNED = "unowned"
    SHARED = "shared"
    UNMANAGED = "unmanaged"


@runtime_checkable
class ResourceCollection(Protocol):
    """Anything exposing a list of resource descriptors."""

    def resources(self) -> Sequence[ResourceDescriptor]:
        """Return the resources in the collection.

        Callers should normally use :func:`collect_resources` rather than
        calling this directly, as it also walks nested resources.
        """
        ...


class ResourceDescriptor(ABC):
    """Describes one external or logical resource, e.g. a topic or a table.

    Descriptors with equal ``id`` describe the same underlying resource, even
    when they are instances of different classes supplied by different
    codebases.  ``resource_type`` selects the handler that validates and
    creates the resource; concrete classes usually set it as a class attribute.
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """Unique identifier, e.g. ``kafka-topic://default/orders``."""
        ...

    @property
    @abstractmethod
    def resource_type(self) -> str:
        """Type tag used to look up the resource's handler."""
        ...

    @property
    def initialization(self) -> ResourceInitialization:
        return ResourceInitialization.UNMANAGED

    @property
    def creatable(self) -> bool:
        """Whether this descriptor carries enough detail to create the resource."""
        return self.initialization is ResourceInitialization.OWNED

    def resources(self) -> Sequence[ResourceDescriptor]:
        """Resources this resource depends on."""
        return ()


class OwnedResource(ResourceDescriptor):
    """Marker: the declaring component creates and manages the resource."""

    initialization = ResourceInitialization.OWNED  # type: ignore[assignment]


class UnownedResource(ResourceDescriptor):
    """Marker: the resource is owned by another component."""

    initialization = ResourceInitialization.UNOWNED  # type: ignore[assignment]


class SharedResource(ResourceDescriptor):
    """Marker: the resource is owned by no single component.

    Shared resources are initialized once, ahead of any service.  Set
    ``creatable = True`` on descriptors that know how to create it.
    """

    initialization = ResourceInitialization.SHARED  # type: ignore[assignment]


INITIALIZATION_MARKERS: tuple[type[ResourceDescriptor], ...] = (
    OwnedResource,
    UnownedResource,
    SharedResource,
)


def is_owned(resource: ResourceDescriptor) -> bool:
    return resource.initialization is ResourceInitialization.OWNED


def is_unowned(resource: ResourceDescriptor) -> bool:
    return resource.initialization is ResourceInitialization.UNOWNED


def is_shared(resource: ResourceDescriptor) -> bool:
    return resource.initialization is ResourceInitialization.SHARED


def is_unmanaged(resource: ResourceDescriptor) -> bool:
    return resource.initialization is ResourceInitialization.UNMANAGED


def is_creatable(resource: ResourceDescriptor) -> bool:
    return bool(resource.creatable)


def collect_resources(collection: ResourceCollection) -> list[ResourceDescriptor]:
    """Return every resource reachable from *collection*, children first.

    Each descriptor object appears once.  Objects are tracked by identity, not
    by ``id``: two distinct descriptors of the same resource are both
    returned.  Cycles, including references back to *collection* itself, are
    cut at the first revisit.
    """
    visited: set[int] = {id(collection)}
    collected: list[ResourceDescriptor] = []
    for child in collection.resources():
        _collect(child, visited, collected)
    return collected


def _collect(
    resource: ResourceDescriptor,
    visited: set[int],
    collected: list[ResourceDescriptor],
) -> None:
    if id(resource) in visited:
        return
    visited.add(id(resource))
    for child in resource.resources():
        _collect(child, visited, collected)
    collected.append(resource)
