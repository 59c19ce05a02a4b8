"""Component descriptors: services and aggregates."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import final

from platform_metadata.metadata.resource import ResourceDescriptor

_UPPER = re.compile(r"([A-Z])")


class ComponentDescriptor(ABC):
    """A deployable unit, or a logical grouping of them, and its resources."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the component, unique within the platform."""
        ...

    @property
    def inputs(self) -> Sequence[ResourceDescriptor]:
        """Resources the component consumes, e.g. the topics it reads."""
        return ()

    @property
    def internals(self) -> Sequence[ResourceDescriptor]:
        """Resources internal to the component, e.g. changelog topics."""
        return ()

    @property
    def outputs(self) -> Sequence[ResourceDescriptor]:
        """Resources the component produces, e.g. the topics it writes."""
        return ()

    @final
    def resources(self) -> list[ResourceDescriptor]:
        """Inputs, internals and outputs, in that order.  Do not override."""
        return component_resources(self)


class ServiceDescriptor(ComponentDescriptor):
    """Describes a single service."""

    @property
    def name(self) -> str:
        return default_naming(self, "Descriptor")

    @property
    @abstractmethod
    def docker_image(self) -> str:
        """Docker image of the service without version, e.g. ``acme/orders``."""
        ...

    @property
    def test_environment(self) -> Mapping[str, str]:
        """Environment variables to set on the service during system testing."""
        return {}


class AggregateDescriptor(ComponentDescriptor):
    """Describes the public api of a group of services.

    Aggregates may not expose internals, and every resource they expose must
    be owned.
    """

    @property
    def name(self) -> str:
        return default_naming(self, "AggregateDescriptor", "Descriptor")


def component_resources(component: ComponentDescriptor) -> list[ResourceDescriptor]:
    """Return the declared resources of *component*: inputs, internals, outputs."""
    return [*component.inputs, *component.internals, *component.outputs]


def default_naming(descriptor: object, *postfixes: str) -> str:
    """Derive a kebab-case name from the descriptor's class name.

    The first postfix the class name ends with is removed, e.g. with postfix
    ``Descriptor``, ``TestServiceDescriptor`` becomes ``test-service``.
    """
    class_name = type(descriptor).__name__
    found = next((p for p in postfixes if class_name.endswith(p)), None)
    if found is None:
        msg = "Non-standard class name: either override name or use standard naming"
        raise ValueError(msg)

    name = _UPPER.sub(r"-\1", class_name[: len(class_name) - len(found)]).lower()
    return name.removeprefix("-")
