"""Errors raised while validating descriptors and initializing resources."""

from __future__ import annotations

import inspect
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from platform_metadata.metadata.component import ComponentDescriptor
    from platform_metadata.metadata.resource import ResourceDescriptor


def code_location(obj: object) -> str:
    """Best-effort ``path:line`` of the class that defines *obj*."""
    cls = type(obj)
    try:
        path = inspect.getsourcefile(cls) or inspect.getfile(cls)
        _, line = inspect.getsourcelines(cls)
    except (OSError, TypeError):
        return "unknown"
    return f"{path}:{line}"


def format_resources(descriptors: Sequence[ResourceDescriptor]) -> str:
    return "[" + ", ".join(format_resource(d) for d in descriptors) + "]"


def format_resource(descriptor: ResourceDescriptor) -> str:
    return f"({code_location(descriptor)}) {descriptor!r}"


class InvalidDescriptorError(ValueError):
    """A component descriptor, or one of its resources, is structurally invalid."""

    def __init__(
        self,
        msg: str,
        component: ComponentDescriptor,
        *,
        resource: ResourceDescriptor | None = None,
        use_component_name: bool = True,
    ) -> None:
        if resource is not None:
            msg = f"{msg}, resource: {resource.id}"
        label = component.name if use_component_name else repr(component)
        super().__init__(f"{msg}, component: {label} ({code_location(component)})")


class ResourceDescriptorMismatchError(ValueError):
    """Descriptors of the same resource disagree."""

    def __init__(self, msg: str, descriptors: Sequence[ResourceDescriptor]) -> None:
        super().__init__(
            f"{msg}. resource: {descriptors[0].id}, "
            f"descriptors: {format_resources(descriptors)}"
        )


class ResourceInitializationMismatchError(ResourceDescriptorMismatchError):
    """Descriptors of the same resource disagree on how it is initialized."""

    def __init__(self, kind: str, descriptors: Sequence[ResourceDescriptor]) -> None:
        super().__init__(
            "Resource descriptors for resource are tagged with incompatible "
            "resource initialization markers. "
            f"First descriptor is marked as a {kind} resource, "
            f"but at least one subsequent descriptor was not {kind}",
            descriptors,
        )


class UncreatableResourceError(ValueError):
    """No descriptor of a resource that must be created is creatable."""

    def __init__(self, descriptors: Sequence[ResourceDescriptor]) -> None:
        super().__init__(
            "No component provided a creatable descriptor for resource id: "
            f"{descriptors[0].id}, descriptors: {format_resources(descriptors)}"
        )


class UnknownResourceTypeError(ValueError):
    """No handler is registered for a resource type."""
