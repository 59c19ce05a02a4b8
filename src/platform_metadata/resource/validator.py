"""Structural validation of component descriptors.

Descriptors are written by client code and may be wrong in ways the type
system does not catch.  :class:`ComponentValidator` checks one component at a
time, independent of any other component, and raises
:class:`InvalidDescriptorError` on the first rule that fails.
"""

from __future__ import annotations

import unicodedata
from collections.abc import Iterable

import structlog

from platform_metadata.metadata.component import (
    AggregateDescriptor,
    ComponentDescriptor,
    ServiceDescriptor,
)
from platform_metadata.metadata.resource import (
    INITIALIZATION_MARKERS,
    ResourceDescriptor,
    ResourceInitialization,
    collect_resources,
    is_owned,
)
from platform_metadata.resource.errors import InvalidDescriptorError

logger = structlog.get_logger()


def _has_control_chars(value: str) -> bool:
    return any(unicodedata.category(ch) == "Cc" for ch in value)


def _blank(value: object) -> bool:
    return value is None or not isinstance(value, str) or not value.strip()


class ComponentValidator:
    """Validates component descriptors."""

    def validate(self, *components: ComponentDescriptor) -> None:
        for component in components:
            self._validate_component(component)

    def validate_all(self, components: Iterable[ComponentDescriptor]) -> None:
        self.validate(*components)

    def _validate_component(self, component: ComponentDescriptor) -> None:
        self._validate_name(component)
        self._validate_kind(component)
        self._validate_resources_method(component)
        self._validate_resources(component)

        if isinstance(component, AggregateDescriptor):
            self._validate_aggregate(component)
        elif isinstance(component, ServiceDescriptor):
            self._validate_service(component)

        logger.debug("component.validated", component=component.name)

    # -- Component-level rules -------------------------------------------------

    def _validate_name(self, component: ComponentDescriptor) -> None:
        name = component.name
        if _blank(name):
            raise InvalidDescriptorError(
                "name can not be null or blank", component, use_component_name=False
            )
        if _has_control_chars(name):
            raise InvalidDescriptorError(
                "name can not contain control characters", component
            )

    def _validate_kind(self, component: ComponentDescriptor) -> None:
        is_aggregate = isinstance(component, AggregateDescriptor)
        is_service = isinstance(component, ServiceDescriptor)
        if is_aggregate and is_service:
            raise InvalidDescriptorError(
                "descriptor is both aggregate and service descriptor", component
            )
        if not is_aggregate and not is_service:
            raise InvalidDescriptorError(
                "descriptor is neither aggregate nor service descriptor", component
            )

    def _validate_resources_method(self, component: ComponentDescriptor) -> None:
        if type(component).resources is not ComponentDescriptor.resources:
            raise InvalidDescriptorError(
                "should not override resources() method", component
            )

    def _validate_aggregate(self, component: AggregateDescriptor) -> None:
        if component.internals:
            internals = [r.id for r in component.internals]
            raise InvalidDescriptorError(
                "Aggregate should not expose internal resources. "
                f"internals: {internals}",
                component,
            )

        not_owned = [r.id for r in collect_resources(component) if not is_owned(r)]
        if not_owned:
            raise InvalidDescriptorError(
                f"Aggregate should only expose owned resources. not_owned: {not_owned}",
                component,
            )

    def _validate_service(self, component: ServiceDescriptor) -> None:
        if _blank(component.docker_image):
            raise InvalidDescriptorError(
                "docker_image can not be null or blank", component
            )
        if component.test_environment is None:
            raise InvalidDescriptorError(
                "test_environment can not be null", component
            )

    # -- Resource rules --------------------------------------------------------

    def _validate_resources(self, component: ComponentDescriptor) -> None:
        """Walk every declared and nested resource before anything expands them."""
        for attr in ("inputs", "internals", "outputs"):
            if getattr(component, attr) is None:
                raise InvalidDescriptorError(f"{attr} can not be null", component)

        visited: set[int] = {id(component)}
        pending: list[object] = list(reversed(component.resources()))
        while pending:
            resource = pending.pop()
            if resource is None:
                raise InvalidDescriptorError("contains null resource", component)
            if id(resource) in visited:
                continue
            visited.add(id(resource))
            if not isinstance(resource, ResourceDescriptor):
                raise InvalidDescriptorError(
                    "contains resource that is not a ResourceDescriptor: "
                    f"{type(resource).__name__}",
                    component,
                )

            self._validate_resource(resource, component)

            children = resource.resources()
            if children is None:
                raise InvalidDescriptorError(
                    "resources() can not return null",
                    component,
                    resource=resource,
                )
            pending.extend(reversed(list(children)))

    def _validate_resource(
        self, resource: ResourceDescriptor, component: ComponentDescriptor
    ) -> None:
        if resource.id is None:
            raise InvalidDescriptorError(
                f"null resource id, resource_type: {type(resource).__name__}",
                component,
            )

        markers = sorted(
            {m.__name__ for m in INITIALIZATION_MARKERS if isinstance(resource, m)}
        )
        if len(markers) > 1:
            raise InvalidDescriptorError(
                "resource can implement at-most one resource initialization "
                f"marker interface, but was: {markers}",
                component,
                resource=resource,
            )

        initialization = resource.initialization
        if not isinstance(initialization, ResourceInitialization):
            raise InvalidDescriptorError(
                f"unknown resource initialization: {initialization!r}",
                component,
                resource=resource,
            )

        if markers:
            (marker,) = [m for m in INITIALIZATION_MARKERS if isinstance(resource, m)]
            if marker.initialization is not initialization:
                raise InvalidDescriptorError(
                    f"resource initialization marker {marker.__name__} conflicts "
                    f"with initialization: {initialization}",
                    component,
                    resource=resource,
                )

        if resource.creatable and initialization not in (
            ResourceInitialization.OWNED,
            ResourceInitialization.SHARED,
        ):
            raise InvalidDescriptorError(
                f"creatable resource must be owned or shared, but was: {initialization}",
                component,
                resource=resource,
            )
        if initialization is ResourceInitialization.OWNED and not resource.creatable:
            raise InvalidDescriptorError(
                "owned resource must be creatable", component, resource=resource
            )
