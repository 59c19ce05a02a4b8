"""Three-stage resource initialization.

Given the component descriptors of a platform, :class:`ResourceInitializer`
works out which resources must be created at each stage and hands them to the
handler registered for their type:

- ``init``: shared resources, before any service is deployed.
- ``service``: resources owned by the services being started.
- ``test``: resources the components under test consume but do not own,
  created from the owning descriptors found on the other components.

Every call recomputes everything from its arguments; nothing is cached.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence

import structlog

from platform_metadata.metadata.component import ComponentDescriptor
from platform_metadata.metadata.handler import HandlerRegistry, ResourceHandler
from platform_metadata.metadata.resource import (
    ResourceDescriptor,
    collect_resources,
    is_creatable,
    is_owned,
    is_shared,
    is_unmanaged,
    is_unowned,
)
from platform_metadata.resource.errors import (
    ResourceInitializationMismatchError,
    UncreatableResourceError,
)
from platform_metadata.resource.validator import ComponentValidator

logger = structlog.get_logger()

ResourceGroup = list[ResourceDescriptor]
GroupPredicate = Callable[[ResourceGroup], bool]


class ResourceInitializer:
    """Initializes the resources described by a set of components."""

    def __init__(
        self,
        handlers: HandlerRegistry | Mapping[str, ResourceHandler],
        validator: ComponentValidator | None = None,
    ) -> None:
        if not isinstance(handlers, HandlerRegistry):
            handlers = HandlerRegistry(handlers)
        self._handlers = handlers
        self._validator = validator or ComponentValidator()

    def init(self, components: Iterable[ComponentDescriptor]) -> None:
        """Create shared resources.

        Only groups that will be created at this stage are validated.
        """
        components = list(components)
        logger.debug(
            "resources.initializing",
            stage="init",
            components=_names(components),
        )
        groups = self._group_by_id(
            components,
            lambda group: any(is_shared(r) for r in group),
            validate_all=False,
        )
        self._ensure_resources(groups, validate=True)

    def service(self, components: Iterable[ComponentDescriptor]) -> None:
        """Create owned resources.  Every resource group is validated."""
        components = list(components)
        logger.debug(
            "resources.initializing",
            stage="service",
            components=_names(components),
        )
        groups = self._group_by_id(
            components,
            lambda group: any(is_owned(r) for r in group),
            validate_all=True,
        )
        self._ensure_resources(groups, validate=False)

    def test(
        self,
        components_under_test: Iterable[ComponentDescriptor],
        other_components: Iterable[ComponentDescriptor],
    ) -> None:
        """Create the unowned resources the components under test depend on.

        All resource groups of the components under test are validated.  The
        other components, e.g. upstream and downstream services, supply the
        creatable descriptors needed to create those edge resources.
        """
        components_under_test = list(components_under_test)
        other_components = list(other_components)
        logger.debug(
            "resources.initializing",
            stage="test",
            components_under_test=_names(components_under_test),
            other_components=_names(other_components),
        )

        unowned: dict[str, ResourceGroup] = {
            group[0].id: group
            for group in self._group_by_id(
                components_under_test,
                lambda group: any(is_unowned(r) for r in group)
                and not any(is_owned(r) for r in group),
                validate_all=True,
            )
        }

        for group in self._group_by_id(
            other_components,
            lambda group: group[0].id in unowned,
            validate_all=False,
        ):
            unowned[group[0].id] = [*unowned[group[0].id], *group]

        # merged groups include the owning descriptors and are validated again
        self._ensure_resources(list(unowned.values()), validate=True)

    def _group_by_id(
        self,
        components: Sequence[ComponentDescriptor],
        in_stage: GroupPredicate,
        *,
        validate_all: bool,
    ) -> list[ResourceGroup]:
        self._validator.validate(*components)

        grouped: dict[str, ResourceGroup] = {}
        for component in components:
            for resource in collect_resources(component):
                grouped.setdefault(resource.id, []).append(resource)

        selected: list[ResourceGroup] = []
        for group in grouped.values():
            if validate_all:
                self._validate_group(group)
            if in_stage(group):
                selected.append(group)
        return selected

    def _ensure_resources(
        self, groups: list[ResourceGroup], *, validate: bool
    ) -> None:
        by_type: dict[str, list[ResourceDescriptor]] = {}
        for group in groups:
            if validate:
                self._validate_group(group)
            creatable = _creatable_descriptor(group)
            by_type.setdefault(creatable.resource_type, []).append(creatable)

        for resource_type, resources in by_type.items():
            logger.info(
                "resources.ensuring",
                resource_type=resource_type,
                ids=[r.id for r in resources],
            )
            self._handlers.get(resource_type).ensure(resources)

    def _validate_group(self, group: ResourceGroup) -> None:
        """Check the group agrees on initialization, then defer to its handler."""
        first = group[0]
        if is_shared(first):
            if not all(is_shared(r) for r in group):
                raise ResourceInitializationMismatchError("shared", group)
        elif is_unmanaged(first):
            if not all(is_unmanaged(r) for r in group):
                raise ResourceInitializationMismatchError("unmanaged", group)
        elif not all(is_owned(r) or is_unowned(r) for r in group):
            raise ResourceInitializationMismatchError("owned or unowned", group)

        self._handlers.get(first.resource_type).validate(group)
        logger.debug(
            "resources.group_validated",
            resource_id=first.id,
            descriptors=len(group),
        )


def _creatable_descriptor(group: ResourceGroup) -> ResourceDescriptor:
    for resource in group:
        if is_creatable(resource):
            return resource
    raise UncreatableResourceError(group)


def _names(components: Sequence[ComponentDescriptor]) -> list[str]:
    return [c.name for c in components]
