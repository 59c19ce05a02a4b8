"""Dry-run handler for manifest-declared resources.

Nothing is created: ``ensure`` records what would be created in a
:class:`ResourcePlan`, in dispatch order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from platform_metadata.metadata.component import ComponentDescriptor
from platform_metadata.metadata.handler import HandlerRegistry
from platform_metadata.metadata.resource import ResourceDescriptor, collect_resources
from platform_metadata.resource.errors import ResourceDescriptorMismatchError

logger = structlog.get_logger()


@dataclass
class PlannedResource:
    resource_type: str
    resource_id: str
    config: dict[str, Any] = field(default_factory=dict)
    origin: str = ""


@dataclass
class ResourcePlan:
    stage: str
    resources: list[PlannedResource] = field(default_factory=list)

    @property
    def ids(self) -> list[str]:
        return [r.resource_id for r in self.resources]


def _config(resource: ResourceDescriptor) -> Mapping[str, Any]:
    return getattr(resource, "config", None) or {}


class ManifestResourceHandler:
    """Handles one declared resource type by recording ``ensure`` calls."""

    def __init__(self, resource_type: str, plan: ResourcePlan) -> None:
        self._resource_type = resource_type
        self._plan = plan

    @property
    def resource_type(self) -> str:
        return self._resource_type

    def validate(self, resource_group: Sequence[ResourceDescriptor]) -> None:
        """Require one type and no conflicting config values across the group.

        Keys missing from a descriptor are not conflicts: consumers often
        declare less detail than the owner.
        """
        types = sorted({r.resource_type for r in resource_group})
        if types != [self._resource_type]:
            raise ResourceDescriptorMismatchError(
                f"Resource descriptors disagree on resource type: {types}",
                resource_group,
            )

        agreed: dict[str, Any] = {}
        for resource in resource_group:
            for key, value in _config(resource).items():
                if key in agreed and agreed[key] != value:
                    raise ResourceDescriptorMismatchError(
                        f"Resource descriptors disagree on config '{key}': "
                        f"{agreed[key]!r} != {value!r}",
                        resource_group,
                    )
                agreed.setdefault(key, value)

    def ensure(self, resources: Sequence[ResourceDescriptor]) -> None:
        for resource in resources:
            self._plan.resources.append(
                PlannedResource(
                    resource_type=self._resource_type,
                    resource_id=resource.id,
                    config=dict(_config(resource)),
                    origin=getattr(resource, "origin", ""),
                )
            )
        logger.info(
            "plan.recorded",
            stage=self._plan.stage,
            resource_type=self._resource_type,
            count=len(resources),
        )


def build_registry(
    components: Iterable[ComponentDescriptor], plan: ResourcePlan
) -> HandlerRegistry:
    """Register a recording handler for every resource type the components use.

    Call after the components have been validated: nested resources are
    walked with :func:`collect_resources`.
    """
    registry = HandlerRegistry()
    for component in components:
        for resource in collect_resources(component):
            if resource.resource_type not in registry:
                registry.register(
                    resource.resource_type,
                    ManifestResourceHandler(resource.resource_type, plan),
                )
    return registry
