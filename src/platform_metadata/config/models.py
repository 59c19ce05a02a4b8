"""Pydantic models for YAML component manifests.

A manifest declares components and their resources without writing any
descriptor classes.  These models only check shape and types; the semantic
rules (naming, initialization markers, aggregate constraints, ...) are left to
:class:`~platform_metadata.resource.validator.ComponentValidator` so that
declared and hand-written descriptors are held to exactly the same rules.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from platform_metadata.metadata.resource import ResourceInitialization


class ComponentKind(StrEnum):
    """Supported component kinds."""

    SERVICE = "service"
    AGGREGATE = "aggregate"


class ResourceConfig(BaseModel):
    """One resource descriptor.

    ``creatable`` defaults to true for owned resources and false otherwise;
    set it on shared resources whose declaration carries enough detail to
    create them.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    type: str = Field(min_length=1)
    initialization: ResourceInitialization = ResourceInitialization.UNMANAGED
    creatable: bool | None = None
    config: dict[str, Any] = Field(default_factory=dict)
    # ids of catalog resources this resource depends on
    depends_on: list[str] = Field(default_factory=list)

    @property
    def is_creatable(self) -> bool:
        if self.creatable is None:
            return self.initialization is ResourceInitialization.OWNED
        return self.creatable


class ComponentConfig(BaseModel):
    """A service or aggregate and the resources it declares."""

    model_config = ConfigDict(extra="forbid")

    name: str
    kind: ComponentKind = ComponentKind.SERVICE
    docker_image: str | None = None
    test_environment: dict[str, str] = Field(default_factory=dict)
    inputs: list[ResourceConfig] = Field(default_factory=list)
    internals: list[ResourceConfig] = Field(default_factory=list)
    outputs: list[ResourceConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_kind_fields(self) -> Self:
        """Reject service-only fields on aggregates."""
        if self.kind == ComponentKind.AGGREGATE and (
            self.docker_image is not None or self.test_environment
        ):
            msg = (
                f"Aggregate '{self.name}' can not set docker_image "
                "or test_environment"
            )
            raise ValueError(msg)
        return self


class ManifestConfig(BaseModel):
    """Top-level manifest: components plus a catalog of shared resource entries.

    Catalog entries are referenced from ``depends_on`` by id.  Every reference
    to the same catalog id resolves to the same descriptor object.
    """

    model_config = ConfigDict(extra="forbid")

    components: list[ComponentConfig] = Field(default_factory=list)
    resources: list[ResourceConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_catalog_ids(self) -> Self:
        seen: set[str] = set()
        for resource in self.resources:
            if resource.id in seen:
                msg = f"Duplicate catalog resource id: {resource.id}"
                raise ValueError(msg)
            seen.add(resource.id)
        return self

    def component(self, name: str) -> ComponentConfig:
        for component in self.components:
            if component.name == name:
                return component
        msg = f"Unknown component: {name}"
        raise KeyError(msg)
