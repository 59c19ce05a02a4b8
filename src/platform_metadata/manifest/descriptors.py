"""Descriptor classes built from a YAML manifest."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from platform_metadata.config.models import (
    ComponentConfig,
    ComponentKind,
    ManifestConfig,
    ResourceConfig,
)
from platform_metadata.metadata.component import (
    AggregateDescriptor,
    ComponentDescriptor,
    ServiceDescriptor,
)
from platform_metadata.metadata.resource import (
    ResourceDescriptor,
    ResourceInitialization,
)


class DeclaredResource(ResourceDescriptor):
    """A resource declared in a manifest."""

    def __init__(
        self,
        resource_id: str,
        resource_type: str,
        initialization: ResourceInitialization = ResourceInitialization.UNMANAGED,
        *,
        creatable: bool | None = None,
        config: Mapping[str, Any] | None = None,
        origin: str = "",
    ) -> None:
        self._id = resource_id
        self._resource_type = resource_type
        self._initialization = initialization
        self._creatable = (
            initialization is ResourceInitialization.OWNED
            if creatable is None
            else creatable
        )
        self._config = dict(config or {})
        self._origin = origin
        self._dependencies: list[ResourceDescriptor] = []

    @property
    def id(self) -> str:
        return self._id

    @property
    def resource_type(self) -> str:
        return self._resource_type

    @property
    def initialization(self) -> ResourceInitialization:
        return self._initialization

    @property
    def creatable(self) -> bool:
        return self._creatable

    @property
    def config(self) -> Mapping[str, Any]:
        return self._config

    @property
    def origin(self) -> str:
        """Where the resource was declared, e.g. ``catalog`` or ``orders.inputs``."""
        return self._origin

    def add_dependency(self, dependency: ResourceDescriptor) -> None:
        self._dependencies.append(dependency)

    def resources(self) -> Sequence[ResourceDescriptor]:
        return tuple(self._dependencies)

    def __repr__(self) -> str:
        return (
            f"DeclaredResource(id={self._id!r}, type={self._resource_type!r}, "
            f"initialization={self._initialization.value}, origin={self._origin!r})"
        )


class DeclaredService(ServiceDescriptor):
    """A service declared in a manifest."""

    def __init__(
        self,
        name: str,
        docker_image: str | None,
        test_environment: Mapping[str, str] | None = None,
        *,
        inputs: Sequence[ResourceDescriptor] = (),
        internals: Sequence[ResourceDescriptor] = (),
        outputs: Sequence[ResourceDescriptor] = (),
    ) -> None:
        self._name = name
        self._docker_image = docker_image
        self._test_environment = dict(test_environment or {})
        self._inputs = tuple(inputs)
        self._internals = tuple(internals)
        self._outputs = tuple(outputs)

    @property
    def name(self) -> str:
        return self._name

    @property
    def docker_image(self) -> str:
        return self._docker_image  # type: ignore[return-value]

    @property
    def test_environment(self) -> Mapping[str, str]:
        return self._test_environment

    @property
    def inputs(self) -> Sequence[ResourceDescriptor]:
        return self._inputs

    @property
    def internals(self) -> Sequence[ResourceDescriptor]:
        return self._internals

    @property
    def outputs(self) -> Sequence[ResourceDescriptor]:
        return self._outputs

    def __repr__(self) -> str:
        return f"DeclaredService(name={self._name!r})"


class DeclaredAggregate(AggregateDescriptor):
    """An aggregate declared in a manifest."""

    def __init__(
        self,
        name: str,
        *,
        inputs: Sequence[ResourceDescriptor] = (),
        internals: Sequence[ResourceDescriptor] = (),
        outputs: Sequence[ResourceDescriptor] = (),
    ) -> None:
        self._name = name
        self._inputs = tuple(inputs)
        self._internals = tuple(internals)
        self._outputs = tuple(outputs)

    @property
    def name(self) -> str:
        return self._name

    @property
    def inputs(self) -> Sequence[ResourceDescriptor]:
        return self._inputs

    @property
    def internals(self) -> Sequence[ResourceDescriptor]:
        return self._internals

    @property
    def outputs(self) -> Sequence[ResourceDescriptor]:
        return self._outputs

    def __repr__(self) -> str:
        return f"DeclaredAggregate(name={self._name!r})"


def _declare(config: ResourceConfig, origin: str) -> DeclaredResource:
    return DeclaredResource(
        config.id,
        config.type,
        config.initialization,
        creatable=config.is_creatable,
        config=config.config,
        origin=origin,
    )


class _Builder:
    """Turns manifest entries into linked descriptor objects."""

    def __init__(self, manifest: ManifestConfig) -> None:
        self._manifest = manifest
        self._catalog: dict[str, DeclaredResource] = {
            r.id: _declare(r, "catalog") for r in manifest.resources
        }
        for entry in manifest.resources:
            self._link(self._catalog[entry.id], entry)

    def _link(self, resource: DeclaredResource, entry: ResourceConfig) -> None:
        for dep_id in entry.depends_on:
            dependency = self._catalog.get(dep_id)
            if dependency is None:
                msg = (
                    f"Resource '{entry.id}' ({resource.origin}) depends on "
                    f"unknown catalog resource '{dep_id}'"
                )
                raise ValueError(msg)
            resource.add_dependency(dependency)

    def _resources(
        self, component: ComponentConfig, section: str
    ) -> list[DeclaredResource]:
        declared = []
        for entry in getattr(component, section):
            resource = _declare(entry, f"{component.name}.{section}")
            self._link(resource, entry)
            declared.append(resource)
        return declared

    def build(self) -> list[ComponentDescriptor]:
        components: list[ComponentDescriptor] = []
        for entry in self._manifest.components:
            inputs = self._resources(entry, "inputs")
            internals = self._resources(entry, "internals")
            outputs = self._resources(entry, "outputs")
            if entry.kind == ComponentKind.AGGREGATE:
                components.append(
                    DeclaredAggregate(
                        entry.name, inputs=inputs, internals=internals, outputs=outputs
                    )
                )
            else:
                components.append(
                    DeclaredService(
                        entry.name,
                        entry.docker_image,
                        entry.test_environment,
                        inputs=inputs,
                        internals=internals,
                        outputs=outputs,
                    )
                )
        return components


def build_components(manifest: ManifestConfig) -> list[ComponentDescriptor]:
    """Build descriptor objects for every component in *manifest*.

    Raises:
        ValueError: if a ``depends_on`` entry names an id missing from the
            manifest's resource catalog.
    """
    return _Builder(manifest).build()
