"""Unit tests for ComponentValidator."""

from __future__ import annotations

import re
from collections.abc import Sequence

import pytest

from platform_metadata.metadata.component import (
    AggregateDescriptor,
    ComponentDescriptor,
    ServiceDescriptor,
)
from platform_metadata.metadata.resource import (
    OwnedResource,
    ResourceDescriptor,
    ResourceInitialization,
    SharedResource,
)
from platform_metadata.resource.errors import InvalidDescriptorError
from platform_metadata.resource.validator import ComponentValidator
from tests.fakes import (
    FakeAggregate,
    FakeResource,
    FakeService,
    owned,
    shared,
    unmanaged,
    unowned,
)

CODE_LOCATION = re.compile(r"\(.*fakes\.py:\d+\)", re.DOTALL)


@pytest.fixture
def validator() -> ComponentValidator:
    return ComponentValidator()


def _service(**kwargs) -> FakeService:
    kwargs.setdefault("inputs", [unowned("in0", "a://in0"), owned("in1", "a://in1")])
    kwargs.setdefault(
        "internals", [owned("int0", "a://int0"), unmanaged("int1", "a://int1")]
    )
    kwargs.setdefault("outputs", [shared("out0", "a://out0")])
    return FakeService(**kwargs)


def _aggregate(**kwargs) -> FakeAggregate:
    kwargs.setdefault("inputs", [owned("in0", "a://in0")])
    kwargs.setdefault("outputs", [owned("out0", "a://out0")])
    return FakeAggregate(**kwargs)


class _BadResourceDescriptor(SharedResource, OwnedResource):
    resource_type = "bad"

    @property
    def id(self) -> str:
        return "bad:resource"


class _ConflictedResource(OwnedResource):
    resource_type = "a"
    initialization = ResourceInitialization.SHARED  # type: ignore[assignment]

    @property
    def id(self) -> str:
        return "a://conflicted"


class _NoneChildren(FakeResource):
    def resources(self) -> Sequence[ResourceDescriptor]:
        return None  # type: ignore[return-value]


class _OverridingServiceDescriptor(ServiceDescriptor):
    name = "bad"
    docker_image = "image"

    def resources(self):  # type: ignore[misc,override]
        return []


class _PolyDescriptor(ServiceDescriptor, AggregateDescriptor):
    name = "bad"
    docker_image = "image"


class _NeitherDescriptor(ComponentDescriptor):
    name = "bad"


class TestComponentName:
    def test_null_name(self, validator: ComponentValidator):
        with pytest.raises(InvalidDescriptorError) as exc_info:
            validator.validate(_service(name=None))

        msg = str(exc_info.value)
        assert "name can not be null or blank, component: jane" in msg
        assert CODE_LOCATION.search(msg)

    def test_blank_name(self, validator: ComponentValidator):
        with pytest.raises(
            InvalidDescriptorError, match="name can not be null or blank, component: jane"
        ):
            validator.validate(_service(name=" \t"))

    def test_control_characters_in_name(self, validator: ComponentValidator):
        with pytest.raises(InvalidDescriptorError) as exc_info:
            validator.validate(_service(name="bob\nbob"))

        msg = str(exc_info.value)
        assert "name can not contain control characters, component: bob\nbob" in msg
        assert CODE_LOCATION.search(msg)

    def test_non_ascii_name_is_fine(self, validator: ComponentValidator):
        validator.validate(_service(name="bücher-service"))


class TestComponentKind:
    def test_both_service_and_aggregate(self, validator: ComponentValidator):
        with pytest.raises(
            InvalidDescriptorError,
            match="descriptor is both aggregate and service descriptor, component: bad",
        ):
            validator.validate(_PolyDescriptor())

    def test_neither_service_nor_aggregate(self, validator: ComponentValidator):
        with pytest.raises(
            InvalidDescriptorError,
            match="descriptor is neither aggregate nor service descriptor, component: bad",
        ):
            validator.validate(_NeitherDescriptor())

    def test_overridden_resources_method(self, validator: ComponentValidator):
        with pytest.raises(
            InvalidDescriptorError,
            match=re.escape("should not override resources() method, component: bad"),
        ):
            validator.validate(_OverridingServiceDescriptor())


class TestResources:
    def test_null_resource(self, validator: ComponentValidator):
        with pytest.raises(InvalidDescriptorError) as exc_info:
            validator.validate(_service(inputs=[None]))

        msg = str(exc_info.value)
        assert "contains null resource, component: bob" in msg
        assert CODE_LOCATION.search(msg)

    def test_null_nested_resource(self, validator: ComponentValidator):
        parent = owned("parent", "a://parent", children=[None])

        with pytest.raises(InvalidDescriptorError, match="contains null resource"):
            validator.validate(_service(outputs=[parent]))

    def test_null_resource_id(self, validator: ComponentValidator):
        with pytest.raises(InvalidDescriptorError) as exc_info:
            validator.validate(_service(inputs=[FakeResource("r", None)]))

        msg = str(exc_info.value)
        assert "null resource id, resource_type: FakeResource" in msg
        assert "component: bob" in msg

    def test_null_resources_list(self, validator: ComponentValidator):
        with pytest.raises(InvalidDescriptorError, match="inputs can not be null"):
            validator.validate(_service(inputs=None))

    def test_nested_resources_returning_null(self, validator: ComponentValidator):
        resource = _NoneChildren("r", "a://none")

        with pytest.raises(
            InvalidDescriptorError,
            match=re.escape("resources() can not return null, resource: a://none"),
        ):
            validator.validate(_service(inputs=[resource]))

    def test_not_a_resource_descriptor(self, validator: ComponentValidator):
        with pytest.raises(
            InvalidDescriptorError,
            match="contains resource that is not a ResourceDescriptor: str",
        ):
            validator.validate(_service(inputs=["a://1"]))

    def test_multiple_initialization_markers(self, validator: ComponentValidator):
        with pytest.raises(InvalidDescriptorError) as exc_info:
            validator.validate(_service(inputs=[_BadResourceDescriptor()]))

        msg = str(exc_info.value)
        assert (
            "resource can implement at-most one resource initialization marker "
            "interface, "
            "but was: ['OwnedResource', 'SharedResource'], "
            "resource: bad:resource"
        ) in msg
        assert "component: bob" in msg

    def test_marker_conflicting_with_initialization(
        self, validator: ComponentValidator
    ):
        with pytest.raises(
            InvalidDescriptorError,
            match="marker OwnedResource conflicts with initialization: shared",
        ):
            validator.validate(_service(inputs=[_ConflictedResource()]))

    def test_unknown_initialization_value(self, validator: ComponentValidator):
        resource = FakeResource("r", "a://r", "owned")

        with pytest.raises(
            InvalidDescriptorError, match="unknown resource initialization: 'owned'"
        ):
            validator.validate(_service(inputs=[resource]))

    def test_creatable_unowned_resource(self, validator: ComponentValidator):
        with pytest.raises(
            InvalidDescriptorError,
            match="creatable resource must be owned or shared, but was: unowned",
        ):
            validator.validate(_service(inputs=[unowned("r", creatable=True)]))

    def test_creatable_unmanaged_resource(self, validator: ComponentValidator):
        with pytest.raises(InvalidDescriptorError, match="but was: unmanaged"):
            validator.validate(_service(inputs=[unmanaged("r", creatable=True)]))

    def test_owned_resource_not_creatable(self, validator: ComponentValidator):
        with pytest.raises(
            InvalidDescriptorError, match="owned resource must be creatable"
        ):
            validator.validate(_service(inputs=[owned("r", creatable=False)]))

    def test_non_creatable_shared_resource_is_fine(
        self, validator: ComponentValidator
    ):
        validator.validate(_service(inputs=[shared("r", creatable=False)]))

    def test_invalid_nested_resource(self, validator: ComponentValidator):
        child = unowned("child", "a://child", creatable=True)
        parent = owned("parent", "a://parent", children=[child])

        with pytest.raises(InvalidDescriptorError, match="resource: a://child"):
            validator.validate(_service(outputs=[parent]))

    def test_cyclic_resources_terminate(self, validator: ComponentValidator):
        res0 = owned("res0", "a://0")
        res1 = owned("res1", "a://1", children=[res0])
        res0.children = [res1, res0]

        validator.validate(_service(outputs=[res0]))


class TestAggregate:
    def test_internals_not_allowed(self, validator: ComponentValidator):
        with pytest.raises(InvalidDescriptorError) as exc_info:
            validator.validate(_aggregate(internals=[owned("internal", "a://int")]))

        msg = str(exc_info.value)
        assert (
            "Aggregate should not expose internal resources. "
            "internals: ['a://int'], component: bob"
        ) in msg
        assert CODE_LOCATION.search(msg)

    def test_non_owned_resources_not_allowed(self, validator: ComponentValidator):
        with pytest.raises(
            InvalidDescriptorError,
            match=re.escape(
                "Aggregate should only expose owned resources. "
                "not_owned: ['a://unowned'], component: bob"
            ),
        ):
            validator.validate(_aggregate(inputs=[unowned("unowned", "a://unowned")]))

    def test_non_owned_nested_resources_not_allowed(
        self, validator: ComponentValidator
    ):
        child = unmanaged("child", "a://child")
        parent = owned("parent", "a://parent", children=[child])

        with pytest.raises(
            InvalidDescriptorError, match=re.escape("not_owned: ['a://child']")
        ):
            validator.validate(_aggregate(outputs=[parent]))


class TestService:
    def test_null_docker_image(self, validator: ComponentValidator):
        with pytest.raises(
            InvalidDescriptorError,
            match="docker_image can not be null or blank, component: bob",
        ):
            validator.validate(_service(docker_image=None))

    def test_blank_docker_image(self, validator: ComponentValidator):
        with pytest.raises(
            InvalidDescriptorError,
            match="docker_image can not be null or blank, component: bob",
        ):
            validator.validate(_service(docker_image="\t"))

    def test_null_test_environment(self, validator: ComponentValidator):
        service = _service()
        service._test_environment = None

        with pytest.raises(
            InvalidDescriptorError,
            match="test_environment can not be null, component: bob",
        ):
            validator.validate(service)


class TestValid:
    def test_valid_components(self, validator: ComponentValidator):
        validator.validate(_aggregate(), _service())

    def test_validate_all(self, validator: ComponentValidator):
        validator.validate_all(iter([_aggregate(), _service()]))

    def test_stops_at_first_invalid_component(self, validator: ComponentValidator):
        with pytest.raises(InvalidDescriptorError, match="component: second"):
            validator.validate(
                _service(name="first"), _service(name="second", docker_image="")
            )
