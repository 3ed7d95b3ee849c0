from typing import Annotated, Any

import pytest

from gqmeta.annotations import (
    Annotations,
    ArgumentSite,
    FieldSite,
    SiteKind,
    TypeSite,
    markers_of,
)
from gqmeta.config import RegistryConfig
from gqmeta.exceptions import AnnotationError, RegistryValidationError
from gqmeta.models import ArgumentMetadata, ContextMetadata, FieldMetadata, ObjectTypeMetadata, RootMetadata
from gqmeta.registry import Registry


class TestClassLevelAnnotations:
    """Test object type, input type and schema class decorators."""

    def test_object_type_records_class_name(self, gq: Annotations, registry: Registry) -> None:
        @gq.object_type()
        class User:
            pass

        assert registry.get_object_type_metadata(User) == ObjectTypeMetadata(name="User", is_input=False)

    def test_input_object_type_with_explicit_name(self, gq: Annotations, registry: Registry) -> None:
        @gq.input_object_type(name="UserInput")
        class NewUser:
            pass

        assert registry.get_object_type_metadata(NewUser) == ObjectTypeMetadata(name="UserInput", is_input=True)

    @pytest.mark.parametrize("description_inside", [True, False])
    def test_class_description_in_either_order(
        self, gq: Annotations, registry: Registry, description_inside: bool
    ) -> None:
        class User:
            pass

        decorators = [gq.description("A registered user"), gq.object_type()]
        if not description_inside:
            decorators.reverse()
        for decorator in decorators:
            decorator(User)

        assert registry.get_object_type_metadata(User) == ObjectTypeMetadata(
            name="User", is_input=False, description="A registered user"
        )

    def test_schema_marker(self, gq: Annotations, registry: Registry) -> None:
        @gq.schema()
        class Root:
            pass

        assert registry.is_schema(Root)

    def test_class_decorator_rejects_functions(self, gq: Annotations) -> None:
        with pytest.raises(AnnotationError, match="must decorate a class"):

            @gq.object_type()
            def not_a_class() -> None:
                pass


class TestMemberAnnotations:
    """Test method decorators and annotated class attributes."""

    def test_attribute_annotations(self, gq: Annotations, registry: Registry) -> None:
        @gq.object_type()
        class User:
            id: Annotated[str, gq.field(explicit_type="ID"), gq.non_null()]
            nickname: Annotated[str, gq.description("Display name")]
            age: int

        assert registry.get_all_fields(User) == [
            FieldMetadata(name="id", explicit_type="ID", is_non_null=True),
            FieldMetadata(name="nickname", description="Display name"),
        ]

    def test_method_decorators_merge(self, gq: Annotations, registry: Registry) -> None:
        @gq.object_type()
        class User:
            @gq.list_of()
            @gq.non_null()
            @gq.description("Friends of the user")
            def friends(self) -> list["User"]:
                return []

        assert registry.get_field_metadata(User, "friends") == FieldMetadata(
            name="friends", is_list=True, is_non_null=True, description="Friends of the user"
        )

    def test_field_without_type_only_creates_entry(self, gq: Annotations, registry: Registry) -> None:
        @gq.object_type()
        class User:
            @gq.field()
            def name(self) -> str:
                return ""

        assert registry.get_all_fields(User) == [FieldMetadata(name="name")]

    def test_property_and_staticmethod_members(self, gq: Annotations, registry: Registry) -> None:
        @gq.object_type()
        class User:
            @gq.non_null()
            @property
            def email(self) -> str:
                return ""

            @gq.pagination()
            @staticmethod
            def recent(limit: Annotated[int, gq.arg("limit")]) -> list[str]:
                return []

        assert registry.get_field_metadata(User, "email") == FieldMetadata(name="email", is_non_null=True)
        assert registry.get_field_metadata(User, "recent") == FieldMetadata(
            name="recent", is_pagination=True, args=[ArgumentMetadata(name="limit")]
        )
        assert registry.get_arity(User, "recent") == 1

    def test_fields_follow_declaration_order(self, gq: Annotations, registry: Registry) -> None:
        @gq.object_type()
        class User:
            id: Annotated[str, gq.field()]

            @gq.field()
            def b(self) -> str:
                return ""

            @gq.field()
            def a(self) -> str:
                return ""

        assert [field.name for field in registry.get_all_fields(User)] == ["id", "b", "a"]

    def test_undecorated_members_are_ignored(self, gq: Annotations, registry: Registry) -> None:
        @gq.object_type()
        class User:
            def helper(self, value: int) -> int:
                return value

            constant = 3

        assert registry.get_all_fields(User) == []

    def test_parameter_marker_as_decorator_is_rejected(self, gq: Annotations) -> None:
        with pytest.raises(AnnotationError, match="arg\\(\\) is not supported on field call sites"):

            @gq.arg("first")
            def users(self: Any) -> None:
                pass

    def test_non_callable_member_is_rejected(self, gq: Annotations) -> None:
        with pytest.raises(AnnotationError, match="must decorate a class or a function"):
            gq.non_null()(42)


class TestParameterAnnotations:
    """Test markers on resolver parameters."""

    def test_arguments_and_injected_parameters(self, gq: Annotations, registry: Registry) -> None:
        @gq.schema()
        class Root:
            @gq.query()
            @gq.list_of()
            def users(
                self,
                ctx: Annotated[Any, gq.ctx()],
                first: Annotated[int, gq.non_null(), gq.description("Page size")],
                order: Annotated[str, gq.order_by()],
            ) -> list[str]:
                return []

        assert registry.get_query_fields(Root) == ["users"]
        assert registry.get_field_metadata(Root, "users") == FieldMetadata(
            name="users",
            is_list=True,
            context=ContextMetadata(index=0),
            args=[
                None,
                ArgumentMetadata(name="first", is_non_null=True, description="Page size"),
                ArgumentMetadata(name="orderBy"),
            ],
        )
        assert registry.get_arity(Root, "users") == 3

    def test_arg_overrides_parameter_name(self, gq: Annotations, registry: Registry) -> None:
        @gq.object_type()
        class User:
            @gq.field()
            def posts(
                self,
                parent: Annotated[Any, gq.root()],
                limit: Annotated[int, gq.arg("first", explicit_type="Int")],
            ) -> list[str]:
                return []

        field = registry.get_field_metadata(User, "posts")
        assert field is not None
        assert field.root == RootMetadata(index=0)
        assert field.args == [None, ArgumentMetadata(name="first", explicit_type="Int")]

    def test_mutation_registration(self, gq: Annotations, registry: Registry) -> None:
        @gq.schema()
        class Root:
            @gq.mutation()
            def create_user(self, name: Annotated[str, gq.non_null()]) -> str:
                return name

        assert registry.get_mutation_fields(Root) == ["create_user"]
        field = registry.get_field_metadata(Root, "create_user")
        assert field is not None
        assert field.args == [ArgumentMetadata(name="name", is_non_null=True)]

    def test_field_only_marker_on_parameter_is_rejected(self, gq: Annotations) -> None:
        with pytest.raises(AnnotationError, match="query\\(\\) is not supported on argument call sites"):

            @gq.object_type()
            class User:
                @gq.field()
                def posts(self, limit: Annotated[int, gq.query()]) -> list[str]:
                    return []

    def test_markers_from_another_annotation_set(self, gq: Annotations, registry: Registry) -> None:
        other = Annotations(Registry())

        @gq.object_type()
        class User:
            name: Annotated[str, other.non_null()]

        assert registry.get_field_metadata(User, "name") == FieldMetadata(name="name", is_non_null=True)
        assert other.registry.get_field_metadata(User, "name") is None


class TestCollection:
    """Test replaying of pending markers."""

    def test_class_is_collected_once(self, gq: Annotations, registry: Registry) -> None:
        @gq.schema()
        @gq.object_type()
        class Root:
            @gq.query()
            def users(self) -> list[str]:
                return []

        gq.collect(Root)

        assert registry.get_query_fields(Root) == ["users"]

    def test_explicit_collect(self, gq: Annotations, registry: Registry) -> None:
        class Resolvers:
            @gq.query()
            @gq.query()
            def users(self) -> list[str]:
                return []

        assert registry.get_query_fields(Resolvers) == []
        gq.collect(Resolvers)
        assert registry.get_query_fields(Resolvers) == ["users", "users"]

    def test_markers_of_ignores_plain_annotations(self, gq: Annotations) -> None:
        assert markers_of(int) == []
        assert markers_of(Annotated[int, "doc"]) == []
        marker = gq.non_null()
        assert markers_of(Annotated[int, "doc", marker]) == [marker]

    def test_validate_on_collect_raises_when_configured(self) -> None:
        gq = Annotations(Registry(RegistryConfig(validate_on_collect=True, fail_on_error=True)))

        with pytest.raises(RegistryValidationError, match="both the context and a schema argument"):

            @gq.object_type()
            class User:
                @gq.field()
                def posts(self, ctx: Annotated[Any, gq.ctx(), gq.description("Request")]) -> list[str]:
                    return []

    def test_validate_on_collect_only_logs_by_default(self, caplog: pytest.LogCaptureFixture) -> None:
        gq = Annotations(Registry(RegistryConfig(validate_on_collect=True)))

        @gq.schema()
        class Root:
            @gq.query()
            @gq.query()
            def users(self) -> list[str]:
                return []

        assert gq.registry.get_query_fields(Root) == ["users", "users"]
        assert "registered as a query 2 times" in caplog.text


class TestCallSiteDispatch:
    """Test explicit call-site dispatch of markers."""

    def test_description_targets_each_registrar(self, gq: Annotations, registry: Registry, target: type) -> None:
        marker = gq.description("doc")

        marker.apply(registry, TypeSite(target))
        marker.apply(registry, FieldSite(target, "users"))
        marker.apply(registry, ArgumentSite(target, "users", 1))

        assert registry.get_object_type_metadata(target) == ObjectTypeMetadata(description="doc")
        assert registry.get_field_metadata(target, "users") == FieldMetadata(
            name="users", description="doc", args=[None, ArgumentMetadata(description="doc")]
        )

    @pytest.mark.parametrize(
        "marker_name,site_kind",
        [
            ("non_null", SiteKind.TYPE),
            ("ctx", SiteKind.FIELD),
            ("root", SiteKind.TYPE),
            ("order_by", SiteKind.FIELD),
            ("mutation", SiteKind.ARGUMENT),
        ],
    )
    def test_unsupported_sites_raise(
        self, gq: Annotations, registry: Registry, target: type, marker_name: str, site_kind: SiteKind
    ) -> None:
        sites = {
            SiteKind.TYPE: TypeSite(target),
            SiteKind.FIELD: FieldSite(target, "users"),
            SiteKind.ARGUMENT: ArgumentSite(target, "users", 0),
        }
        marker = getattr(gq, marker_name)()

        with pytest.raises(AnnotationError):
            marker.apply(registry, sites[site_kind])

    def test_site_kinds(self, target: type) -> None:
        assert TypeSite(target).kind is SiteKind.TYPE
        assert FieldSite(target, "x").kind is SiteKind.FIELD
        assert ArgumentSite(target, "x", 0).kind is SiteKind.ARGUMENT

    def test_reverse_parameter_order_matches_collect(self) -> None:
        gq = Annotations(Registry())

        class Root:
            @gq.list_of()
            def users(
                self,
                ctx: Annotated[Any, gq.ctx()],
                first: Annotated[int, gq.arg("first"), gq.non_null()],
                after: Annotated[str, gq.arg("after"), gq.description("Cursor")],
            ) -> list[str]:
                return []

        gq.collect(Root)

        reverse = Registry()
        parameter_markers = [
            (0, [gq.ctx()]),
            (1, [gq.arg("first"), gq.non_null()]),
            (2, [gq.arg("after"), gq.description("Cursor")]),
        ]
        for index, markers in reversed(parameter_markers):
            for marker in markers:
                marker.apply(reverse, ArgumentSite(Root, "users", index))
        gq.list_of().apply(reverse, FieldSite(Root, "users"))

        assert reverse.get_all_fields(Root) == gq.registry.get_all_fields(Root)
        assert reverse.get_all_fields(Root) == [
            FieldMetadata(
                name="users",
                is_list=True,
                context=ContextMetadata(index=0),
                args=[
                    None,
                    ArgumentMetadata(name="first", is_non_null=True),
                    ArgumentMetadata(name="after", description="Cursor"),
                ],
            )
        ]
