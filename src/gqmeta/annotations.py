"""Decorators and ``Annotated`` markers that feed a Registry.

A marker can land on three kinds of call site:

* a class, when used as a class decorator;
* a member, when used as a method decorator or inside the ``Annotated``
  annotation of a class attribute;
* a resolver parameter, when used inside the ``Annotated`` annotation of a
  method parameter. The index is the parameter position without ``self``.

The caller builds the matching CallSite and the marker dispatches on it
explicitly. Member and parameter markers cannot see their class when they are
evaluated, so they are replayed when the class is collected::

    gq = Annotations(Registry())

    @gq.object_type()
    @gq.description("A registered user")
    class User:
        name: Annotated[str, gq.non_null()]

        @gq.list_of()
        def friends(self, first: Annotated[int, gq.arg("first"), gq.non_null()]) -> list["User"]: ...
"""

import inspect
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, ClassVar, TypeVar, get_origin

from gqmeta import log
from gqmeta.exceptions import AnnotationError, AnnotationErrorMessages
from gqmeta.models import ArgumentMetadata, FieldMetadata, ObjectTypeMetadata
from gqmeta.registry import Registry, describe_target
from gqmeta.store import GQ_COLLECTED_KEY
from gqmeta.validation import RegistryChecker, report_issues

MARKERS_ATTR = "__gqmeta_markers__"

T = TypeVar("T")


class SiteKind(str, Enum):
    TYPE = "type"
    FIELD = "field"
    ARGUMENT = "argument"


@dataclass(frozen=True)
class TypeSite:
    target: Hashable

    kind: ClassVar[SiteKind] = SiteKind.TYPE


@dataclass(frozen=True)
class FieldSite:
    target: Hashable
    field_name: str

    kind: ClassVar[SiteKind] = SiteKind.FIELD


@dataclass(frozen=True)
class ArgumentSite:
    target: Hashable
    field_name: str
    index: int

    kind: ClassVar[SiteKind] = SiteKind.ARGUMENT


CallSite = TypeSite | FieldSite | ArgumentSite


class Marker:
    """Base class of every annotation marker.

    Subclasses declare the call-site kinds they accept in ``sites`` and
    implement the matching ``apply_to_*`` methods.
    """

    sites: ClassVar[frozenset[SiteKind]] = frozenset()
    # Whether the marker describes a schema argument (as opposed to an injected value)
    describes_argument: ClassVar[bool] = False

    def __init__(self, owner: "Annotations", label: str) -> None:
        self.owner = owner
        self.label = label

    def __repr__(self) -> str:
        return self.label

    def apply(self, registry: Registry, site: CallSite) -> None:
        if site.kind not in self.sites:
            raise AnnotationError(AnnotationErrorMessages.UNSUPPORTED_SITE.format(marker=self, site=site.kind.value))

        if isinstance(site, ArgumentSite):
            self.apply_to_argument(registry, site)
        elif isinstance(site, FieldSite):
            self.apply_to_field(registry, site)
        else:
            self.apply_to_type(registry, site)

    def apply_to_argument(self, registry: Registry, site: ArgumentSite) -> None:
        raise NotImplementedError

    def apply_to_field(self, registry: Registry, site: FieldSite) -> None:
        raise NotImplementedError

    def apply_to_type(self, registry: Registry, site: TypeSite) -> None:
        raise NotImplementedError

    def __call__(self, member: T) -> T:
        if isinstance(member, type):
            self.apply(self.owner.registry, TypeSite(member))
            return member

        function = unwrap_member(member)
        if function is None:
            raise AnnotationError(AnnotationErrorMessages.UNSUPPORTED_TARGET.format(marker=self, target=member))
        if SiteKind.FIELD not in self.sites:
            message = AnnotationErrorMessages.UNSUPPORTED_SITE.format(marker=self, site=SiteKind.FIELD.value)
            raise AnnotationError(message)

        vars(function).setdefault(MARKERS_ATTR, []).append(self)
        return member


class AttributeMarker(Marker):
    """Sets plain attributes on a field or on an argument."""

    sites = frozenset({SiteKind.FIELD, SiteKind.ARGUMENT})
    describes_argument = True

    def __init__(self, owner: "Annotations", label: str, **attributes: Any) -> None:
        super().__init__(owner, label)
        self.attributes = attributes

    def apply_to_argument(self, registry: Registry, site: ArgumentSite) -> None:
        registry.set_argument(site.target, site.field_name, site.index, ArgumentMetadata(**self.attributes))

    def apply_to_field(self, registry: Registry, site: FieldSite) -> None:
        registry.register_field(site.target, FieldMetadata(name=site.field_name, **self.attributes))


class DescriptionMarker(AttributeMarker):
    sites = frozenset({SiteKind.TYPE, SiteKind.FIELD, SiteKind.ARGUMENT})

    def apply_to_type(self, registry: Registry, site: TypeSite) -> None:
        registry.register_object_type(site.target, ObjectTypeMetadata(**self.attributes))


class FieldMarker(AttributeMarker):
    sites = frozenset({SiteKind.FIELD})


class ArgumentMarker(AttributeMarker):
    sites = frozenset({SiteKind.ARGUMENT})


class ContextMarker(Marker):
    sites = frozenset({SiteKind.ARGUMENT})

    def apply_to_argument(self, registry: Registry, site: ArgumentSite) -> None:
        registry.set_context(site.target, site.field_name, site.index)


class RootMarker(Marker):
    sites = frozenset({SiteKind.ARGUMENT})

    def apply_to_argument(self, registry: Registry, site: ArgumentSite) -> None:
        registry.set_root(site.target, site.field_name, site.index)


class QueryMarker(Marker):
    sites = frozenset({SiteKind.FIELD})

    def apply_to_field(self, registry: Registry, site: FieldSite) -> None:
        registry.add_query_field(site.target, site.field_name)


class MutationMarker(Marker):
    sites = frozenset({SiteKind.FIELD})

    def apply_to_field(self, registry: Registry, site: FieldSite) -> None:
        registry.add_mutation_field(site.target, site.field_name)


class ClassMarker(Marker):
    """Class decorator that records class-level metadata and then collects the class."""

    sites = frozenset({SiteKind.TYPE})

    def __call__(self, member: T) -> T:
        if not isinstance(member, type):
            raise AnnotationError(AnnotationErrorMessages.NOT_A_CLASS.format(marker=self, target=member))
        self.apply(self.owner.registry, TypeSite(member))
        self.owner.collect(member)
        return member


class ObjectTypeMarker(ClassMarker):
    def __init__(self, owner: "Annotations", label: str, name: str | None, is_input: bool) -> None:
        super().__init__(owner, label)
        self.name = name
        self.is_input = is_input

    def apply_to_type(self, registry: Registry, site: TypeSite) -> None:
        name = self.name or getattr(site.target, "__name__", None)
        registry.register_object_type(site.target, ObjectTypeMetadata(name=name, is_input=self.is_input))


class SchemaMarker(ClassMarker):
    def apply_to_type(self, registry: Registry, site: TypeSite) -> None:
        registry.mark_schema(site.target)


def unwrap_member(member: Any) -> Callable[..., Any] | None:
    """Return the plain function behind a class member, or None for non-callables."""
    if isinstance(member, (staticmethod, classmethod)):
        return member.__func__
    if isinstance(member, property):
        return member.fget
    if inspect.isfunction(member):
        return member
    return None


def markers_of(annotation: Any) -> list[Marker]:
    if get_origin(annotation) is not Annotated:
        return []
    return [item for item in annotation.__metadata__ if isinstance(item, Marker)]


def resolver_parameters(member: Any, function: Callable[..., Any]) -> list[inspect.Parameter]:
    """Positional view of a resolver's parameters, without ``self``/``cls``."""
    parameters = [
        parameter
        for parameter in inspect.signature(function).parameters.values()
        if parameter.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    ]
    if not isinstance(member, staticmethod) and parameters:
        parameters = parameters[1:]
    return parameters


class Annotations:
    """Factory of markers bound to one Registry.

    Args:
        registry: Registry receiving the metadata, a fresh one when omitted
    """

    def __init__(self, registry: Registry | None = None) -> None:
        self.registry = registry if registry is not None else Registry()

    # Class-level

    def object_type(self, name: str | None = None) -> ObjectTypeMarker:
        return ObjectTypeMarker(self, "object_type()", name=name, is_input=False)

    def input_object_type(self, name: str | None = None) -> ObjectTypeMarker:
        return ObjectTypeMarker(self, "input_object_type()", name=name, is_input=True)

    def schema(self) -> SchemaMarker:
        return SchemaMarker(self, "schema()")

    # Member-level

    def field(self, explicit_type: Any = None) -> FieldMarker:
        attributes = {} if explicit_type is None else {"explicit_type": explicit_type}
        return FieldMarker(self, "field()", **attributes)

    def query(self) -> QueryMarker:
        return QueryMarker(self, "query()")

    def mutation(self) -> MutationMarker:
        return MutationMarker(self, "mutation()")

    # Member- or parameter-level

    def non_null(self) -> AttributeMarker:
        return AttributeMarker(self, "non_null()", is_non_null=True)

    def list_of(self) -> AttributeMarker:
        return AttributeMarker(self, "list_of()", is_list=True)

    def pagination(self) -> AttributeMarker:
        return AttributeMarker(self, "pagination()", is_pagination=True)

    def description(self, body: str) -> DescriptionMarker:
        return DescriptionMarker(self, "description()", description=body)

    # Parameter-level

    def arg(self, name: str, explicit_type: Any = None) -> ArgumentMarker:
        attributes: dict[str, Any] = {"name": name}
        if explicit_type is not None:
            attributes["explicit_type"] = explicit_type
        return ArgumentMarker(self, "arg()", **attributes)

    def order_by(self) -> ArgumentMarker:
        return ArgumentMarker(self, "order_by()", name="orderBy")

    def ctx(self) -> ContextMarker:
        return ContextMarker(self, "ctx()")

    def root(self) -> RootMarker:
        return RootMarker(self, "root()")

    # Collection

    def collect(self, cls: type[T]) -> type[T]:
        """Replay the member and parameter markers of ``cls`` into the registry.

        Attribute annotations are visited first, then the class body in order.
        For each member, parameter markers run before member decorators, and
        member decorators run in the order they were applied (innermost first).
        A class is collected once; later calls return it unchanged.

        Args:
            cls: Class to collect

        Returns:
            The same class

        Raises:
            AnnotationError: If a marker sits on a call site it does not support
            RegistryValidationError: If validation on collect is configured to fail and finds errors
        """
        registry = self.registry
        if registry.store.has(cls, GQ_COLLECTED_KEY):
            return cls
        registry.store.define(cls, GQ_COLLECTED_KEY, True)

        for name, annotation in inspect.get_annotations(cls).items():
            for marker in markers_of(annotation):
                marker.apply(registry, FieldSite(cls, name))

        for name, member in vars(cls).items():
            function = unwrap_member(member)
            if function is not None:
                self._collect_member(cls, name, member, function)

        log.debug(f"Collected {describe_target(cls)}")
        if registry.config.validate_on_collect:
            report_issues(RegistryChecker(registry).run([cls]), fail_on_error=registry.config.fail_on_error)
        return cls

    def _collect_member(self, cls: type, name: str, member: Any, function: Callable[..., Any]) -> None:
        registry = self.registry
        parameters = resolver_parameters(member, function)
        annotated = False

        for index, parameter in enumerate(parameters):
            markers = markers_of(parameter.annotation)
            if not markers:
                continue
            annotated = True
            # The parameter name is the default argument name, arg() overrides it
            if any(marker.describes_argument for marker in markers):
                registry.set_argument(cls, name, index, ArgumentMetadata(name=parameter.name))
            site = ArgumentSite(cls, name, index)
            for marker in markers:
                marker.apply(registry, site)

        pending: list[Marker] = vars(function).get(MARKERS_ATTR, [])
        for marker in pending:
            marker.apply(registry, FieldSite(cls, name))

        if annotated or pending:
            registry.record_arity(cls, name, len(parameters))


gq = Annotations()
"""Convenience annotation set for scripts, bound to a Registry shared by the whole process.

Libraries and tests should build their own ``Annotations(Registry())``.
"""
