"""Metadata registry: the registrars and their merge rules.

Every write is a merge into the registry's MetadataStore. The merge contract is
the same everywhere:

* attributes set by different registrations all survive, whatever the order;
* an attribute set twice keeps the value of the later registration;
* nothing is ever rejected, and reads of unknown targets return None.
"""

from collections.abc import Hashable, Iterator, Mapping
from typing import Any

from gqmeta import log
from gqmeta.config import RegistryConfig
from gqmeta.models import (
    ArgumentMetadata,
    ContextMetadata,
    FieldMetadata,
    ObjectTypeMetadata,
    RootMetadata,
    Supersession,
    overlay_arguments,
    sparse_arguments,
)
from gqmeta.store import (
    GQ_ARITY_KEY,
    GQ_CONFLICTS_KEY,
    GQ_FIELDS_KEY,
    GQ_MUTATION_KEY,
    GQ_OBJECT_METADATA_KEY,
    GQ_QUERY_KEY,
    GQ_SCHEMA_KEY,
    MetadataStore,
)


def describe_target(target: Hashable) -> str:
    return getattr(target, "__qualname__", None) or repr(target)


class Registry:
    """Collects object type, field, argument and operation metadata per target.

    Args:
        config: Registry settings, defaults when omitted
        store: Backing store, a fresh one when omitted
    """

    def __init__(self, config: RegistryConfig | None = None, store: MetadataStore | None = None) -> None:
        self.config = config or RegistryConfig()
        self.store = store if store is not None else MetadataStore()
        if "log_level" in self.config.model_fields_set:
            log.setLevel(self.config.log_level)

    # Object types

    def register_object_type(
        self, target: Hashable, partial: ObjectTypeMetadata | Mapping[str, Any]
    ) -> ObjectTypeMetadata:
        metadata = ObjectTypeMetadata.model_validate(partial).detached()
        existing: ObjectTypeMetadata | None = self.store.get(target, GQ_OBJECT_METADATA_KEY)
        if existing is None:
            log.debug(f"Creating object type metadata for {describe_target(target)}")
            self.store.define(target, GQ_OBJECT_METADATA_KEY, metadata)
            return metadata

        log.debug(f"Merging object type metadata for {describe_target(target)}")
        existing.merge(metadata)
        return existing

    def get_object_type_metadata(self, target: Hashable) -> ObjectTypeMetadata | None:
        return self.store.get(target, GQ_OBJECT_METADATA_KEY)

    def iter_object_types(self) -> Iterator[tuple[Hashable, ObjectTypeMetadata]]:
        """Iterate over (target, metadata) for every target with object type metadata."""
        for target in self.store.targets():
            metadata = self.get_object_type_metadata(target)
            if metadata is not None:
                yield target, metadata

    def mark_schema(self, target: Hashable) -> None:
        self.store.define(target, GQ_SCHEMA_KEY, True)

    def is_schema(self, target: Hashable) -> bool:
        return self.store.has(target, GQ_SCHEMA_KEY)

    # Fields

    def register_field(self, target: Hashable, partial: FieldMetadata | Mapping[str, Any]) -> FieldMetadata:
        """Record field metadata, merging into an existing field of the same name.

        The merge runs in two phases. ``args`` is resolved first: an empty or
        missing incoming list keeps the existing one, and two lists are overlaid
        position by position. All other explicitly set attributes are then
        merged last-write-wins, and the resolved ``args`` is put back so the
        generic merge never replaces it with a shorter, partial list.

        Args:
            target: Target owning the field
            partial: Field metadata; ``name`` is required

        Returns:
            The stored record
        """
        metadata = FieldMetadata.model_validate(partial).detached()
        fields: list[FieldMetadata] | None = self.store.get(target, GQ_FIELDS_KEY)
        if fields is None:
            fields = []
            self.store.define(target, GQ_FIELDS_KEY, fields)

        existing = next((field for field in fields if field.name == metadata.name), None)
        if existing is None:
            log.debug(f"Creating field {describe_target(target)}.{metadata.name}")
            fields.append(metadata)
            return metadata

        log.debug(f"Merging field {describe_target(target)}.{metadata.name}")
        args = existing.args
        if metadata.args:
            args = list(metadata.args) if existing.args is None else overlay_arguments(existing.args, metadata.args)

        self._note_explicit_type_change(target, existing, metadata)
        existing.merge(metadata, exclude={"args"})
        if args is not None:
            existing.args = args
        return existing

    def get_field_metadata(self, target: Hashable, name: str) -> FieldMetadata | None:
        fields: list[FieldMetadata] | None = self.store.get(target, GQ_FIELDS_KEY)
        if fields is None:
            return None
        return next((field for field in fields if field.name == name), None)

    get_field = get_field_metadata

    def get_all_fields(self, target: Hashable) -> list[FieldMetadata]:
        return list(self.store.get(target, GQ_FIELDS_KEY) or [])

    def _note_explicit_type_change(self, target: Hashable, existing: FieldMetadata, incoming: FieldMetadata) -> None:
        if "explicit_type" not in incoming.model_fields_set:
            return
        previous, replacement = existing.explicit_type, incoming.explicit_type
        if previous is None or replacement is None or previous == replacement:
            return
        location = f"{describe_target(target)}.{existing.name}"
        log.debug(f"Explicit type of {location} changed from {previous!r} to {replacement!r}")
        self._note(target, Supersession(existing.name, "explicit_type", previous, replacement, kept_incoming=True))

    # Arguments

    def set_argument(
        self,
        target: Hashable,
        field_name: str,
        index: int,
        partial: ArgumentMetadata | Mapping[str, Any],
    ) -> ArgumentMetadata:
        """Record metadata for the argument at ``index`` of a field.

        Merges into the slot when it is already populated. Otherwise a sparse
        list holding only this slot goes through the field merge, which leaves
        every other position untouched. Positions may be registered in any order.

        Args:
            target: Target owning the field
            field_name: Name of the field
            index: Parameter position, counted without ``self``
            partial: Argument metadata to merge

        Returns:
            The stored argument record

        Raises:
            ValueError: If index is negative
        """
        if index < 0:
            raise ValueError(f"Argument index must not be negative, got {index}")
        metadata = ArgumentMetadata.model_validate(partial)

        field = self.get_field_metadata(target, field_name)
        slot = field.argument(index) if field is not None else None
        if slot is not None:
            slot.merge(metadata)
            return slot

        stored = self.register_field(target, FieldMetadata(name=field_name, args=sparse_arguments(index, metadata)))
        return stored.argument(index) or metadata

    # Injected parameters

    def set_context(self, target: Hashable, field_name: str, index: int) -> ContextMetadata:
        """Mark the parameter at ``index`` as receiving the request context.

        The first marker wins. A later call leaves it in place; a call at a
        different index is noted for the validation pass.
        """
        field = self.get_field_metadata(target, field_name)
        if field is not None and field.context is not None:
            self._note_injection_repeat(target, field_name, "context", field.context.index, index)
            return field.context

        context = ContextMetadata(index=index)
        stored = self.register_field(target, FieldMetadata(name=field_name, context=context))
        return stored.context or context

    def set_root(self, target: Hashable, field_name: str, index: int) -> RootMetadata:
        """Mark the parameter at ``index`` as receiving the parent value.

        Same first-wins rule as set_context.
        """
        field = self.get_field_metadata(target, field_name)
        if field is not None and field.root is not None:
            self._note_injection_repeat(target, field_name, "root", field.root.index, index)
            return field.root

        root = RootMetadata(index=index)
        stored = self.register_field(target, FieldMetadata(name=field_name, root=root))
        return stored.root or root

    def _note_injection_repeat(self, target: Hashable, field_name: str, marker: str, kept: int, refused: int) -> None:
        if kept == refused:
            return
        log.debug(f"Ignoring {marker} marker at index {refused} on {describe_target(target)}.{field_name}")
        self._note(target, Supersession(field_name, marker, kept, refused, kept_incoming=False))

    # Operations

    def add_query_field(self, target: Hashable, name: str) -> None:
        self._append_operation(target, GQ_QUERY_KEY, name)

    def add_mutation_field(self, target: Hashable, name: str) -> None:
        self._append_operation(target, GQ_MUTATION_KEY, name)

    def get_query_fields(self, target: Hashable) -> list[str]:
        return list(self.store.get(target, GQ_QUERY_KEY) or [])

    def get_mutation_fields(self, target: Hashable) -> list[str]:
        return list(self.store.get(target, GQ_MUTATION_KEY) or [])

    def _append_operation(self, target: Hashable, key: str, name: str) -> None:
        operations: list[str] | None = self.store.get(target, key)
        if operations is None:
            operations = []
            self.store.define(target, key, operations)
        # Repeated names are kept
        operations.append(name)
        log.debug(f"Registered {key} operation {describe_target(target)}.{name}")

    # Bookkeeping read by the validation pass

    def record_arity(self, target: Hashable, field_name: str, parameter_count: int) -> None:
        """Remember how many parameters (without ``self``) the resolver of a field takes."""
        arity: dict[str, int] | None = self.store.get(target, GQ_ARITY_KEY)
        if arity is None:
            arity = {}
            self.store.define(target, GQ_ARITY_KEY, arity)
        arity[field_name] = parameter_count

    def get_arity(self, target: Hashable, field_name: str) -> int | None:
        arity: dict[str, int] | None = self.store.get(target, GQ_ARITY_KEY)
        return arity.get(field_name) if arity else None

    def get_supersessions(self, target: Hashable) -> list[Supersession]:
        return list(self.store.get(target, GQ_CONFLICTS_KEY) or [])

    def _note(self, target: Hashable, supersession: Supersession) -> None:
        notes: list[Supersession] | None = self.store.get(target, GQ_CONFLICTS_KEY)
        if notes is None:
            notes = []
            self.store.define(target, GQ_CONFLICTS_KEY, notes)
        notes.append(supersession)

    def targets(self) -> Iterator[Hashable]:
        return self.store.targets()
