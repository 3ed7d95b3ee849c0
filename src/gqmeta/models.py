from dataclasses import dataclass
from typing import Any, Self

from pydantic import BaseModel, ConfigDict


class MetadataRecord(BaseModel):
    """A metadata record whose merges only carry explicitly set attributes.

    Pydantic tracks which fields were passed to the constructor (or assigned
    afterwards) in ``model_fields_set``. A record built from a single
    annotation therefore describes exactly what that annotation said, and
    merging it into an existing record leaves every other attribute alone,
    even when the incoming value is falsy.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def explicit_attributes(self, exclude: set[str] | None = None) -> dict[str, Any]:
        """Return the explicitly set attributes of this record.

        Args:
            exclude: Attribute names to leave out

        Returns:
            Mapping of attribute name to value
        """
        excluded = exclude or set()
        return {name: getattr(self, name) for name in self.model_fields_set if name not in excluded}

    def merge(self, partial: Self, exclude: set[str] | None = None) -> None:
        """Shallow-merge the explicitly set attributes of ``partial`` into this record.

        Attribute-level last-write-wins: attributes set on ``partial`` overwrite
        the current value, attributes it does not set are left untouched.

        Args:
            partial: Record carrying the incoming attributes
            exclude: Attribute names that must not be copied
        """
        for name, value in partial.explicit_attributes(exclude).items():
            setattr(self, name, value)

    def detached(self) -> Self:
        """Return a copy that the registry can store without sharing it with the caller.

        The set of explicitly set attributes is carried over. Values such as
        ``explicit_type`` are kept by reference.
        """
        return self.model_copy()


class ObjectTypeMetadata(MetadataRecord):
    """Class-level metadata: at most one per target."""

    name: str | None = None
    description: str | None = None
    is_input: bool | None = None


class TypeMetadata(MetadataRecord):
    name: str | None = None
    description: str | None = None
    is_non_null: bool | None = None
    is_list: bool | None = None
    is_pagination: bool | None = None
    explicit_type: Any = None


class ArgumentMetadata(TypeMetadata):
    """Metadata of one positional resolver parameter exposed as a schema argument."""


class ContextMetadata(MetadataRecord):
    """Marks the parameter position that receives the request context."""

    index: int


class RootMetadata(MetadataRecord):
    """Marks the parameter position that receives the parent value."""

    index: int


class FieldMetadata(TypeMetadata):
    """Per-member metadata.

    ``args`` is a sparse list indexed by parameter position; an empty slot is
    ``None``.
    """

    name: str
    args: list[ArgumentMetadata | None] | None = None
    root: RootMetadata | None = None
    context: ContextMetadata | None = None

    def argument(self, index: int) -> ArgumentMetadata | None:
        """Return the argument at ``index``, or None when the slot is empty."""
        if self.args is None or index < 0 or index >= len(self.args):
            return None
        return self.args[index]

    def detached(self) -> Self:
        copied = self.model_copy()
        if self.args is not None:
            copied.args = [None if argument is None else argument.detached() for argument in self.args]
        if self.root is not None:
            copied.root = self.root.detached()
        if self.context is not None:
            copied.context = self.context.detached()
        return copied


@dataclass(frozen=True)
class Supersession:
    """A registration that replaced, or was refused in favour of, an earlier value.

    The registry keeps resolving such collisions silently; these notes let the
    validation pass report them afterwards.

    Args:
        field_name: Name of the affected field
        attribute: Attribute that collided ("explicit_type", "context" or "root")
        previous: Value held before the registration
        incoming: Value carried by the registration
        kept_incoming: Whether the incoming value replaced the previous one
    """

    field_name: str
    attribute: str
    previous: Any
    incoming: Any
    kept_incoming: bool


def overlay_arguments(
    existing: list[ArgumentMetadata | None],
    incoming: list[ArgumentMetadata | None],
) -> list[ArgumentMetadata | None]:
    """Overlay ``incoming`` onto ``existing`` position by position.

    Only populated incoming slots overwrite; every other position keeps what
    ``existing`` holds. The result is as long as the longer of the two lists.
    """
    merged: list[ArgumentMetadata | None] = list(existing)
    if len(incoming) > len(merged):
        merged.extend([None] * (len(incoming) - len(merged)))
    for index, argument in enumerate(incoming):
        if argument is not None:
            merged[index] = argument
    return merged


def sparse_arguments(index: int, argument: ArgumentMetadata) -> list[ArgumentMetadata | None]:
    """Build a sparse argument list holding ``argument`` at ``index`` and nothing else."""
    args: list[ArgumentMetadata | None] = [None] * (index + 1)
    args[index] = argument
    return args
