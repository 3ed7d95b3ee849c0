"""Keyed metadata storage shared by all registrars."""

from collections.abc import Hashable, Iterator
from typing import Any

GQ_QUERY_KEY = "gq_query"
GQ_MUTATION_KEY = "gq_mutation"
GQ_FIELDS_KEY = "gq_fields"
GQ_OBJECT_METADATA_KEY = "gq_object_type"
GQ_SCHEMA_KEY = "gq_schema"
GQ_CONFLICTS_KEY = "gq_conflicts"
GQ_ARITY_KEY = "gq_arity"
GQ_COLLECTED_KEY = "gq_collected"


class MetadataStore:
    """Associates a target with zero or more named metadata records.

    Entries are created lazily and never deleted. The store does no validation
    and raises no errors: reading an unknown target or key yields ``None``.
    """

    def __init__(self) -> None:
        self._entries: dict[Hashable, dict[str, Any]] = {}

    def has(self, target: Hashable, key: str) -> bool:
        return key in self._entries.get(target, {})

    def define(self, target: Hashable, key: str, value: Any) -> None:
        self._entries.setdefault(target, {})[key] = value

    def get(self, target: Hashable, key: str) -> Any | None:
        return self._entries.get(target, {}).get(key)

    def targets(self) -> Iterator[Hashable]:
        """Iterate over every target that holds at least one record, in first-seen order."""
        return iter(list(self._entries))

    def __contains__(self, target: Hashable) -> bool:
        return target in self._entries

    def __len__(self) -> int:
        return len(self._entries)
