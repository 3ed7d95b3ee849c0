from collections.abc import Callable
from typing import Any

import pytest
from hypothesis import strategies as st

from gqmeta.annotations import Annotations
from gqmeta.registry import Registry

# Partial field registrations that each touch a different attribute
DISJOINT_FIELD_PARTIALS: list[dict[str, Any]] = [
    {"is_non_null": True},
    {"is_list": True},
    {"is_pagination": True},
    {"description": "The user's friends"},
    {"explicit_type": "User"},
]

ARGUMENT_NAMES = ["a", "b", "c", "d", "e"]


def make_target(name: str = "Target") -> type:
    """Create a fresh class to register metadata against."""
    return type(name, (), {})


@pytest.fixture
def registry() -> Registry:
    return Registry()


@pytest.fixture
def gq(registry: Registry) -> Annotations:
    return Annotations(registry)


@pytest.fixture
def target() -> type:
    return make_target()


@st.composite
def argument_orders(draw: Callable[[st.SearchStrategy[Any]], Any]) -> list[tuple[int, str]]:
    """Draw a contiguous set of (index, name) argument registrations in random order."""
    count = draw(st.integers(min_value=1, max_value=len(ARGUMENT_NAMES)))
    return draw(st.permutations(list(enumerate(ARGUMENT_NAMES[:count]))))
