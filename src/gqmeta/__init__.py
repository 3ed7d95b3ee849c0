import logging

from rich.logging import RichHandler

__version__ = "0.1.0"

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True)],
)

log = logging.getLogger("gqmeta")

from gqmeta.annotations import Annotations, ArgumentSite, CallSite, FieldSite, TypeSite, gq  # noqa: E402
from gqmeta.config import RegistryConfig, load_registry_config  # noqa: E402
from gqmeta.exceptions import AnnotationError, GQMetaError, RegistryValidationError  # noqa: E402
from gqmeta.models import (  # noqa: E402
    ArgumentMetadata,
    ContextMetadata,
    FieldMetadata,
    ObjectTypeMetadata,
    RootMetadata,
)
from gqmeta.registry import Registry  # noqa: E402

__all__ = [
    "Annotations",
    "AnnotationError",
    "ArgumentMetadata",
    "ArgumentSite",
    "CallSite",
    "ContextMetadata",
    "FieldMetadata",
    "FieldSite",
    "GQMetaError",
    "ObjectTypeMetadata",
    "Registry",
    "RegistryConfig",
    "RegistryValidationError",
    "RootMetadata",
    "TypeSite",
    "gq",
    "load_registry_config",
    "log",
]
