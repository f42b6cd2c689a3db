"""Script input schemas: models, block extraction, validation."""

from omakure.schema.models import Field, QueueSpec, Schema, SchemaOutput
from omakure.schema.parser import (
    END_SENTINEL,
    START_SENTINEL,
    FieldValidationError,
    SchemaError,
    build_args,
    extract_block,
    normalize_input,
    parse_schema,
)

__all__ = [
    "Field",
    "QueueSpec",
    "Schema",
    "SchemaOutput",
    "START_SENTINEL",
    "END_SENTINEL",
    "FieldValidationError",
    "SchemaError",
    "build_args",
    "extract_block",
    "normalize_input",
    "parse_schema",
]
