"""Schema block extraction, JSON parsing and form-value validation.

Scripts declare their inputs statically between two sentinel comment lines,
so previewing a script never executes it:

    # OMAKURE_SCHEMA_START
    # {
    #   "Name": "cleanup",
    #   "Fields": [{"Name": "force", "Type": "bool", "Order": 1}]
    # }
    # OMAKURE_SCHEMA_END

Usage:
    block = extract_block(path.read_text(), ("#",))
    schema = parse_schema(block)
    args = build_args(schema.sorted_fields(), ["yes"])
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from omakure.exceptions import OmakureError
from omakure.schema.models import (
    Field,
    MatrixValue,
    QueueCase,
    QueueCaseValue,
    QueueSpec,
    Schema,
    SchemaOutput,
)

START_SENTINEL = "OMAKURE_SCHEMA_START"
END_SENTINEL = "OMAKURE_SCHEMA_END"

_TRUE_WORDS = frozenset(["true", "t", "yes", "y", "1"])
_FALSE_WORDS = frozenset(["false", "f", "no", "n", "0"])

_decoder = json.JSONDecoder()


class SchemaError(OmakureError):
    """Raised when a schema block is missing, malformed, or not a Schema."""


class FieldValidationError(OmakureError):
    """Raised when a form value fails validation.

    Attributes:
        message: Short reason shown next to the field ("Value required").
        field_name: Name of the offending field, when known.
        field_index: Position of the offending field in the caller's list.
    """

    def __init__(
        self, message: str, field_name: str | None = None, field_index: int | None = None
    ) -> None:
        super().__init__(f"{field_name}: {message}" if field_name else message)
        self.message = message
        self.field_name = field_name
        self.field_index = field_index


# ---------------------------------------------------------------------------
# Block extraction
# ---------------------------------------------------------------------------


def extract_block(contents: str, comment_prefixes: Sequence[str]) -> str:
    """Return the comment-stripped text between the schema sentinels.

    Args:
        contents: Full script text.
        comment_prefixes: Accepted line-comment markers, e.g. ``("#",)``.

    Raises:
        SchemaError: Start or end sentinel missing, a line inside the block
            lacks a comment prefix (message carries the 1-based line number),
            or the block is empty.
    """
    # Longest first so "//" wins over "/" style overlaps.
    prefixes = sorted(comment_prefixes, key=len, reverse=True)
    lines = contents.splitlines()

    start = next((i for i, line in enumerate(lines) if START_SENTINEL in line), None)
    if start is None:
        raise SchemaError(f"Schema block not found ({START_SENTINEL} missing)")

    captured: list[str] = []
    for lineno in range(start + 1, len(lines)):
        line = lines[lineno]
        if END_SENTINEL in line:
            block = "\n".join(captured)
            if not block.strip():
                raise SchemaError(f"Schema block is empty (line {start + 1})")
            return block

        stripped = line.lstrip()
        prefix = next((p for p in prefixes if stripped.startswith(p)), None)
        if prefix is None:
            raise SchemaError(
                f"Schema block line {lineno + 1} must start with one of: {', '.join(prefixes)}"
            )
        body = stripped[len(prefix):]
        if body.startswith(" "):
            body = body[1:]
        captured.append(body)

    raise SchemaError(f"Schema block not terminated ({END_SENTINEL} missing)")


# ---------------------------------------------------------------------------
# JSON → Schema
# ---------------------------------------------------------------------------


def parse_schema(text: str) -> Schema:
    """Parse the first JSON object in *text* that has the Schema shape.

    Every ``{`` is tried as a candidate start, so banners or log lines around
    the object are tolerated.

    Raises:
        SchemaError: No candidate deserializes into a Schema.
    """
    pos = text.find("{")
    while pos != -1:
        try:
            obj, _ = _decoder.raw_decode(text, pos)
        except json.JSONDecodeError:
            obj = None
        if isinstance(obj, dict):
            try:
                return schema_from_dict(obj)
            except SchemaError:
                pass
        pos = text.find("{", pos + 1)

    raise SchemaError("Schema JSON object not found in output")


def schema_from_dict(data: dict[str, Any]) -> Schema:
    """Build a Schema from its PascalCase JSON mapping."""
    fields_raw = data.get("Fields")
    if not isinstance(fields_raw, list):
        raise SchemaError("Schema 'Fields' must be a list")

    outputs_raw = _optional(data, "Outputs", list) or []
    queue_raw = _optional(data, "Queue", dict)

    return Schema(
        name=_required_str(data, "Name"),
        description=_optional(data, "Description", str),
        tags=_str_list(data, "Tags") or [],
        fields=[_field_from_dict(_mapping(f, "Fields[]")) for f in fields_raw],
        outputs=[_output_from_dict(_mapping(o, "Outputs[]")) for o in outputs_raw],
        queue=_queue_from_dict(queue_raw) if queue_raw is not None else None,
    )


def _field_from_dict(data: dict[str, Any]) -> Field:
    order = data.get("Order")
    if isinstance(order, bool) or not isinstance(order, int) or order < 0:
        raise SchemaError("Field 'Order' must be a non-negative integer")
    return Field(
        name=_required_str(data, "Name"),
        kind=_required_str(data, "Type"),
        order=order,
        prompt=_optional(data, "Prompt", str),
        required=bool(_optional(data, "Required", bool) or False),
        default=_optional(data, "Default", str),
        choices=_str_list(data, "Choices"),
        arg=_optional(data, "Arg", str),
    )


def _output_from_dict(data: dict[str, Any]) -> SchemaOutput:
    return SchemaOutput(name=_required_str(data, "Name"), kind=_required_str(data, "Type"))


def _queue_from_dict(data: dict[str, Any]) -> QueueSpec:
    matrix = None
    if (matrix_raw := _optional(data, "Matrix", dict)) is not None:
        values = matrix_raw.get("Values")
        if not isinstance(values, list):
            raise SchemaError("Queue 'Matrix.Values' must be a list")
        matrix = [
            MatrixValue(name=_required_str(v, "Name"), values=_str_list(v, "Values") or [])
            for v in (_mapping(item, "Matrix.Values[]") for item in values)
        ]

    cases = None
    if (cases_raw := _optional(data, "Cases", list)) is not None:
        cases = []
        for item in cases_raw:
            case = _mapping(item, "Cases[]")
            values = case.get("Values")
            if not isinstance(values, list):
                raise SchemaError("Queue case 'Values' must be a list")
            cases.append(
                QueueCase(
                    name=_optional(case, "Name", str),
                    values=[
                        QueueCaseValue(
                            name=_required_str(v, "Name"), value=_required_str(v, "Value")
                        )
                        for v in (_mapping(x, "Cases[].Values[]") for x in values)
                    ],
                )
            )

    return QueueSpec(matrix=matrix, cases=cases)


def _mapping(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise SchemaError(f"Schema '{where}' entries must be objects")
    return value


def _required_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise SchemaError(f"Schema key '{key}' must be a string")
    return value


def _optional(data: dict[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, kind):
        raise SchemaError(f"Schema key '{key}' has the wrong type")
    return value


def _str_list(data: dict[str, Any], key: str) -> list[str] | None:
    value = _optional(data, key, list)
    if value is None:
        return None
    if not all(isinstance(item, str) for item in value):
        raise SchemaError(f"Schema key '{key}' must be a list of strings")
    return list(value)


# ---------------------------------------------------------------------------
# Form validation
# ---------------------------------------------------------------------------


def normalize_input(field: Field, raw: str) -> str | None:
    """Validate one form value and return its argument text.

    Returns:
        The normalized value, or None when the field is optional, empty and
        has no default (no argument is emitted).

    Raises:
        FieldValidationError: Missing required value, value outside
            ``choices``, or a value that does not match the field type.
    """
    value = raw.strip()
    if not value:
        if field.default is not None:
            value = field.default
        elif field.required:
            raise FieldValidationError("Value required", field.name)
        else:
            return None

    if field.choices is not None and value not in field.choices:
        raise FieldValidationError(f"Allowed values: {', '.join(field.choices)}", field.name)

    kind = field.kind.lower()
    if kind == "number":
        # float() also accepts digit-group underscores and non-ASCII digits
        if "_" in value or not value.isascii():
            raise FieldValidationError("Enter a valid number", field.name)
        try:
            float(value)
        except ValueError:
            raise FieldValidationError("Enter a valid number", field.name) from None
        return value
    if kind in ("bool", "boolean"):
        parsed = parse_bool(value)
        if parsed is None:
            raise FieldValidationError("Enter true/false (or yes/no)", field.name)
        return "true" if parsed else "false"
    return value


def parse_bool(text: str) -> bool | None:
    word = text.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    return None


def build_args(fields: Sequence[Field], inputs: Sequence[str]) -> list[str]:
    """Validate *inputs* against *fields* and return the flag/value list.

    ``inputs[i]`` is the raw text for ``fields[i]``. Fields are processed in
    ascending ``order``; the first failure stops processing.

    Raises:
        FieldValidationError: With ``field_index`` set to the position of the
            failing field in *fields*.
    """
    args: list[str] = []
    indexed = sorted(enumerate(fields), key=lambda pair: pair[1].order)
    for idx, field in indexed:
        raw = inputs[idx] if idx < len(inputs) else ""
        try:
            value = normalize_input(field, raw)
        except FieldValidationError as e:
            raise FieldValidationError(e.message, field.name, idx) from None
        if value is not None:
            args.extend([field.arg_name, value])
    return args
