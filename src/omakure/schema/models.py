"""Schema domain models.

A script declares its inputs as a JSON object with PascalCase keys. These
dataclasses hold the parsed form with snake_case attributes.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Field:
    name: str
    kind: str  # "Type" in the JSON: string | number | bool | boolean | enum
    order: int
    prompt: str | None = None
    required: bool = False
    default: str | None = None
    choices: list[str] | None = None
    arg: str | None = None

    @property
    def arg_name(self) -> str:
        """Flag emitted before this field's value; ``--<lowercased name>`` if unset."""
        return self.arg or f"--{self.name.lower()}"

    @property
    def label(self) -> str:
        return self.prompt or self.name


@dataclass
class SchemaOutput:
    name: str
    kind: str


@dataclass
class MatrixValue:
    name: str
    values: list[str] = field(default_factory=list)


@dataclass
class QueueCaseValue:
    name: str
    value: str


@dataclass
class QueueCase:
    values: list[QueueCaseValue] = field(default_factory=list)
    name: str | None = None


@dataclass
class QueueSpec:
    """Batch-run declaration: either a value matrix or an explicit case list."""

    matrix: list[MatrixValue] | None = None
    cases: list[QueueCase] | None = None


@dataclass
class Schema:
    name: str
    fields: list[Field] = field(default_factory=list)
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    outputs: list[SchemaOutput] = field(default_factory=list)
    queue: QueueSpec | None = None

    def sorted_fields(self) -> list[Field]:
        """Fields in ascending ``order`` (display and argument order)."""
        return sorted(self.fields, key=lambda f: f.order)
