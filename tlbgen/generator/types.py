"""Type descriptors produced by the schema parser."""

from dataclasses import dataclass
from typing import Any

from dataclasses_json import DataClassJsonMixin


@dataclass
class TlbType(DataClassJsonMixin):
    """Represents a primitive or user-defined type by name."""

    name: str


@dataclass
class TlbAnnotationArg(DataClassJsonMixin):
    """Represents an argument to an annotation."""

    name: str | None
    value: Any


@dataclass
class TlbAnnotation(DataClassJsonMixin):
    """Represents an annotation on a schema element, e.g. `@assert_unsafe(...)`."""

    name: str
    arguments: list[TlbAnnotationArg]


@dataclass
class TlbField(DataClassJsonMixin):
    """Represents a named field of a struct or variant."""

    name: str
    type: TlbType


@dataclass
class TlbStruct(DataClassJsonMixin):
    """Represents a product type.

    `layout` is the raw text between the brackets, or None when the
    declaration has no layout at all.
    """

    name: str
    fields: list[TlbField]
    layout: str | None
    annotations: list[TlbAnnotation]


@dataclass
class TlbVariant(DataClassJsonMixin):
    """Represents a single variant of a sum type."""

    name: str
    fields: list[TlbField]
    layout: str | None
    discriminant: int | None
    annotations: list[TlbAnnotation]


@dataclass
class TlbEnum(DataClassJsonMixin):
    """Represents a sum type.

    `type` is the declared representation (`enum Name: uint32`), or None
    when the author asserts non-overlapping variant prefixes instead.
    """

    name: str
    type: TlbType | None
    variants: list[TlbVariant]
    annotations: list[TlbAnnotation]


# Fixed-width primitives and their width in bits
PRIMITIVE_WIDTHS: dict[str, int] = {
    "bool": 1,
    "uint8": 8,
    "uint16": 16,
    "uint32": 32,
    "uint64": 64,
    "uint128": 128,
}

# Variable-length primitives encoded with a 4-bit byte-length header
VARUINT_TYPES = frozenset(["coins", "varuint16"])

PRIMITIVE_TYPES = frozenset(PRIMITIVE_WIDTHS) | VARUINT_TYPES

UINT_TYPES = frozenset(name for name in PRIMITIVE_WIDTHS if name.startswith("uint"))


def primitive_types() -> list[str]:
    """Return a list of primitive type names."""
    return sorted(PRIMITIVE_TYPES)


def is_primitive(t: TlbType) -> bool:
    """Check if a type is a primitive type."""
    return t.name in PRIMITIVE_TYPES


def is_varuint(t: TlbType) -> bool:
    return t.name in VARUINT_TYPES
