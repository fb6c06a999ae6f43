"""Leaf encoders and base classes for generated TL-B serializers."""

from dataclasses import dataclass, field
from typing import Any

# 4-bit length header addresses at most 15 bytes
VARUINT16_MAX_BYTES = 15


class SerializationError(RuntimeError):
    """Raised when a value cannot be serialized."""


def literal(value: int, width: int) -> str:
    """Format a write directive: `value` in exactly `width` bits."""
    return f"u {value} {width}bit"


def serialize_uint(value: int, width: int) -> list[str]:
    """Serialize an unsigned integer of fixed width."""
    if value < 0 or value >= 1 << width:
        raise SerializationError(f"{value} does not fit in uint{width}")
    return [literal(value, width)]


def serialize_bool(value: bool) -> list[str]:
    return [literal(1 if value else 0, 1)]


def serialize_varuint16(value: int) -> list[str]:
    """Serialize an unsigned integer as VarUint16.

    A 4-bit header holds the minimal number of whole bytes needed for the
    value, followed by the value in that many bytes. Zero takes zero bytes.
    """
    if value < 0:
        raise SerializationError(f"VarUint16 cannot hold negative value {value}")

    bytes_required = (value.bit_length() + 7) // 8
    if bytes_required > VARUINT16_MAX_BYTES:
        raise SerializationError(f"VarUint16 overflow: {value} needs {bytes_required} bytes")

    return [literal(bytes_required, 4), literal(value, bytes_required * 8)]


@dataclass(frozen=True)
class TlbFieldInfo:
    """Metadata for a generated struct or variant field."""

    tlb_type: str


def tlb_field(type: str) -> Any:
    """Define a dataclass field carrying its schema type.

    Args:
        type: The schema type (e.g., "uint8", "coins", "Address").

    Returns:
        A dataclass field with tlbgen metadata attached.
    """
    return field(metadata={"tlb": TlbFieldInfo(type)})


class CellSerialize:
    """Anything that serializes to a list of write directives."""

    def serialize(self) -> list[str]:
        """Serialize to write directives. Generated code overrides this."""
        raise NotImplementedError("serialize() must be implemented by generated code")


class Struct(CellSerialize):
    """Base class for generated product types.

    Example:
        @dataclass(frozen=True)
        class Address(Struct):
            workchain: int = tlb_field(type="uint8")

            def serialize(self) -> list[str]:
                _out: list[str] = []
                _out.append("u 4 3bit")
                _out.extend(serialize_uint(self.workchain, 8))
                return _out
    """


class SumType(CellSerialize):
    """Base class for generated sum types.

    Each variant is a subclass carrying its own `discriminant` and
    `serialize()`. `tag_width` is the width of the injected tag, or None
    when variants encode their own disambiguating bits.
    """

    tag_width: int | None = None
    discriminant: int
    variants: dict[str, type["SumType"]] = {}

    def serialize(self) -> list[str]:
        raise SerializationError(
            f"{type(self).__name__} is not a variant; instantiate one of {sorted(self.variants)}"
        )
