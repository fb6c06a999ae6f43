"""Layout mini-language parser.

A layout is a comma-separated list of segments. Each segment is either a
literal bit emission, `u <value> <width>bit`, or the bare name of a field of
the enclosing type. Segment order is wire order.
"""

import re
from dataclasses import dataclass

from .parser import ValidationError, parse_int

# Marker that starts a literal segment
LITERAL_MARKER = re.compile(r"u\s")

_LITERAL_RE = re.compile(
    r"u\s+(0[xX](?:_?[0-9a-fA-F])+|0[bB](?:_?[01])+|[0-9](?:_?[0-9])*)\s+([0-9]+)\s*bit"
)

# Layout of a struct holding a single unsigned integer encoded as VarUint16
FUNDAMENTAL_VARUINT16 = "__fundamental_varuint16"


class LayoutError(ValidationError):
    """Raised when a layout segment is malformed or cannot be resolved."""


def literal_text(value: int, width: int) -> str:
    """Format a literal write directive."""
    return f"u {value} {width}bit"


@dataclass(frozen=True)
class LiteralBits:
    """Write `value` using exactly `width` bits."""

    value: int
    width: int

    @property
    def text(self) -> str:
        return literal_text(self.value, self.width)


@dataclass(frozen=True)
class FieldRef:
    """Serialize the named field at this position."""

    name: str


Directive = LiteralBits | FieldRef


def parse_literal(segment: str) -> LiteralBits:
    """Parse a single `u <value> <width>bit` segment."""
    match = _LITERAL_RE.fullmatch(segment)
    if not match:
        raise LayoutError(f"Malformed layout segment {segment!r}, expected 'u <value> <width>bit'")

    value = parse_int(match.group(1))
    width = int(match.group(2))
    if value >= 1 << width:
        raise LayoutError(f"Layout segment {segment!r}: {value} does not fit in {width} bits")
    return LiteralBits(value=value, width=width)


def parse_layout(text: str) -> list[Directive]:
    """Parse a layout string into an ordered list of directives.

    Empty segments are skipped. Nothing is reordered or de-duplicated, so a
    field named twice is serialized twice.
    """
    directives: list[Directive] = []
    for raw in text.split(","):
        segment = raw.strip()
        if not segment:
            continue
        if LITERAL_MARKER.match(segment):
            directives.append(parse_literal(segment))
        else:
            directives.append(FieldRef(name=segment))
    return directives
