"""Resolution of layout field references against a field list."""

from collections.abc import Iterable

from .layout import Directive, FieldRef, LayoutError, LiteralBits
from .parser import ValidationError
from .plan import EmitField, EmitLiteral, Step
from .types import TlbField


class FieldResolver:
    """Map field names of one struct or variant to their declaration.

    Args:
        owner: Name used in error messages, e.g. "Boc.Normal".
        fields: Fields in declaration order.
    """

    def __init__(self, owner: str, fields: Iterable[TlbField]):
        self.owner = owner
        self._fields: dict[str, tuple[TlbField, int]] = {}
        for position, f in enumerate(fields):
            if f.name in self._fields:
                raise ValidationError(f"{owner} declares field {f.name} more than once")
            self._fields[f.name] = (f, position)

    def __contains__(self, name: str) -> bool:
        return name in self._fields

    def lookup(self, name: str) -> tuple[TlbField, int]:
        """Return the field and its declaration position."""
        if name not in self._fields:
            raise LayoutError(f"{self.owner} has no field named {name!r}")
        return self._fields[name]

    def resolve_one(self, directive: Directive) -> Step:
        if isinstance(directive, LiteralBits):
            return EmitLiteral(value=directive.value, width=directive.width)
        if isinstance(directive, FieldRef):
            f, position = self.lookup(directive.name)
            return EmitField(name=f.name, position=position, type=f.type)
        raise TypeError(f"Unknown directive {directive!r}")

    def resolve(self, directives: Iterable[Directive]) -> list[Step]:
        """Resolve directives into plan steps, keeping their order."""
        return [self.resolve_one(d) for d in directives]
