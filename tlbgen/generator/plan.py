"""Serialization plans: what a compiled type emits, step by step."""

from dataclasses import dataclass

from .layout import literal_text
from .types import TlbField, TlbType


@dataclass(frozen=True)
class EmitLiteral:
    """Emit a literal directive writing `value` in `width` bits."""

    value: int
    width: int

    @property
    def text(self) -> str:
        return literal_text(self.value, self.width)


@dataclass(frozen=True)
class EmitField:
    """Emit the serialization of a field.

    `type` is the encoding used for the field. It differs from the declared
    field type only for fundamental VarUint16 structs.
    """

    name: str
    position: int
    type: TlbType


Step = EmitLiteral | EmitField


@dataclass(frozen=True)
class NotWanted:
    """No tag is injected; the author asserts variant prefixes never overlap."""


@dataclass(frozen=True)
class Wanted:
    """A `width`-bit tag holding the discriminant precedes every variant."""

    width: int


TagPolicy = NotWanted | Wanted


@dataclass(frozen=True)
class StructPlan:
    name: str
    fields: tuple[TlbField, ...]
    steps: tuple[Step, ...]


@dataclass(frozen=True)
class VariantPlan:
    name: str
    discriminant: int
    fields: tuple[TlbField, ...]
    steps: tuple[Step, ...]


@dataclass(frozen=True)
class EnumPlan:
    name: str
    policy: TagPolicy
    variants: tuple[VariantPlan, ...]

    @property
    def tag_width(self) -> int | None:
        if isinstance(self.policy, Wanted):
            return self.policy.width
        return None


Plan = StructPlan | EnumPlan


@dataclass(frozen=True)
class CompiledSchema:
    """All plans of a schema, in declaration order."""

    structs: tuple[StructPlan, ...]
    enums: tuple[EnumPlan, ...]

    def plans(self) -> dict[str, Plan]:
        result: dict[str, Plan] = {plan.name: plan for plan in self.structs}
        result.update({plan.name: plan for plan in self.enums})
        return result
