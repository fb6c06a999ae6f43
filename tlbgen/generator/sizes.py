"""Size calculation, in bits, for compiled types."""

from dataclasses import dataclass
from enum import StrEnum, auto

from .plan import CompiledSchema, EmitLiteral, EnumPlan, Step, StructPlan
from .types import PRIMITIVE_WIDTHS, TlbType, is_varuint

# Data bits a single TON cell can hold
CELL_BITS = 1023

# 4-bit header plus up to 15 bytes
VARUINT16_MIN_BITS = 4
VARUINT16_MAX_BITS = 4 + 15 * 8


class SizeKind(StrEnum):
    """Classification of size characteristics."""

    FIXED = auto()  # Min == Max
    BOUNDED = auto()  # Variable with a known maximum (coins, sum types)


@dataclass(frozen=True)
class SizeInfo:
    """Size information for a type, in bits."""

    min_bits: int
    max_bits: int
    kind: SizeKind

    @property
    def is_fixed(self) -> bool:
        return self.kind == SizeKind.FIXED

    @property
    def fits_in_cell(self) -> bool:
        return self.max_bits <= CELL_BITS


@dataclass(frozen=True)
class TypeSizeInfo:
    """Complete size information for a struct or sum type."""

    name: str
    size: SizeInfo
    variants: dict[str, SizeInfo]  # Empty for structs


@dataclass(frozen=True)
class SchemaSizeInfo:
    """Size information for an entire schema."""

    types: dict[str, TypeSizeInfo]
    max_bits: int
    oversized: list[str]  # Types that may not fit in a single cell


def _combine(sizes: list[SizeInfo]) -> SizeInfo:
    total_min = sum(s.min_bits for s in sizes)
    total_max = sum(s.max_bits for s in sizes)
    kind = SizeKind.FIXED if all(s.is_fixed for s in sizes) else SizeKind.BOUNDED
    return SizeInfo(total_min, total_max, kind)


class SizeCalculator:
    """Calculate sizes for compiled types."""

    def __init__(self, schema: CompiledSchema):
        self.plans = schema.plans()
        self._cache: dict[str, TypeSizeInfo] = {}

    def calc_primitive_size(self, t: TlbType) -> SizeInfo:
        """Calculate size for a primitive type."""
        if t.name in PRIMITIVE_WIDTHS:
            width = PRIMITIVE_WIDTHS[t.name]
            return SizeInfo(width, width, SizeKind.FIXED)

        if is_varuint(t):
            return SizeInfo(VARUINT16_MIN_BITS, VARUINT16_MAX_BITS, SizeKind.BOUNDED)

        raise ValueError(f"Unknown primitive type: {t.name}")

    def calc_step_size(self, step: Step) -> SizeInfo:
        if isinstance(step, EmitLiteral):
            return SizeInfo(step.width, step.width, SizeKind.FIXED)
        if step.type.name in self.plans:
            return self.calc_type_size(step.type.name).size
        return self.calc_primitive_size(step.type)

    def calc_steps_size(self, steps: tuple[Step, ...]) -> SizeInfo:
        return _combine([self.calc_step_size(step) for step in steps])

    def calc_type_size(self, name: str) -> TypeSizeInfo:
        """Calculate size for a struct or sum type (with caching)."""
        if name in self._cache:
            return self._cache[name]

        plan = self.plans[name]
        if isinstance(plan, StructPlan):
            info = TypeSizeInfo(name, self.calc_steps_size(plan.steps), {})
        else:
            info = self.calc_enum_size(plan)

        self._cache[name] = info
        return info

    def calc_enum_size(self, plan: EnumPlan) -> TypeSizeInfo:
        variants = {v.name: self.calc_steps_size(v.steps) for v in plan.variants}
        sizes = list(variants.values())

        min_bits = min(s.min_bits for s in sizes)
        max_bits = max(s.max_bits for s in sizes)
        if min_bits == max_bits and all(s.is_fixed for s in sizes):
            kind = SizeKind.FIXED
        else:
            kind = SizeKind.BOUNDED

        return TypeSizeInfo(plan.name, SizeInfo(min_bits, max_bits, kind), variants)

    def calc_schema_info(self) -> SchemaSizeInfo:
        """Calculate complete schema size information."""
        types = {name: self.calc_type_size(name) for name in self.plans}
        max_bits = max((t.size.max_bits for t in types.values()), default=0)
        oversized = [name for name, t in types.items() if not t.size.fits_in_cell]
        return SchemaSizeInfo(types=types, max_bits=max_bits, oversized=oversized)


def calculate_sizes(schema: CompiledSchema) -> SchemaSizeInfo:
    """Calculate size information for a compiled schema."""
    calc = SizeCalculator(schema)
    return calc.calc_schema_info()
