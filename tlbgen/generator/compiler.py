"""Compile parsed schema descriptors into serialization plans."""

import logging

import structlog

from .layout import FUNDAMENTAL_VARUINT16, parse_layout
from .parser import ValidationError
from .plan import (
    CompiledSchema,
    EmitField,
    EmitLiteral,
    EnumPlan,
    NotWanted,
    Step,
    StructPlan,
    TagPolicy,
    VariantPlan,
    Wanted,
)
from .resolver import FieldResolver
from .types import PRIMITIVE_WIDTHS, UINT_TYPES, TlbEnum, TlbStruct, TlbType, is_primitive

logger = structlog.wrap_logger(logging.getLogger(__name__))

ASSERT_ANNOTATION = "assert_unsafe"
NONOVERLAP_ASSERTION = "items_prefixes_nonoverlap"


def _fundamental_varuint16(struct: TlbStruct) -> list[Step]:
    if len(struct.fields) != 1:
        raise ValidationError(f"Fundamental VarUint16 struct {struct.name} must have exactly one field")
    f = struct.fields[0]
    if f.type.name not in UINT_TYPES:
        raise ValidationError(
            f"Fundamental VarUint16 struct {struct.name} must hold an unsigned integer, not {f.type.name}"
        )
    return [EmitField(name=f.name, position=0, type=TlbType(name="varuint16"))]


def compile_struct(struct: TlbStruct) -> StructPlan:
    """Build the serialization plan of a product type."""
    log = logger.new(struct=struct.name)

    if struct.layout is None:
        raise ValidationError(f"Serialization layout for struct {struct.name} is required")

    if struct.layout.strip() == FUNDAMENTAL_VARUINT16:
        steps = _fundamental_varuint16(struct)
    else:
        resolver = FieldResolver(struct.name, struct.fields)
        steps = resolver.resolve(parse_layout(struct.layout))

    log.debug("compiled struct", steps=len(steps))
    return StructPlan(name=struct.name, fields=tuple(struct.fields), steps=tuple(steps))


def tag_policy(enum: TlbEnum) -> TagPolicy:
    """Decide how variants of a sum type are told apart.

    Exactly one of a representation type (`enum Name: uint32`) or
    `@assert_unsafe(items_prefixes_nonoverlap)` must be declared.
    """
    log = logger.new(enum=enum.name)
    policy: TagPolicy | None = None

    for annotation in enum.annotations:
        if annotation.name != ASSERT_ANNOTATION:
            continue
        if len(annotation.arguments) != 1:
            raise ValidationError(f"@{ASSERT_ANNOTATION} on {enum.name} must name exactly one assertion")
        assertion = annotation.arguments[0].value
        if assertion != NONOVERLAP_ASSERTION:
            log.warning("unknown assertion ignored", assertion=assertion)
            continue
        if policy is not None:
            raise ValidationError(f"{enum.name} asserts {NONOVERLAP_ASSERTION} more than once")
        policy = NotWanted()

    if enum.type is not None:
        if policy is not None:
            raise ValidationError(
                f"{enum.name} declares both a representation type and {NONOVERLAP_ASSERTION}"
            )
        if enum.type.name not in UINT_TYPES:
            raise ValidationError(
                f"{enum.name} representation must be an unsigned integer type, not {enum.type.name}"
            )
        policy = Wanted(width=PRIMITIVE_WIDTHS[enum.type.name])

    if policy is None:
        raise ValidationError(
            f"Don't know how to differentiate variants of {enum.name}: declare a representation "
            f"type or @{ASSERT_ANNOTATION}({NONOVERLAP_ASSERTION})"
        )
    return policy


def assign_discriminants(enum: TlbEnum) -> list[int]:
    """Number variants from 0, restarting the count at each explicit value."""
    result: list[int] = []
    next_value = 0
    for variant in enum.variants:
        value = next_value if variant.discriminant is None else variant.discriminant
        result.append(value)
        next_value = value + 1
    return result


def compile_enum(enum: TlbEnum) -> EnumPlan:
    """Build one serialization plan per variant of a sum type."""
    log = logger.new(enum=enum.name)
    policy = tag_policy(enum)

    if not enum.variants:
        raise ValidationError(f"{enum.name} must declare at least one variant")

    seen: dict[int, str] = {}
    variants: list[VariantPlan] = []
    for variant, discriminant in zip(enum.variants, assign_discriminants(enum)):
        owner = f"{enum.name}.{variant.name}"

        if discriminant in seen:
            raise ValidationError(
                f"{owner} reuses discriminant {discriminant} of {enum.name}.{seen[discriminant]}"
            )
        seen[discriminant] = variant.name

        if variant.layout is None:
            raise ValidationError(f"Serialization layout for variant {owner} is required")

        steps = FieldResolver(owner, variant.fields).resolve(parse_layout(variant.layout))

        if isinstance(policy, Wanted):
            if discriminant >= 1 << policy.width:
                raise ValidationError(
                    f"{owner} discriminant {discriminant} does not fit in {policy.width} bits"
                )
            steps.insert(0, EmitLiteral(value=discriminant, width=policy.width))

        variants.append(
            VariantPlan(
                name=variant.name,
                discriminant=discriminant,
                fields=tuple(variant.fields),
                steps=tuple(steps),
            )
        )

    log.debug("compiled enum", policy=policy, variants=len(variants))
    return EnumPlan(name=enum.name, policy=policy, variants=tuple(variants))


def _referenced_types(plan: StructPlan | EnumPlan) -> list[str]:
    if isinstance(plan, StructPlan):
        steps: list[Step] = list(plan.steps)
    else:
        steps = [step for variant in plan.variants for step in variant.steps]
    return [s.type.name for s in steps if isinstance(s, EmitField) and not is_primitive(s.type)]


def check_recursion(schema: CompiledSchema) -> None:
    """Reject types that contain themselves, directly or through other types."""
    plans = schema.plans()
    done: set[str] = set()

    def visit(name: str, path: list[str]) -> None:
        if name in path:
            cycle = " -> ".join([*path[path.index(name) :], name])
            raise ValidationError(f"Recursive type {name}: {cycle}")
        if name in done:
            return
        for ref in _referenced_types(plans[name]):
            visit(ref, [*path, name])
        done.add(name)

    for name in plans:
        visit(name, [])


def leading_bits(steps: tuple[Step, ...]) -> str:
    """Bits fixed by the literal steps that precede the first field."""
    bits: list[str] = []
    for step in steps:
        if not isinstance(step, EmitLiteral):
            break
        if step.width:
            bits.append(format(step.value, f"0{step.width}b"))
    return "".join(bits)


def check_prefixes(plan: EnumPlan) -> None:
    """Verify that no variant's leading bits are a prefix of another's.

    This is an opt-in check. `NotWanted` sum types are trusted by default.
    """
    prefixes = [(variant.name, leading_bits(variant.steps)) for variant in plan.variants]
    for i, (name_a, bits_a) in enumerate(prefixes):
        for name_b, bits_b in prefixes[i + 1 :]:
            if bits_a.startswith(bits_b) or bits_b.startswith(bits_a):
                raise ValidationError(
                    f"Variants {plan.name}.{name_a} and {plan.name}.{name_b} have overlapping "
                    f"prefixes ({bits_a or 'empty'} / {bits_b or 'empty'})"
                )


def compile_schema(
    structs: list[TlbStruct], enums: list[TlbEnum], *, verify_prefixes: bool = False
) -> CompiledSchema:
    """Compile every declaration of a schema."""
    schema = CompiledSchema(
        structs=tuple(compile_struct(s) for s in structs),
        enums=tuple(compile_enum(e) for e in enums),
    )
    check_recursion(schema)

    if verify_prefixes:
        for plan in schema.enums:
            check_prefixes(plan)

    return schema
