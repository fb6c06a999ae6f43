"""Python code generator for TL-B schemas."""

import keyword
from importlib import resources

from jinja2 import Environment, PackageLoader

from .compiler import compile_schema
from .parser import ValidationError
from .plan import CompiledSchema, EmitLiteral, EnumPlan, Step, VariantPlan
from .types import PRIMITIVE_WIDTHS, TlbEnum, TlbField, TlbStruct, TlbType, is_varuint
from .util import to_camel_case

RUNTIME_FILES = [
    "__init__.py",
    "serialization.py",
]

env = Environment(
    loader=PackageLoader("tlbgen.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

template = env.get_template("python.py.j2")

# Attribute names the generated classes already use
RESERVED_NAMES = frozenset(["serialize", "discriminant", "tag_width", "variants"])

# Module globals the generated code imports
IMPORTED_NAMES = frozenset(
    [
        "dataclass",
        "Struct",
        "SumType",
        "serialize_bool",
        "serialize_uint",
        "serialize_varuint16",
        "tlb_field",
    ]
)


def _map_type(t: TlbType) -> str:
    """Map a schema type to a Python type annotation."""
    if t.name == "bool":
        return "bool"
    if t.name in PRIMITIVE_WIDTHS or is_varuint(t):
        return "int"
    return t.name


def _gen_step(step: Step) -> str:
    """Generate the line that executes one plan step."""
    if isinstance(step, EmitLiteral):
        return f'_out.append("{step.text}")'

    t = step.type
    if t.name == "bool":
        return f"_out.extend(serialize_bool(self.{step.name}))"
    if is_varuint(t):
        return f"_out.extend(serialize_varuint16(self.{step.name}))"
    if t.name in PRIMITIVE_WIDTHS:
        return f"_out.extend(serialize_uint(self.{step.name}, {PRIMITIVE_WIDTHS[t.name]}))"
    # Nested struct or sum type
    return f"_out.extend(self.{step.name}.serialize())"


def _variant_class(plan: EnumPlan, variant: VariantPlan) -> str:
    return f"{plan.name}{to_camel_case(variant.name)}"


def _check_identifiers(schema: CompiledSchema) -> None:
    """Reject names that cannot be used as Python identifiers here."""

    def check(owner: str, fields: tuple[TlbField, ...]) -> None:
        for f in fields:
            if keyword.iskeyword(f.name) or f.name in RESERVED_NAMES or f.name in IMPORTED_NAMES:
                raise ValidationError(f"{owner}.{f.name} cannot be used as a Python field name")

    class_names: set[str] = {plan.name for plan in schema.structs}
    class_names.update(plan.name for plan in schema.enums)
    shadowed = sorted(class_names & IMPORTED_NAMES)
    if shadowed:
        raise ValidationError(f"Type {shadowed[0]} shadows a name the generated module imports")

    for struct in schema.structs:
        check(struct.name, struct.fields)
    for enum in schema.enums:
        for variant in enum.variants:
            check(f"{enum.name}.{variant.name}", variant.fields)
            class_name = _variant_class(enum, variant)
            if class_name in IMPORTED_NAMES:
                raise ValidationError(f"{enum.name}.{variant.name} shadows imported name {class_name}")
            if class_name in class_names:
                raise ValidationError(f"{enum.name}.{variant.name} clashes with class {class_name}")
            class_names.add(class_name)


def render(
    structs: list[TlbStruct],
    enums: list[TlbEnum],
    runtime_import: str = "tlb_runtime",
    check_prefixes: bool = False,
) -> str:
    """Compile a schema and render it to Python source code."""
    schema = compile_schema(structs, enums, verify_prefixes=check_prefixes)
    _check_identifiers(schema)

    return template.render(
        schema=schema,
        map_type=_map_type,
        gen_step=_gen_step,
        variant_class=_variant_class,
        runtime_import=runtime_import,
        BLANK_LINE="",
    )


def runtime() -> dict[str, str]:
    """Return the Python runtime files as a dict of filename -> content."""
    result: dict[str, str] = {}
    for filename in RUNTIME_FILES:
        content = resources.files("tlbgen.proto").joinpath(filename).read_text()
        result[filename] = content
    return result
