"""Schema definition parser using Lark."""

import os
from dataclasses import dataclass
from typing import Any, TypeVar

from lark import Lark
from lark.visitors import Transformer, VisitError

from .types import (
    PRIMITIVE_TYPES,
    TlbAnnotation,
    TlbAnnotationArg,
    TlbEnum,
    TlbField,
    TlbStruct,
    TlbType,
    TlbVariant,
)

_g_parser: Lark | None = None


class ValidationError(RuntimeError):
    """Raised when a schema is rejected."""


@dataclass
class _Name:
    value: str


@dataclass
class _Layout:
    value: str


@dataclass
class _Discriminant:
    value: int


TFilter = TypeVar("TFilter", bound=object)


def _filter(args: list[Any], class_type: type[TFilter]) -> list[TFilter]:
    return [v for v in args if isinstance(v, class_type)]


def _find_one(args: list[Any], class_type: type[object]) -> Any:
    filtered = _filter(args, class_type)
    if len(filtered) == 0:
        return None
    if len(filtered) > 1:
        raise RuntimeError(f"Found more than one {class_type}")

    if hasattr(filtered[0], "value"):
        return filtered[0].value
    return filtered[0]


TMany = TypeVar("TMany")


def _find_many(args: list[Any], class_type: type[TMany]) -> list[TMany]:
    return _filter(args, class_type)


def parse_int(text: str) -> int:
    """Parse a decimal, `0x` hexadecimal or `0b` binary integer literal."""
    try:
        if text[:2].lower() in ("0x", "0b"):
            return int(text, 0)
        return int(text, 10)
    except ValueError:
        raise ValidationError(f"Malformed integer literal {text!r}") from None


class TreeTransformer(Transformer):
    """Transform parse tree into schema types."""

    def start(self, args: list[Any]) -> list[Any]:
        return args

    def argument_val(self, args: list[Any]) -> TlbAnnotationArg:
        if len(args) == 1:
            return TlbAnnotationArg(name=None, value=str(args[0]))
        if len(args) == 2:
            return TlbAnnotationArg(name=str(args[0]), value=str(args[1]))
        raise RuntimeError("Argument has more than two args")

    def annotation(self, args: list[Any]) -> TlbAnnotation:
        return TlbAnnotation(name=str(args[0]), arguments=_find_many(args, TlbAnnotationArg))

    def discriminant(self, args: list[Any]) -> _Discriminant:
        return _Discriminant(value=parse_int(str(args[0])))

    def layout(self, args: list[Any]) -> _Layout:
        # Drop the surrounding brackets
        return _Layout(value=str(args[0])[1:-1])

    def name(self, args: list[Any]) -> _Name:
        return _Name(value=str(args[0]))

    def type(self, args: list[Any]) -> TlbType:
        return TlbType(name=str(args[0]))

    def field(self, args: list[Any]) -> TlbField:
        return TlbField(name=_find_one(args, _Name), type=_find_one(args, TlbType))

    def struct(self, args: list[Any]) -> TlbStruct:
        return TlbStruct(
            name=_find_one(args, _Name),
            fields=_find_many(args, TlbField),
            layout=_find_one(args, _Layout),
            annotations=_find_many(args, TlbAnnotation),
        )

    def variant(self, args: list[Any]) -> TlbVariant:
        return TlbVariant(
            name=_find_one(args, _Name),
            fields=_find_many(args, TlbField),
            layout=_find_one(args, _Layout),
            discriminant=_find_one(args, _Discriminant),
            annotations=_find_many(args, TlbAnnotation),
        )

    def enum(self, args: list[Any]) -> TlbEnum:
        return TlbEnum(
            name=_find_one(args, _Name),
            type=_find_one(args, TlbType),
            variants=_find_many(args, TlbVariant),
            annotations=_find_many(args, TlbAnnotation),
        )


def validate(structs: list[TlbStruct], enums: list[TlbEnum]) -> None:
    """Validate declarations and type references of a parsed schema."""
    declared: set[str] = set()
    for decl in [*structs, *enums]:
        if decl.name in PRIMITIVE_TYPES:
            raise ValidationError(f"{decl.name} shadows a primitive type")
        if decl.name in declared:
            raise ValidationError(f"{decl.name} is declared more than once")
        declared.add(decl.name)

    def check_fields(owner: str, fields: list[TlbField]) -> None:
        for f in fields:
            if f.type.name not in PRIMITIVE_TYPES and f.type.name not in declared:
                raise ValidationError(f"{owner}.{f.name} has unknown type {f.type.name}")

    for struct in structs:
        check_fields(struct.name, struct.fields)

    for enum in enums:
        variant_names: set[str] = set()
        for variant in enum.variants:
            if variant.name in variant_names:
                raise ValidationError(f"{enum.name} declares variant {variant.name} twice")
            variant_names.add(variant.name)
            check_fields(f"{enum.name}.{variant.name}", variant.fields)


def parse(text: str) -> tuple[list[TlbStruct], list[TlbEnum]]:
    """Parse a schema definition file."""
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/schema.lark", encoding="utf-8") as f:
            grammar = f.read()

        _g_parser = Lark(grammar)

    tree = _g_parser.parse(text)
    try:
        items = TreeTransformer().transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, ValidationError):
            raise e.orig_exc from None
        raise

    structs = _find_many(items, TlbStruct)
    enums = _find_many(items, TlbEnum)

    validate(structs, enums)

    return (structs, enums)
