"""Tests for struct and sum type compilation."""

import logging

import pytest
from structlog.testing import capture_logs

from tlbgen.generator import parse
from tlbgen.generator.compiler import (
    assign_discriminants,
    check_prefixes,
    compile_enum,
    compile_schema,
    compile_struct,
    tag_policy,
)
from tlbgen.generator.layout import LayoutError
from tlbgen.generator.parser import ValidationError
from tlbgen.generator.plan import EmitField, EmitLiteral, NotWanted, Wanted
from tlbgen.generator.types import TlbType


def struct(text):
    structs, _ = parse(text)
    return structs[0]


def enum(text):
    _, enums = parse(text)
    return enums[0]


def describe_compile_struct():
    def follows_layout_order(expect):
        plan = compile_struct(
            struct(
                """
                struct Address [u 4 3bit, workchain, hash_high, hash_low] {
                    workchain: uint8
                    hash_high: uint128
                    hash_low: uint128
                }
            """
            )
        )
        expect(plan.name) == "Address"
        expect(plan.steps[0]) == EmitLiteral(value=4, width=3)
        expect([s.name for s in plan.steps[1:]]) == ["workchain", "hash_high", "hash_low"]

    def skips_unreferenced_fields(expect):
        plan = compile_struct(struct("struct P [y] { x: uint8 y: uint8 }"))
        expect(len(plan.fields)) == 2
        expect(plan.steps) == (EmitField(name="y", position=1, type=TlbType("uint8")),)

    def requires_layout(expect):
        with pytest.raises(ValidationError) as exc:
            compile_struct(struct("struct NoLayout { x: uint8 }"))
        expect("NoLayout is required" in str(exc.value)) == True

    def fails_on_unresolved_field(expect):
        with pytest.raises(LayoutError) as exc:
            compile_struct(struct("struct Typo [workchian] { workchain: uint8 }"))
        expect("workchian" in str(exc.value)) == True

    def compiles_fundamental_varuint16(expect):
        plan = compile_struct(struct("struct Coins [__fundamental_varuint16] { amount: uint128 }"))
        expect(plan.steps) == (EmitField(name="amount", position=0, type=TlbType("varuint16")),)

    def rejects_fundamental_with_several_fields(expect):
        with pytest.raises(ValidationError) as exc:
            compile_struct(struct("struct Bad [__fundamental_varuint16] { a: uint8 b: uint8 }"))
        expect("exactly one field" in str(exc.value)) == True

    def rejects_fundamental_of_non_integer(expect):
        with pytest.raises(ValidationError) as exc:
            compile_struct(struct("struct Bad [__fundamental_varuint16] { a: bool }"))
        expect("unsigned integer" in str(exc.value)) == True


def describe_tag_policy():
    def uses_representation_width(expect):
        expect(tag_policy(enum("enum E: uint32 { A [] }"))) == Wanted(width=32)

    def trusts_nonoverlap_assertion(expect):
        policy = tag_policy(enum("@assert_unsafe(items_prefixes_nonoverlap) enum E { A [] }"))
        expect(policy) == NotWanted()

    def rejects_missing_declaration(expect):
        with pytest.raises(ValidationError) as exc:
            tag_policy(enum("enum E { A [] }"))
        expect("differentiate variants of E" in str(exc.value)) == True

    def rejects_both_declarations(expect):
        with pytest.raises(ValidationError) as exc:
            tag_policy(enum("@assert_unsafe(items_prefixes_nonoverlap) enum E: uint8 { A [] }"))
        expect("both" in str(exc.value)) == True

    def rejects_repeated_assertion(expect):
        with pytest.raises(ValidationError):
            tag_policy(
                enum(
                    """
                    @assert_unsafe(items_prefixes_nonoverlap)
                    @assert_unsafe(items_prefixes_nonoverlap)
                    enum E { A [] }
                """
                )
            )

    def rejects_non_integer_representation(expect):
        with pytest.raises(ValidationError) as exc:
            tag_policy(enum("enum E: bool { A [] }"))
        expect("unsigned integer" in str(exc.value)) == True

    def ignores_unknown_assertion_with_warning(expect):
        with capture_logs() as logs:
            policy = tag_policy(enum("@assert_unsafe(something_else) enum E: uint8 { A [] }"))
        expect(policy) == Wanted(width=8)
        warnings = [log for log in logs if log["log_level"] == "warning"]
        expect(len(warnings)) == 1
        expect(warnings[0]["assertion"]) == "something_else"

    def ignores_other_annotations(expect):
        expect(tag_policy(enum("@doc(x) enum E: uint16 { A [] }"))) == Wanted(width=16)


def describe_discriminants():
    def counts_from_zero(expect):
        expect(assign_discriminants(enum("enum E: uint8 { A [] B [] C [] }"))) == [0, 1, 2]

    def continues_after_explicit_value(expect):
        discriminants = assign_discriminants(enum("enum E: uint8 { A [] B [] = 10 C [] D [] = 3 E [] }"))
        expect(discriminants) == [0, 10, 11, 3, 4]

    def rejects_duplicates(expect):
        with pytest.raises(ValidationError) as exc:
            compile_enum(enum("enum E: uint8 { A [] = 1 B [] = 0 C [] }"))
        expect("E.C reuses discriminant 1 of E.A" in str(exc.value)) == True

    def rejects_value_wider_than_tag(expect):
        with pytest.raises(ValidationError) as exc:
            compile_enum(enum("enum E: uint8 { A [] = 256 }"))
        expect("does not fit in 8 bits" in str(exc.value)) == True


def describe_compile_enum():
    def injects_tag_before_variant_steps(expect):
        plan = compile_enum(
            enum(
                """
                enum Boc: uint32 {
                    Empty [u 0 16bit] {} = 0
                    Normal [] {} = 0xb5eec792
                }
            """
            )
        )
        expect(plan.tag_width) == 32
        empty, normal = plan.variants
        expect(empty.steps) == (EmitLiteral(0, 32), EmitLiteral(0, 16))
        expect(normal.discriminant) == 3052324754
        expect([s.text for s in normal.steps]) == ["u 3052324754 32bit"]

    def injects_nothing_when_prefixes_asserted(expect):
        plan = compile_enum(
            enum(
                """
                @assert_unsafe(items_prefixes_nonoverlap)
                enum Msg {
                    int_msg [u 0 1bit, bounce] { bounce: bool }
                    ext_msg [u 2 2bit] {}
                }
            """
            )
        )
        expect(plan.tag_width) == None
        expect(plan.variants[0].steps[0]) == EmitLiteral(0, 1)
        expect(plan.variants[1].steps) == (EmitLiteral(2, 2),)

    def resolves_fields_per_variant(expect):
        with pytest.raises(LayoutError) as exc:
            compile_enum(enum("enum E: uint8 { A [x] { x: uint8 } B [x] { y: uint8 } }"))
        expect("E.B" in str(exc.value)) == True

    def requires_variant_layout(expect):
        with pytest.raises(ValidationError) as exc:
            compile_enum(enum("enum E: uint8 { A [] B { x: uint8 } }"))
        expect("variant E.B is required" in str(exc.value)) == True

    def requires_variants(expect):
        with pytest.raises(ValidationError):
            compile_enum(enum("enum E: uint8 {}"))


def describe_compile_schema():
    def compiles_sample_schema(expect, ton_schema):
        schema = compile_schema(*parse(ton_schema))
        expect(list(schema.plans())) == ["Coins", "Address", "CurrencyCollection", "CommonMsgInfo", "Boc"]

    def rejects_recursive_types(expect):
        with pytest.raises(ValidationError) as exc:
            compile_schema(
                *parse(
                    """
                    struct A [b] { b: B }
                    enum B: uint8 { Leaf [] Node [a] { a: A } }
                """
                )
            )
        expect("Recursive type" in str(exc.value)) == True

    def allows_shared_references(expect):
        schema = compile_schema(
            *parse(
                """
                struct Leaf [x] { x: uint8 }
                struct Pair [a, b] { a: Leaf b: Leaf }
            """
            )
        )
        expect(len(schema.structs)) == 2

    def keeps_stdout_quiet_without_logging_setup(expect, ton_schema, capsys):
        compile_schema(*parse(ton_schema))
        expect(capsys.readouterr().out) == ""

    def sends_debug_events_to_stdlib_logging(expect, ton_schema, caplog):
        with caplog.at_level(logging.DEBUG, logger="tlbgen.generator.compiler"):
            compile_schema(*parse(ton_schema))
        expect(any("compiled struct" in r.getMessage() for r in caplog.records)) == True


def describe_check_prefixes():
    def accepts_disjoint_prefixes(expect):
        plan = compile_enum(
            enum(
                """
                @assert_unsafe(items_prefixes_nonoverlap)
                enum Info {
                    int_msg [u 0 1bit, x] { x: uint8 }
                    ext_in [u 2 2bit, x] { x: uint8 }
                    ext_out [u 3 2bit] {}
                }
            """
            )
        )
        check_prefixes(plan)

    def rejects_prefix_of_another_variant(expect):
        plan = compile_enum(
            enum(
                """
                @assert_unsafe(items_prefixes_nonoverlap)
                enum Info {
                    a [u 1 1bit, x] { x: uint8 }
                    b [u 3 2bit] {}
                }
            """
            )
        )
        with pytest.raises(ValidationError) as exc:
            check_prefixes(plan)
        expect("Info.a and Info.b" in str(exc.value)) == True

    def rejects_variant_without_leading_bits(expect):
        plan = compile_enum(
            enum(
                """
                @assert_unsafe(items_prefixes_nonoverlap)
                enum Info {
                    a [x] { x: uint8 }
                    b [u 0 1bit] {}
                }
            """
            )
        )
        with pytest.raises(ValidationError) as exc:
            check_prefixes(plan)
        expect("empty" in str(exc.value)) == True

    def is_only_run_on_request(expect):
        text = """
            @assert_unsafe(items_prefixes_nonoverlap)
            enum Info { a [u 0 1bit] b [u 0 1bit] }
        """
        compile_schema(*parse(text))
        with pytest.raises(ValidationError):
            compile_schema(*parse(text), verify_prefixes=True)

    def passes_for_tagged_sum_types(expect, ton_schema):
        compile_schema(*parse(ton_schema), verify_prefixes=True)
