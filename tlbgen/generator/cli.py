"""Command-line interface for tlbgen code generation."""

from __future__ import annotations

import json
import logging
import logging.config
import sys
from pathlib import Path

import click
import structlog
from rich.console import Console
from rich.table import Table
from structlog.dev import ConsoleRenderer

from tlbgen.generator import compile_schema, parse, python
from tlbgen.generator.parser import ValidationError
from tlbgen.generator.plan import CompiledSchema, EmitLiteral, EnumPlan, NotWanted, Step
from tlbgen.generator.sizes import SchemaSizeInfo, SizeInfo, calculate_sizes


def _load(input_file: str) -> tuple[list, list]:
    with open(input_file, encoding="utf-8") as f:
        text = f.read()

    try:
        return parse(text)
    except ValidationError as e:
        print(f"Error: {e}")
        sys.exit(1)


def setup_logging(debug: bool = False) -> None:
    """Route structlog events through stdlib logging to stderr."""
    pre_chain = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
    ]

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": ConsoleRenderer(colors=False),
                    "foreign_pre_chain": pre_chain,
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                    "stream": "ext://sys.stderr",
                },
            },
            "loggers": {
                "": {
                    "handlers": ["stderr"],
                    "level": "DEBUG" if debug else "WARNING",
                },
            },
        }
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )


@click.group()
@click.option("--debug", is_flag=True, default=False, help="Log compiler debug events to stderr")
def cli(debug: bool) -> None:
    """TL-B layout serializer generator."""
    setup_logging(debug)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input schema file")
@click.option("--output", "-o", "output_file", required=True, help="Output file")
@click.option(
    "--runtime-import",
    "runtime_import",
    is_flag=False,
    flag_value="tlbgen.proto",
    default=None,
    help="Import path for runtime. No value=tlbgen.proto, omit=tlb_runtime",
)
@click.option(
    "--check-prefixes",
    is_flag=True,
    default=False,
    help="Verify that variants of every sum type start with non-overlapping bits",
)
def gen(input_file: str, output_file: str, runtime_import: str | None, check_prefixes: bool) -> None:
    """Generate Python serializers from a schema file."""
    structs, enums = _load(input_file)

    # Default to "tlb_runtime" (a runtime folder next to the output) if not specified
    import_path = runtime_import if runtime_import is not None else "tlb_runtime"
    try:
        generated_file = python.render(
            structs, enums, runtime_import=import_path, check_prefixes=check_prefixes
        )
    except ValidationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    with open(output_file, "w", encoding="utf-8") as f:
        f.write(generated_file)


@cli.command()
@click.option("--output", "-o", "output_path", default=".", help="Output directory")
@click.option("--name", default="tlb_runtime", help="Runtime folder name")
def runtime(output_path: str, name: str) -> None:
    """Generate runtime support code."""
    runtime_dir = Path(output_path) / name
    runtime_dir.mkdir(parents=True, exist_ok=True)
    for filename, content in python.runtime().items():
        (runtime_dir / filename).write_text(content)
    print(f"Generated Python runtime in {runtime_dir}")


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input schema file")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(input_file: str, output_json: bool) -> None:
    """Display compiled layouts and bit sizes."""
    structs, enums = _load(input_file)
    try:
        schema = compile_schema(structs, enums)
    except ValidationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    size_info = calculate_sizes(schema)

    if output_json:
        _output_json(schema, size_info)
    else:
        _output_plain(schema, size_info)


def _policy(plan: EnumPlan) -> str:
    if isinstance(plan.policy, NotWanted):
        return "asserted"
    return f"tag:{plan.policy.width}"


def _describe_step(step: Step) -> str:
    if isinstance(step, EmitLiteral):
        return step.text
    return step.name


def _format_size(size: SizeInfo) -> str:
    if size.min_bits == size.max_bits:
        return f"{size.min_bits} bits"
    return f"{size.min_bits}-{size.max_bits} bits"


def _output_json(schema: CompiledSchema, size_info: SchemaSizeInfo) -> None:
    """Output schema info as JSON."""
    data: dict = {
        "structs": {},
        "enums": {},
        "oversized": size_info.oversized,
    }

    for plan in schema.structs:
        size = size_info.types[plan.name].size
        data["structs"][plan.name] = {
            "layout": [_describe_step(step) for step in plan.steps],
            "min_bits": size.min_bits,
            "max_bits": size.max_bits,
            "kind": size.kind.value,
        }

    for enum_plan in schema.enums:
        type_info = size_info.types[enum_plan.name]
        data["enums"][enum_plan.name] = {
            "tag_width": enum_plan.tag_width,
            "min_bits": type_info.size.min_bits,
            "max_bits": type_info.size.max_bits,
            "kind": type_info.size.kind.value,
            "variants": {
                variant.name: {
                    "discriminant": variant.discriminant,
                    "min_bits": type_info.variants[variant.name].min_bits,
                    "max_bits": type_info.variants[variant.name].max_bits,
                }
                for variant in enum_plan.variants
            },
        }

    print(json.dumps(data, indent=2))


def _output_plain(schema: CompiledSchema, size_info: SchemaSizeInfo) -> None:
    """Output schema info using rich text formatting."""
    console = Console()

    console.print("[bold cyan]Structs[/bold cyan]")
    struct_table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    struct_table.add_column("Name", style="white")
    struct_table.add_column("Size", style="yellow", justify="right")
    struct_table.add_column("Kind", style="dim")
    struct_table.add_column("Steps", style="green", justify="right")

    for plan in schema.structs:
        size = size_info.types[plan.name].size
        struct_table.add_row(plan.name, _format_size(size), size.kind.value, str(len(plan.steps)))

    console.print(struct_table)
    console.print()

    console.print("[bold cyan]Sum types[/bold cyan]")
    enum_table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    enum_table.add_column("Name", style="white")
    enum_table.add_column("Variant", style="white")
    enum_table.add_column("Discriminant", style="green", justify="right")
    enum_table.add_column("Size", style="yellow", justify="right")
    enum_table.add_column("Tags", style="dim")

    for enum_plan in schema.enums:
        type_info = size_info.types[enum_plan.name]
        for variant in enum_plan.variants:
            enum_table.add_row(
                enum_plan.name,
                variant.name,
                hex(variant.discriminant),
                _format_size(type_info.variants[variant.name]),
                _policy(enum_plan),
            )

    console.print(enum_table)

    if size_info.oversized:
        console.print()
        console.print(
            f"[bold yellow]May exceed one cell ({', '.join(size_info.oversized)})[/bold yellow]"
        )


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
