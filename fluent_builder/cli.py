"""
Command-line interface for builder generation.

Reads a Python module, picks the record classes to generate builders for,
and writes the generated source or reports diagnostics.
"""

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from .codegen.core.config import ConfigError, ConfigManager, GeneratorConfig
from .codegen.core.generator import BuilderGenerator, GenerationResult
from .codegen.core.naming import factory_function_name
from .codegen.core.schema import RawDefinition
from .frontend import FrontendError, parse_source
from .logging_config import configure_logging, get_logger

logger = get_logger(__name__)


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


console = Console()
error_console = Console(stderr=True)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="fluent-builder",
        description="Generate chainable builder classes for Python record types",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fluent-builder models.py
  fluent-builder models.py --class Command --output command_builder.py
  fluent-builder models.py --all --output-dir builders/ --record-module models
        """.strip(),
    )

    parser.add_argument("file", help="Python source file holding the record classes")

    selection = parser.add_mutually_exclusive_group()
    selection.add_argument(
        "--class",
        dest="classes",
        action="append",
        metavar="NAME",
        help="Generate a builder for this class (repeatable)",
    )
    selection.add_argument(
        "--all",
        action="store_true",
        help="Generate builders for every top-level class, not just dataclasses",
    )

    output = parser.add_mutually_exclusive_group()
    output.add_argument("--output", "-o", metavar="FILE", help="Output file")
    output.add_argument(
        "--output-dir", metavar="DIR", help="Write one module per builder into DIR"
    )

    parser.add_argument("--config", metavar="FILE", help="JSON configuration file")
    parser.add_argument(
        "--record-module",
        metavar="MODULE",
        help="Module the generated code imports the record classes from",
    )
    parser.add_argument(
        "--no-comments",
        action="store_true",
        help="Don't add docstrings to generated code",
    )
    parser.add_argument(
        "--show-schema",
        action="store_true",
        help="Print the classified fields of each record",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", metavar="FILE", help="Also log to FILE")

    return parser


def _build_config(args: argparse.Namespace) -> GeneratorConfig:
    overrides = {}
    if args.record_module:
        overrides["record_module"] = args.record_module
    if args.no_comments:
        overrides["add_comments"] = False

    manager = ConfigManager()
    try:
        config = manager.get_config(overrides, args.config)
    except ConfigError as e:
        raise CLIError(str(e)) from e

    for warning in manager.validate_config(config):
        error_console.print(f"[yellow]⚠ {warning}[/yellow]")
    return config


def _load_definitions(path: Path) -> List[RawDefinition]:
    try:
        source = path.read_text(encoding="utf-8")
    except OSError as e:
        raise CLIError(f"Cannot read {path}: {e}") from e

    try:
        return parse_source(source, str(path))
    except FrontendError as e:
        raise CLIError(str(e)) from e


def _select(
    definitions: List[RawDefinition], classes: Optional[List[str]], all_classes: bool
) -> List[RawDefinition]:
    if classes:
        by_name = {d.name: d for d in definitions}
        missing = [name for name in classes if name not in by_name]
        if missing:
            raise CLIError(f"Class not found: {', '.join(missing)}")
        return [by_name[name] for name in classes]

    if all_classes:
        return definitions

    selected = [
        d
        for d in definitions
        if any(dec.rsplit(".", 1)[-1] == "dataclass" for dec in d.decorators)
    ]
    if not selected:
        raise CLIError("No dataclasses found; use --class NAME or --all")
    return selected


def _print_schema(result: GenerationResult) -> None:
    location = result.metadata.get("location")
    table = Table(
        title=f"{result.metadata['record_name']} → {result.metadata['builder_name']}",
        caption=f"{location['file']}:{location['line']}" if location else None,
        box=box.ROUNDED,
    )
    table.add_column("Field", style="cyan")
    table.add_column("Type")
    table.add_column("Kind", style="magenta")
    table.add_column("Setters", style="green")

    for field_info in result.metadata.get("fields", []):
        table.add_row(
            field_info["name"],
            field_info["type"],
            field_info["kind"],
            ", ".join(field_info["methods"]),
        )
    console.print(table)


def _print_diagnostics(name: str, result: GenerationResult) -> None:
    table = Table(title=f"Diagnostics for {name}", box=box.ROUNDED)
    table.add_column("Location", style="cyan")
    table.add_column("Field")
    table.add_column("Message", style="red")

    for d in result.diagnostics:
        table.add_row(f"{d.file}:{d.line}:{d.column}", d.field_name or "-", d.message)
    error_console.print(table)


def _write_outputs(results: Dict[str, GenerationResult], args) -> None:
    if args.output_dir:
        out_dir = Path(args.output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        for name, result in results.items():
            target = out_dir / f"{factory_function_name(name)}.py"
            target.write_text(result.code, encoding="utf-8")
            console.print(f"[green]✓[/green] Wrote {target}")
        return

    if args.output:
        if len(results) > 1:
            raise CLIError(
                "--output takes a single class; use --output-dir for several"
            )
        target = Path(args.output)
        target.write_text(next(iter(results.values())).code, encoding="utf-8")
        console.print(f"[green]✓[/green] Wrote {target}")
        return

    for name, result in results.items():
        console.print(
            Panel(
                Syntax(result.code, "python", theme="monokai", line_numbers=False),
                title=name,
                box=box.ROUNDED,
            )
        )


def run(args: argparse.Namespace) -> int:
    """
    Run builder generation for parsed arguments.

    Returns:
        Exit code: 0 on success, 1 if any diagnostics were produced
    """
    config = _build_config(args)
    definitions = _select(
        _load_definitions(Path(args.file)), args.classes, args.all
    )

    generator = BuilderGenerator(config)
    results = {d.name: generator.generate(d) for d in definitions}

    failed = False
    for name, result in results.items():
        for warning in result.warnings:
            error_console.print(f"[yellow]⚠ {warning}[/yellow]")
        if not result.success:
            failed = True
            _print_diagnostics(name, result)
        elif args.show_schema:
            _print_schema(result)

    _write_outputs(results, args)
    return 1 if failed else 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=args.verbose,
        log_file=Path(args.log_file) if args.log_file else None,
    )

    try:
        return run(args)
    except CLIError as e:
        error_console.print(f"[red]✗ Error:[/red] {e}")
        return 2
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        error_console.print(f"[red]✗ Unexpected error:[/red] {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
