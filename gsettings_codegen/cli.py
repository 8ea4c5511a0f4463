"""
Command-line interface for binding generation.

Compiles a schema document (or a JSON generation request) and writes the
generated bindings, or lists the accessors a schema would produce.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from . import __version__, generate_from_request
from .core.accessors import CompiledSchema, compile_schema
from .core.config import ConfigError, GenerationRequest, GeneratorConfig, load_config, load_request
from .core.errors import BindingError, InvalidDirectiveError
from .core.overrides import DefineDirective, SkipDirective
from .logging_config import get_logger, setup_logging
from .registry import RegistryError, get_registry, list_all_language_info

logger = get_logger(__name__)


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


# Initialize rich console
console = Console()
err_console = Console(stderr=True)


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="gsettings-codegen",
        description="Generate typed settings bindings from a GSettings schema",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gsettings-codegen org.example.app.gschema.xml -o app_settings.py
  gsettings-codegen schema.gschema.xml --id org.example.App --skip-key window-state
  gsettings-codegen schema.gschema.xml --define-signature "(dd)" "tuple[float, float]" "tuple[float, float]"
  gsettings-codegen --request request.json --list-keys
        """.strip(),
    )

    # Input options (mutually exclusive)
    input_group = parser.add_mutually_exclusive_group(required=False)
    input_group.add_argument("schema_file", nargs="?", help="Schema document (XML)")
    input_group.add_argument("--request", metavar="FILE", help="JSON generation request")

    parser.add_argument("--id", dest="schema_id", help="Schema id to generate bindings for")

    directive_group = parser.add_argument_group("directives")
    directive_group.add_argument(
        "--skip-key", action="append", default=[], metavar="NAME",
        help="Generate nothing for this key",
    )
    directive_group.add_argument(
        "--skip-signature", action="append", default=[], metavar="SIG",
        help="Generate nothing for keys of this type code",
    )
    directive_group.add_argument(
        "--define-key", action="append", default=[], nargs=3,
        metavar=("NAME", "ARG", "RET"),
        help="Use explicit argument and return types for this key",
    )
    directive_group.add_argument(
        "--define-signature", action="append", default=[], nargs=3,
        metavar=("SIG", "ARG", "RET"),
        help="Use explicit argument and return types for keys of this type code",
    )

    output_group = parser.add_argument_group("generation")
    output_group.add_argument("--language", "-l", help="Target language (default: python)")
    output_group.add_argument("--config", metavar="FILE", help="JSON generator configuration")
    output_group.add_argument("--class-name", help="Name of the generated settings class")
    output_group.add_argument(
        "--no-comments", action="store_true", help="Don't add docstrings to generated code",
    )
    output_group.add_argument("--output", "-o", help="Output file (default: stdout)")

    info_group = parser.add_argument_group("information")
    info_group.add_argument(
        "--list-keys", action="store_true",
        help="Show the accessors the schema produces instead of generating code",
    )
    info_group.add_argument(
        "--list-languages", action="store_true", help="List supported languages and exit",
    )
    info_group.add_argument(
        "--verbose", "-v", action="store_true", help="Show generation result metadata",
    )
    info_group.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    info_group.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the command line interface.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level, console=err_console)

    try:
        if args.list_languages:
            return _list_languages()

        request = _build_request(args)

        if args.list_keys:
            flag_width = _build_config(args, request).flag_width
            return _list_keys(compile_schema(request, flag_width=flag_width))

        return _generate_and_output(request, args)

    except (CLIError, ConfigError, RegistryError, BindingError) as e:
        logger.debug("Command failed", exc_info=True)
        err_console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        return 1


def _build_request(args: argparse.Namespace) -> GenerationRequest:
    """Build the generation request from a request file and CLI arguments."""
    if args.request:
        request = load_request(args.request)
    elif args.schema_file:
        request = GenerationRequest(file=Path(args.schema_file))
    else:
        raise CLIError("Input required: SCHEMA_FILE or --request FILE")

    if args.schema_id:
        request.schema_id = args.schema_id
    if args.language:
        request.language = args.language

    try:
        for name in args.skip_key:
            request.directives.append(SkipDirective(key_name=name))
        for signature in args.skip_signature:
            request.directives.append(SkipDirective(signature=signature))
        for name, arg_type, ret_type in args.define_key:
            request.directives.append(
                DefineDirective(key_name=name, arg_type=arg_type, ret_type=ret_type)
            )
        for signature, arg_type, ret_type in args.define_signature:
            request.directives.append(
                DefineDirective(signature=signature, arg_type=arg_type, ret_type=ret_type)
            )
    except InvalidDirectiveError as e:
        raise CLIError(str(e)) from e

    return request


def _build_config(args: argparse.Namespace, request: GenerationRequest) -> GeneratorConfig:
    """Merge language defaults, config file, request options and CLI overrides."""
    overrides = dict(request.generator_options)

    if args.class_name:
        overrides["class_name"] = args.class_name

    if args.no_comments:
        overrides["add_comments"] = False

    language = get_registry().resolve_name(request.language)
    return load_config(language, custom_config=overrides, config_file=args.config)


def _generate_and_output(request: GenerationRequest, args: argparse.Namespace) -> int:
    """Generate code and handle output with rich formatting."""
    if not get_registry().is_supported(request.language):
        raise CLIError(
            f"Unsupported language '{request.language}'. "
            f"Supported languages: {', '.join(get_registry().list_languages())}"
        )

    result = generate_from_request(request, _build_config(args, request))

    if not result.success:
        err_console.print(f"[red]✗ Code generation failed:[/red] {escape(result.error_message)}")
        return 1

    if args.output:
        output_path = Path(args.output)
        try:
            output_path.write_text(result.code, encoding="utf-8")
        except OSError as e:
            raise CLIError(f"Failed to write to {output_path}: {e}") from e
        err_console.print(f"[green]✓[/green] Bindings saved to [cyan]{output_path}[/cyan]")
    elif console.is_terminal:
        console.print(Syntax(result.code, request.language, theme="monokai"))
    else:
        # Plain text so the output can be redirected into a module
        sys.stdout.write(result.code)

    if args.verbose and result.metadata:
        metadata_table = Table(
            title="📊 Generation Metadata",
            box=box.SIMPLE,
            show_header=True,
            header_style="bold cyan",
        )
        metadata_table.add_column("Property", style="bold")
        metadata_table.add_column("Value", style="green")

        for key, value in result.metadata.items():
            metadata_table.add_row(key.replace("_", " ").title(), str(value))

        err_console.print()
        err_console.print(metadata_table)

    if result.warnings:
        err_console.print("\n[yellow]⚠️  Warnings:[/yellow]")
        for warning in result.warnings:
            err_console.print(f"  [yellow]•[/yellow] {escape(warning)}")

    return 0


def _list_keys(compiled: CompiledSchema) -> int:
    """Show the accessor specs of a compiled schema as a table."""
    table = Table(
        title=f"🔑 {compiled.schema_id}", box=box.ROUNDED, title_style="bold cyan"
    )
    table.add_column("Key", style="bold green", no_wrap=True)
    table.add_column("Type", style="cyan")
    table.add_column("Argument")
    table.add_column("Return")
    table.add_column("Source", style="dim")
    table.add_column("Default", style="magenta")

    for spec in compiled.accessors:
        name = escape(spec.key_name)
        if spec.read_only:
            name += " [dim](read-only)[/dim]"
        table.add_row(
            name,
            spec.type_code,
            escape(spec.arg_type),
            escape(spec.ret_type),
            spec.source.value,
            escape(spec.default),
        )

    console.print(table)

    skipped = [key.name for key in compiled.definition.keys
               if key.name not in {spec.key_name for spec in compiled.accessors}]
    if skipped:
        console.print(f"[dim]Skipped: {', '.join(skipped)}[/dim]")

    return 0


def _list_languages() -> int:
    """List supported languages with details."""
    language_info = list_all_language_info()

    table = Table(
        title="📋 Supported Languages", box=box.ROUNDED, title_style="bold cyan"
    )
    table.add_column("Language", style="bold green", no_wrap=True)
    table.add_column("Extension", style="cyan")
    table.add_column("Generator Class", style="dim")
    table.add_column("Aliases", style="blue")

    for lang_name, info in sorted(language_info.items()):
        aliases = ", ".join(info["aliases"]) if info["aliases"] else "[dim]none[/dim]"
        table.add_row(lang_name, info["file_extension"], info["class"], aliases)

    console.print(table)
    console.print(
        Panel(
            "[bold]Usage:[/bold] gsettings-codegen [dim]schema.gschema.xml[/dim] "
            "--language [cyan]LANGUAGE[/cyan]",
            title="💡 Quick Start",
            border_style="blue",
        )
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
