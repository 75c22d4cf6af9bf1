# src/strata/cli.py
"""strata Command Line Interface.

Entry point for the strata CLI tool.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from strata import __version__
from strata.contracts import ListEmitter, RecordTransformError, StructuredRecord, TargetSchema
from strata.core.config import SchemaFileError, StrataSettings, load_settings
from strata.core.logging import configure_from_settings, configure_logging, get_logger, run_context
from strata.core.serialization import record_from_json, to_json_string

if TYPE_CHECKING:
    from strata.plugins.base import BaseTransform
    from strata.plugins.manager import PluginManager

__all__ = [
    "app",
]

logger = get_logger(__name__)

# Module-level singleton for plugin manager
_plugin_manager_cache: PluginManager | None = None


def _get_plugin_manager() -> PluginManager:
    """Get initialized plugin manager (singleton).

    Returns:
        PluginManager with all built-in plugins registered
    """
    global _plugin_manager_cache

    from strata.plugins.manager import PluginManager

    if _plugin_manager_cache is None:
        manager = PluginManager()
        manager.register_builtin_plugins()
        _plugin_manager_cache = manager
    return _plugin_manager_cache


app = typer.Typer(
    name="strata",
    help="strata: schema-driven record transforms.",
    no_args_is_help=True,
)


@dataclass(frozen=True)
class _GlobalOptions:
    verbose: bool
    json_logs: bool


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"strata version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)  # Don't override existing env vars


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # Existence is checked in _load_dotenv for a better message
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """strata: schema-driven record transforms."""
    # Settings may raise the level later; configure early so loading is logged
    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")
    ctx.obj = _GlobalOptions(verbose=verbose, json_logs=json_logs)

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _format_validation_error(
    title: str,
    message: str,
    hint: str | None = None,
    details: list[str] | None = None,
) -> None:
    """Display a formatted validation error with optional hint and details."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.text import Text

    console = Console(stderr=True)

    content = Text()
    content.append(message, style="white")

    if details:
        content.append("\n\n")
        for detail in details:
            content.append(f"  • {detail}\n", style="dim")

    if hint:
        content.append("\n")
        content.append("Hint: ", style="yellow bold")
        content.append(hint, style="yellow")

    panel = Panel(
        content,
        title=f"[red bold]❌ {title}[/]",
        border_style="red",
        padding=(0, 1),
    )
    console.print(panel)


def _load_settings_or_exit(settings_path: Path) -> StrataSettings:
    """Load settings, rendering any failure as an error panel and exiting 1."""
    try:
        return load_settings(settings_path)
    except (YamlParserError, YamlScannerError) as e:
        _format_validation_error(
            title="YAML Syntax Error",
            message=f"Failed to parse {settings_path.name}",
            details=[str(e.problem)] if hasattr(e, "problem") else None,
            hint="Check for unclosed brackets, incorrect indentation, or invalid characters.",
        )
        raise typer.Exit(1) from None
    except FileNotFoundError:
        _format_validation_error(
            title="File Not Found",
            message=f"Settings file does not exist: {settings_path}",
            hint="Check the path and ensure the file exists.",
        )
        raise typer.Exit(1) from None
    except SchemaFileError as e:
        _format_validation_error(
            title="Schema File Error",
            message=str(e),
            hint="Schema file paths are resolved relative to the settings file.",
        )
        raise typer.Exit(1) from None
    except ValidationError as e:
        details = [f"{'.'.join(str(x) for x in error['loc'])}: {error['msg']}" for error in e.errors()]
        _format_validation_error(
            title="Configuration Validation Failed",
            message=f"Invalid settings in {settings_path.name}",
            details=details,
            hint="Check field names, types, and required values.",
        )
        raise typer.Exit(1) from None


def _apply_logging_settings(ctx: typer.Context, config: StrataSettings) -> None:
    options: _GlobalOptions = ctx.obj
    configure_from_settings(config.logging, verbose=options.verbose, json_output=options.json_logs)


def _collect_config_errors(config: StrataSettings) -> list[str]:
    """Validate every transform entry without building any of them."""
    from strata.plugins.validation import PluginConfigValidator

    manager = _get_plugin_manager()
    validator = PluginConfigValidator()
    details: list[str] = []

    for index, entry in enumerate(config.transforms):
        prefix = f"transforms[{index}] ({entry.plugin})"
        if manager.get_transform_by_name(entry.plugin) is None:
            available = ", ".join(cls.name for cls in manager.get_transforms())
            details.append(f"{prefix}: unknown plugin. Available: {available}")
            continue
        for error in validator.validate_transform_config(entry.plugin, entry.options):
            details.append(f"{prefix}.{error.field}: {error.message}")

    return details


def _build_transforms_or_exit(config: StrataSettings) -> list[BaseTransform]:
    details = _collect_config_errors(config)
    if details:
        _format_validation_error(
            title="Plugin Configuration Error",
            message="One or more transforms have invalid options",
            details=details,
            hint="Run 'strata plugins list' to see the available transforms.",
        )
        raise typer.Exit(1)

    manager = _get_plugin_manager()
    return [manager.create_transform(entry.plugin, entry.options) for entry in config.transforms]


class _InputError(Exception):
    """An input line could not be read or transformed."""

    def __init__(self, line_number: int, message: str, *, title: str = "Invalid Input Record") -> None:
        super().__init__(f"Line {line_number}: {message}")
        self.line_number = line_number
        self.title = title


def _read_records(stream: TextIO, schema: TargetSchema) -> Iterator[tuple[int, StructuredRecord]]:
    """Yield (line number, record) for every non-blank JSON line."""
    for line_number, line in enumerate(stream, start=1):
        if not line.strip():
            continue
        try:
            obj: Any = json.loads(line)
        except json.JSONDecodeError as e:
            raise _InputError(line_number, f"Invalid JSON: {e}") from e
        if not isinstance(obj, dict):
            raise _InputError(line_number, f"Expected a JSON object, got {type(obj).__name__}")
        try:
            record = record_from_json(obj, schema)
        except RecordTransformError as e:
            raise _InputError(line_number, str(e)) from e
        yield line_number, record


@app.command()
def run(
    ctx: typer.Context,
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    input_path: str = typer.Option(
        ...,
        "--input",
        "-i",
        help="JSON lines file of input records ('-' for stdin).",
    ),
    output_path: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write output records as JSON lines to this file (default: stdout).",
    ),
) -> None:
    """Run the transform chain over a JSON lines file.

    Output records of one input record are written only once that record
    has passed every transform, so a failing record leaves no partial
    output behind.
    """
    from strata.engine.executor import Pipeline
    from strata.plugins.context import PluginContext

    config = _load_settings_or_exit(Path(settings).expanduser())
    _apply_logging_settings(ctx, config)
    transforms = _build_transforms_or_exit(config)

    run_id = uuid.uuid4().hex
    plugin_ctx = PluginContext(run_id=run_id, config=config.model_dump(mode="json"))
    pipeline = Pipeline(transforms, plugin_ctx)
    input_schema = config.parsed_input_schema()

    in_stream: TextIO
    if input_path == "-":
        in_stream = typer.get_text_stream("stdin")
    else:
        source = Path(input_path).expanduser()
        if not source.exists():
            _format_validation_error(title="File Not Found", message=f"Input file does not exist: {source}")
            raise typer.Exit(1)
        in_stream = source.open(encoding="utf-8")

    # None means stdout
    out_stream: TextIO | None = output_path.open("w", encoding="utf-8") if output_path is not None else None

    records_in = 0
    records_out = 0
    with run_context(run_id):
        logger.info("run_started", transforms=[t.name for t in transforms])
        try:
            pipeline.start()
            try:
                for line_number, record in _read_records(in_stream, input_schema):
                    batch = ListEmitter()
                    try:
                        pipeline.process(record, batch)
                    except RecordTransformError as e:
                        raise _InputError(line_number, str(e), title="Record Transform Failed") from e
                    records_in += 1
                    for output in batch.emitted:
                        typer.echo(to_json_string(output), file=out_stream)
                    records_out += len(batch)
            finally:
                pipeline.finish()
        except _InputError as e:
            _format_validation_error(
                title=e.title,
                message=str(e),
                details=[f"{records_in} record(s) processed before the failure"],
            )
            raise typer.Exit(1) from None
        finally:
            if input_path != "-":
                in_stream.close()
            if out_stream is not None:
                out_stream.close()

        logger.info("run_completed", records_in=records_in, records_out=records_out)
    typer.echo(f"✅ Processed {records_in} record(s), emitted {records_out}", err=True)


@app.command()
def validate(
    ctx: typer.Context,
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """Validate pipeline configuration without running."""
    config = _load_settings_or_exit(Path(settings).expanduser())
    _apply_logging_settings(ctx, config)
    transforms = _build_transforms_or_exit(config)

    input_schema = config.parsed_input_schema()
    typer.echo("✅ Pipeline configuration valid!")
    typer.echo(f"  Input schema: {input_schema.name} ({len(input_schema)} fields)")
    typer.echo(f"  Transforms: {' -> '.join(t.name for t in transforms)}")


# Plugins subcommand group
plugins_app = typer.Typer(help="Plugin management commands.")
app.add_typer(plugins_app, name="plugins")


@dataclass(frozen=True)
class PluginInfo:
    """Metadata for a registered plugin.

    Attributes:
        name: The plugin identifier used in settings files.
        version: Plugin version.
        description: Human-readable description of the plugin's purpose.
    """

    name: str
    version: str
    description: str


def _build_plugin_registry() -> list[PluginInfo]:
    from strata.plugins.discovery import get_plugin_description

    manager = _get_plugin_manager()
    return [
        PluginInfo(name=cls.name, version=cls.plugin_version, description=get_plugin_description(cls))
        for cls in manager.get_transforms()
    ]


@plugins_app.command("list")
def plugins_list() -> None:
    """List available transforms."""
    registry = _build_plugin_registry()

    typer.echo("\nTRANSFORMS:")
    if not registry:
        typer.echo("  (none available)")
    for plugin in registry:
        typer.echo(f"  {plugin.name:20} {plugin.version:8} - {plugin.description}")

    typer.echo()
