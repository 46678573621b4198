import json
import logging
import sys
from pathlib import Path
from typing import Any

import rich_click as click
import yaml
from pydantic import ValidationError
from rich.traceback import install

from protoform import __version__, log
from protoform.config import EngineConfig, load_engine_config
from protoform.edits import apply_edits, load_edits
from protoform.engine.form import DynamicForm
from protoform.render import build_tree
from protoform.render.dispatch import RenderNode
from protoform.sample import generate_sample
from protoform.schema import MessageSchema, SchemaLoadError, WellKnownType, load_schema
from protoform.schema.loader import load_value
from protoform.wellknown import get_transcoder

schema_option = click.option(
    "--schema",
    "-s",
    "schema_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Reflection output (JSON or YAML) describing the message",
)


value_option = click.option(
    "--value",
    "-v",
    "value_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Saved message value (JSON or YAML) to start from",
)


optional_output_option = click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    required=False,
    help="Output file",
)


def _load_schema_or_exit(schema_path: Path) -> MessageSchema:
    try:
        return load_schema(schema_path)
    except OSError as e:
        log.error(f"File I/O error: {e}")
        sys.exit(1)
    except SchemaLoadError as e:
        log.error(f"Invalid schema: {e}")
        sys.exit(1)


def _load_value_or_exit(value_path: Path | None) -> dict[str, Any] | None:
    try:
        value = load_value(value_path)
    except OSError as e:
        log.error(f"File I/O error: {e}")
        sys.exit(1)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        log.error(f"Invalid value file: {e}")
        sys.exit(1)
    if value is not None and not isinstance(value, dict):
        log.error(f"Value root must be an object, got {type(value).__name__}")
        sys.exit(1)
    return value


def _write_json(data: Any, output: Path | None, indent: int) -> None:
    text = json.dumps(data, indent=indent or None)
    if output is None:
        click.echo(text)
        return
    output.write_text(text + "\n", encoding="utf-8")
    log.success(f"Written to {output}")


def expand_all(form: DynamicForm) -> None:
    """Expand every collapsible field, one level at a time, until nothing is left collapsed."""

    def collapsed(nodes: list[RenderNode]) -> list[str]:
        paths = []
        for node in nodes:
            if node.variant.value.collapsible and not node.expanded and not node.note:
                paths.append(node.path)
            for child in node.children + [c for row in node.rows for c in row.children]:
                paths.extend(collapsed([child]))
        return paths

    pending = collapsed(form.render())
    while pending:
        for path in pending:
            form.toggle_expanded(path)
        pending = collapsed(form.render())


@click.group(context_settings={"auto_envvar_prefix": "protoform"})
@click.option(
    "-l",
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default="INFO",
    help="Log level",
    show_default=True,
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Log file",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML file containing the engine configuration",
)
@click.version_option(__version__)
@click.pass_context
def cli(ctx: click.Context, log_level: str, log_file: Path | None, config_path: Path | None) -> None:
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w")
        file_handler.setFormatter(logging.Formatter("%(asctime)s:%(levelname)s:%(message)s"))
        log.addHandler(file_handler)

    log.setLevel(log_level.upper())
    if log_level.upper() == "DEBUG":
        _ = install(show_locals=True)

    try:
        ctx.obj = load_engine_config(config_path)
    except (OSError, yaml.YAMLError, TypeError, ValidationError) as e:
        log.error(f"Invalid engine config: {e}")
        sys.exit(1)


@cli.command()
@schema_option
@optional_output_option
@click.pass_obj
def sample(config: EngineConfig, schema_path: Path, output: Path | None) -> None:
    """Generate a sample message that fills every field of the schema."""
    schema = _load_schema_or_exit(schema_path)
    _write_json(generate_sample(schema), output, config.json_indent)


@cli.command()
@schema_option
@value_option
@click.option(
    "--expand-all",
    "expand_everything",
    is_flag=True,
    default=False,
    help="Expand every message, list and map",
)
@click.pass_obj
def render(config: EngineConfig, schema_path: Path, value_path: Path | None, expand_everything: bool) -> None:
    """Show the form for a schema as a tree, with the state restored from a value."""
    schema = _load_schema_or_exit(schema_path)
    form = DynamicForm(schema, _load_value_or_exit(value_path), config=config)
    if expand_everything:
        expand_all(form)
    log.tree(build_tree(form.render(), title=schema.message or schema_path.stem))
    if not expand_everything:
        log.hint("Use --expand-all to show nested messages, lists and maps")


@cli.command()
@schema_option
@value_option
@click.option(
    "--edits",
    "-e",
    "edits_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="YAML or JSON list of edits (set, enable, disable, add, remove, expand)",
)
@optional_output_option
@click.option("--strict", is_flag=True, default=False, help="Fail if any edit is ignored")
@click.pass_obj
def apply(
    config: EngineConfig,
    schema_path: Path,
    value_path: Path | None,
    edits_path: Path,
    output: Path | None,
    strict: bool,
) -> None:
    """Replay edits against a form and output the resulting message."""
    schema = _load_schema_or_exit(schema_path)
    changes = 0

    def on_change(_: Any) -> None:
        nonlocal changes
        changes += 1

    form = DynamicForm(schema, _load_value_or_exit(value_path), on_change=on_change, config=config)
    try:
        ignored = apply_edits(form, load_edits(edits_path))
    except OSError as e:
        log.error(f"File I/O error: {e}")
        sys.exit(1)
    except (yaml.YAMLError, json.JSONDecodeError, ValidationError) as e:
        log.error(f"Invalid edits: {e}")
        sys.exit(1)
    except (KeyError, IndexError) as e:
        log.error(f"Edit failed: {e}")
        sys.exit(1)

    log.debug(f"{changes} change notification(s) delivered")
    if ignored:
        log.key_value("Ignored edits", ignored)
        if strict:
            log.error(f"{ignored} edit(s) were ignored")
            sys.exit(1)
        log.hint("Enable a field before setting it; use --strict to fail on ignored edits")
    _write_json(form.value, output, config.json_indent)


@cli.command()
@schema_option
@click.option(
    "--value",
    "-v",
    "value_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Message value (JSON or YAML) to check",
)
@click.pass_obj
def validate(config: EngineConfig, schema_path: Path, value_path: Path) -> None:
    """Check that every required field of a message value is filled."""
    schema = _load_schema_or_exit(schema_path)
    form = DynamicForm(schema, _load_value_or_exit(value_path), config=config)
    missing = form.missing_required()
    if missing:
        for path in missing:
            log.error(f"Missing required field: {path}")
        log.error(f"Found {len(missing)} missing required field(s).")
        sys.exit(1)
    log.success("All required fields are filled")


@cli.command()
@click.argument("type_name", type=click.Choice([wkt.value for wkt in WellKnownType], case_sensitive=False))
@click.argument("value")
@click.option(
    "--to",
    "direction",
    type=click.Choice(["wire", "display"]),
    default="wire",
    show_default=True,
    help="Convert editor text to the stored form (wire) or a stored JSON value to editor text (display)",
)
def transcode(type_name: str, value: str, direction: str) -> None:
    """Convert a value of a google.protobuf well-known type between its editor and stored forms."""
    wkt = next(w for w in WellKnownType if w.value.lower() == type_name.lower())
    transcoder = get_transcoder(wkt)

    if direction == "wire":
        display: Any = value
        if wkt == WellKnownType.ANY:
            try:
                display = json.loads(value)
            except json.JSONDecodeError:
                display = value
        click.echo(json.dumps(transcoder.from_editable(display)))
        return

    try:
        wire = json.loads(value)
    except json.JSONDecodeError as e:
        log.error(f"Stored value must be JSON: {e}")
        sys.exit(1)
    editable = transcoder.to_editable(wire)
    click.echo(editable if isinstance(editable, str) else json.dumps(editable))


if __name__ == "__main__":
    cli()
