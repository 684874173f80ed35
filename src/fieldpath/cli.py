from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any, List, Optional

import typer
import yaml
from rich.console import Console

from .deserializers import deserializer_for_path
from .errors import ConfigError, OverrideError
from .loader import ConfigLoader
from .stable_json import config_hash, record_to_json

app = typer.Typer(add_completion=False)
console = Console()

logger = logging.getLogger(__name__)


def _import_model(ref: str) -> type:
    module_name, sep, attr = ref.partition(":")
    if not sep or not module_name or not attr:
        raise typer.BadParameter(f"expected 'package.module:ClassName', got {ref!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise typer.BadParameter(f"cannot import {module_name}: {e}") from e
    model = getattr(module, attr, None)
    if not isinstance(model, type):
        raise typer.BadParameter(f"{ref} is not a class")
    return model


def _parse_assignment(item: str) -> tuple[str, Any]:
    path, sep, raw = item.partition("=")
    if not sep or not path:
        raise typer.BadParameter(f"--set expects PATH=VALUE, got {item!r}")
    # YAML scalar typing: 2 -> int, true -> bool, null -> None
    try:
        value = yaml.safe_load(raw)
    except yaml.YAMLError:
        value = raw
    return path.strip(), value


@app.command()
def main(
    model: str = typer.Argument(
        ..., help="Config record class, as package.module:ClassName"
    ),
    config: Path = typer.Argument(..., exists=True, dir_okay=False),
    override_file: Optional[Path] = typer.Option(
        None,
        "--override-file",
        exists=True,
        dir_okay=False,
        help="Second config file layered over CONFIG.",
    ),
    assignments: List[str] = typer.Option(
        [], "--set", help="PATH=VALUE override, applied last. Repeatable."
    ),
    show_hash: bool = typer.Option(
        False, "--hash", help="Print the config hash instead of the config."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG)

    cfg = _import_model(model)()
    logger.debug(f"Loading {config} into {model}")

    try:
        loader = ConfigLoader(
            config.name,
            config.parent,
            deserializer=deserializer_for_path(config),
        )
        if override_file is not None:
            loader.override_name = override_file.name
            loader.override_path = override_file.parent
            loader.override_deserializer = deserializer_for_path(override_file)

        for item in assignments:
            path, value = _parse_assignment(item)
            loader.override(path, value)

        loader.load(cfg)
    except OverrideError as e:
        for err in e.errors:
            console.print(
                f"override failed: {err}",
                style="bold red",
                markup=False,
                soft_wrap=True,
            )
        raise typer.Exit(code=1)
    except (ConfigError, OSError) as e:
        console.print(str(e), style="bold red", markup=False, soft_wrap=True)
        raise typer.Exit(code=1)

    if show_hash:
        typer.echo(config_hash(cfg))
    else:
        console.print_json(data=record_to_json(cfg))
