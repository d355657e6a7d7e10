"""Command line access to stored settings."""

from __future__ import annotations

import asyncio
import json
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import click

from .config import BaseConfig
from .context import SettingsContext, create_settings_context
from .exceptions import SettingsError
from .logging_config import setup_logging
from .models.entry import ObjectSettingEntry
from .services.extensions import set_value
from .services.manifest import load_settings_manifest

_manifest_option = click.option(
    "--manifest",
    "manifests",
    multiple=True,
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Module settings manifest (JSON). May be given more than once.",
)
_object_type_option = click.option("--object-type", default=None, help="Owning object type.")
_object_id_option = click.option("--object-id", default=None, help="Owning object id.")


def _entry_payload(entry: ObjectSettingEntry) -> dict[str, Any]:
    return {
        "name": entry.name,
        "object_type": entry.object_type,
        "object_id": entry.object_id,
        "value_type": entry.value_type.value,
        "value": entry.value,
        "allowed_values": entry.allowed_values,
    }


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, default=str, sort_keys=True))


@contextmanager
def _open_context(ctx: click.Context, manifests: tuple[str, ...]) -> Iterator[SettingsContext]:
    config: BaseConfig = ctx.obj["config"]
    settings_ctx = create_settings_context(config)
    try:
        for path in manifests:
            try:
                settings_ctx.registry.register_manifest(load_settings_manifest(path))
            except ValueError as exc:
                raise click.ClickException(f"Invalid manifest {path}: {exc}") from exc
        yield settings_ctx
    except SettingsError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        settings_ctx.dispose()


@click.group()
@click.option("--verbose", is_flag=True, default=False, help="Enable console and file logging.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Inspect and edit object-scoped settings."""

    config = BaseConfig()
    if verbose:
        setup_logging(config)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@main.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the settings tables."""

    settings_ctx = create_settings_context(ctx.obj["config"])
    settings_ctx.dispose()
    click.echo("Database initialized.")


@main.command("list")
@_manifest_option
@click.option("--type", "type_name", default=None, help="Only settings registered for this type.")
@click.pass_context
def list_settings(ctx: click.Context, manifests: tuple[str, ...], type_name: Optional[str]) -> None:
    """List registered setting descriptors."""

    with _open_context(ctx, manifests) as settings_ctx:
        if type_name:
            descriptors = settings_ctx.registry.get_settings_for_type(type_name)
        else:
            descriptors = settings_ctx.registry.all_registered_settings
        for descriptor in sorted(descriptors, key=lambda d: d.key):
            click.echo(
                f"{descriptor.name}\t{descriptor.value_type.value}\t{descriptor.module_id or '-'}"
            )


@main.command("get")
@_manifest_option
@click.argument("name")
@_object_type_option
@_object_id_option
@click.pass_context
def get_setting(
    ctx: click.Context,
    manifests: tuple[str, ...],
    name: str,
    object_type: Optional[str],
    object_id: Optional[str],
) -> None:
    """Print the current value of NAME."""

    with _open_context(ctx, manifests) as settings_ctx:
        entry = asyncio.run(settings_ctx.manager.get_object_setting(name, object_type, object_id))
        _echo_json(_entry_payload(entry))


@main.command("set")
@_manifest_option
@click.argument("name")
@click.argument("value")
@_object_type_option
@_object_id_option
@click.pass_context
def set_setting(
    ctx: click.Context,
    manifests: tuple[str, ...],
    name: str,
    value: str,
    object_type: Optional[str],
    object_id: Optional[str],
) -> None:
    """Store VALUE for NAME.

    Dictionary settings take a comma-separated list of values.
    """

    with _open_context(ctx, manifests) as settings_ctx:
        descriptor = settings_ctx.registry.require(name)
        raw: Any = value
        if descriptor.is_dictionary:
            raw = [part.strip() for part in value.split(",") if part.strip()]
        entry = asyncio.run(set_value(settings_ctx.manager, name, raw, object_type, object_id))
        _echo_json(_entry_payload(entry))


@main.command("remove")
@_manifest_option
@click.argument("name")
@_object_type_option
@_object_id_option
@click.pass_context
def remove_setting(
    ctx: click.Context,
    manifests: tuple[str, ...],
    name: str,
    object_type: Optional[str],
    object_id: Optional[str],
) -> None:
    """Delete the stored value of NAME."""

    with _open_context(ctx, manifests) as settings_ctx:
        descriptor = settings_ctx.registry.require(name)
        entry = ObjectSettingEntry.from_descriptor(descriptor, object_type, object_id)
        asyncio.run(settings_ctx.manager.remove_object_settings([entry]))
        click.echo(f"Removed {descriptor.name}.")


if __name__ == "__main__":  # pragma: no cover
    main()
