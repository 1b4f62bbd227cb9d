"""Command-line entry point for Covercraft."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Callable, Optional

import typer
import yaml
from PIL import Image
from rich.console import Console
from rich.table import Table

from .app_context import AppContext, determine_paths, load_context
from .config import ConfigError, ConfigPaths, bootstrap
from .engine.canvas import encode_image
from .engine.compositor import CompositeError
from .engine.layout import ImageSize
from .enhancers import ImageKind, PlaylistImageEnhancer, default_registry, enhancers_for, today_in
from .library import LibraryItem
from .logging import configure_logging, get_logger

app = typer.Typer(help="Covercraft playlist artwork renderer.")
console = Console()

CONFIG_DIR_HELP = "Base directory for config files (defaults to ~/.covercraft)."


def _determine_default_log_level(config_dir: Optional[Path]) -> str:
    if config_dir is None:
        paths = ConfigPaths.default()
    else:
        paths = ConfigPaths.from_base_dir(config_dir)

    config_path = paths.global_config
    if not config_path.exists():
        return "INFO"

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or {}
        runtime = payload.get("runtime", {})
        log_level = runtime.get("log_level")
        if isinstance(log_level, str) and log_level.strip():
            return log_level.upper()
    except (OSError, yaml.YAMLError, AttributeError):
        return "INFO"

    return "INFO"


def _bootstrap_logging(
    ctx: typer.Context,
    verbose: bool,
    json_logs: bool,
    log_file: Optional[Path],
    config_dir: Optional[Path],
) -> None:
    """Initialise logging once per CLI invocation."""

    if ctx.obj is None:
        ctx.obj = {}

    if ctx.obj.get("_logging_configured"):
        return

    level = "DEBUG" if verbose else _determine_default_log_level(config_dir)
    configure_logging(level=level, json_output=json_logs, log_file=log_file)
    ctx.obj["logger"] = get_logger("covercraft.cli")
    ctx.obj["log_level"] = level
    ctx.obj["json_logs"] = json_logs
    ctx.obj["log_file_path"] = log_file
    ctx.obj["force_log_level"] = verbose
    ctx.obj["_logging_configured"] = True


@app.callback(invoke_without_command=True)
def cli(  # noqa: D401 - Typer generates help text.
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit JSON-formatted logs."),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        dir_okay=False,
        file_okay=True,
        writable=True,
        resolve_path=True,
        help="Optional file to append structured logs to.",
    ),
) -> None:
    """Covercraft command group."""

    _bootstrap_logging(ctx, verbose, json_logs, log_file, None)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def _logger(ctx: typer.Context):
    return ctx.obj.get("logger", get_logger("covercraft.cli"))


def _maybe_update_log_level(ctx: typer.Context, config_dir: Optional[Path]) -> None:
    if ctx.obj.get("force_log_level"):
        return

    desired = _determine_default_log_level(config_dir)
    current = ctx.obj.get("log_level")
    if desired != current:
        configure_logging(
            level=desired,
            json_output=ctx.obj.get("json_logs", False),
            log_file=ctx.obj.get("log_file_path"),
        )
        ctx.obj["logger"] = get_logger("covercraft.cli")
        ctx.obj["log_level"] = desired


def _load(ctx: typer.Context, command: str, config_dir: Optional[Path]) -> AppContext:
    _maybe_update_log_level(ctx, config_dir)
    log = _logger(ctx)

    try:
        paths = determine_paths(config_dir)
        return load_context(paths)
    except ConfigError as exc:
        log.error(f"{command}.failed", error=str(exc))
        typer.echo(f"Error loading configuration: {exc}")
        raise typer.Exit(code=1) from exc


def _find_playlist(ctx: typer.Context, command: str, context: AppContext, reference: str) -> LibraryItem:
    playlist = context.library.find_playlist(reference)
    if playlist is None:
        typer.echo(f"Playlist '{reference}' not found in {context.library_dir}")
        _logger(ctx).error(f"{command}.missing_playlist", playlist=reference)
        raise typer.Exit(code=1)
    return playlist


def _today_provider(context: AppContext, day: Optional[datetime]) -> Callable[[], date]:
    if day is not None:
        fixed = day.date()
        return lambda: fixed
    return today_in(context.global_config.runtime.timezone)


@app.command()
def init(
    ctx: typer.Context,
    config_dir: Optional[Path] = typer.Option(
        None,
        "--config-dir",
        dir_okay=True,
        file_okay=False,
        writable=True,
        resolve_path=True,
        help=CONFIG_DIR_HELP,
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite existing config.yml"),
) -> None:
    """Initial setup flow for global configuration."""

    log = _logger(ctx)

    try:
        paths = determine_paths(config_dir)
        report = bootstrap(paths, overwrite=force)
    except (ConfigError, OSError) as exc:
        log.error("init.failed", error=str(exc))
        raise typer.Exit(code=1) from exc

    typer.echo(f"Configuration directory: {paths.base_dir}")
    typer.echo(f"Library manifests directory: {paths.library_dir}")

    if report.global_config_created:
        if report.global_config_overwritten:
            typer.echo(f"Global config overwritten at: {paths.global_config}")
        else:
            typer.echo(f"Global config created at: {paths.global_config}")
            typer.echo("Add library manifests before rendering playlists.")
    else:
        typer.echo(f"Global config already exists at: {paths.global_config}")
        typer.echo("Use --force to regenerate with default values.")

    log.info(
        "init.completed",
        base_dir=str(paths.base_dir),
        library_dir=str(paths.library_dir),
        global_config=str(paths.global_config),
        force=force,
        base_created=report.base_created,
        library_dir_created=report.library_dir_created,
        global_config_created=report.global_config_created,
        global_config_overwritten=report.global_config_overwritten,
    )


@app.command("list")
def list_playlists(
    ctx: typer.Context,
    config_dir: Optional[Path] = typer.Option(
        None,
        "--config-dir",
        dir_okay=True,
        file_okay=False,
        resolve_path=True,
        help=CONFIG_DIR_HELP,
    ),
) -> None:
    """List playlists found in the library manifests."""

    context = _load(ctx, "list", config_dir)
    log = _logger(ctx)

    playlists = sorted(context.library.playlists(), key=lambda item: item.name.casefold())
    if not playlists:
        console.print("[yellow]No playlists defined yet.[/yellow]")
        console.print(f"Add YAML manifests to {context.library_dir} to register playlists.")
        log.info("list.completed", playlist_count=0)
        return

    table = Table(title="Library Playlists")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Members", justify="right")

    for playlist in playlists:
        table.add_row(str(playlist.id), playlist.name, str(len(playlist.member_ids)))

    console.print(table)
    log.info("list.completed", playlist_count=len(playlists))


@app.command()
def inspect(
    ctx: typer.Context,
    playlist_ref: str = typer.Argument(..., metavar="PLAYLIST", help="Playlist id or name."),
    kind: ImageKind = typer.Option(ImageKind.PRIMARY, "--kind", case_sensitive=False, help="Image kind to plan."),
    day: Optional[datetime] = typer.Option(None, "--day", formats=["%Y-%m-%d"], help="Reference day (YYYY-MM-DD)."),
    config_dir: Optional[Path] = typer.Option(
        None,
        "--config-dir",
        dir_okay=True,
        file_okay=False,
        resolve_path=True,
        help=CONFIG_DIR_HELP,
    ),
) -> None:
    """Show which images a playlist collage would use."""

    context = _load(ctx, "inspect", config_dir)
    log = _logger(ctx)
    playlist = _find_playlist(ctx, "inspect", context, playlist_ref)

    enhancer = PlaylistImageEnhancer(
        context.library,
        context.global_config.collage,
        today=_today_provider(context, day),
        logger=log,
    )
    if not enhancer.supports(playlist, kind):
        typer.echo(f"Image kind '{kind.value}' is not handled for playlists.")
        raise typer.Exit(code=1)

    candidates, layout = enhancer.plan(playlist, kind)

    table = Table(title=f"Collage candidates for {playlist.name}")
    table.add_column("#", justify="right")
    table.add_column("Source ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Image")
    for index, candidate in enumerate(candidates, start=1):
        table.add_row(str(index), candidate.item_id.hex, candidate.name, str(candidate.image))
    console.print(table)

    canvas = f"{layout.canvas.width}x{layout.canvas.height}" if layout.canvas else "original"
    typer.echo(f"Layout: {layout.mode} ({canvas})")
    typer.echo(f"Cache key: {enhancer.configuration_cache_key(candidates)}")
    log.info("inspect.completed", playlist_id=str(playlist.id), candidates=len(candidates), mode=layout.mode)


@app.command()
def render(
    ctx: typer.Context,
    playlist_ref: str = typer.Argument(..., metavar="PLAYLIST", help="Playlist id or name."),
    output: Path = typer.Option(..., "--output", "-o", dir_okay=False, resolve_path=True, help="File to write."),
    kind: ImageKind = typer.Option(ImageKind.PRIMARY, "--kind", case_sensitive=False, help="Image kind to render."),
    day: Optional[datetime] = typer.Option(None, "--day", formats=["%Y-%m-%d"], help="Reference day (YYYY-MM-DD)."),
    original: Optional[Path] = typer.Option(
        None,
        "--original",
        exists=True,
        dir_okay=False,
        resolve_path=True,
        help="Existing artwork to keep when the playlist has no usable images.",
    ),
    config_dir: Optional[Path] = typer.Option(
        None,
        "--config-dir",
        dir_okay=True,
        file_okay=False,
        resolve_path=True,
        help=CONFIG_DIR_HELP,
    ),
) -> None:
    """Render a playlist's artwork to a file."""

    context = _load(ctx, "render", config_dir)
    log = _logger(ctx)
    playlist = _find_playlist(ctx, "render", context, playlist_ref)
    settings = context.global_config.collage

    enhancers = default_registry.build(
        context.library,
        settings,
        today=_today_provider(context, day),
        logger=log,
    )
    handlers = enhancers_for(enhancers, playlist, kind)
    if not handlers:
        typer.echo(f"No enhancer handles '{kind.value}' images for playlists.")
        log.error("render.unsupported", playlist_id=str(playlist.id), image_kind=kind.value)
        raise typer.Exit(code=1)
    enhancer = handlers[0]

    source_path = original or playlist.image
    original_image = None
    if source_path is not None and Path(source_path).is_file():
        try:
            with Image.open(source_path) as opened:
                original_image = opened.copy()
        except (OSError, ValueError) as exc:
            log.warning("render.original_unreadable", path=str(source_path), error=str(exc))
    if original_image is None:
        source_path = None
        original_image = Image.new("RGBA", (1, 1))
    original_size = ImageSize(original_image.width, original_image.height)

    cache_key = enhancer.cache_key(playlist, kind)
    expected = enhancer.enhanced_size(playlist, kind, original_size)

    try:
        result = enhancer.enhance(playlist, kind, original_image)
    except CompositeError as exc:
        log.error("render.failed", playlist_id=str(playlist.id), error=str(exc))
        typer.echo(f"Unable to render collage: {exc}")
        raise typer.Exit(code=1) from exc

    if result is original_image and source_path is None:
        typer.echo(f"Playlist '{playlist.name}' has no usable images and no original artwork was given.")
        log.warning("render.nothing_to_write", playlist_id=str(playlist.id))
        raise typer.Exit(code=1)

    try:
        payload = encode_image(result, settings.output_format, settings.jpeg_quality)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(payload)
    except (OSError, ValueError) as exc:
        log.error("render.write_failed", playlist_id=str(playlist.id), output=str(output), error=str(exc))
        typer.echo(f"Unable to write {output}: {exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(f"Wrote {result.width}x{result.height} {settings.output_format} to {output}")
    typer.echo(f"Cache key: {cache_key}")
    log.info(
        "render.completed",
        playlist_id=str(playlist.id),
        image_kind=kind.value,
        output=str(output),
        width=result.width,
        height=result.height,
        reported_width=expected.width,
        reported_height=expected.height,
        passthrough=result is original_image,
        cache_key=cache_key,
    )
