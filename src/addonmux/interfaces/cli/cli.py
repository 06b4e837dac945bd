from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Iterable
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any

import structlog

from addonmux.domain.entities.stream import StreamSource
from addonmux.domain.exceptions import AddonError
from addonmux.infrastructure.config import load_config
from addonmux.infrastructure.logging.setup import configure_logging
from addonmux.interfaces.composition import Engine, open_engine

log = structlog.get_logger(__name__)


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="addonmux")

    # Config wiring flags (no business logic)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )
    parser.add_argument(
        "--profile",
        default=None,
        help="Profile whose addons and settings are used.",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    # addons
    addons = commands.add_parser("addons", help="Manage installed addons.")
    addon_cmds = addons.add_subparsers(dest="addons_command", required=True)
    addon_cmds.add_parser("list", help="List installed addons.")
    add = addon_cmds.add_parser("add", help="Install an addon from its URL.")
    add.add_argument("url")
    add.add_argument("--name", default=None, help="Display name override.")
    remove = addon_cmds.add_parser("remove", help="Uninstall an addon.")
    remove.add_argument("addon_id")
    toggle = addon_cmds.add_parser("toggle", help="Enable or disable an addon.")
    toggle.add_argument("addon_id")

    # streams
    streams = commands.add_parser("streams", help="Fan out a stream request.")
    stream_cmds = streams.add_subparsers(dest="streams_command", required=True)
    movie = stream_cmds.add_parser("movie")
    movie.add_argument("imdb_id")
    episode = stream_cmds.add_parser("episode")
    episode.add_argument("imdb_id")
    episode.add_argument("season", type=int)
    episode.add_argument("episode", type=int)
    for sub in (movie, episode):
        sub.add_argument(
            "--refresh",
            action="store_true",
            help="Bypass the result cache.",
        )

    # subtitles
    subtitles = commands.add_parser("subtitles", help="Fetch subtitles.")
    subtitles.add_argument("media_type", choices=["movie", "series"])
    subtitles.add_argument("imdb_id")
    subtitles.add_argument("season", type=int, nargs="?", default=None)
    subtitles.add_argument("episode", type=int, nargs="?", default=None)

    # resolve
    resolve = commands.add_parser("resolve", help="Resolve a URL for playback.")
    resolve.add_argument("url")
    resolve.add_argument(
        "--probe",
        action="store_true",
        help="Also run the reachability probe.",
    )

    # catalog / meta
    catalog = commands.add_parser("catalog", help="Fetch an addon catalog page.")
    catalog.add_argument("addon_id")
    catalog.add_argument("catalog_type")
    catalog.add_argument("catalog_id")
    catalog.add_argument("--skip", type=int, default=0)
    meta = commands.add_parser("meta", help="Fetch addon metadata for a title.")
    meta.add_argument("addon_id")
    meta.add_argument("media_type")
    meta.add_argument("media_id")

    # helper-url
    helper = commands.add_parser(
        "helper-url", help="Show or set the torrent helper base URL."
    )
    helper.add_argument("value", nargs="?", default=None)

    return parser.parse_args(argv)


def _to_jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, list):
        return [_to_jsonable(v) for v in value]
    return value


def _emit(payload: Any) -> None:
    sys.stdout.write(json.dumps(_to_jsonable(payload), indent=2, default=str))
    sys.stdout.write("\n")


async def _run_addons(engine: Engine, args: argparse.Namespace) -> Any:
    registry = engine.registry
    if args.addons_command == "list":
        return registry.list()
    if args.addons_command == "add":
        return await registry.add(args.url, display_name=args.name)
    if args.addons_command == "remove":
        registry.remove(args.addon_id)
        return {"removed": args.addon_id}
    return registry.toggle(args.addon_id)


async def _run_streams(engine: Engine, args: argparse.Namespace) -> Any:
    if args.streams_command == "movie":
        return await engine.streams.resolve_movie(
            args.imdb_id, force_refresh=args.refresh
        )
    return await engine.streams.resolve_episode(
        args.imdb_id,
        args.season,
        args.episode,
        force_refresh=args.refresh,
    )


async def _run_resolve(engine: Engine, args: argparse.Namespace) -> Any:
    stream = StreamSource(
        source=args.url,
        addon_name="",
        addon_id="cli",
        quality="Unknown",
        size="",
        url=args.url,
    )
    resolved = await engine.playback.resolve(stream)
    out: dict[str, Any] = {"stream": resolved}
    if args.probe:
        out["reachable"] = (
            await engine.playback.is_reachable(resolved)
            if resolved is not None
            else False
        )
    return {key: _to_jsonable(value) for key, value in out.items()}


async def _dispatch(engine: Engine, args: argparse.Namespace) -> Any:
    if args.command == "addons":
        return await _run_addons(engine, args)
    if args.command == "streams":
        return await _run_streams(engine, args)
    if args.command == "subtitles":
        return await engine.subtitles.fetch_for(
            args.media_type, args.imdb_id, args.season, args.episode
        )
    if args.command == "resolve":
        return await _run_resolve(engine, args)
    if args.command == "catalog":
        return await engine.catalogs.catalog_page(
            args.addon_id, args.catalog_type, args.catalog_id, skip=args.skip
        )
    if args.command == "meta":
        return await engine.catalogs.meta(args.addon_id, args.media_type, args.media_id)
    # helper-url
    if args.value is not None:
        engine.registry.set_torrent_helper_base_url(args.value)
    return {"torrent_helper_base_url": engine.registry.torrent_helper_base_url()}


async def _main(args: argparse.Namespace, config_kwargs: dict[str, Any]) -> int:
    config = load_config(**config_kwargs)
    configure_logging(config)

    async with open_engine(config) as engine:
        try:
            result = await _dispatch(engine, args)
        except AddonError as exc:
            log.warning("cli_command_failed", command=args.command, error=str(exc))
            sys.stderr.write(
                json.dumps({"error": type(exc).__name__, "message": str(exc)}) + "\n"
            )
            return 1
    _emit(result)
    return 0


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Loads config exactly once, builds the engine, runs one command and
    prints its result as JSON on stdout. Logs go to stderr.
    """

    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    config_path = Path(args.config) if args.config else None
    dotenv_path = Path(args.dotenv) if args.dotenv else None

    cli_overrides: dict[str, Any] = {}
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format
    if args.profile:
        cli_overrides["default_profile_id"] = args.profile

    return asyncio.run(
        _main(
            args,
            {
                "config_path": config_path,
                "dotenv_path": dotenv_path,
                "cli_overrides": cli_overrides,
            },
        )
    )


if __name__ == "__main__":
    raise SystemExit(start())
