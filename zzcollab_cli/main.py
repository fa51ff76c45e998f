"""zzcollab CLI entrypoint backed by the command feature registry."""

from __future__ import annotations

import argparse
import inspect
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, Sequence

from zzcollab_core import __version__
from zzcollab_core.app import ZZCollabApp
from zzcollab_core.errors import CommandNotFoundError
from zzcollab_core.features import FeatureEntry

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def main(
    argv: Sequence[str] | None = None,
    *,
    start_dir: Path | str | None = None,
) -> int:
    """Resolve and run a zzcollab command."""

    tokens = list(argv) if argv is not None else list(sys.argv[1:])
    log_level, tokens = _extract_log_level(tokens)

    if "--version" in tokens:
        print(f"zzcollab v{__version__}")
        return 0

    app = ZZCollabApp(start_dir=start_dir)
    _configure_logging(log_level or app.settings.get("log_level"))
    app.bootstrap()
    registry = app.feature_registry
    entries = registry.entries()

    if not tokens or tokens[0] in ("-h", "--help"):
        return _print_overview(entries)

    name, *command_args = tokens
    try:
        entry = registry.resolve(name)
    except CommandNotFoundError as exc:
        print(f"{exc} Run `zzcollab help` to list commands.")
        return 1

    parser = argparse.ArgumentParser(
        prog=f"zzcollab {entry.name}",
        description=_command_description(entry),
    )
    entry.target.configure(parser)

    try:
        parsed_args = parser.parse_args(command_args)
    except SystemExit as exc:
        return exc.code or 0
    if hasattr(parsed_args, "project_dir") and parsed_args.project_dir is None:
        parsed_args.project_dir = str(app.project_root)

    command = entry.target()
    result = command.run(parsed_args)

    if entry.group == "zzcollab" and entry.name == "help":
        return _print_overview(entries, include_long=getattr(command, "long_format", False))

    if entry.group == "zzcollab" and entry.name == "listing":
        return _print_listing(entries, getattr(command, "output_format", "text"))

    return to_int(result)


def run() -> int:
    return main()


def _extract_log_level(tokens: list[str]) -> tuple[str | None, list[str]]:
    level: str | None = None
    remaining: list[str] = []
    iterator = iter(tokens)
    for token in iterator:
        if token == "--log-level":
            level = next(iterator, None)
            continue
        if token.startswith("--log-level="):
            level = token.split("=", 1)[1]
            continue
        remaining.append(token)
    return level, remaining


def _configure_logging(level: str | None) -> None:
    name = (level or "WARNING").upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        numeric = logging.WARNING
    logging.basicConfig(level=numeric, format=_LOG_FORMAT)


def _print_overview(
    entries: Iterable[FeatureEntry],
    *,
    include_long: bool = False,
) -> int:
    print("Usage: zzcollab [--log-level LEVEL] <command> [args...]\n")
    print("Commands:")
    for entry in entries:
        lines = _command_description(entry).splitlines()
        short = lines[0] if lines else ""
        print(f"  {entry.name:<30} {short}")
        if include_long and len(lines) > 1:
            for extra in lines[1:]:
                print(f"    {extra}")
    return 0


def _print_listing(entries: Iterable[FeatureEntry], fmt: str) -> int:
    names = [entry.name for entry in entries]
    if fmt == "json":
        print(json.dumps(names, indent=2))
        return 0
    for name in names:
        print(name)
    return 0


def _command_description(entry: FeatureEntry) -> str:
    return (inspect.getdoc(entry.target) or "").strip()


def to_int(result: int | None) -> int:
    return 0 if result is None else result
