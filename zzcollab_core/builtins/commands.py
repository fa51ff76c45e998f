"""Built-in commands that are registered before anything else."""

from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path

from zzcollab_core.api import ZZAbstractCommand, zzcommand
from zzcollab_core.context import EngineContext


class _ProjectCommand(ZZAbstractCommand):
    """Commands that operate on an R project directory."""

    def __init__(self, context: EngineContext | None = None) -> None:
        self.context = context

    @staticmethod
    def add_project_argument(parser: ArgumentParser) -> None:
        parser.add_argument(
            "--project-dir",
            "-C",
            dest="project_dir",
            default=None,
            help="Project root (default: nearest parent with a DESCRIPTION)",
        )

    def _context(self, argv: Namespace) -> EngineContext:
        if self.context is None:
            requested = getattr(argv, "project_dir", None)
            self.context = EngineContext.create(Path(requested) if requested else None)
        return self.context


@zzcommand(name="help", group="zzcollab")
class HelpCommand(ZZAbstractCommand):
    """Show the command overview.

    Pass --long to include each command's full description.
    """

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("--long", action="store_true", dest="long_format", help="Show full descriptions")

    def run(self, argv: Namespace) -> int:
        self.long_format = bool(getattr(argv, "long_format", False))
        return 0


@zzcommand(name="listing", group="zzcollab")
class ListingCommand(ZZAbstractCommand):
    """List registered command names."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("--format", choices=["text", "json"], default="text", dest="output_format")

    def run(self, argv: Namespace) -> int:
        self.output_format = str(getattr(argv, "output_format", "text"))
        return 0
