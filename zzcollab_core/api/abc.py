"""Abstract base class for zzcollab commands."""

from __future__ import annotations

from abc import ABC, abstractmethod
from argparse import ArgumentParser, Namespace


class ZZAbstractCommand(ABC):
    """Base interface for zzcollab commands."""

    @classmethod
    @abstractmethod
    def configure(cls, parser: ArgumentParser) -> None:
        """Let the command configure CLI arguments."""

    @abstractmethod
    def run(self, argv: Namespace) -> int:
        """Execute the command with parsed arguments."""
