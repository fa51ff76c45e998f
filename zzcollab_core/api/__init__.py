"""Convenience imports for the zzcollab command API."""

from .abc import ZZAbstractCommand
from .decorators import zzcommand

__all__ = ["ZZAbstractCommand", "zzcommand"]
