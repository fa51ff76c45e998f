"""Command line entry point for zzcollab."""

from .main import main

__all__ = ["main"]
