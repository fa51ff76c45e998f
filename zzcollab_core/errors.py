"""Typed errors raised by the zzcollab engine."""

from __future__ import annotations


class ZZCollabError(RuntimeError):
    """Base zzcollab error."""


class ManifestError(ZZCollabError):
    """DESCRIPTION or renv.lock could not be parsed."""


class PersistenceError(ZZCollabError):
    """Staged manifest/lockfile writes could not be swapped into place."""


class LockTimeoutError(PersistenceError):
    """Another invocation holds the project apply lock."""


class ConfigurationError(ZZCollabError):
    """Profile, bundle or template reference cannot be resolved."""


class RuntimeCommandError(ZZCollabError):
    """Container runtime CLI invocation failed."""


class CommandRegistryError(ZZCollabError):
    """Command could not be registered or resolved."""


class CommandCollisionError(CommandRegistryError):
    """A command with the same name is already registered."""


class CommandNotFoundError(CommandRegistryError):
    """No registered command matches the requested name."""
