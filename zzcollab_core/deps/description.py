"""Read and edit the DESCRIPTION manifest (Debian control format)."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterable

from zzcollab_core.errors import ManifestError

logger = logging.getLogger(__name__)

DEPENDENCY_FIELDS: tuple[str, ...] = ("Depends", "Imports", "LinkingTo", "Suggests")
IMPORTS_FIELD = "Imports"
_CONTINUATION_INDENT = "    "

_FIELD_RE = re.compile(r"^([A-Za-z][A-Za-z0-9/._@-]*):(.*)$")
_ENTRY_RE = re.compile(r"^([A-Za-z][A-Za-z0-9._]*)\s*(?:\(([^)]*)\))?\s*$", re.DOTALL)
_CONSTRAINT_RE = re.compile(r"\([^)]*\)")


@dataclass(frozen=True)
class ManifestEntry:
    name: str
    constraint: str | None
    field: str

    def render(self) -> str:
        if self.constraint:
            return f"{self.name} ({self.constraint})"
        return self.name


@dataclass(frozen=True)
class DcfField:
    """One field with the exact source text it was parsed from."""

    name: str
    value: str
    raw: str


def parse_dependency_list(value: str, field: str) -> list[ManifestEntry]:
    """Split a comma-separated dependency value into entries.

    Version constraints in parentheses are kept on the entry but never part
    of the name; line breaks inside the list are tolerated.
    """
    entries: list[ManifestEntry] = []
    for item in value.split(","):
        item = " ".join(item.split())
        if not item:
            continue
        match = _ENTRY_RE.match(item)
        if match:
            constraint = match.group(2)
            entries.append(
                ManifestEntry(
                    name=match.group(1),
                    constraint=" ".join(constraint.split()) if constraint else None,
                    field=field,
                )
            )
            continue
        bare = _CONSTRAINT_RE.sub("", item).strip()
        if bare:
            logger.warning("unusual %s entry %r, using %r", field, item, bare.split()[0])
            entries.append(ManifestEntry(name=bare.split()[0], constraint=None, field=field))
    return entries


@dataclass(frozen=True)
class Manifest:
    """A parsed DESCRIPTION file that renders back to its original text."""

    fields: tuple[DcfField, ...]
    prefix: str = ""

    def get(self, name: str) -> str | None:
        for item in self.fields:
            if item.name == name:
                return item.value
        return None

    @property
    def package(self) -> str | None:
        value = self.get("Package")
        return value.strip() if value else None

    @property
    def entries(self) -> tuple[ManifestEntry, ...]:
        collected: list[ManifestEntry] = []
        for item in self.fields:
            if item.name in DEPENDENCY_FIELDS:
                collected.extend(parse_dependency_list(item.value, item.name))
        return tuple(collected)

    def dependency_names(self) -> frozenset[str]:
        return frozenset(entry.name for entry in self.entries)

    def with_imports(self, names: Iterable[str]) -> "Manifest":
        """Return a copy whose ``Imports`` field lists ``names`` after existing entries."""
        declared = self.dependency_names()
        additions: list[str] = []
        for name in names:
            if name not in declared and name not in additions:
                additions.append(name)
        if not additions:
            return self

        addition_text = f",\n{_CONTINUATION_INDENT}".join(additions)
        fields = list(self.fields)
        for index, item in enumerate(fields):
            if item.name != IMPORTS_FIELD:
                continue
            body = item.raw.rstrip("\r\n")
            trailing = item.raw[len(body):] or "\n"
            stripped = body.rstrip()
            if stripped.endswith((":", ",")):
                raw = f"{stripped}\n{_CONTINUATION_INDENT}{addition_text}{trailing}"
            else:
                raw = f"{stripped},\n{_CONTINUATION_INDENT}{addition_text}{trailing}"
            fields[index] = _reparse(raw)
            return replace(self, fields=tuple(fields))

        raw = f"{IMPORTS_FIELD}:\n{_CONTINUATION_INDENT}{addition_text}\n"
        if fields and not fields[-1].raw.endswith("\n"):
            last = fields[-1]
            fields[-1] = DcfField(name=last.name, value=last.value, raw=last.raw + "\n")
        fields.append(_reparse(raw))
        return replace(self, fields=tuple(fields))

    def render(self) -> str:
        return self.prefix + "".join(item.raw for item in self.fields)


def _reparse(raw: str) -> DcfField:
    parsed = parse_description(raw)
    return parsed.fields[0]


def parse_description(text: str, *, source: str = "DESCRIPTION") -> Manifest:
    """Parse DCF text, keeping each field's raw lines for lossless rendering."""
    prefix_lines: list[str] = []
    blocks: list[tuple[str, list[str], list[str]]] = []
    for number, line in enumerate(text.splitlines(keepends=True), start=1):
        content = line.rstrip("\r\n")
        if not content.strip():
            if blocks:
                blocks[-1][2].append(line)
            else:
                prefix_lines.append(line)
            continue
        if content[0] in " \t":
            if not blocks:
                raise ManifestError(f"{source}: line {number} continues a field that was never started")
            blocks[-1][1].append(content.strip())
            blocks[-1][2].append(line)
            continue
        match = _FIELD_RE.match(content)
        if match is None:
            raise ManifestError(f"{source}: line {number} is not a 'Field: value' line: {content!r}")
        blocks.append((match.group(1), [match.group(2).strip()], [line]))

    fields = tuple(
        DcfField(
            name=name,
            value="\n".join(part for part in parts if part),
            raw="".join(raw_lines),
        )
        for name, parts, raw_lines in blocks
    )
    return Manifest(fields=fields, prefix="".join(prefix_lines))


def load_description(path: Path) -> Manifest:
    if not path.exists():
        raise ManifestError(
            f"{path} not found; create one with `usethis::use_description()` or run from the project root"
        )
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestError(f"unable to read {path}: {exc}") from exc
    return parse_description(text, source=str(path))
