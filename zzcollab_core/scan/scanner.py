"""Extract referenced R package names from a project source tree."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)

BASE_PACKAGES = frozenset(
    {
        "R",
        "base",
        "compiler",
        "datasets",
        "grDevices",
        "graphics",
        "grid",
        "methods",
        "parallel",
        "splines",
        "stats",
        "stats4",
        "tcltk",
        "tools",
        "utils",
    }
)
STANDARD_DIRS: tuple[str, ...] = ("R", "scripts", "analysis")
STRICT_DIRS: tuple[str, ...] = ("R", "scripts", "analysis", "tests", "vignettes", "inst")
DEFAULT_EXTENSIONS: tuple[str, ...] = (".R", ".Rmd", ".qmd", ".Rnw")

_PACKAGE_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9.]*$")
# The closing delimiter is part of the pattern: `library(dplyr` never matches.
_LOAD_RE = re.compile(
    r"\b(?:library|require|requireNamespace)\s*\(\s*"
    r"(?:package\s*=\s*)?[\"']?([A-Za-z][A-Za-z0-9._]*)[\"']?\s*[,)]"
)
_NAMESPACE_RE = re.compile(r"(?<![A-Za-z0-9._])([A-Za-z][A-Za-z0-9._]*):::?")
_ROXYGEN_IMPORT_RE = re.compile(r"@import\s+([^@\n]+)")
_ROXYGEN_IMPORT_FROM_RE = re.compile(r"@importFrom\s+([A-Za-z][A-Za-z0-9._]*)")


def is_valid_package_name(name: str) -> bool:
    """Letters, digits and dots only, leading letter, at least two characters."""
    if len(name) < 2 or name.endswith("."):
        return False
    return bool(_PACKAGE_NAME_RE.match(name))


@dataclass(frozen=True)
class PackageReference:
    name: str
    path: Path
    line: int


@dataclass(frozen=True)
class ScanWarning:
    path: Path
    reason: str

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"


@dataclass(frozen=True)
class ScanResult:
    references: tuple[PackageReference, ...] = ()
    warnings: tuple[ScanWarning, ...] = ()
    files_scanned: int = 0

    @property
    def names(self) -> frozenset[str]:
        return frozenset(ref.name for ref in self.references)


def _comment_start(line: str) -> int:
    """Index of the first ``#`` outside a string literal, or -1."""
    quote: str | None = None
    escaped = False
    for index, char in enumerate(line):
        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
        elif char in "\"'`":
            quote = char
        elif char == "#":
            return index
    return -1


def _strip_comments(line: str) -> str:
    stripped = line.lstrip()
    if stripped.startswith("#'"):
        # Roxygen: keep the text after the marker so @examples code is scanned.
        return stripped[2:]
    index = _comment_start(line)
    if index == -1:
        return line
    return line[:index]


def extract_packages(text: str) -> Iterator[tuple[str, int]]:
    """Yield ``(candidate, line)`` pairs found in R source text.

    Candidates are not yet validated against the package-name grammar.
    """
    lines = [_strip_comments(raw) for raw in text.splitlines()]
    code = "\n".join(lines)

    for match in _LOAD_RE.finditer(code):
        yield match.group(1), code.count("\n", 0, match.start()) + 1
    for match in _NAMESPACE_RE.finditer(code):
        yield match.group(1), code.count("\n", 0, match.start()) + 1

    for number, raw in enumerate(text.splitlines(), start=1):
        if not raw.lstrip().startswith("#'"):
            continue
        for match in _ROXYGEN_IMPORT_FROM_RE.finditer(raw):
            yield match.group(1), number
        for match in _ROXYGEN_IMPORT_RE.finditer(raw):
            for token in match.group(1).split():
                yield token, number


@dataclass
class DependencyScanner:
    """Walk project directories and collect package references."""

    directories: tuple[str, ...] = STANDARD_DIRS
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    include_top_level: bool = True
    exclude: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        self._suffixes = {ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in self.extensions}
        self.exclude = frozenset(self.exclude) | BASE_PACKAGES

    def scan(self, root: Path) -> ScanResult:
        root = Path(root)
        references: list[PackageReference] = []
        warnings: list[ScanWarning] = []
        seen: set[str] = set()
        files = 0
        for path in self._discover(root):
            files += 1
            text = self._read(path, warnings)
            if text is None:
                continue
            for candidate, line in extract_packages(text):
                if candidate in seen or candidate in self.exclude:
                    continue
                if not is_valid_package_name(candidate):
                    continue
                seen.add(candidate)
                references.append(PackageReference(name=candidate, path=path, line=line))
        logger.debug("scanned %s files under %s, found %s packages", files, root, len(references))
        return ScanResult(references=tuple(references), warnings=tuple(warnings), files_scanned=files)

    def _discover(self, root: Path) -> Iterable[Path]:
        found: list[Path] = []
        for name in self.directories:
            directory = root / name
            if not directory.is_dir():
                continue
            found.extend(path for path in sorted(directory.rglob("*")) if self._matches(path))
        if self.include_top_level and root.is_dir():
            found.extend(path for path in sorted(root.iterdir()) if self._matches(path))
        return found

    def _matches(self, path: Path) -> bool:
        return path.suffix.lower() in self._suffixes and not path.is_dir()

    def _read(self, path: Path, warnings: list[ScanWarning]) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            try:
                return path.read_text(encoding="latin-1")
            except OSError as exc:
                warnings.append(ScanWarning(path=path, reason=str(exc)))
        except OSError as exc:
            warnings.append(ScanWarning(path=path, reason=str(exc)))
        logger.warning("skipping unreadable file %s", path)
        return None
