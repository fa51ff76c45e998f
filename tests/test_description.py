"""Tests for DESCRIPTION parsing and Imports editing."""

from __future__ import annotations

from pathlib import Path

import pytest

from zzcollab_core.deps import load_description, parse_dependency_list, parse_description
from zzcollab_core.errors import ManifestError

SAMPLE = """\
Package: myproj
Title: Example
Version: 0.1.0
Authors@R: person("Ada", "Lovelace",
    email = "ada@example.org")
Depends:
    R (>= 4.1.0)
Imports:
    dplyr (>= 1.1.0),
    ggplot2,
    tidyr
Suggests: testthat (>= 3.0.0), knitr
License: MIT
"""


def test_parse_collects_dependency_fields() -> None:
    manifest = parse_description(SAMPLE)

    assert manifest.package == "myproj"
    by_name = {entry.name: entry for entry in manifest.entries}
    assert by_name["R"].field == "Depends"
    assert by_name["R"].constraint == ">= 4.1.0"
    assert by_name["dplyr"].constraint == ">= 1.1.0"
    assert by_name["ggplot2"].constraint is None
    assert by_name["testthat"].field == "Suggests"
    assert manifest.dependency_names() == {"R", "dplyr", "ggplot2", "tidyr", "testthat", "knitr"}


def test_render_is_lossless() -> None:
    assert parse_description(SAMPLE).render() == SAMPLE


def test_constraint_split_across_lines() -> None:
    entries = parse_dependency_list("dplyr (>=\n1.0.0), tidyr", "Imports")
    assert [(entry.name, entry.constraint) for entry in entries] == [("dplyr", ">= 1.0.0"), ("tidyr", None)]


def test_with_imports_appends_to_multiline_field() -> None:
    updated = parse_description(SAMPLE).with_imports(["readr", "dplyr", "knitr", "readr"])

    assert "Imports:\n    dplyr (>= 1.1.0),\n    ggplot2,\n    tidyr,\n    readr\nSuggests:" in updated.render()
    assert updated.get("License") == "MIT"
    assert "readr" in parse_description(updated.render()).dependency_names()


def test_with_imports_extends_inline_field() -> None:
    manifest = parse_description("Package: tiny\nImports: dplyr\nLicense: MIT\n")
    rendered = manifest.with_imports(["purrr", "stringr"]).render()
    assert rendered == "Package: tiny\nImports: dplyr,\n    purrr,\n    stringr\nLicense: MIT\n"


def test_with_imports_creates_field_when_missing() -> None:
    manifest = parse_description("Package: tiny\nVersion: 0.0.1")
    rendered = manifest.with_imports(["sf"]).render()
    assert rendered == "Package: tiny\nVersion: 0.0.1\nImports:\n    sf\n"


def test_with_imports_without_new_names_returns_same_manifest() -> None:
    manifest = parse_description(SAMPLE)
    assert manifest.with_imports(["dplyr", "testthat"]) is manifest


def test_invalid_line_raises() -> None:
    with pytest.raises(ManifestError, match="line 2"):
        parse_description("Package: x\nnot a field\n")


def test_load_missing_description(tmp_path: Path) -> None:
    with pytest.raises(ManifestError, match="use_description"):
        load_description(tmp_path / "DESCRIPTION")
