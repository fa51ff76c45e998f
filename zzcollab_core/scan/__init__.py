"""Source-tree scanning for referenced R packages."""

from .scanner import (
    BASE_PACKAGES,
    DEFAULT_EXTENSIONS,
    STANDARD_DIRS,
    STRICT_DIRS,
    DependencyScanner,
    PackageReference,
    ScanResult,
    ScanWarning,
    extract_packages,
    is_valid_package_name,
)

__all__ = [
    "BASE_PACKAGES",
    "DEFAULT_EXTENSIONS",
    "STANDARD_DIRS",
    "STRICT_DIRS",
    "DependencyScanner",
    "PackageReference",
    "ScanResult",
    "ScanWarning",
    "extract_packages",
    "is_valid_package_name",
]
