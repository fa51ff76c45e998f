"""Debian system libraries needed to compile and run common R packages."""

from __future__ import annotations

from typing import Iterable, Mapping

_GDAL_BUILD = ("libgdal-dev", "libproj-dev", "libgeos-dev")
_GDAL_RUNTIME = ("libgdal30", "libproj25", "libgeos-c1v5")
_CAIRO_BUILD = ("libcairo2-dev", "libfreetype6-dev", "libjpeg-dev", "libpng-dev")
_CAIRO_RUNTIME = ("libcairo2", "libfreetype6", "libjpeg8", "libpng16-16")


def _expand(groups: Mapping[tuple[str, ...], tuple[str, ...]]) -> dict[str, tuple[str, ...]]:
    return {package: deps for packages, deps in groups.items() for package in packages}


BUILD_DEPS: dict[str, tuple[str, ...]] = _expand(
    {
        ("sf", "terra", "rgdal", "raster", "stars"): _GDAL_BUILD,
        ("sp", "proj4", "proj"): ("libproj-dev",),
        ("units", "udunits2"): ("libudunits2-dev",),
        ("ragg", "gdtools", "svglite"): _CAIRO_BUILD,
        ("systemfonts",): ("libfontconfig1-dev",),
        ("magick",): ("libmagick++-dev",),
        ("xml2",): ("libxml2-dev",),
        ("RPostgres", "RPostgreSQL"): ("libpq-dev",),
        ("RMySQL", "RMariaDB"): ("libmariadb-dev",),
        ("RSQLite",): ("libsqlite3-dev",),
        ("odbc",): ("unixodbc-dev",),
        ("curl", "httr", "httr2"): ("libcurl4-openssl-dev",),
        ("openssl",): ("libssl-dev",),
        ("sodium",): ("libsodium-dev",),
        ("ssh",): ("libssh2-1-dev",),
        ("git2r",): ("libgit2-dev",),
        ("gsl",): ("libgsl-dev",),
        ("nloptr",): ("libnlopt-dev",),
        ("igraph",): ("libglpk-dev",),
        ("Matrix", "RcppArmadillo"): ("liblapack-dev", "libblas-dev"),
        ("Rhtslib", "Rsamtools"): ("libbz2-dev", "liblzma-dev"),
        ("zlibbioc",): ("zlib1g-dev",),
        ("stringi",): ("libicu-dev",),
        ("hunspell",): ("libhunspell-dev",),
        ("av",): ("libavfilter-dev",),
        ("audio",): ("portaudio19-dev",),
        ("archive",): ("libarchive-dev",),
        ("hdf5r", "rhdf5"): ("libhdf5-dev",),
        ("ncdf4", "RNetCDF"): ("libnetcdf-dev",),
        ("fftw", "fftwtools"): ("libfftw3-dev",),
        ("RProtoBuf",): ("libprotobuf-dev", "protobuf-compiler"),
        ("rJava",): ("default-jdk",),
    }
)

RUNTIME_DEPS: dict[str, tuple[str, ...]] = _expand(
    {
        ("sf", "terra", "rgdal", "raster", "stars"): _GDAL_RUNTIME,
        ("units", "udunits2"): ("libudunits2-0",),
        ("ragg", "gdtools", "svglite"): _CAIRO_RUNTIME,
        ("magick",): ("libmagick++-6.q16-8",),
        ("RPostgres", "RPostgreSQL"): ("libpq5",),
        ("RMySQL", "RMariaDB"): ("libmariadb3",),
        ("gsl",): ("libgsl27",),
        ("stringi",): ("libicu72",),
    }
)


def _collect(table: Mapping[str, tuple[str, ...]], packages: Iterable[str]) -> tuple[str, ...]:
    found: set[str] = set()
    for package in packages:
        found.update(table.get(package, ()))
    return tuple(sorted(found))


def build_deps_for(packages: Iterable[str]) -> tuple[str, ...]:
    """Sorted, de-duplicated ``-dev`` packages for ``packages``."""
    return _collect(BUILD_DEPS, packages)


def runtime_deps_for(packages: Iterable[str]) -> tuple[str, ...]:
    return _collect(RUNTIME_DEPS, packages)
