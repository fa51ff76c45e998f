"""Build-definition resolution, rendering and image caching."""

from .cache import DIGEST_LABEL, BuildCache, CacheRecord, cache_key
from .dockerfile import BuildDefinition, render_definition
from .profiles import (
    BuildStrategy,
    GenerateDefinition,
    LibraryBundle,
    PackageBundle,
    Profile,
    ProfileCatalog,
    ProfileRequest,
    ProfileResolver,
    UseStaticDefinition,
    split_bundle_list,
)
from .runtime import BuildRequest, ContainerRuntime, ContainerRuntimeConfig, ImageSummary

__all__ = [
    "DIGEST_LABEL",
    "BuildCache",
    "BuildDefinition",
    "BuildRequest",
    "BuildStrategy",
    "CacheRecord",
    "ContainerRuntime",
    "ContainerRuntimeConfig",
    "GenerateDefinition",
    "ImageSummary",
    "LibraryBundle",
    "PackageBundle",
    "Profile",
    "ProfileCatalog",
    "ProfileRequest",
    "ProfileResolver",
    "UseStaticDefinition",
    "cache_key",
    "render_definition",
    "split_bundle_list",
]
