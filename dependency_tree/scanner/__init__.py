"""Scanner module for file discovery, resolution and graph construction."""

from .discovery import find_files, iter_files
from .resolver import CachedResolver, ModuleResolver, is_builtin_module
from .transforms import alias_transform, chain_transforms, glob_transform
from .builder import DependencyTree, GatherResult

__all__ = [
    "CachedResolver",
    "DependencyTree",
    "GatherResult",
    "ModuleResolver",
    "alias_transform",
    "chain_transforms",
    "find_files",
    "glob_transform",
    "is_builtin_module",
    "iter_files",
]
