"""Reference transform hooks applied before resolution."""

import glob
import os
from typing import Callable, Dict, List, Union


Reference = Union[str, List[str]]
ReferenceTransformFn = Callable[[str, str], Reference]

_GLOB_CHARS = ("*", "?", "[")


def identity(reference: str, source_file: str) -> Reference:
    """Return the reference unchanged."""
    return reference


def alias_transform(aliases: Dict[str, str]) -> ReferenceTransformFn:
    """
    Build a transform rewriting aliased prefixes into real directories.

    Args:
        aliases: Mapping of prefix (e.g. ``"~"``) to the directory it
            stands for. The longest matching prefix wins.

    Returns:
        A transform producing an absolute path for aliased references and
        leaving every other reference untouched.
    """
    ordered = sorted(aliases.items(), key=lambda item: len(item[0]), reverse=True)

    def transform(reference: str, source_file: str) -> Reference:
        for prefix, directory in ordered:
            if reference.startswith(prefix):
                rest = reference[len(prefix):].lstrip("/")
                return os.path.join(directory, rest)
        return reference

    return transform


def glob_transform(reference: str, source_file: str) -> Reference:
    """
    Expand a glob reference into the files it matches.

    Patterns are relative to the directory of the source file. Each match is
    returned as a ``./``-relative reference so it resolves from the same
    directory. A pattern matching nothing is returned unchanged and ends up
    as a missing reference.
    """
    if not any(char in reference for char in _GLOB_CHARS):
        return reference

    directory = os.path.dirname(source_file)
    pattern = os.path.join(directory, reference)
    matches = sorted(m for m in glob.glob(pattern, recursive=True) if os.path.isfile(m))
    if not matches:
        return reference

    return ["./" + os.path.relpath(match, directory).replace(os.sep, "/") for match in matches]


def chain_transforms(*transforms: ReferenceTransformFn) -> ReferenceTransformFn:
    """Compose transforms left to right, flattening expanded references."""

    def transform(reference: str, source_file: str) -> Reference:
        current = [reference]
        for fn in transforms:
            expanded: List[str] = []
            for ref in current:
                result = fn(ref, source_file)
                if isinstance(result, (list, tuple)):
                    expanded.extend(result)
                else:
                    expanded.append(result)
            current = expanded
        if len(current) == 1:
            return current[0]
        return current

    return transform
