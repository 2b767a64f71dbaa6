"""Path display helpers shared by the exporters."""

import os
from typing import Optional


def display_path(path: str, base: Optional[str] = None) -> str:
    """
    Get the string representation of a path.

    Paths below ``base`` are shown relative to it, with forward slashes.
    Other paths (and raw missing references) are shown unchanged.
    """
    if base is None or not os.path.isabs(path):
        return path.replace("\\", "/")
    base = os.path.realpath(base)
    if path == base or path.startswith(base + os.sep):
        return os.path.relpath(path, base).replace("\\", "/")
    return path.replace("\\", "/")
