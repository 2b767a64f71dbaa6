"""JSON exporter for dependency maps (machine-friendly format)."""

import json
from typing import Any, Dict, Iterable, List, Optional, Set

from .paths import display_path


def to_json(
    resolved: Dict[str, Set[str]],
    missing: Optional[Dict[str, Set[str]]] = None,
    base: Optional[str] = None,
    indent: int = 2,
) -> str:
    """
    Convert the result of a scan to JSON.

    Args:
        resolved: Map of each file to the files it depends on.
        missing: Map of files to their unresolved references.
        base: Optional base path for relative path display.
        indent: JSON indentation level.

    Returns:
        A JSON object with ``resolved`` and ``missing`` keys. Keys and
        values are sorted so the output is stable.
    """
    data: Dict[str, Any] = {
        "resolved": _render_map(resolved, base, relative_values=True),
        "missing": _render_map(missing or {}, base, relative_values=False),
    }
    return json.dumps(data, indent=indent)


def paths_to_json(paths: Iterable[str], base: Optional[str] = None, indent: int = 2) -> str:
    """Convert a set of paths (e.g. a query result) to a sorted JSON array."""
    return json.dumps(sorted(display_path(p, base) for p in paths), indent=indent)


def _render_map(
    mapping: Dict[str, Set[str]],
    base: Optional[str],
    relative_values: bool,
) -> Dict[str, List[str]]:
    rendered: Dict[str, List[str]] = {}
    for source in sorted(mapping):
        values = mapping[source]
        if relative_values:
            rendered[display_path(source, base)] = sorted(display_path(v, base) for v in values)
        else:
            rendered[display_path(source, base)] = sorted(values)
    return rendered
