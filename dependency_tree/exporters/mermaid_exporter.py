"""Mermaid flowchart exporter for dependency maps."""

import re
from typing import Dict, Optional, Set

from .paths import display_path


def to_mermaid(
    resolved: Dict[str, Set[str]],
    base: Optional[str] = None,
    missing: Optional[Dict[str, Set[str]]] = None,
    orientation: str = "LR",
) -> str:
    """
    Convert a dependency map to Mermaid flowchart syntax.

    Args:
        resolved: Map of each file to the files it depends on.
        base: Optional base path for relative node labels.
        missing: If given, unresolved references are drawn as dashed edges
            to nodes marked ``[MISSING]``.
        orientation: Flowchart orientation (LR, TD, TB, RL, BT).

    Returns:
        Mermaid flowchart string.
    """
    lines = [f"flowchart {orientation}"]

    nodes: Set[str] = set(resolved)
    for targets in resolved.values():
        nodes.update(targets)

    node_ids: Dict[str, str] = {}
    for node in sorted(nodes):
        label = display_path(node, base)
        node_ids[node] = _unique_id(_sanitize_id(label), node_ids.values())
        lines.append(f'    {node_ids[node]}["{label}"]')

    missing_ids: Dict[str, str] = {}
    if missing:
        lines.append("")
        lines.append("    %% Missing references")
        for reference in sorted({r for refs in missing.values() for r in refs}):
            missing_id = _unique_id(_sanitize_id(f"missing_{reference}"), missing_ids.values())
            missing_ids[reference] = missing_id
            lines.append(f'    {missing_id}["{reference} [MISSING]"]')
            lines.append(f"    style {missing_id} stroke:#ff0000,stroke-dasharray: 5 5")

    lines.append("")
    for source in sorted(resolved):
        for target in sorted(resolved[source]):
            lines.append(f"    {node_ids[source]} --> {node_ids[target]}")

    if missing:
        for source in sorted(missing):
            source_id = node_ids.get(source)
            if source_id is None:
                continue
            for reference in sorted(missing[source]):
                lines.append(f"    {source_id} -.-> {missing_ids[reference]}")

    return "\n".join(lines)


def _sanitize_id(value: str) -> str:
    """
    Sanitize a string to be a valid Mermaid ID.

    Mermaid IDs can only contain letters, digits, and underscores.
    """
    sanitized = re.sub(r"[/\\.\-]", "_", value)
    sanitized = re.sub(r"[^a-zA-Z0-9_]", "", sanitized)
    if sanitized and not sanitized[0].isalpha():
        sanitized = "n_" + sanitized
    return sanitized or "unknown"


def _unique_id(candidate: str, taken) -> str:
    taken = set(taken)
    unique = candidate
    suffix = 2
    while unique in taken:
        unique = f"{candidate}_{suffix}"
        suffix += 1
    return unique
