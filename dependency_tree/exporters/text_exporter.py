"""Plain text exporter, one path per line."""

from typing import Iterable, Optional

from .paths import display_path


def to_text(paths: Iterable[str], base: Optional[str] = None) -> str:
    """Render paths sorted, one per line, relative to ``base`` where possible."""
    return "\n".join(sorted(display_path(p, base) for p in paths))
