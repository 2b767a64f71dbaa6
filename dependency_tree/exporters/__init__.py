"""Exporters for rendering dependency maps and query results."""

from .json_exporter import to_json
from .mermaid_exporter import to_mermaid
from .text_exporter import to_text

__all__ = ["to_json", "to_mermaid", "to_text"]
