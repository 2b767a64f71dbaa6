"""Analyzer for CSS stylesheets."""

import logging
from typing import List, Set

from .base import Analyzer, extension_pattern
from .syntax import CSS_LANGUAGE, Node, node_text, parse, string_value, walk


logger = logging.getLogger(__name__)

REMOTE_PREFIXES = ("http://", "https://", "//", "data:")


class StylesheetSyntaxError(ValueError):
    """The stylesheet could not be parsed."""


def extract_stylesheet_references(source: str) -> List[str]:
    """
    Find the ``@import`` targets and ``url(...)`` values of a stylesheet.

    Remote and inline (``data:``) URLs are not files and are skipped.

    Raises:
        StylesheetSyntaxError: If the stylesheet is malformed.
    """
    root = parse(source, CSS_LANGUAGE).root_node
    if root.has_error:
        raise StylesheetSyntaxError(_first_error_location(root))

    found = {}
    for node in walk(root):
        reference = None
        if node.type == "import_statement":
            reference = _import_target(node)
        elif node.type == "call_expression" and _function_name(node) == "url":
            reference = _url_argument(node)
        if not reference or reference.startswith(REMOTE_PREFIXES):
            continue
        found.setdefault(reference, None)
    return list(found)


class StyleAnalyzer(Analyzer):
    """Resolve the imports and URLs referenced by CSS files."""

    def __init__(self):
        self._re_ext = extension_pattern(self.supported_kinds())

    def match(self, path: str) -> bool:
        return self._re_ext.search(path) is not None

    def supported_kinds(self) -> List[str]:
        return ["css"]

    async def process(self, path, contents, missing, files, tree) -> Set[str]:
        imported: Set[str] = set()
        try:
            references = extract_stylesheet_references(contents)
        except StylesheetSyntaxError as e:
            logger.error("Error in %s when trying to parse CSS: %s", path, e)
            return imported

        for reference in references:
            tree.resolve_and_collect(
                path,
                tree.transform_reference(reference, path),
                imported,
                missing,
            )
        return imported


def _import_target(node: Node) -> str:
    for child in node.named_children:
        if child.type == "string_value":
            return string_value(child) or ""
        if child.type == "call_expression" and _function_name(child) == "url":
            return _url_argument(child)
    return ""


def _function_name(node: Node) -> str:
    for child in node.children:
        if child.type == "function_name":
            return node_text(child).lower()
    return ""


def _url_argument(node: Node) -> str:
    for child in node.children:
        if child.type == "arguments":
            text = node_text(child).strip()
            if text.startswith("(") and text.endswith(")"):
                text = text[1:-1].strip()
            return text.strip("'\"")
    return ""


def _first_error_location(root: Node) -> str:
    for node in walk(root):
        if node.type == "ERROR" or node.is_missing:
            row, column = node.start_point
            return f"syntax error at line {row + 1}, column {column + 1}"
    return "syntax error"
