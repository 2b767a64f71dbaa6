"""Shared tree-sitter parsing helpers for the analyzers."""

import os
from typing import Iterator, Optional

import tree_sitter
import tree_sitter_css as tscss
import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript

Language = tree_sitter.Language
Parser = tree_sitter.Parser
Node = tree_sitter.Node
Tree = tree_sitter.Tree

JS_LANGUAGE = Language(tsjavascript.language())
TS_LANGUAGE = Language(tstypescript.language_typescript())
TSX_LANGUAGE = Language(tstypescript.language_tsx())
CSS_LANGUAGE = Language(tscss.language())

_LANGUAGES_BY_EXTENSION = {
    ".js": JS_LANGUAGE,
    ".jsx": JS_LANGUAGE,
    ".mjs": JS_LANGUAGE,
    ".cjs": JS_LANGUAGE,
    ".ts": TS_LANGUAGE,
    ".mts": TS_LANGUAGE,
    ".cts": TS_LANGUAGE,
    ".tsx": TSX_LANGUAGE,
    ".css": CSS_LANGUAGE,
}


def language_for(path: str) -> Optional[Language]:
    """Return the grammar used for a file, based on its extension."""
    return _LANGUAGES_BY_EXTENSION.get(os.path.splitext(path)[1].lower())


def parse(source: str, language: Language) -> Tree:
    """Parse source text with a fresh parser (parsers are not shareable)."""
    parser = Parser(language)
    return parser.parse(source.encode("utf-8"))


def walk(node: Node) -> Iterator[Node]:
    """Yield a node and all of its descendants in pre-order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def node_text(node: Optional[Node]) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def string_value(node: Optional[Node]) -> Optional[str]:
    """
    Return the value of a string literal node without its quotes.

    Template strings with substitutions have no static value.
    """
    if node is None:
        return None
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.children):
            return None
    elif node.type not in ("string", "string_value"):
        return None

    text = node_text(node)
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        return text[1:-1]
    return text
