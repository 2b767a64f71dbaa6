"""
Explicit dependency declarations embedded in comments.

Some dependencies cannot be inferred from the structure of a file, e.g. a
script executed through a shell command. They can be declared with a
self-closing ``dependency-tree`` element inside a comment:

    /// <dependency-tree depends-on="./run.sh" />

A definition may span several comment lines:

    /// <dependency-tree
    ///   depends-on="./run.sh"
    /// />

The comment syntax is supplied per file kind by a "start" token, marking
where a definition may begin, and a "continuation" token prefixing the
following lines of a multi-line definition.
"""

import logging
import re
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..errors import (
    DirectiveParseError,
    DirectiveSyntaxError,
    DirectiveValidationError,
)
from .base import Analyzer, extension_pattern


logger = logging.getLogger(__name__)

ELEMENT_NAME = "dependency-tree"
DEPENDS_ON = "depends-on"
ALLOWED_ATTRIBUTES = (DEPENDS_ON,)

Directive = Dict[str, str]

# Location details reported by the XML parser refer to the isolated element,
# not to the file, so they are cut from its messages.
_RE_PARSER_LOCATION = re.compile(r":?\s*line \d+, column \d+", re.IGNORECASE)


def normalize_attribute_name(name: str) -> str:
    """
    Fold an attribute name to lower case without dashes or underscores.

    ``depends-on``, ``dependsOn`` and ``depends_on`` all name one attribute.
    """
    return name.replace("-", "").replace("_", "").lower()


_ATTRIBUTE_KEYS = {normalize_attribute_name(name): name for name in ALLOWED_ATTRIBUTES}


class DirectiveParser:
    """
    Find and validate directives in the content of a file.

    Args:
        start: Pattern marking where a directive comment may begin.
        continuation: Pattern prefixing the subsequent lines of a multi-line
            directive.
    """

    def __init__(self, start: str, continuation: str):
        element = re.escape(ELEMENT_NAME)

        # A well-formed element, single- or multi-line. The captured body may
        # still contain continuation tokens that must be cut out before the
        # markup is parsed.
        elements_body = rf"(?:.*{start}\s*(?P<body><{element}\s[^>]*/>).*)"

        # The element was opened but not properly closed.
        syntax_error = rf"(?:.*(?P<syntax_error>{start}\s*<{element})\s.*)"

        # Anything else, up to the end of the line.
        rest = r"(?:.*)"

        self._re_next = re.compile(
            rf"(?:{elements_body}|{syntax_error}|{rest})(?:\n+|\Z)"
        )
        self._re_line_break = re.compile(rf"\n\s*(?:{continuation})")

    def parse(self, content: str, file_name: str) -> List[Directive]:
        """
        Return the attributes of every directive defined in the content.

        Args:
            content: The content to scan.
            file_name: Path of the scanned file, for error reports only.

        Raises:
            DirectiveSyntaxError: An element is opened but not closed.
            DirectiveParseError: An element is not well-formed markup.
            DirectiveValidationError: An element has an unknown attribute.
        """
        directives: List[Directive] = []
        pos = 0
        while pos < len(content):
            m = self._re_next.match(content, pos)
            if m is None or m.end() == pos:
                break
            pos = m.end()

            body = m.group("body")
            if body is not None:
                directives.append(self._parse_body(body, content, file_name, m.start("body")))
            elif m.group("syntax_error") is not None:
                line, column = get_position(content, m.start("syntax_error"))
                raise DirectiveSyntaxError("", content, file_name, line, column)

        return directives

    def _parse_body(self, body: str, content: str, file_name: str, offset: int) -> Directive:
        single_line_body = self._re_line_break.sub("", body)
        try:
            element = ET.fromstring(single_line_body)
        except ET.ParseError as e:
            line, column = get_position(content, offset)
            message = _RE_PARSER_LOCATION.sub("", str(e)).strip()
            raise DirectiveParseError(message, content, file_name, line, column) from e

        attributes: Directive = {}
        for name, value in element.attrib.items():
            canonical = _ATTRIBUTE_KEYS.get(normalize_attribute_name(name))
            if canonical is None:
                line, column = get_position(content, offset)
                raise DirectiveValidationError(
                    f"Unknown attribute: '{name}'", content, file_name, line, column
                )
            attributes[canonical] = value
        return attributes


def get_position(content: str, index: int) -> Tuple[int, int]:
    """
    Return the 1-based line and column of the character at ``index``.

        >>> get_position("some\\nkind\\nof content\\npresented here", 35)
        (4, 15)
    """
    preceding = content[:index]
    line = preceding.count("\n") + 1
    column = len(preceding) - (preceding.rfind("\n") + 1) + 1
    return line, column


class DirectiveAnalyzer(Analyzer):
    """
    Resolve the ``depends-on`` attribute of every directive in a file.

    Subclasses provide the comment tokens and file kinds.
    """

    def __init__(self, start: str, continuation: str, kinds: Sequence[str]):
        self._kinds = list(kinds)
        self._re_ext = extension_pattern(self._kinds)
        self.parser = DirectiveParser(start, continuation)

    def match(self, path: str) -> bool:
        return self._re_ext.search(path) is not None

    def supported_kinds(self) -> List[str]:
        return list(self._kinds)

    async def process(self, path, contents, missing, files, tree) -> Set[str]:
        imported: Set[str] = set()
        for directive in self.parser.parse(contents, path):
            depends_on: Optional[str] = directive.get(DEPENDS_ON)
            if not depends_on:
                continue
            tree.resolve_and_collect(
                path,
                tree.transform_reference(depends_on, path),
                imported,
                missing,
            )
        return imported


class TSDirectiveAnalyzer(DirectiveAnalyzer):
    """
    Directives in TypeScript triple-slash comments.

    Similar to TypeScript's own triple-slash directives, but a definition is
    allowed anywhere in the file.
    """

    def __init__(self):
        super().__init__(start=r"///", continuation=r"///?", kinds=["ts", "tsx"])


class HashDirectiveAnalyzer(DirectiveAnalyzer):
    """Directives in ``##`` comments of Python, shell and YAML files."""

    def __init__(self, kinds: Sequence[str] = ("py", "sh", "yml", "yaml")):
        super().__init__(start=r"##", continuation=r"##?", kinds=kinds)
