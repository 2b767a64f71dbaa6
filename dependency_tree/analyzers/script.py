"""Analyzer for JavaScript and TypeScript modules."""

import logging
import os
import re
from typing import List, Optional, Set

from ..errors import MalformedEntryPointError
from ..scanner.resolver import is_builtin_module, is_external_path, is_relative_request
from ..scanner.tsconfig import TsConfigPaths
from .base import Analyzer, extension_pattern
from .syntax import Language, Node, language_for, node_text, parse, string_value, walk


logger = logging.getLogger(__name__)

SCRIPT_KINDS = ["ts", "tsx", "js", "jsx", "mjs", "cjs"]

RE_ENTRY_POINT = re.compile(r"\.entry\.[jt]s$")
RE_TEST_FILE = re.compile(r"\.tests\.tsx?$")

ENTRY_POINT_EXPORT = "entryPoint"
ENTRY_POINT_FIELD = "file"
SNAPSHOT_DIRECTORY = "__snapshots__"
SNAPSHOT_SUFFIX = ".snap"

# Expressions that wrap an object literal without changing it.
_WRAPPERS = ("as_expression", "satisfies_expression", "parenthesized_expression")


def extract_imports(source: str, language: Language) -> List[str]:
    """
    Find the module references of a script, in order of appearance.

    Recognises static imports (including type-only and side-effect imports),
    re-exports, ``require(...)``, dynamic ``import(...)`` and TypeScript's
    ``import x = require(...)``. References that are not string literals
    are skipped.
    """
    found = {}
    root = parse(source, language).root_node
    for node in walk(root):
        reference = None
        if node.type in ("import_statement", "export_statement", "import_require_clause"):
            reference = string_value(_source_of(node))
        elif node.type == "call_expression":
            reference = _call_reference(node)
        if reference is not None:
            found.setdefault(reference, None)
    return list(found)


def is_entry_point(path: str) -> bool:
    """Check if the file name follows the entry point naming convention."""
    return RE_ENTRY_POINT.search(path) is not None


def is_test_file(path: str) -> bool:
    return RE_TEST_FILE.search(path) is not None


def find_entry_point_file(source: str, language: Language) -> Optional[str]:
    """
    Find the implicit import declared by an entry point, like::

        export const entryPoint: DynamicEntryPoint = {
          file: './main', // <-- an implicit 'import'
        };

    The declaration is read from the syntax tree; the file is never run.
    """
    root = parse(source, language).root_node
    for statement in root.children:
        if statement.type != "export_statement":
            continue
        declaration = statement.child_by_field_name("declaration")
        if declaration is None or declaration.type not in ("lexical_declaration", "variable_declaration"):
            continue
        for declarator in declaration.named_children:
            if declarator.type != "variable_declarator":
                continue
            if node_text(declarator.child_by_field_name("name")) != ENTRY_POINT_EXPORT:
                continue
            return object_property(declarator.child_by_field_name("value"), ENTRY_POINT_FIELD)
    return None


def object_property(node: Optional[Node], name: str) -> Optional[str]:
    """Return the string value of a property of an object literal."""
    while node is not None and node.type in _WRAPPERS:
        node = node.named_children[0] if node.named_children else None
    if node is None or node.type != "object":
        return None

    for pair in node.named_children:
        if pair.type != "pair":
            continue
        key = pair.child_by_field_name("key")
        key_name = string_value(key) if key is not None and key.type == "string" else node_text(key)
        if key_name == name:
            return string_value(pair.child_by_field_name("value"))
    return None


class ScriptAnalyzer(Analyzer):
    """
    Resolve the imports of script modules below one root directory.

    Non-relative requests are first looked up through the ``paths`` and
    ``baseUrl`` compiler options of ``<root_dir>/tsconfig.json``, then go
    through the resolution cascade. References into installed packages
    (``node_modules``) are ignored. Two
    naming conventions add implicit references:

    - ``*.entry.ts`` files depend on the ``file`` of their exported
      ``entryPoint`` object.
    - ``*.tests.ts(x)`` files depend on their Jest snapshot
      (``__snapshots__/<name>.snap``) when it exists.
    """

    def __init__(self, root_dir: str):
        self.root_dir = os.path.realpath(root_dir)
        self._re_ext = extension_pattern(SCRIPT_KINDS)
        self.ts_paths = TsConfigPaths.from_root(self.root_dir)

    def match(self, path: str) -> bool:
        if self._re_ext.search(path) is None:
            return False
        return path == self.root_dir or path.startswith(self.root_dir + os.sep)

    def supported_kinds(self) -> List[str]:
        return list(SCRIPT_KINDS)

    def reset(self) -> None:
        self.ts_paths = TsConfigPaths.from_root(self.root_dir)

    async def process(self, path, contents, missing, files, tree) -> Set[str]:
        language = language_for(path)
        references = extract_imports(contents, language)
        if is_entry_point(path):
            references.append(self.get_entry_point_import(path, contents))

        imported: Set[str] = set()
        for reference in references:
            transformed = tree.transform_reference(reference, path)
            requests = transformed if isinstance(transformed, (list, tuple)) else [transformed]
            for request in requests:
                mapped = self.resolve_mapped(request, tree.resolver)
                if mapped is not None:
                    if not is_external_path(mapped):
                        imported.add(mapped)
                    continue
                tree.resolve_and_collect(path, request, imported, missing, include_external=False)

        if is_test_file(path):
            logger.debug("%s is a test, so we see if there is a snapshot file", path)
            snapshot = os.path.join(
                os.path.dirname(path),
                SNAPSHOT_DIRECTORY,
                os.path.basename(path) + SNAPSHOT_SUFFIX,
            )
            if os.path.isfile(snapshot):
                logger.info("Marking %s as an import from %s", snapshot, path)
                imported.add(os.path.realpath(snapshot))

        return imported

    def resolve_mapped(self, request: str, resolver) -> Optional[str]:
        """
        Resolve a request through the tsconfig module mapping of the root.

        Returns:
            The resolved path, or None when the root has no mapping or no
            candidate exists.
        """
        if self.ts_paths is None or not request:
            return None
        if is_builtin_module(request) or is_relative_request(request):
            return None

        for candidate in self.ts_paths.candidates(request):
            try:
                resolved = resolver.resolve(self.root_dir, candidate)
            except Exception as e:
                logger.debug("%s is not %s: %s", candidate, request, e)
                continue
            if resolved:
                logger.debug("resolved %s to %s via tsconfig", request, resolved)
                return resolved
        return None

    @staticmethod
    def get_entry_point_import(path: str, contents: str) -> str:
        """
        Return the reference declared by an entry point file.

        Raises:
            MalformedEntryPointError: If no exported ``entryPoint`` object
                with a string ``file`` property is found.
        """
        reference = find_entry_point_file(contents, language_for(path))
        if not reference:
            logger.error(
                "Malformed entry point: '%s'. Make sure that this entry point does follow the convention.",
                path,
            )
            raise MalformedEntryPointError(path, f"no string '{ENTRY_POINT_FIELD}' in exported '{ENTRY_POINT_EXPORT}'")
        return reference


def _source_of(node: Node) -> Optional[Node]:
    source = node.child_by_field_name("source")
    if source is not None:
        return source
    if node.type == "import_require_clause":
        for child in node.named_children:
            if child.type == "string":
                return child
    return None


def _call_reference(node: Node) -> Optional[str]:
    function = node.child_by_field_name("function")
    if function is None:
        return None
    if function.type != "import" and not (function.type == "identifier" and node_text(function) == "require"):
        return None

    arguments = node.child_by_field_name("arguments")
    if arguments is None:
        return None
    values = [child for child in arguments.named_children if child.type != "comment"]
    if len(values) != 1:
        return None
    return string_value(values[0])
