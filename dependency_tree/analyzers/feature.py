"""
Analyzer for Gherkin feature files.

A feature depends on

- the step definition files (``*.steps.ts``) whose ``Given``/``When``/
  ``Then`` regular expressions match one of its steps, and
- the stories files (``*.stories.ts(x)``) declaring a storybook that one of
  its steps refers to, as recognised by a caller-supplied extractor.
"""

import logging
import os
import re
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from gherkin.errors import ParserError
from gherkin.parser import Parser as GherkinParser
from gherkin.token_scanner import TokenScanner

from ..errors import StorybookExtractionError
from ..scanner.once import AsyncOnce
from .base import Analyzer
from .script import object_property
from .syntax import TS_LANGUAGE, TSX_LANGUAGE, Node, language_for, node_text, parse, string_value, walk


logger = logging.getLogger(__name__)

Storybook = str
Story = str
StorybookExtractorFn = Callable[[str], Optional[Tuple[Storybook, Story]]]

STORIES_IMPORT = "storiesOf"
STORIES_PACKAGE = "@storybook/react"
CSF3_EXPORT_TITLE_FIELD = "title"
STEP_DEFINITION_FN_NAMES = ("Given", "When", "Then")

RE_STORIES_FILE = re.compile(r"([^/\\]+)\.stories\.tsx?$")
RE_STEPS_FILE = re.compile(r"([^/\\]+)\.steps\.ts$")
# JavaScript named groups are spelled (?<name>...), Python wants (?P<name>...)
_RE_JS_NAMED_GROUP = re.compile(r"\(\?<(?![=!])")
_JS_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}


def regex_storybook_extractor(pattern: str) -> StorybookExtractorFn:
    """
    Build an extractor from a regular expression.

    The pattern must define the named groups ``storybook`` and ``story``,
    e.g. ``I visit the "(?P<story>[^"]*)" story of the "(?P<storybook>[^"]*)" storybook``.
    """
    compiled = re.compile(pattern)
    missing_groups = {"storybook", "story"} - set(compiled.groupindex)
    if missing_groups:
        raise ValueError(f"Storybook pattern lacks named groups: {', '.join(sorted(missing_groups))}")

    def extractor(step_text: str) -> Optional[Tuple[Storybook, Story]]:
        m = compiled.search(step_text)
        if m is None:
            return None
        return m.group("storybook"), m.group("story")

    return extractor


def extract_steps(contents: str) -> List[str]:
    """Return the text of every background, scenario and rule step."""
    document = GherkinParser().parse(TokenScanner(contents))
    feature = document.get("feature")
    if not feature:
        return []
    return [step["text"] for step in _iter_steps(feature.get("children", [])) if step.get("text")]


def _iter_steps(children: Iterable[dict]):
    for child in children:
        for key in ("background", "scenario"):
            block = child.get(key)
            if block:
                yield from block.get("steps", [])
        rule = child.get("rule")
        if rule:
            yield from _iter_steps(rule.get("children", []))


def find_storybooks(source: str, language=TSX_LANGUAGE) -> List[Storybook]:
    """
    Find the storybooks declared in a stories file.

    Declarations are ``storiesOf('name', module)`` calls and CSF3
    ``export default { title: 'name' }`` objects, both only recognised after
    ``storiesOf`` has been imported from the storybook package.
    """
    storybooks: List[Storybook] = []
    import_found = False
    root = parse(source, language).root_node
    for statement in root.children:
        if not import_found and _is_stories_import(statement):
            import_found = True
        elif import_found and statement.type != "import_statement":
            _collect_storybooks(statement, storybooks)
    return storybooks


def find_step_patterns(source: str, language=TS_LANGUAGE) -> List[re.Pattern[str]]:
    """
    Compile the regular expressions of step definitions in a steps file.

    Only ``Given``, ``When`` and ``Then`` calls whose first argument is a
    regular expression literal are considered.
    """
    patterns: List[re.Pattern[str]] = []
    root = parse(source, language).root_node
    for node in walk(root):
        if node.type != "call_expression":
            continue
        function = node.child_by_field_name("function")
        if function is None or function.type != "identifier":
            continue
        if node_text(function) not in STEP_DEFINITION_FN_NAMES:
            continue
        arguments = node.child_by_field_name("arguments")
        first = arguments.named_children[0] if arguments is not None and arguments.named_children else None
        if first is None or first.type != "regex":
            continue

        pattern = node_text(first.child_by_field_name("pattern"))
        flags = node_text(first.child_by_field_name("flags"))
        compiled = js_regex_to_python(pattern, flags)
        if compiled is not None:
            patterns.append(compiled)
    return patterns


def js_regex_to_python(pattern: str, flags: str = "") -> Optional[re.Pattern[str]]:
    """Compile a JavaScript regular expression literal, if Python supports it."""
    re_flags = 0
    for flag in flags:
        re_flags |= _JS_REGEX_FLAGS.get(flag, 0)
    try:
        return re.compile(_RE_JS_NAMED_GROUP.sub("(?P<", pattern), re_flags)
    except re.error as e:
        logger.warning("Skipping step definition /%s/%s: %s", pattern, flags, e)
        return None


class FeatureAnalyzer(Analyzer):
    """
    Link feature files to their step definitions and storybooks.

    Args:
        extractor: Called with the text of each step; returns the
            ``(storybook, story)`` the step refers to, or None.
    """

    def __init__(self, extractor: StorybookExtractorFn):
        self.extractor = extractor
        self._storybook_definitions = AsyncOnce(self._build_storybook_definitions)
        self._step_definitions = AsyncOnce(self._build_step_definitions)

    def match(self, path: str) -> bool:
        return path.lower().endswith(".feature")

    def supported_kinds(self) -> List[str]:
        return ["feature"]

    def reset(self) -> None:
        self._storybook_definitions.reset()
        self._step_definitions.reset()

    async def process(self, path, contents, missing, files, tree) -> Set[str]:
        imported: Set[str] = set()
        try:
            steps = extract_steps(contents)
        except ParserError as e:
            logger.error("Error in %s when trying to parse the feature: %s", path, e)
            return imported

        referenced = self.get_referenced_storybooks(steps)
        if referenced:
            logger.info("Found references to storybooks %s", sorted(referenced))
            definitions = await self._storybook_definitions.get(files, tree)
            for storybook in referenced:
                if storybook in definitions:
                    imported.update(definitions[storybook])
                    continue
                logger.warning("Could not find referenced storybook %s", storybook)
                # From a dot-notated storybook "a.b.c" we only know that the
                # stories file lives in "a/b/c/stories/", not its name.
                if path not in missing:
                    missing[path] = set()
                missing[path].add(os.path.join(storybook.replace(".", os.sep), "stories", "*.stories.tsx"))

        step_definitions = await self._step_definitions.get(files, tree)
        for steps_file, patterns in step_definitions.items():
            if any(pattern.search(text) for pattern in patterns for text in steps):
                imported.add(steps_file)

        return imported

    def get_referenced_storybooks(self, steps: Sequence[str]) -> Dict[Storybook, Set[Story]]:
        """
        Map each storybook referenced by the steps to the stories used.

        Raises:
            StorybookExtractionError: If the extractor returns an empty
                storybook or story.
        """
        storybooks: Dict[Storybook, Set[Story]] = {}
        for text in steps:
            extracted = self.extractor(text)
            if not extracted:
                continue
            storybook, story = extracted
            if not storybook:
                raise StorybookExtractionError(
                    f'Storybook extraction from "{text}" failed, it yielded no storybook'
                )
            if not story:
                raise StorybookExtractionError(
                    f'Storybook extraction from "{text}" failed, it yielded no story'
                )
            if storybook not in storybooks:
                storybooks[storybook] = set()
            storybooks[storybook].add(story)
        return storybooks

    async def _build_storybook_definitions(self, files, tree) -> Dict[Storybook, Set[str]]:
        # Only stories files are inspected.
        definitions: Dict[Storybook, Set[str]] = {}
        for file in files:
            if RE_STORIES_FILE.search(file) is None:
                continue
            source = await tree.read_file(file)
            for storybook in find_storybooks(source, language_for(file)):
                if storybook not in definitions:
                    definitions[storybook] = set()
                definitions[storybook].add(file)
        return definitions

    async def _build_step_definitions(self, files, tree) -> Dict[str, List[re.Pattern[str]]]:
        definitions: Dict[str, List[re.Pattern[str]]] = {}
        for file in files:
            if RE_STEPS_FILE.search(file) is None:
                continue
            source = await tree.read_file(file)
            patterns = find_step_patterns(source)
            if patterns:
                definitions[file] = patterns
        return definitions


def _is_stories_import(node: Node) -> bool:
    if node.type != "import_statement":
        return False
    if string_value(node.child_by_field_name("source")) != STORIES_PACKAGE:
        return False
    for child in walk(node):
        if child.type == "import_specifier" and node_text(child.child_by_field_name("name")) == STORIES_IMPORT:
            return True
    return False


def _collect_storybooks(node: Node, storybooks: List[Storybook]) -> None:
    if node.type == "call_expression":
        function = node.child_by_field_name("function")
        if function is not None and function.type == "identifier" and node_text(function) == STORIES_IMPORT:
            arguments = node.child_by_field_name("arguments")
            first = arguments.named_children[0] if arguments is not None and arguments.named_children else None
            name = string_value(first)
            if name is None:
                logger.warning("Only string literals in storiesOf(...) are supported: %s", node_text(node))
            else:
                storybooks.append(name)
            return

    if node.type == "export_statement":
        title = object_property(node.child_by_field_name("value"), CSF3_EXPORT_TITLE_FIELD)
        if title is not None:
            storybooks.append(title)

    for child in node.children:
        _collect_storybooks(child, storybooks)
