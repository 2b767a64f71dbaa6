#!/usr/bin/env python3
"""
dependency-tree CLI

Scan one or more source trees, build the file dependency graph and print it,
or print the files related to a set of entrypoints.
"""

import argparse
import logging
import os
import sys
from typing import Dict, List, Optional

from . import __version__
from .analyzers.directive import HashDirectiveAnalyzer
from .analyzers.feature import FeatureAnalyzer, regex_storybook_extractor
from .errors import DependencyTreeError
from .exporters import to_json, to_mermaid, to_text
from .exporters.json_exporter import paths_to_json
from .scanner.builder import DEFAULT_BATCH_SIZE, DependencyTree
from .scanner.cache import DiskMemoizer
from .scanner.discovery import DEFAULT_IGNORE_GLOBS
from .scanner.resolver import CachedResolver, ModuleResolver
from .scanner.transforms import alias_transform, chain_transforms, glob_transform


PACKAGE_NAME = "dependency-tree"


def parse_args(args=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="dependency-tree",
        description="Calculate the file dependency tree of one or more source directories.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  dependency-tree src                               # JSON map of resolved/missing deps
  dependency-tree src -f mermaid -o graph.mmd       # Mermaid flowchart to file
  dependency-tree src --references-of src/a.css     # Files affected by a change
  dependency-tree src --dependencies-of src/index.ts -f text
  dependency-tree web --alias "~=web/src" --expand-globs
        """,
    )

    parser.add_argument(
        "roots",
        nargs="+",
        help="Root directories to scan",
    )

    # Output options
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output file (default: stdout)",
    )

    parser.add_argument(
        "-f", "--format",
        choices=["json", "text", "mermaid"],
        default="json",
        help="Output format (default: json)",
    )

    parser.add_argument(
        "--relative-to",
        type=str,
        default=None,
        help="Base path for relative path display (default: first root)",
    )

    # Query options
    query = parser.add_mutually_exclusive_group()
    query.add_argument(
        "--dependencies-of",
        nargs="+",
        metavar="FILE",
        default=None,
        help="Print the files these files (transitively) depend on",
    )
    query.add_argument(
        "--references-of",
        nargs="+",
        metavar="FILE",
        default=None,
        help="Print the files (transitively) referencing these files",
    )

    # Scanning options
    parser.add_argument(
        "--ignore",
        nargs="+",
        metavar="GLOB",
        default=None,
        help=f"Glob patterns of files to ignore (default: {' '.join(DEFAULT_IGNORE_GLOBS)})",
    )

    parser.add_argument(
        "--batch-size",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help=f"Number of files processed concurrently (default: {DEFAULT_BATCH_SIZE})",
    )

    parser.add_argument(
        "--alias",
        action="append",
        metavar="PREFIX=DIR",
        default=[],
        help="Rewrite references starting with PREFIX to DIR (repeatable)",
    )

    parser.add_argument(
        "--expand-globs",
        action="store_true",
        help="Expand glob references (e.g. in directives) into matching files",
    )

    parser.add_argument(
        "--hash-directives",
        action="store_true",
        help="Also read '## <dependency-tree ... />' directives in py, sh and yaml files",
    )

    parser.add_argument(
        "--storybook-pattern",
        type=str,
        default=None,
        help="Scan .feature files; regex with 'storybook' and 'story' named groups matching steps",
    )

    # Cache options
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Do not memoize module resolution on disk",
    )

    parser.add_argument(
        "--cache-dir",
        type=str,
        default=None,
        help="Directory for the resolution cache (default: system temp directory)",
    )

    # Logging options
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug output to stderr",
    )
    verbosity.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only log errors",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(args)


def parse_aliases(values: List[str]) -> Dict[str, str]:
    """Parse PREFIX=DIR pairs into a mapping of prefix to absolute directory."""
    aliases: Dict[str, str] = {}
    for value in values:
        prefix, sep, directory = value.partition("=")
        if not sep or not prefix or not directory:
            raise ValueError(f"Invalid alias '{value}', expected PREFIX=DIR")
        aliases[prefix] = os.path.realpath(directory)
    return aliases


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Send log records to stderr at the requested verbosity."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_tree(parsed) -> DependencyTree:
    """Create a DependencyTree configured from parsed arguments."""
    resolver = ModuleResolver()
    if not parsed.no_cache:
        memoizer = DiskMemoizer(PACKAGE_NAME, __version__, cache_root=parsed.cache_dir)
        resolver = CachedResolver(resolver, memoizer)

    transforms = []
    aliases = parse_aliases(parsed.alias)
    if aliases:
        transforms.append(alias_transform(aliases))
    if parsed.expand_globs:
        transforms.append(glob_transform)

    tree = DependencyTree(
        root_dirs=parsed.roots,
        resolver=resolver,
        ignore_globs=parsed.ignore,
        transform_reference=chain_transforms(*transforms) if transforms else None,
    )

    if parsed.hash_directives:
        tree.add_analyzer(HashDirectiveAnalyzer())
    if parsed.storybook_pattern:
        tree.add_analyzer(FeatureAnalyzer(regex_storybook_extractor(parsed.storybook_pattern)))

    return tree


def main(args=None):
    """Main entry point."""
    parsed = parse_args(args)
    configure_logging(parsed.verbose, parsed.quiet)

    for root in parsed.roots:
        if not os.path.isdir(root):
            print(f"Error: '{root}' is not a directory", file=sys.stderr)
            return 1

    base = os.path.realpath(parsed.relative_to or parsed.roots[0])

    try:
        tree = build_tree(parsed)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Build the graph
    try:
        result = tree.gather_sync(batch_size=parsed.batch_size)
    except (DependencyTreeError, OSError) as e:
        print(f"Error scanning repository: {e}", file=sys.stderr)
        return 1

    # Generate output
    entrypoints: Optional[List[str]] = None
    if parsed.dependencies_of:
        entrypoints = [os.path.realpath(f) for f in parsed.dependencies_of]
        related = DependencyTree.get_dependencies(result.resolved, entrypoints)
    elif parsed.references_of:
        entrypoints = [os.path.realpath(f) for f in parsed.references_of]
        related = DependencyTree.get_references(result.resolved, entrypoints)

    if entrypoints is not None:
        if parsed.format == "json":
            output = paths_to_json(related, base)
        elif parsed.format == "mermaid":
            nodes = related | set(entrypoints)
            subgraph = {f: result.resolved.get(f, set()) & nodes for f in nodes}
            output = to_mermaid(subgraph, base)
        else:
            output = to_text(related, base)
    elif parsed.format == "mermaid":
        output = to_mermaid(result.resolved, base, missing=result.missing)
    elif parsed.format == "text":
        output = to_text(result.resolved, base)
    else:
        output = to_json(result.resolved, result.missing, base)

    # Write output
    if parsed.output:
        try:
            with open(parsed.output, "w", encoding="utf-8") as f:
                f.write(output)
            print(f"Output written to: {parsed.output}", file=sys.stderr)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
    else:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
