"""Dependency tree builder: runs analyzers and resolves their references."""

import asyncio
import logging
import os
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Set

from ..analyzers.base import Analyzer
from ..analyzers.directive import TSDirectiveAnalyzer
from ..analyzers.script import ScriptAnalyzer
from ..analyzers.style import StyleAnalyzer
from ..errors import InvalidBatchSizeError, NoAnalyzerMatchError
from ..graph import query
from .discovery import DEFAULT_IGNORE_GLOBS, find_files
from .resolver import ModuleResolver, is_builtin_module, is_external_path
from .transforms import Reference, ReferenceTransformFn, identity


logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50

FileToDeps = Dict[str, Set[str]]


class GatherResult(NamedTuple):
    """The two maps produced by a full scan."""

    resolved: FileToDeps
    missing: FileToDeps


class DependencyTree:
    """
    Build a file-level dependency graph over one or more root directories.

    Args:
        root_dirs: Directories to search for files.
        resolver: Object with a ``resolve(directory, request)`` method used
            to turn references into files. Defaults to ModuleResolver.
        ignore_globs: Glob patterns (relative to each root) of files to
            leave out of the graph.
        transform_reference: Hook rewriting each raw reference before it is
            resolved; may expand one reference into several.
    """

    def __init__(
        self,
        root_dirs: Iterable[str],
        resolver=None,
        ignore_globs: Optional[Iterable[str]] = None,
        transform_reference: Optional[ReferenceTransformFn] = None,
    ):
        self.root_dirs: List[str] = [os.path.realpath(d) for d in root_dirs]
        self.resolver = resolver if resolver is not None else ModuleResolver()
        self.ignore_globs = list(ignore_globs) if ignore_globs is not None else list(DEFAULT_IGNORE_GLOBS)
        self.transform_reference: ReferenceTransformFn = transform_reference or identity
        self._analyzers: List[Analyzer] = []
        self._contents: Dict[str, "asyncio.Future[str]"] = {}

        for root in self.root_dirs:
            self.add_analyzer(ScriptAnalyzer(root))
        self.add_analyzer(StyleAnalyzer())
        self.add_analyzer(TSDirectiveAnalyzer())

    @staticmethod
    def get_dependencies(file_to_deps: FileToDeps, files: Iterable[str]) -> Set[str]:
        """Return the transitive dependencies of ``files``, excluding them."""
        return query.get_dependencies(file_to_deps, files)

    @staticmethod
    def get_references(file_to_deps: FileToDeps, files: Iterable[str]) -> Set[str]:
        """Return the files transitively referencing ``files``, excluding them."""
        return query.get_references(file_to_deps, files)

    @property
    def analyzers(self) -> List[Analyzer]:
        return list(self._analyzers)

    def add_analyzer(self, analyzer: Analyzer) -> None:
        """
        Register an additional analyzer.

        Analyzers are run in the order they were added.
        """
        self._analyzers.append(analyzer)

    def get_files(self) -> List[str]:
        """Find every file of a kind supported by a registered analyzer."""
        kinds: Dict[str, None] = {}
        for analyzer in self._analyzers:
            for kind in analyzer.supported_kinds():
                kinds.setdefault(kind.lower(), None)
        return find_files(self.root_dirs, kinds, self.ignore_globs)

    async def gather(self, batch_size: int = DEFAULT_BATCH_SIZE) -> GatherResult:
        """
        Scan all files and build the resolved and missing maps.

        The resolved map has an entry for every discovered file, mapping it
        to the absolute paths it depends on. The missing map holds, per
        file, the references that could not be resolved. Built-in modules and
        installed package files are ignored.

        Args:
            batch_size: Maximum number of files processed concurrently.

        Raises:
            InvalidBatchSizeError: If ``batch_size`` is not a positive integer.
            NoAnalyzerMatchError: If a discovered file matches no analyzer.
        """
        if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
            raise InvalidBatchSizeError(batch_size)

        self._reset()
        files = self.get_files()
        logger.info("Found a total of %d source files", len(files))

        results = await self._process_all(files, batch_size)

        resolved: FileToDeps = {}
        missing: FileToDeps = {}
        for file in files:
            imported, file_missing = results[file]
            resolved[file] = imported
            for source, references in file_missing.items():
                if source not in missing:
                    missing[source] = set()
                missing[source].update(references)

        return GatherResult(resolved=resolved, missing=missing)

    def gather_sync(self, batch_size: int = DEFAULT_BATCH_SIZE) -> GatherResult:
        """Run ``gather`` to completion in a new event loop."""
        return asyncio.run(self.gather(batch_size=batch_size))

    async def read_file(self, path: str) -> str:
        """
        Return the contents of a file, reading it at most once per run.

        Concurrent callers asking for the same file share a single read.
        """
        future = self._contents.get(path)
        if future is None:
            future = asyncio.ensure_future(asyncio.to_thread(_read_text, path))
            self._contents[path] = future
        return await future

    def resolve_and_collect(
        self,
        file: str,
        reference: Reference,
        imported: Set[str],
        missing: FileToDeps,
        include_external: bool = True,
    ) -> None:
        """
        Resolve a reference and record it as an import or as missing.

        Args:
            file: The file containing the reference.
            reference: The reference to resolve, or a list of references.
            imported: Set receiving successfully resolved paths.
            missing: Map receiving, under ``file``, references that cannot
                be resolved.
            include_external: If False, references resolving into an
                installed package are dropped.
        """
        if isinstance(reference, (list, tuple)):
            for ref in reference:
                self.resolve_and_collect(file, ref, imported, missing, include_external)
            return

        if is_builtin_module(reference):
            logger.debug("%s is a built-in module, ignoring", reference)
            return

        resolved = None
        try:
            logger.debug("trying to resolve %s against %s", reference, file)
            resolved = self.resolver.resolve(os.path.dirname(file), reference)
        except Exception as e:
            logger.error("%s", e)

        if resolved:
            if not include_external and is_external_path(resolved):
                logger.debug("%s resolves into an installed package, ignoring", reference)
                return
            imported.add(resolved)
            return

        if reference:
            logger.error("Couldn't find: %r (referenced from %s)", reference, file)
            if file not in missing:
                missing[file] = set()
            missing[file].add(reference)

    async def _process_all(self, files: Sequence[str], batch_size: int):
        results = {}
        pending = iter(files)

        async def worker():
            for file in pending:
                results[file] = await self._process_file(file, files)

        workers = [asyncio.ensure_future(worker()) for _ in range(min(batch_size, len(files)))]
        try:
            await asyncio.gather(*workers)
        finally:
            for task in workers:
                task.cancel()
        return results

    async def _process_file(self, file: str, files: Sequence[str]):
        logger.info("Scanning %s", file)
        contents = await self.read_file(file)

        imported: Set[str] = set()
        missing: FileToDeps = {}
        matched = False
        for analyzer in self._analyzers:
            if analyzer.match(file):
                matched = True
                imported.update(await analyzer.process(file, contents, missing, files, self))

        if not matched:
            raise NoAnalyzerMatchError(file)

        return imported, missing

    def _reset(self) -> None:
        self._contents = {}
        for analyzer in self._analyzers:
            analyzer.reset()


def _read_text(path: str) -> str:
    with open(path, encoding="utf-8", errors="replace") as f:
        return f.read()
