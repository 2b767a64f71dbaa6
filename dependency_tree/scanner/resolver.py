"""Module resolution: mapping references to real files on disk."""

import json
import logging
import os
from typing import Iterable, List, Optional, Sequence

from ..errors import ResolutionError
from .cache import DiskMemoizer


logger = logging.getLogger(__name__)

# Node.js built-in modules. References to these never reach the resolver.
BUILTIN_MODULES = frozenset({
    "assert", "assert/strict", "async_hooks", "buffer", "child_process",
    "cluster", "console", "constants", "crypto", "dgram",
    "diagnostics_channel", "dns", "dns/promises", "domain", "events", "fs",
    "fs/promises", "http", "http2", "https", "inspector", "module", "net",
    "os", "path", "path/posix", "path/win32", "perf_hooks", "process",
    "punycode", "querystring", "readline", "readline/promises", "repl",
    "stream", "stream/consumers", "stream/promises", "stream/web",
    "string_decoder", "sys", "timers", "timers/promises", "tls",
    "trace_events", "tty", "url", "util", "util/types", "v8", "vm", "wasi",
    "worker_threads", "zlib",
})

DEFAULT_EXTENSIONS = (".ts", ".tsx", ".d.ts", ".js", ".jsx", ".mjs", ".cjs", ".json", ".css")
DEFAULT_MAIN_FIELDS = ("main",)
DEFAULT_MODULES_DIRECTORY = "node_modules"

# Sources a compiled `.js` import may have been written as.
_SOURCE_EXTENSIONS = {".js": (".ts", ".tsx"), ".jsx": (".tsx",), ".mjs": (".mts",), ".cjs": (".cts",)}


def is_builtin_module(reference: str) -> bool:
    """Check whether a reference names a platform built-in module."""
    if reference.startswith("node:"):
        return True
    return reference in BUILTIN_MODULES


def is_external_path(path: str) -> bool:
    """Check whether a resolved path belongs to an installed package."""
    return f"{os.sep}{DEFAULT_MODULES_DIRECTORY}{os.sep}" in path


def is_relative_request(request: str) -> bool:
    """Check whether a request is a path rather than a package name."""
    return (
        request in (".", "..")
        or request.startswith(("./", "../", "/"))
        or os.path.isabs(request)
    )


class ModuleResolver:
    """
    Resolve module requests the way Node.js tooling does.

    Relative and absolute requests are looked up as a file (as written, then
    with each extension appended), then as a directory (``package.json``
    main field, then ``index`` with each extension). Bare requests are looked
    up in ``node_modules`` directories from the requesting directory upwards.
    """

    def __init__(
        self,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        main_fields: Sequence[str] = DEFAULT_MAIN_FIELDS,
        modules_directory: str = DEFAULT_MODULES_DIRECTORY,
    ):
        self.extensions = tuple(extensions)
        self.main_fields = tuple(main_fields)
        self.modules_directory = modules_directory

    def resolve(self, directory: str, request: str) -> str:
        """
        Resolve a request made from a directory to a real file path.

        Args:
            directory: Directory of the file containing the reference.
            request: The reference as written in source.

        Returns:
            Absolute, symlink-resolved path of the referenced file.

        Raises:
            ResolutionError: If no file matches the request.
        """
        target = _strip_query(request)
        if target:
            if is_relative_request(target):
                candidates: Iterable[str] = [os.path.join(directory, target)]
            else:
                candidates = self._module_candidates(directory, target)

            for candidate in candidates:
                resolved = self._load_as_file(candidate) or self._load_as_directory(candidate)
                if resolved is not None:
                    return os.path.realpath(resolved)

        raise ResolutionError(request, directory)

    def _module_candidates(self, directory: str, name: str) -> List[str]:
        candidates = []
        current = os.path.abspath(directory)
        while True:
            if os.path.basename(current) != self.modules_directory:
                candidates.append(os.path.join(current, self.modules_directory, name))
            parent = os.path.dirname(current)
            if parent == current:
                break
            current = parent
        return candidates

    def _load_as_file(self, path: str) -> Optional[str]:
        if os.path.isfile(path):
            return path
        for extension in self.extensions:
            if os.path.isfile(path + extension):
                return path + extension

        stem, extension = os.path.splitext(path)
        for source_extension in _SOURCE_EXTENSIONS.get(extension, ()):
            if os.path.isfile(stem + source_extension):
                return stem + source_extension
        return None

    def _load_as_directory(self, path: str) -> Optional[str]:
        if not os.path.isdir(path):
            return None

        manifest = os.path.join(path, "package.json")
        if os.path.isfile(manifest):
            main = self._read_main_field(manifest)
            if main:
                main_path = os.path.join(path, main)
                resolved = self._load_as_file(main_path) or self._load_index(main_path)
                if resolved is not None:
                    return resolved

        return self._load_index(path)

    def _load_index(self, path: str) -> Optional[str]:
        if not os.path.isdir(path):
            return None
        for extension in self.extensions:
            index = os.path.join(path, "index" + extension)
            if os.path.isfile(index):
                return index
        return None

    def _read_main_field(self, manifest: str) -> Optional[str]:
        try:
            with open(manifest, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable %s: %s", manifest, e)
            return None
        if not isinstance(data, dict):
            return None
        for field in self.main_fields:
            value = data.get(field)
            if isinstance(value, str) and value:
                return value
        return None


class CachedResolver:
    """
    A resolver whose successful results are memoized on disk.

    Cached paths that no longer exist are ignored and resolved again, and
    failures are never cached, so the cache only affects latency.
    """

    cache_id = "resolve"

    def __init__(self, resolver, memoizer: DiskMemoizer):
        self.resolver = resolver
        self._resolve = memoizer.memoize(
            self.resolver.resolve,
            cache_id=self.cache_id,
            validate=lambda value: isinstance(value, str) and os.path.isfile(value),
        )

    def resolve(self, directory: str, request: str) -> str:
        return self._resolve(directory, request)


def _strip_query(request: str) -> str:
    """Drop ``?query`` and ``#fragment`` suffixes from a request."""
    for separator in ("?", "#"):
        index = request.find(separator)
        if index > 0:
            request = request[:index]
    return request
