"""Module mapping from a TypeScript project's ``compilerOptions``."""

import logging
import os
from typing import Any, Dict, List, Optional, Set, Tuple

import json5


logger = logging.getLogger(__name__)

TSCONFIG_FILE = "tsconfig.json"


def read_compiler_options(config_path: str, _seen: Optional[Set[str]] = None) -> Dict[str, Any]:
    """
    Read the ``compilerOptions`` of a tsconfig file, following ``extends``.

    tsconfig files are JSON with comments and trailing commas. ``baseUrl`` is
    made absolute, and ``pathsBasePath`` records the directory of the file
    declaring ``paths``. Options of extending files override the options
    they extend. Unreadable files contribute no options.

    Args:
        config_path: Path of the tsconfig file.

    Returns:
        The merged compiler options.
    """
    seen = set() if _seen is None else _seen
    config_path = os.path.realpath(config_path)
    if config_path in seen:
        logger.warning("Circular tsconfig extends through %s", config_path)
        return {}
    seen.add(config_path)

    try:
        with open(config_path, encoding="utf-8") as f:
            config = json5.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable %s: %s", config_path, e)
        return {}
    if not isinstance(config, dict):
        return {}

    directory = os.path.dirname(config_path)
    options: Dict[str, Any] = {}

    extends = config.get("extends")
    if isinstance(extends, str):
        extends = [extends]
    elif not isinstance(extends, list):
        extends = []
    for name in extends:
        parent = _extends_path(directory, name)
        if parent is None:
            logger.debug("Not following tsconfig extends %r of %s", name, config_path)
            continue
        options.update(read_compiler_options(parent, seen))

    own = config.get("compilerOptions")
    if isinstance(own, dict):
        own = dict(own)
        if isinstance(own.get("baseUrl"), str):
            own["baseUrl"] = os.path.normpath(os.path.join(directory, own["baseUrl"]))
        if isinstance(own.get("paths"), dict):
            own["pathsBasePath"] = directory
        options.update(own)

    return options


class TsConfigPaths:
    """
    Candidate files for non-relative module requests of a TypeScript project.

    Requests are matched against the ``paths`` patterns (an exact pattern,
    otherwise the ``*`` pattern with the longest prefix) and every
    substitution of the matching pattern is a candidate, in order. A
    ``baseUrl`` adds the request joined to it as a last candidate.

    Args:
        base_url: Absolute directory for non-relative requests, or None.
        paths: The ``compilerOptions.paths`` mapping.
        paths_base: Directory the substitutions are relative to.
    """

    def __init__(self, base_url: Optional[str], paths: Dict[str, List[str]], paths_base: str):
        self.base_url = base_url
        self.paths = paths
        self.paths_base = paths_base

    @classmethod
    def from_root(cls, root_dir: str) -> Optional["TsConfigPaths"]:
        """Load the mapping of ``<root_dir>/tsconfig.json``, if it declares one."""
        config_path = os.path.join(root_dir, TSCONFIG_FILE)
        if not os.path.isfile(config_path):
            return None

        options = read_compiler_options(config_path)
        base_url = options.get("baseUrl")
        if not isinstance(base_url, str):
            base_url = None
        raw_paths = options.get("paths")
        paths = {}
        if isinstance(raw_paths, dict):
            for pattern, substitutions in raw_paths.items():
                if isinstance(substitutions, list):
                    paths[pattern] = [s for s in substitutions if isinstance(s, str)]

        if base_url is None and not paths:
            return None
        paths_base = base_url or options.get("pathsBasePath") or root_dir
        logger.debug("Using tsconfig module mapping of %s", config_path)
        return cls(base_url, paths, paths_base)

    def candidates(self, request: str) -> List[str]:
        """Return the absolute paths a request may refer to, in lookup order."""
        found: List[str] = []
        match = self._match(request)
        if match is not None:
            pattern, captured = match
            for substitution in self.paths[pattern]:
                found.append(os.path.join(self.paths_base, substitution.replace("*", captured, 1)))
        if self.base_url is not None:
            found.append(os.path.join(self.base_url, request))
        return found

    def _match(self, request: str) -> Optional[Tuple[str, str]]:
        if request in self.paths:
            return request, ""

        best: Optional[Tuple[str, str]] = None
        best_prefix = -1
        for pattern in self.paths:
            prefix, star, suffix = pattern.partition("*")
            if not star or len(prefix) <= best_prefix:
                continue
            if (
                len(request) >= len(prefix) + len(suffix)
                and request.startswith(prefix)
                and request.endswith(suffix)
            ):
                best = (pattern, request[len(prefix):len(request) - len(suffix)])
                best_prefix = len(prefix)
        return best


def _extends_path(directory: str, name: str) -> Optional[str]:
    # Shared configs from installed packages are not followed.
    if not (name.startswith(".") or os.path.isabs(name)):
        return None
    path = os.path.join(directory, name)
    if not path.endswith(".json") and not os.path.isfile(path):
        path += ".json"
    return path
