"""Disk-backed memoization of function calls across invocations."""

import functools
import hashlib
import json
import logging
import os
import tempfile
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


class DiskMemoizer:
    """
    Memoize JSON-serialisable function calls in files on disk.

    The cache lives in ``<cache_root>/<namespace>/<version>``. Scoping by
    version means a version bump starts from an empty cache, so values never
    need to stay compatible across releases.

    Args:
        namespace: Name of the owning package.
        version: Version string used to scope the cache.
        cache_root: Base directory. Defaults to the system temp directory.
    """

    def __init__(self, namespace: str, version: str, cache_root: Optional[str] = None):
        if cache_root is None:
            cache_root = tempfile.gettempdir()
        self.path = os.path.join(cache_root, namespace, version)

    def memoize(
        self,
        fn: Callable[..., Any],
        cache_id: str,
        validate: Optional[Callable[[Any], bool]] = None,
    ) -> Callable[..., Any]:
        """
        Wrap a function so its results are read from and written to disk.

        Args:
            fn: Function to memoize. Positional arguments and the return
                value must be JSON-serialisable.
            cache_id: Identity of the function within the cache.
            validate: Optional check applied to cached values; a cached value
                failing it is recomputed.

        Returns:
            The memoized function. Exceptions raised by ``fn`` propagate and
            are not cached.
        """
        directory = os.path.join(self.path, cache_id)

        @functools.wraps(fn)
        def wrapper(*args):
            key = _cache_key(cache_id, args)
            entry = os.path.join(directory, key + ".json")

            hit, value = self._read(entry)
            if hit and (validate is None or validate(value)):
                return value

            value = fn(*args)
            self._write(directory, entry, value)
            return value

        return wrapper

    def _read(self, entry: str):
        try:
            with open(entry, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return False, None
        except (OSError, ValueError) as e:
            logger.debug("Discarding unreadable cache entry %s: %s", entry, e)
            return False, None
        if not isinstance(data, dict) or "value" not in data:
            logger.debug("Discarding invalid cache entry %s", entry)
            return False, None
        return True, data["value"]

    def _write(self, directory: str, entry: str, value: Any) -> None:
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({"value": value}, f)
            os.replace(tmp_path, entry)
        except (OSError, TypeError) as e:
            logger.warning("Could not write cache entry %s: %s", entry, e)


def _cache_key(cache_id: str, args: tuple) -> str:
    payload = json.dumps([cache_id, list(args)], sort_keys=True)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
