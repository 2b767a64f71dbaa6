"""The capability contract every file-kind analyzer implements."""

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, List, Sequence, Set

if TYPE_CHECKING:
    from ..scanner.builder import DependencyTree


class Analyzer(ABC):
    """
    Extracts the references of one kind of file.

    Analyzers are registered on a DependencyTree; every analyzer whose
    ``match`` accepts a discovered file is run on it and their results are
    unioned.
    """

    @abstractmethod
    def match(self, path: str) -> bool:
        """Return True if this analyzer wants to process the given file."""

    @abstractmethod
    def supported_kinds(self) -> List[str]:
        """
        File extensions handled by this analyzer, without a leading dot.

        Used to discover candidate files before ``match`` is consulted.
        """

    @abstractmethod
    async def process(
        self,
        path: str,
        contents: str,
        missing: Dict[str, Set[str]],
        files: Sequence[str],
        tree: "DependencyTree",
    ) -> Set[str]:
        """
        Find the files referenced by a file.

        Args:
            path: Real path of the file to inspect.
            contents: The file contents.
            missing: Map to record references that could not be resolved.
            files: Every file discovered in this run (real paths).
            tree: The DependencyTree running the analysis.

        Returns:
            Absolute paths of all files referenced from ``path``.
        """

    def reset(self) -> None:
        """Drop state built during a previous run."""


def extension_pattern(kinds: Sequence[str]) -> "re.Pattern[str]":
    """Compile a case-insensitive pattern matching any of the extensions."""
    alternatives = "|".join(re.escape(kind) for kind in kinds)
    return re.compile(rf"\.({alternatives})$", re.IGNORECASE)
