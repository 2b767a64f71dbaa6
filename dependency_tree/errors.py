"""Exception types raised while building a dependency tree."""

from typing import Optional


class DependencyTreeError(Exception):
    """Base class for all dependency tree errors."""


class ConfigurationError(DependencyTreeError):
    """The scan was set up in a way that cannot produce a graph."""


class InvalidBatchSizeError(ConfigurationError, ValueError):
    """Raised when gather() is given a batch size below 1."""

    def __init__(self, batch_size):
        super().__init__(f"Batch size must be a positive integer, got {batch_size!r}")
        self.batch_size = batch_size


class NoAnalyzerMatchError(ConfigurationError):
    """A discovered file is not accepted by any registered analyzer."""

    def __init__(self, path: str):
        super().__init__(f"No analyzer matches {path}")
        self.path = path


class MalformedEntryPointError(ConfigurationError):
    """An entry point file does not declare `entryPoint.file`."""

    def __init__(self, path: str, reason: Optional[str] = None):
        message = (
            f"Malformed entry point: '{path}'. "
            "Make sure that this entry point does follow the convention."
        )
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.path = path


class StorybookExtractionError(ConfigurationError):
    """A storybook extractor returned an incomplete result for a step."""


class ResolutionError(DependencyTreeError):
    """A reference could not be resolved to a file."""

    def __init__(self, request: str, directory: str):
        super().__init__(f"Can't resolve '{request}' in '{directory}'")
        self.request = request
        self.directory = directory


class DirectiveError(DependencyTreeError):
    """
    A malformed `dependency-tree` directive.

    The rendered message shows the offending line of the file with a caret
    under the column where the definition starts.
    """

    def __init__(
        self,
        message: str,
        content: str,
        file_name: str,
        line_number: int,
        column_number: int,
    ):
        self.reason = message
        self.content = content
        self.file_name = file_name
        self.line_number = line_number
        self.column_number = column_number
        super().__init__(self._render())

    def _render(self) -> str:
        lines = self.content.split("\n")
        source_line = lines[self.line_number - 1] if self.line_number <= len(lines) else ""
        padding = " " * (self.column_number - 1)
        location = f"{self.file_name}:{self.line_number}:{self.column_number}"
        return (
            f"{self.reason}\n"
            f"\n"
            f"{self.line_number}\t{source_line}\n"
            f"\t{padding}^\n"
            f"\t{padding}└── definition starts at {location}\n"
            f"\n"
            f"Please make sure the dependency-tree directive follows the "
            f"<dependency-tree depends-on=\"...\" /> syntax.\n"
        )


class DirectiveSyntaxError(DirectiveError):
    """The directive element was opened but never properly closed."""


class DirectiveParseError(DirectiveError):
    """The isolated directive element is not well-formed markup."""


class DirectiveValidationError(DirectiveError):
    """The directive carries an attribute that is not recognised."""
