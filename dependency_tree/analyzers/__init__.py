"""Per-file-kind analyzers extracting references from source files."""

from .base import Analyzer
from .directive import DirectiveAnalyzer, DirectiveParser, HashDirectiveAnalyzer, TSDirectiveAnalyzer
from .feature import FeatureAnalyzer, StorybookExtractorFn, regex_storybook_extractor
from .script import ScriptAnalyzer, extract_imports
from .style import StyleAnalyzer, extract_stylesheet_references

__all__ = [
    "Analyzer",
    "DirectiveAnalyzer",
    "DirectiveParser",
    "FeatureAnalyzer",
    "HashDirectiveAnalyzer",
    "ScriptAnalyzer",
    "StorybookExtractorFn",
    "StyleAnalyzer",
    "TSDirectiveAnalyzer",
    "extract_imports",
    "extract_stylesheet_references",
    "regex_storybook_extractor",
]
