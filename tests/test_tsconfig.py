"""Tests for tsconfig module mapping."""

import json
import os

from dependency_tree.analyzers.script import ScriptAnalyzer
from dependency_tree.scanner.resolver import ModuleResolver
from dependency_tree.scanner.tsconfig import TsConfigPaths, read_compiler_options


class TestReadCompilerOptions:
    """Tests for reading compilerOptions from tsconfig files."""

    def test_comments_and_trailing_commas(self, source_tree):
        """tsconfig files may contain comments and trailing commas."""
        path = source_tree.write("tsconfig.json", """\
            {
              // project settings
              "compilerOptions": {
                "baseUrl": "./src", /* sources */
                "strict": true,
              },
            }
            """)
        options = read_compiler_options(path)
        assert options["baseUrl"] == source_tree.path("src")
        assert options["strict"] is True

    def test_extends(self, source_tree):
        """Options of the extending file override the extended file."""
        source_tree.write("configs/base.json", json.dumps({
            "compilerOptions": {"baseUrl": ".", "paths": {"@lib/*": ["lib/*"]}, "strict": False},
        }))
        path = source_tree.write("tsconfig.json", json.dumps({
            "extends": "./configs/base",
            "compilerOptions": {"strict": True},
        }))
        options = read_compiler_options(path)
        assert options["baseUrl"] == source_tree.path("configs")
        assert options["pathsBasePath"] == source_tree.path("configs")
        assert options["strict"] is True

    def test_package_extends_are_not_followed(self, source_tree):
        path = source_tree.write("tsconfig.json", json.dumps({
            "extends": "@tsconfig/node18/tsconfig.json",
            "compilerOptions": {"baseUrl": "."},
        }))
        assert read_compiler_options(path) == {"baseUrl": source_tree.root}

    def test_circular_extends(self, source_tree):
        """A cycle of extends terminates."""
        source_tree.write("a.json", json.dumps({"extends": "./tsconfig.json"}))
        path = source_tree.write("tsconfig.json", json.dumps({
            "extends": "./a.json",
            "compilerOptions": {"baseUrl": "."},
        }))
        assert read_compiler_options(path) == {"baseUrl": source_tree.root}

    def test_unreadable_config(self, source_tree):
        """A broken tsconfig contributes no options."""
        path = source_tree.write("tsconfig.json", "{ not valid")
        assert read_compiler_options(path) == {}


class TestTsConfigPaths:
    """Tests for candidate paths of mapped requests."""

    def test_no_tsconfig(self, source_tree):
        os.makedirs(source_tree.root)
        assert TsConfigPaths.from_root(source_tree.root) is None

    def test_tsconfig_without_mapping(self, source_tree):
        source_tree.write("tsconfig.json", json.dumps({"compilerOptions": {"strict": True}}))
        assert TsConfigPaths.from_root(source_tree.root) is None

    def test_wildcard_pattern(self, source_tree):
        """The text matched by '*' replaces '*' in every substitution."""
        source_tree.write("tsconfig.json", json.dumps({
            "compilerOptions": {"baseUrl": ".", "paths": {"@app/*": ["app/*", "legacy/*"]}},
        }))
        mapping = TsConfigPaths.from_root(source_tree.root)
        assert mapping.candidates("@app/util") == [
            source_tree.path("app", "util"),
            source_tree.path("legacy", "util"),
            source_tree.path("@app", "util"),
        ]

    def test_exact_pattern_wins(self, source_tree):
        mapping = TsConfigPaths(None, {"config": ["settings/index"], "*": ["vendor/*"]}, "/p")
        assert mapping.candidates("config") == [os.path.join("/p", "settings/index")]

    def test_longest_prefix_wins(self):
        mapping = TsConfigPaths(None, {"@app/*": ["app/*"], "@app/ui/*": ["ui/*"]}, "/p")
        assert mapping.candidates("@app/ui/button") == [os.path.join("/p", "ui/button")]

    def test_unmatched_request_uses_base_url(self):
        mapping = TsConfigPaths("/p/src", {"@app/*": ["app/*"]}, "/p/src")
        assert mapping.candidates("lodash") == [os.path.join("/p/src", "lodash")]

    def test_paths_without_base_url(self, source_tree):
        """Substitutions are relative to the declaring tsconfig."""
        source_tree.write("tsconfig.json", json.dumps({
            "compilerOptions": {"paths": {"~/*": ["src/*"]}},
        }))
        mapping = TsConfigPaths.from_root(source_tree.root)
        assert mapping.base_url is None
        assert mapping.candidates("~/a") == [source_tree.path("src", "a")]


class TestScriptAnalyzerMapping:
    """Tests for resolving requests through the tsconfig of a root."""

    def test_mapped_request(self, source_tree):
        source_tree.write("tsconfig.json", json.dumps({
            "compilerOptions": {"baseUrl": ".", "paths": {"@app/*": ["app/*"]}},
        }))
        target = source_tree.write("app/util.ts")
        analyzer = ScriptAnalyzer(source_tree.root)
        assert analyzer.resolve_mapped("@app/util", ModuleResolver()) == target

    def test_relative_and_builtin_requests_are_not_mapped(self, source_tree):
        source_tree.write("tsconfig.json", json.dumps({"compilerOptions": {"baseUrl": "."}}))
        source_tree.write("fs.ts")
        source_tree.write("a.ts")
        analyzer = ScriptAnalyzer(source_tree.root)
        assert analyzer.resolve_mapped("fs", ModuleResolver()) is None
        assert analyzer.resolve_mapped("./a", ModuleResolver()) is None

    def test_unresolved_candidates(self, source_tree):
        source_tree.write("tsconfig.json", json.dumps({
            "compilerOptions": {"paths": {"@app/*": ["app/*"]}},
        }))
        analyzer = ScriptAnalyzer(source_tree.root)
        assert analyzer.resolve_mapped("@app/nothing", ModuleResolver()) is None

    def test_reset_reloads_the_mapping(self, source_tree):
        os.makedirs(source_tree.root)
        analyzer = ScriptAnalyzer(source_tree.root)
        assert analyzer.ts_paths is None
        source_tree.write("tsconfig.json", json.dumps({"compilerOptions": {"baseUrl": "."}}))
        analyzer.reset()
        assert analyzer.ts_paths.base_url == source_tree.root
