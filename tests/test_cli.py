"""Tests for the command line interface."""

import json
import os

import pytest

from dependency_tree.cli import main, parse_aliases


@pytest.fixture
def project(make_tree):
    return make_tree({
        "index.ts": "import './a';\nimport './missing-dep';\n",
        "a.tsx": "import './a.css';\n",
        "a.css": '.a { background: url("./a.png"); }\n',
        "a.png": "",
        "other.ts": "",
    })


class TestMain:
    """Tests for main()."""

    def test_json_to_file(self, project, tmp_path):
        """Test the full scan is written as JSON."""
        output = tmp_path / "deps.json"
        code = main([project.root, "--no-cache", "-o", str(output)])

        assert code == 0
        data = json.loads(output.read_text())
        assert data["resolved"] == {
            "a.css": ["a.png"],
            "a.tsx": ["a.css"],
            "index.ts": ["a.tsx"],
            "other.ts": [],
        }
        assert data["missing"] == {"index.ts": ["./missing-dep"]}

    def test_references_of(self, project, capsys):
        """Test listing the files affected by a change."""
        code = main([
            project.root, "--no-cache", "-f", "text",
            "--references-of", project.path("a.png"),
        ])

        assert code == 0
        assert capsys.readouterr().out.splitlines() == ["a.css", "a.tsx", "index.ts"]

    def test_dependencies_of(self, project, capsys):
        code = main([project.root, "--no-cache", "--dependencies-of", project.path("a.tsx")])

        assert code == 0
        assert json.loads(capsys.readouterr().out) == ["a.css", "a.png"]

    def test_mermaid_query(self, project, capsys):
        """Test a query rendered as a flowchart of the related files."""
        code = main([
            project.root, "--no-cache", "-f", "mermaid",
            "--dependencies-of", project.path("a.tsx"),
        ])

        out = capsys.readouterr().out
        assert code == 0
        assert "a_tsx --> a_css" in out
        assert "a_css --> a_png" in out
        assert "index_ts" not in out

    def test_mermaid_scan(self, project, capsys):
        assert main([project.root, "--no-cache", "-f", "mermaid"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("flowchart LR")
        assert "./missing-dep [MISSING]" in out

    def test_relative_to(self, project, capsys):
        """Test display paths relative to another directory."""
        parent = os.path.dirname(project.root)
        main([project.root, "--no-cache", "-f", "text", "--relative-to", parent])
        assert "src/index.ts" in capsys.readouterr().out.splitlines()

    def test_cache_dir(self, project, tmp_path):
        """Test resolutions are cached in the given directory."""
        cache = tmp_path / "cache"
        assert main([project.root, "--cache-dir", str(cache), "-o", str(tmp_path / "a.json")]) == 0
        assert any(files for _, _, files in os.walk(cache))

        assert main([project.root, "--cache-dir", str(cache), "-o", str(tmp_path / "b.json")]) == 0
        assert (tmp_path / "a.json").read_text() == (tmp_path / "b.json").read_text()

    def test_ignore(self, project, tmp_path):
        output = tmp_path / "deps.json"
        main([project.root, "--no-cache", "--ignore", "other.ts", "-o", str(output)])
        assert "other.ts" not in json.loads(output.read_text())["resolved"]

    def test_alias_and_glob_expansion(self, make_tree, tmp_path):
        """Test aliased glob references in directives."""
        src = make_tree({
            "app/run.ts": '/// <dependency-tree depends-on="~/scripts/*.sh" />\n',
            "lib/scripts/a.sh": "",
            "lib/scripts/b.sh": "",
        })
        output = tmp_path / "deps.json"
        code = main([
            src.root, "--no-cache", "--alias", f"~={src.path('lib')}",
            "--expand-globs", "-o", str(output),
        ])

        assert code == 0
        assert json.loads(output.read_text())["resolved"]["app/run.ts"] == [
            "lib/scripts/a.sh", "lib/scripts/b.sh",
        ]

    def test_hash_directives(self, make_tree, tmp_path):
        src = make_tree({
            "deploy.sh": '## <dependency-tree depends-on="./config.yml" />\n',
            "config.yml": "key: value\n",
        })
        output = tmp_path / "deps.json"
        assert main([src.root, "--no-cache", "--hash-directives", "-o", str(output)]) == 0
        assert json.loads(output.read_text())["resolved"] == {
            "config.yml": [],
            "deploy.sh": ["config.yml"],
        }

    def test_storybook_pattern(self, make_tree, tmp_path):
        src = make_tree({
            "a.feature": 'Feature: A\n  Scenario: S\n    Given I open the "x" story of "book"\n',
        })
        output = tmp_path / "deps.json"
        code = main([
            src.root, "--no-cache", "-o", str(output),
            "--storybook-pattern", r'I open the "(?P<story>[^"]*)" story of "(?P<storybook>[^"]*)"',
        ])

        assert code == 0
        assert json.loads(output.read_text())["missing"] == {"a.feature": ["book/stories/*.stories.tsx"]}


class TestErrors:
    """Tests for error exits."""

    def test_root_not_a_directory(self, tmp_path, capsys):
        code = main([str(tmp_path / "nope"), "--no-cache"])
        assert code == 1
        assert "is not a directory" in capsys.readouterr().err

    def test_invalid_batch_size(self, project, capsys):
        code = main([project.root, "--no-cache", "--batch-size", "0"])
        assert code == 1
        assert "Batch size" in capsys.readouterr().err

    def test_invalid_alias(self, project, capsys):
        code = main([project.root, "--no-cache", "--alias", "nodir"])
        assert code == 1
        assert "PREFIX=DIR" in capsys.readouterr().err

    def test_invalid_storybook_pattern(self, project, capsys):
        code = main([project.root, "--no-cache", "--storybook-pattern", "no groups"])
        assert code == 1
        assert "named groups" in capsys.readouterr().err

    def test_invalid_directive(self, make_tree, capsys):
        src = make_tree({"a.ts": '/// <dependency-tree owner="me" />\n'})
        code = main([src.root, "--no-cache"])
        assert code == 1
        assert "Unknown attribute: 'owner'" in capsys.readouterr().err

    def test_unreadable_file(self, project, monkeypatch, capsys):
        """Test a read failure during the scan is reported, not raised."""
        from dependency_tree.scanner import builder

        def fail(path):
            raise PermissionError(13, "Permission denied", path)

        monkeypatch.setattr(builder, "_read_text", fail)
        code = main([project.root, "--no-cache"])

        assert code == 1
        assert "Error scanning repository" in capsys.readouterr().err

    def test_unwritable_output(self, project, tmp_path, capsys):
        code = main([project.root, "--no-cache", "-o", str(tmp_path / "missing" / "out.json")])
        assert code == 1
        assert "Error writing output" in capsys.readouterr().err


class TestParseAliases:
    """Tests for parse_aliases."""

    def test_pairs(self, tmp_path):
        target = os.path.realpath(str(tmp_path))
        assert parse_aliases([f"~={target}", f"@app={target}"]) == {"~": target, "@app": target}

    @pytest.mark.parametrize("value", ["nodir", "=dir", "prefix="])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_aliases([value])
