"""Tests for the command line entry point."""

import json
from pathlib import Path

import pytest

from cli import EXIT_CYCLES, EXIT_ERROR, EXIT_OK, main, parse_args


def _write(root: Path, package: str, name: str, imports=()) -> None:
    directory = root.joinpath(*package.split("."))
    directory.mkdir(parents=True, exist_ok=True)
    body = [f"package {package};"]
    body.extend(f"import {imp};" for imp in imports)
    body.append(f"public class {name} {{}}")
    (directory / f"{name}.java").write_text("\n".join(body), encoding="utf-8")


@pytest.fixture
def project(tmp_path, monkeypatch):
    """A source root with a two-class cycle and one acyclic class."""
    monkeypatch.chdir(tmp_path)
    src = tmp_path / "src"
    _write(src, "com.a", "A", ["com.b.B"])
    _write(src, "com.b", "B", ["com.a.A"])
    _write(src, "com.c", "C", ["com.a.A"])
    return src


@pytest.fixture
def clean_project(tmp_path, monkeypatch):
    """A source root without cycles."""
    monkeypatch.chdir(tmp_path)
    src = tmp_path / "src"
    _write(src, "com.a", "A", ["com.b.B"])
    _write(src, "com.b", "B", ["java.util.List"])
    return src


class TestParseArgs:
    """Tests for argument parsing."""

    def test_defaults(self):
        """Test default options."""
        parsed = parse_args(["src"])

        assert parsed.roots == ["src"]
        assert parsed.format == "text"
        assert parsed.strict is False
        assert parsed.fail_on_cycles is False

    def test_verbose_and_quiet_exclusive(self):
        """Test that -v and -q cannot be combined."""
        with pytest.raises(SystemExit):
            parse_args(["-v", "-q", "src"])


class TestMain:
    """Tests for main()."""

    def test_reports_cycle(self, project, capsys):
        """Test the text report of a cycle."""
        code = main([str(project)])

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "1 dependency cycle(s) detected:" in out
        assert "com.a.A" in out and "com.b.B" in out

    def test_fail_on_cycles(self, project):
        """Test the exit status when cycles are fatal."""
        assert main([str(project), "--fail-on-cycles"]) == EXIT_CYCLES

    def test_clean_project(self, clean_project, capsys):
        """Test a project without cycles."""
        code = main([str(clean_project), "--fail-on-cycles"])

        assert code == EXIT_OK
        assert "No dependency cycles found" in capsys.readouterr().out

    def test_strict_mode(self, project, capsys):
        """Test that strict mode reports the rejected edge."""
        code = main([str(project), "--strict", "--fail-on-cycles"])

        out = capsys.readouterr().out
        assert code == EXIT_CYCLES
        assert "No dependency cycles found" in out
        assert "1 edge(s) rejected" in out

    def test_json_output_file(self, project, tmp_path):
        """Test writing a JSON report to a file."""
        out_file = tmp_path / "report.json"

        code = main([str(project), "--format", "json", "-o", str(out_file)])

        assert code == EXIT_OK
        data = json.loads(out_file.read_text(encoding="utf-8"))
        assert data["all_clear"] is False
        assert len(data["cycles"]) == 1
        assert "com.c.C" in data["units"]

    def test_mermaid_output(self, project, capsys):
        """Test Mermaid output."""
        code = main([str(project), "--format", "mermaid", "--orientation", "TD"])

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert out.startswith("flowchart TD")
        assert "com_a_A --> com_b_B" in out

    def test_source_list_file(self, project, tmp_path, capsys):
        """Test reading roots from a file."""
        sources = tmp_path / "sources.txt"
        sources.write_text(f"# roots\n{project}\n", encoding="utf-8")

        code = main(["-f", str(sources)])

        assert code == EXIT_OK
        assert "1 dependency cycle(s) detected:" in capsys.readouterr().out

    def test_config_file(self, project, tmp_path, capsys):
        """Test taking roots and strictness from a YAML config."""
        config = tmp_path / ".depcycle.yaml"
        config.write_text(f"roots:\n  - {project}\nallow_cycles: false\n", encoding="utf-8")

        code = main(["--fail-on-cycles"])

        assert code == EXIT_CYCLES
        assert "1 edge(s) rejected" in capsys.readouterr().out

    def test_no_roots(self, tmp_path, monkeypatch, capsys):
        """Test running without any roots."""
        monkeypatch.chdir(tmp_path)

        assert main([]) == EXIT_ERROR
        assert "source roots" in capsys.readouterr().err

    def test_missing_root(self, project, tmp_path, capsys):
        """Test that a missing root is an error naming that root."""
        missing = tmp_path / "missing"

        code = main([str(project), str(missing)])

        assert code == EXIT_ERROR
        assert "missing" in capsys.readouterr().err

    def test_bad_config(self, tmp_path, monkeypatch, capsys):
        """Test that an invalid config file is an error."""
        monkeypatch.chdir(tmp_path)
        config = tmp_path / "bad.yaml"
        config.write_text("unknown_key: 1\n", encoding="utf-8")

        code = main(["-c", str(config), "src"])

        assert code == EXIT_ERROR
        assert "unknown setting" in capsys.readouterr().err
