"""
Tests for the CLI — build, capabilities and config commands.

Commands are driven through main(argv) against a project written to a
temp directory. Build tests need tree-sitter.
"""

import orjson
import pytest

from reactcompile.cli import build_parser, main
from tests.markers import requires_tree_sitter


class TestParser:

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage: reactcompile" in capsys.readouterr().out

    def test_unknown_backend_choice_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["build", "--backend", "webpack"])

    def test_html_and_json_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["build", "--html", "--json"])

    def test_project_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("REACTCOMPILE_PROJECT_PATH", str(tmp_path))
        args = build_parser().parse_args(["capabilities"])
        assert args.project == str(tmp_path)


class TestCapabilitiesCommand:

    def test_reports_backend(self, tmp_path, capsys):
        assert main(["-p", str(tmp_path), "capabilities", "--backend", "transpile"]) == 0
        data = orjson.loads(capsys.readouterr().out)
        assert data == {
            "bundling": False, "jsx": True, "type_annotations": True,
            "multi_file": False, "name": "transpile",
        }

    def test_defaults_to_configured_backend(self, tmp_path, capsys):
        assert main(["-p", str(tmp_path), "capabilities"]) == 0
        assert orjson.loads(capsys.readouterr().out)["name"] == "bundle"


class TestConfigCommand:

    def test_set_then_get(self, tmp_path, capsys):
        assert main(["-p", str(tmp_path), "config", "--set", "compiler.backend=transpile"]) == 0
        assert "Set compiler.backend = transpile" in capsys.readouterr().out
        assert main(["-p", str(tmp_path), "config", "compiler.backend"]) == 0
        assert capsys.readouterr().out.strip() == "transpile"

    def test_set_without_equals(self, tmp_path, capsys):
        assert main(["-p", str(tmp_path), "config", "--set", "compiler.backend"]) == 1
        assert "KEY=VALUE" in capsys.readouterr().err

    def test_set_invalid_value(self, tmp_path, capsys):
        assert main(["-p", str(tmp_path), "config", "--set", "compiler.backend=webpack"]) == 1
        assert "Unknown backend" in capsys.readouterr().err

    def test_unknown_key(self, tmp_path, capsys):
        assert main(["-p", str(tmp_path), "config", "compiler.nope"]) == 1

    def test_display(self, tmp_path, capsys):
        assert main(["-p", str(tmp_path), "config"]) == 0
        assert "Configuration:" in capsys.readouterr().out

    def test_invalid_config_blocks_build(self, tmp_path, capsys):
        (tmp_path / ".reactcompile").mkdir()
        (tmp_path / ".reactcompile" / "config.yaml").write_text("compiler:\n  base_url: src\n")
        assert main(["-p", str(tmp_path), "build"]) == 1
        assert "invalid configuration" in capsys.readouterr().err


@requires_tree_sitter
class TestBuildCommand:
    """Full compiles of the sample project on disk."""

    def test_json_summary(self, project_dir, capsys):
        assert main(["-p", str(project_dir), "build", "--backend", "transpile", "--json"]) == 0
        data = orjson.loads(capsys.readouterr().out)
        assert data["ok"] is True
        assert data["backend"] == "transpile"
        assert data["entry_point"] == "/src/entry.tsx"
        assert data["modules"] == sorted([
            "/src/entry.tsx", "/src/components/ui/button.tsx", "/src/lib/utils.js",
        ])

    def test_bundle_code_to_stdout(self, project_dir, capsys):
        assert main(["-p", str(project_dir), "build"]) == 0
        out = capsys.readouterr().out
        assert '__define("virtual:/src/entry.tsx"' in out

    def test_html_document(self, project_dir, capsys):
        assert main(["-p", str(project_dir), "build", "--html"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("<!DOCTYPE html>")
        assert '<script type="importmap">' in out

    def test_missing_entry_json_error(self, project_dir, capsys):
        code = main(["-p", str(project_dir), "build", "-b", "transpile", "-e", "@/missing", "--json"])
        assert code == 1
        data = orjson.loads(capsys.readouterr().out)
        assert data["ok"] is False
        assert data["error"]["kind"] == "not_found"
        assert data["error"]["specifier"] == "@/missing"

    def test_warnings_go_to_stderr(self, project_dir, capsys):
        (project_dir / "src" / "entry.tsx").write_text('import { x } from "@/gone";\nconsole.log(x);\n')
        assert main(["-p", str(project_dir), "build", "-b", "transpile"]) == 0
        assert "Warning: Failed to transform dependency @/gone" in capsys.readouterr().err
