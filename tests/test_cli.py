"""Unit tests for the pagehand CLI — commands that run without a browser.

Browser-backed commands (collect, match, act) are exercised up to the point
where a browser would start: argument handling and script loading.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import typer
import yaml
from typer.testing import CliRunner

from pagehand import __version__
from pagehand.cli.act import _bind_targets, _load_script
from pagehand.cli.app import app
from pagehand.cli.common import find_config_path, load_config

runner = CliRunner()


# ---------------------------------------------------------------------------
# 1. Global options
# ---------------------------------------------------------------------------

class TestGlobalOptions:

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "resolve" in result.output


# ---------------------------------------------------------------------------
# 2. pagehand resolve
# ---------------------------------------------------------------------------

class TestResolveCommand:

    def test_natural_language_json(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["resolve", "click the submit button", "--json"])

        assert result.exit_code == 0
        assert '"action": "click"' in result.output
        assert '"target": "submit"' in result.output

    def test_structured_with_intents_file(self, tmp_project_dir: Path, monkeypatch):
        monkeypatch.chdir(tmp_project_dir.parent)
        result = runner.invoke(
            app,
            ["resolve", "create account for me", "--intents", str(tmp_project_dir / "intents.yaml")],
        )

        assert result.exit_code == 0
        assert "account/create-account" in result.output
        assert "Missing required" in result.output

    def test_intents_from_project_config(self, tmp_project_dir: Path, monkeypatch):
        monkeypatch.chdir(tmp_project_dir.parent)
        result = runner.invoke(app, ["resolve", "create account for me", "--json"])

        assert result.exit_code == 0
        assert '"intentType": "structured"' in result.output

    def test_missing_intents_file_exits_2(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["resolve", "click go", "--intents", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 2

    def test_malformed_intents_file_exits_2(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        bad = tmp_path / "bad.yaml"
        bad.write_text("intents: [unclosed\n", encoding="utf-8")

        result = runner.invoke(app, ["resolve", "click submit", "--intents", str(bad)])

        assert result.exit_code == 2
        assert "Config Error" in result.output

    def test_empty_request_exits_1(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["resolve", "  "])
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# 3. Config discovery
# ---------------------------------------------------------------------------

class TestConfigDiscovery:

    def test_find_config_path_searches_upward(self, tmp_project_dir: Path, monkeypatch):
        nested = tmp_project_dir.parent / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        assert find_config_path() == tmp_project_dir / "config.yaml"

    def test_load_config_defaults_without_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert load_config(None).base_url == ""

    def test_load_config_error_exits_2(self, tmp_path: Path):
        bad = tmp_path / "config.yaml"
        bad.write_text("max_affordances: 0\n", encoding="utf-8")

        with pytest.raises(typer.Exit) as exc_info:
            load_config(bad)
        assert exc_info.value.exit_code == 2


# ---------------------------------------------------------------------------
# 4. pagehand act — script handling
# ---------------------------------------------------------------------------

class TestActScript:

    def test_list_form_uses_file_stem_as_message_id(self, tmp_path: Path):
        script = tmp_path / "checkout.yaml"
        script.write_text(yaml.dump([{"action": "scrollToTop"}]), encoding="utf-8")

        message_id, steps = _load_script(script)

        assert message_id == "checkout"
        assert steps == [{"action": "scrollToTop"}]

    def test_mapping_form(self, tmp_path: Path):
        script = tmp_path / "s.yaml"
        script.write_text(
            yaml.dump({"message_id": "m-9", "actions": [{"action": "click", "selector": "#go"}]}),
            encoding="utf-8",
        )

        message_id, steps = _load_script(script)

        assert message_id == "m-9"
        assert steps[0]["selector"] == "#go"

    def test_missing_script_exits_2(self, tmp_path: Path):
        with pytest.raises(typer.Exit) as exc_info:
            _load_script(tmp_path / "absent.yaml")
        assert exc_info.value.exit_code == 2

    def test_non_list_script_exits_2(self, tmp_path: Path):
        script = tmp_path / "s.yaml"
        script.write_text("just a string\n", encoding="utf-8")

        with pytest.raises(typer.Exit):
            _load_script(script)

    def test_targets_are_bound_to_selectors(self):
        affordances = [{"name": "Email", "tag": "INPUT", "selector": '[data-pagehand-id="e1"]'}]
        steps = [
            {"action": "type", "target": "email", "text": "a@b.co"},
            {"action": "click", "selector": "#explicit"},
        ]

        bound = _bind_targets(steps, affordances)

        assert bound[0]["selector"] == '[data-pagehand-id="e1"]'
        assert bound[1]["selector"] == "#explicit"
        assert "selector" not in steps[0]

    def test_unmatched_target_exits_2(self):
        with pytest.raises(typer.Exit):
            _bind_targets([{"action": "click", "target": "checkout"}], [])
