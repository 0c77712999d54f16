"""Tests for the orch CLI."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from orchestra.cli.orch import orch_cli
from orchestra.core.errors import NoJsonFound


def _invoke(*args: str):
    return CliRunner().invoke(orch_cli, list(args))


class TestInit:
    def test_creates_project_dir(self, tmp_project: Path):
        result = _invoke("init", "-p", str(tmp_project))
        assert result.exit_code == 0
        assert (tmp_project / ".orchestra" / "config.yaml").exists()

    def test_requires_project(self):
        result = _invoke("init")
        assert result.exit_code != 0


class TestAnalyze:
    def test_dry_run_json(self, tmp_project: Path):
        result = _invoke("analyze", "-p", str(tmp_project), "--text", "A support desk", "--dry-run")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert len(data["agents"]) == 3
        assert "systemConfidence" in data
        assert data["orchestrationPattern"]["type"] == "sequential"

    def test_markdown_to_file(self, initialized_project: Path, tmp_path: Path):
        description = tmp_path / "system.txt"
        description.write_text("A support desk", encoding="utf-8")
        out = tmp_path / "out" / "analysis.md"

        result = _invoke(
            "analyze", "-p", str(initialized_project),
            "--file", str(description), "-f", "markdown", "-o", str(out),
        )
        assert result.exit_code == 0, result.output
        assert out.read_text(encoding="utf-8").startswith("# System Analysis")

    def test_text_and_file_is_usage_error(self, tmp_project: Path, tmp_path: Path):
        description = tmp_path / "system.txt"
        description.write_text("x", encoding="utf-8")
        result = _invoke("analyze", "-p", str(tmp_project), "--text", "x", "--file", str(description))
        assert result.exit_code == 11

    def test_missing_input_is_usage_error(self, tmp_project: Path):
        result = _invoke("analyze", "-p", str(tmp_project))
        assert result.exit_code == 11

    @patch("orchestra.core.synthesis.SynthesisService.analyze", new_callable=AsyncMock)
    def test_pipeline_error_exit_code(self, mock_analyze, tmp_project: Path):
        mock_analyze.side_effect = NoJsonFound()
        result = _invoke("analyze", "-p", str(tmp_project), "--text", "x", "--dry-run")
        assert result.exit_code == 1

    def test_loosely_typed_model_output(self, tmp_project: Path):
        raw = json.dumps({
            "agents": [{"name": "Planner", "role": "plans the work", "confidence": 0.85}],
            "relationships": [{"from": "Planner", "to": "Planner", "dataFlow": ["query", "results"]}],
        })
        with patch("orchestra.providers.mock.MOCK_RESPONSES", [("SYSTEM DESCRIPTION:", raw)]):
            result = _invoke("analyze", "-p", str(tmp_project), "--text", "A planner", "--dry-run")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["relationships"][0]["dataFlow"] == "query, results"


class TestRefineAndDiagram:
    def test_refine(self, initialized_project: Path, tmp_path: Path, sample_analysis_json):
        analysis = tmp_path / "analysis.json"
        analysis.write_text(json.dumps(sample_analysis_json), encoding="utf-8")

        result = _invoke(
            "refine", "-p", str(initialized_project), "-i", str(analysis),
            "-t", "Ticketing API", "-t", "Vector Search",
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert "confidenceScores" in data
        assert len(data["agents"]) == 2

    def test_refine_agents_only(self, initialized_project: Path, tmp_path: Path, sample_analysis_json):
        analysis = tmp_path / "analysis.json"
        analysis.write_text(json.dumps(sample_analysis_json), encoding="utf-8")

        result = _invoke(
            "refine", "-p", str(initialized_project), "-i", str(analysis), "-t", "Vector Search", "--agents-only",
        )
        assert result.exit_code == 0, result.output
        assert [a["id"] for a in json.loads(result.stdout)] == ["triage", "knowledge"]

    def test_refine_bad_json_is_usage_error(self, initialized_project: Path, tmp_path: Path):
        analysis = tmp_path / "analysis.json"
        analysis.write_text("not json", encoding="utf-8")
        result = _invoke("refine", "-p", str(initialized_project), "-i", str(analysis), "-t", "X")
        assert result.exit_code == 11

    def test_diagram(self, initialized_project: Path, tmp_path: Path, sample_analysis_json):
        agents = tmp_path / "agents.json"
        agents.write_text(json.dumps(sample_analysis_json), encoding="utf-8")

        result = _invoke(
            "diagram", "-p", str(initialized_project), "-i", str(agents), "--orchestration", "Sequential",
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["layout"] == "dagre"
        assert len(data["nodes"]) == 3

    def test_mermaid(self, initialized_project: Path, tmp_path: Path):
        design = tmp_path / "design.json"
        design.write_text('{"agents": [], "relationships": []}', encoding="utf-8")
        result = _invoke("mermaid", "-p", str(initialized_project), "-i", str(design))
        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("graph TD")


class TestExecuteAndCodegen:
    def _design(self, tmp_path: Path) -> Path:
        design = tmp_path / "design.json"
        design.write_text('{"agents": [{"name": "Triage Agent", "role": "Routes tickets"}]}', encoding="utf-8")
        return design

    def test_execute_json(self, initialized_project: Path, tmp_path: Path):
        result = _invoke(
            "execute", "-p", str(initialized_project), "-i", str(self._design(tmp_path)),
            "-q", "Where is my refund?",
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["query"] == "Where is my refund?"
        assert len(data["processSteps"]) == 2
        assert data["finalResponse"].startswith("You can request a refund")

    def test_execute_markdown(self, initialized_project: Path, tmp_path: Path):
        result = _invoke(
            "execute", "-p", str(initialized_project), "-i", str(self._design(tmp_path)),
            "-q", "Where is my refund?", "-f", "markdown",
        )
        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("# Simulated Run")
        assert "## Steps (2)" in result.stdout

    def test_execute_blank_query_is_usage_error(self, initialized_project: Path, tmp_path: Path):
        result = _invoke("execute", "-p", str(initialized_project), "-i", str(self._design(tmp_path)), "-q", "  ")
        assert result.exit_code == 11

    @patch("orchestra.core.synthesis.SynthesisService.execute_design", new_callable=AsyncMock)
    def test_execute_pipeline_error_exit_code(self, mock_execute, initialized_project: Path, tmp_path: Path):
        mock_execute.side_effect = NoJsonFound()
        result = _invoke("execute", "-p", str(initialized_project), "-i", str(self._design(tmp_path)), "-q", "hi")
        assert result.exit_code == 1

    def test_codegen_to_file(self, initialized_project: Path, tmp_path: Path):
        out = tmp_path / "code.json"
        result = _invoke(
            "codegen", "-p", str(initialized_project), "-i", str(self._design(tmp_path)), "-o", str(out),
        )
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["language"] == "Python"
        assert "StateGraph" in data["implementation"]
        assert data["setupInstructions"] == "pip install langgraph langchain"

    def test_codegen_markdown(self, initialized_project: Path, tmp_path: Path):
        result = _invoke(
            "codegen", "-p", str(initialized_project), "-i", str(self._design(tmp_path)), "-f", "markdown",
        )
        assert result.exit_code == 0, result.output
        assert "```python" in result.stdout
        assert "## Example Usage" in result.stdout

    def test_codegen_array_input_is_usage_error(self, initialized_project: Path, tmp_path: Path):
        design = tmp_path / "design.json"
        design.write_text("[]", encoding="utf-8")
        result = _invoke("codegen", "-p", str(initialized_project), "-i", str(design))
        assert result.exit_code == 11


class TestPromptTestingCommands:
    def test_save_list_run(self, initialized_project: Path, tmp_path: Path, sample_description):
        description = tmp_path / "support.txt"
        description.write_text(sample_description, encoding="utf-8")
        project = str(initialized_project)

        assert _invoke("test", "save", "-p", project, "support", "--file", str(description)).exit_code == 0

        listed = _invoke("test", "list", "-p", project)
        assert listed.stdout.split() == ["support"]

        run = _invoke("test", "run", "-p", project, "support")
        assert run.exit_code == 0, run.output
        assert json.loads(run.stdout)["metrics"]["agentCount"] == 3

        results_dir = initialized_project / ".orchestra" / "tests" / "results"
        assert len(list(results_dir.glob("support_*.json"))) == 1

    def test_run_missing_case(self, initialized_project: Path):
        result = _invoke("test", "run", "-p", str(initialized_project), "nope")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["success"] is False

    def test_batch_markdown(self, initialized_project: Path, tmp_path: Path, sample_description):
        description = tmp_path / "support.txt"
        description.write_text(sample_description, encoding="utf-8")
        project = str(initialized_project)
        _invoke("test", "save", "-p", project, "one", "--file", str(description))
        _invoke("test", "save", "-p", project, "two", "--file", str(description))

        result = _invoke("test", "batch", "-p", project, "one", "two", "-f", "markdown")
        assert result.exit_code == 0, result.output
        assert "**Success rate:** 100.0%" in result.stdout

    def test_batch_with_failure(self, initialized_project: Path):
        result = _invoke("test", "batch", "-p", str(initialized_project), "missing")
        assert result.exit_code == 1

    def test_evaluate(self, initialized_project: Path, tmp_path: Path, sample_description):
        description = tmp_path / "support.txt"
        description.write_text(sample_description, encoding="utf-8")
        expected = tmp_path / "expected.json"
        expected.write_text(json.dumps({"orchestrationPattern": {"type": "sequential"}}), encoding="utf-8")
        project = str(initialized_project)
        _invoke("test", "save", "-p", project, "support", "--file", str(description))

        result = _invoke("test", "evaluate", "-p", project, "support", "--expected", str(expected))
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["accuracy"]["orchestrationPattern"] == 1.0
