"""Prompt-testing harness.

Stores named system descriptions as test cases, runs them through the
analysis pass and writes every run, batch and evaluation as a JSON file
under the results directory.
"""

from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from rich.console import Console

from ..models.evaluation import (
    BatchMetrics,
    BatchResult,
    EvaluationResult,
    TestCase,
    TestCaseFailure,
    TestCaseMetrics,
    TestCaseResult,
)
from .errors import OrchestraError
from .evaluator import evaluate_accuracy
from .synthesis import SynthesisService

console = Console(stderr=True)

TestCaseOutcome = Union[TestCaseResult, TestCaseFailure]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _stamp() -> int:
    return int(time.time() * 1000)


def _write_json(data: dict, output_path: Path) -> Path:
    """Write data to a JSON file (UTF-8, no BOM)."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(data, indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    return output_path


class PromptTestingHarness:
    def __init__(
        self,
        service: SynthesisService,
        test_cases_dir: Path,
        results_dir: Path,
    ):
        self.service = service
        self.test_cases_dir = Path(test_cases_dir)
        self.results_dir = Path(results_dir)

    @classmethod
    def from_config(
        cls,
        service: SynthesisService,
        config: dict,
        project_path: Optional[Path] = None,
    ) -> "PromptTestingHarness":
        root = Path(project_path or config.get("_project_path", "."))
        testing = config.get("testing") or {}
        return cls(
            service,
            root / testing.get("test_cases_dir", ".orchestra/tests/cases"),
            root / testing.get("results_dir", ".orchestra/tests/results"),
        )

    def _case_path(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name.startswith("."):
            raise ValueError(f"Invalid test case name: {name!r}")
        return self.test_cases_dir / f"{name}.json"

    def save_test_case(self, name: str, description: str) -> Path:
        """Save a system description as a named test case."""
        case = TestCase(name=name, description=description)
        return _write_json(case.model_dump(), self._case_path(name))

    def list_test_cases(self) -> list[str]:
        """Names of all saved test cases, sorted."""
        if not self.test_cases_dir.is_dir():
            return []
        return sorted(p.stem for p in self.test_cases_dir.glob("*.json"))

    def load_test_case(self, name: str) -> TestCase:
        path = self._case_path(name)
        data = json.loads(path.read_text(encoding="utf-8-sig"))
        return TestCase.model_validate(data)

    async def run_test_case(self, name: str) -> TestCaseOutcome:
        """Run one test case through the analysis pass and record its metrics.

        Failures are returned as TestCaseFailure rather than raised, so a
        batch can continue past them.
        """
        try:
            case = self.load_test_case(name)
            start = time.monotonic()
            result = await self.service.analyze(case.description)
            processing_time = int((time.monotonic() - start) * 1000)
        except (OrchestraError, OSError, ValueError) as e:
            console.print(f"  [red]ERROR[/red] Test case '{name}' failed: {e}")
            return TestCaseFailure(message=str(e))

        confidence = result.system_confidence
        metrics = TestCaseMetrics(
            processing_time=processing_time,
            overall_confidence=confidence.overall if confidence else 0,
            completeness=confidence.completeness if confidence else 0,
            consistency=confidence.consistency if confidence else 0,
            clarity=confidence.clarity if confidence else 0,
            agent_count=len(result.agents),
            tool_count=len(result.tools),
            relationship_count=len(result.relationships),
        )
        outcome = TestCaseResult(
            test_case=name,
            result=result,
            metrics=metrics,
            timestamp=_now_iso(),
        )

        _write_json(
            outcome.model_dump(by_alias=True, mode="json", exclude_none=True),
            self.results_dir / f"{name}_{_stamp()}.json",
        )
        console.print(
            f"  [green]OK[/green] {name}: "
            f"confidence {metrics.overall_confidence}, "
            f"{metrics.agent_count} agents [dim]({processing_time}ms)[/dim]"
        )
        return outcome

    async def run_batch_tests(self, names: list[str]) -> BatchResult:
        """Run test cases one after another and aggregate the successful runs."""
        results: list[TestCaseResult] = []
        failures: list[TestCaseFailure] = []

        for name in names:
            outcome = await self.run_test_case(name)
            if isinstance(outcome, TestCaseFailure):
                failures.append(outcome)
            else:
                results.append(outcome)

        metrics = BatchMetrics()
        if results:
            count = len(results)
            metrics = BatchMetrics(
                average_confidence=sum(r.metrics.overall_confidence for r in results) / count,
                average_processing_time=sum(r.metrics.processing_time for r in results) / count,
                success_rate=count / len(names) * 100,
                total_agents=sum(r.metrics.agent_count for r in results),
                total_tools=sum(r.metrics.tool_count for r in results),
                total_relationships=sum(r.metrics.relationship_count for r in results),
            )

        batch = BatchResult(
            test_cases=list(names),
            metrics=metrics,
            individual_results=results,
            failures=failures,
            timestamp=_now_iso(),
        )
        _write_json(
            batch.model_dump(by_alias=True, mode="json", exclude_none=True),
            self.results_dir / f"batch_{_stamp()}.json",
        )
        return batch

    async def evaluate_extraction(
        self,
        name: str,
        expected: dict,
    ) -> Union[EvaluationResult, TestCaseFailure]:
        """Run a test case and score its extraction against expected values."""
        outcome = await self.run_test_case(name)
        if isinstance(outcome, TestCaseFailure):
            return TestCaseFailure(message="Test case execution failed")

        accuracy = evaluate_accuracy(outcome.result, expected)
        metrics = outcome.metrics.model_copy(update={"overall_accuracy": accuracy.overall})
        evaluation = EvaluationResult(
            test_case=name,
            metrics=metrics,
            accuracy=accuracy,
            timestamp=_now_iso(),
        )
        _write_json(
            evaluation.model_dump(by_alias=True, mode="json", exclude_none=True),
            self.results_dir / f"eval_{name}_{_stamp()}.json",
        )
        return evaluation
