"""Shared fixtures for Orchestra tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from orchestra.core.retry import RetryPolicy


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create an empty project directory."""
    project = tmp_path / "test-project"
    project.mkdir()
    return project


@pytest.fixture
def initialized_project(tmp_project: Path) -> Path:
    """Create a project with .orchestra initialized for the mock provider."""
    orch_dir = tmp_project / ".orchestra"
    (orch_dir / "tests" / "cases").mkdir(parents=True)
    (orch_dir / "tests" / "results").mkdir(parents=True)

    config = orch_dir / "config.yaml"
    config.write_text(
        'project:\n  name: "test-project"\n\n'
        "ai:\n  provider: mock\n\n"
        "retry:\n  initial_delay_seconds: 0\n  max_delay_seconds: 0\n",
        encoding="utf-8",
    )
    return tmp_project


@pytest.fixture
def no_delay_policy() -> RetryPolicy:
    return RetryPolicy(max_retries=3, initial_delay=0, max_delay=0)


@pytest.fixture
def sample_description() -> str:
    return (
        "# Support desk\n\n"
        "A Triage Agent reads every incoming ticket and routes it. The Knowledge Agent "
        "answers questions using Vector Search over the docs. For example, password "
        "resets are answered directly. The Escalation Agent hands hard cases to humans "
        "through the Ticketing API."
    )


@pytest.fixture
def sample_analysis_json() -> dict:
    """Return analysis JSON in the shape the model is asked for."""
    return {
        "summary": "Support ticket triage and answering.",
        "agents": [
            {
                "name": "Triage Agent",
                "role": "Classifies incoming support tickets",
                "description": "Reads each ticket and assigns a category.",
                "capabilities": ["classification"],
            },
            {
                "name": "Knowledge Agent",
                "role": "Answers from documentation",
                "description": "Searches documentation to draft answers.",
                "capabilities": ["retrieval"],
            },
        ],
        "tools": [
            {"name": "Vector Search", "purpose": "Semantic lookup over docs", "usedBy": ["Knowledge Agent"]},
        ],
        "relationships": [
            {
                "source": "Triage Agent",
                "target": "Knowledge Agent",
                "description": "Routes answerable tickets for drafting",
                "dataFlow": "Ticket text",
            },
        ],
        "orchestrationPattern": {"type": "Sequential", "justification": "Fixed pipeline."},
        "constraints": ["Answer within 5 minutes"],
        "potentialChallenges": ["Ambiguous tickets"],
    }
