"""Design models: refined designs, simulated runs and generated code."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import Field

from .analysis import WireModel


class ToolSelectionConfidence(WireModel):
    overall: int = 0
    agents: dict[str, int] = {}
    orchestration: int = 0
    tool_integration: int = Field(default=0, alias="toolIntegration")


class RefinedDesign(WireModel):
    """Design returned by the model after integrating selected tools.

    Agents, relationships and workflow are kept as the model returned them;
    the workflow and pattern shapes vary too much between responses to pin
    down.
    """

    agents: list[dict] = []
    tools: list[dict] = []
    relationships: list[dict] = []
    workflow: Optional[dict] = None
    orchestration_pattern: Optional[dict] = Field(default=None, alias="orchestrationPattern")
    confidence_scores: ToolSelectionConfidence = Field(
        default_factory=ToolSelectionConfidence, alias="confidenceScores"
    )


class ProcessStep(WireModel):
    step: int
    agent: str = ""
    action: str = ""
    output: Optional[str] = None


class ExecutionResult(WireModel):
    """A simulated run of a design against one user query."""

    query: str = ""
    process_steps: list[ProcessStep] = Field(default_factory=list, alias="processSteps")
    final_response: str = Field(alias="finalResponse")
    metrics: dict[str, Any] = {}


class GeneratedCode(WireModel):
    language: str = "Python"
    implementation: str
    setup_instructions: str = Field(default="", alias="setupInstructions")
    example_usage: str = Field(default="", alias="exampleUsage")
