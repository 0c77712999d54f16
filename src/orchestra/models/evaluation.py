"""Prompt-testing harness data models."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from .analysis import AnalysisResult, WireModel


class TestCase(WireModel):
    __test__ = False

    name: str
    description: str


class TestCaseMetrics(WireModel):
    __test__ = False

    processing_time: int = Field(default=0, alias="processingTime")
    overall_confidence: int = Field(default=0, alias="overallConfidence")
    completeness: int = 0
    consistency: int = 0
    clarity: int = 0
    agent_count: int = Field(default=0, alias="agentCount")
    tool_count: int = Field(default=0, alias="toolCount")
    relationship_count: int = Field(default=0, alias="relationshipCount")
    overall_accuracy: Optional[float] = Field(default=None, alias="overallAccuracy")


class TestCaseResult(WireModel):
    __test__ = False

    test_case: str = Field(alias="testCase")
    result: AnalysisResult
    metrics: TestCaseMetrics
    timestamp: str


class TestCaseFailure(WireModel):
    __test__ = False

    success: bool = False
    message: str


class BatchMetrics(WireModel):
    average_confidence: float = Field(default=0.0, alias="averageConfidence")
    average_processing_time: float = Field(default=0.0, alias="averageProcessingTime")
    success_rate: float = Field(default=0.0, alias="successRate")
    total_agents: int = Field(default=0, alias="totalAgents")
    total_tools: int = Field(default=0, alias="totalTools")
    total_relationships: int = Field(default=0, alias="totalRelationships")


class BatchResult(WireModel):
    test_cases: list[str] = Field(alias="testCases")
    metrics: BatchMetrics
    individual_results: list[TestCaseResult] = Field(default_factory=list, alias="individualResults")
    failures: list[TestCaseFailure] = []
    timestamp: str


class EvaluationAccuracy(WireModel):
    agents: float = 0.0
    tools: float = 0.0
    relationships: float = 0.0
    orchestration_pattern: float = Field(default=0.0, alias="orchestrationPattern")
    overall: float = 0.0


class EvaluationResult(WireModel):
    test_case: str = Field(alias="testCase")
    metrics: TestCaseMetrics
    accuracy: EvaluationAccuracy
    timestamp: str
