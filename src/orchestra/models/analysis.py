"""Analysis result data models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Base for models serialized with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)


class OrchestrationType(str, Enum):
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    CONDITIONAL = "conditional"
    SUPERVISORY = "supervisory"
    HIERARCHICAL = "hierarchical"
    COLLABORATIVE = "collaborative"


class Agent(WireModel):
    id: str
    name: str
    role: str
    description: str = ""
    purpose: Optional[str] = None
    capabilities: list[str] = []
    limitations: list[str] = []
    tools: list[str] = []
    confidence: Optional[int] = None


class Tool(WireModel):
    id: str
    name: str
    purpose: str = ""
    used_by: list[str] = Field(default_factory=list, alias="usedBy")
    confidence: Optional[int] = None


class Relationship(WireModel):
    id: str
    source: str
    target: str
    label: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    data_flow: Optional[str] = Field(default=None, alias="dataFlow")
    confidence: Optional[int] = None


class OrchestrationPattern(WireModel):
    type: OrchestrationType = OrchestrationType.SEQUENTIAL
    justification: Optional[str] = None


class SystemConfidence(WireModel):
    overall: int = 0
    completeness: int = 0
    consistency: int = 0
    clarity: int = 0


class AnalysisMetadata(WireModel):
    processing_time_ms: int = Field(default=0, alias="processingTimeMs")
    model_version: str = Field(default="", alias="modelVersion")
    prompt_version: str = Field(default="", alias="promptVersion")
    timestamp: str = ""


class AnalysisResult(WireModel):
    """Canonical output of the analysis pass."""

    summary: str = ""
    agents: list[Agent] = []
    tools: list[Tool] = []
    relationships: list[Relationship] = []
    orchestration_pattern: OrchestrationPattern = Field(
        default_factory=OrchestrationPattern, alias="orchestrationPattern"
    )
    constraints: list[str] = []
    potential_challenges: list[str] = Field(default_factory=list, alias="potentialChallenges")
    system_confidence: Optional[SystemConfidence] = Field(default=None, alias="systemConfidence")
    metadata: Optional[AnalysisMetadata] = None
