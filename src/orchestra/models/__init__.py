from .analysis import (
    Agent,
    AnalysisMetadata,
    AnalysisResult,
    OrchestrationPattern,
    OrchestrationType,
    Relationship,
    SystemConfidence,
    Tool,
)
from .design import (
    ExecutionResult,
    GeneratedCode,
    ProcessStep,
    RefinedDesign,
    ToolSelectionConfidence,
)
from .diagram import DiagramData, DiagramEdge, DiagramGroup, DiagramNode
from .provider import CompletionResult

__all__ = [
    "Agent",
    "AnalysisMetadata",
    "AnalysisResult",
    "CompletionResult",
    "DiagramData",
    "DiagramEdge",
    "DiagramGroup",
    "DiagramNode",
    "ExecutionResult",
    "GeneratedCode",
    "OrchestrationPattern",
    "OrchestrationType",
    "ProcessStep",
    "RefinedDesign",
    "Relationship",
    "SystemConfidence",
    "Tool",
    "ToolSelectionConfidence",
]
