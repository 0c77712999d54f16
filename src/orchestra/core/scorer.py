"""Confidence scoring for extracted analyses and refined designs.

Scores are heuristics on a 0-100 scale, not calibrated probabilities. The
overall system score is capped at 95.
Several paths carry no lower clamp; see DESIGN.md.
"""

from __future__ import annotations

import re
from typing import Optional

from ..models.analysis import Agent, AnalysisResult, Relationship, SystemConfidence, Tool
from ..models.design import ToolSelectionConfidence

BASELINE = 70
OVERALL_BASELINE = 65
OVERALL_CAP = 95

_HEADING = re.compile(r"#+\s+\w+", re.MULTILINE)


def _js_round(value: float) -> int:
    """Round half up, matching how the scores were originally tuned."""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


# ---------------------------------------------------------------------------
# Per-entity scores
# ---------------------------------------------------------------------------


def agent_confidence(agent: Agent, source_text: str) -> int:
    detail_score = min(15, len(agent.description) / 20) if agent.description else 0
    mentions = len(re.findall(re.escape(agent.name), source_text, re.IGNORECASE)) if agent.name else 0
    mention_score = min(10, mentions * 2)
    role_score = 10 if agent.role and len(agent.role) > 10 else 0
    return min(100, _js_round(BASELINE + detail_score + mention_score + role_score))


def tool_confidence(tool: Tool, source_text: str) -> int:
    specificity_score = 10 if len(tool.name) > 3 else 0
    purpose_score = 15 if tool.purpose and len(tool.purpose) > 15 else 0
    explicit_score = 15 if tool.name.lower() in source_text.lower() else 0
    return min(100, _js_round(BASELINE + specificity_score + purpose_score + explicit_score))


def relationship_confidence(rel: Relationship) -> int:
    clarity_score = 15 if rel.description and len(rel.description) > 20 else 0
    source_target_score = 15 if rel.source and rel.target else 0
    data_flow_score = 10 if rel.data_flow else 0
    return min(100, _js_round(BASELINE + clarity_score + source_target_score + data_flow_score))


# ---------------------------------------------------------------------------
# System-level scores
# ---------------------------------------------------------------------------


def overall_confidence(result: AnalysisResult, source_text: str) -> int:
    score = OVERALL_BASELINE + min(10, len(source_text) / 200)

    if result.agents:
        agent_scores = [a.confidence or 0 for a in result.agents]
        score += min(10, sum(agent_scores) / len(agent_scores) / 10)
    else:
        score -= 15

    if result.tools:
        score += 5
    if result.relationships:
        score += 10

    return min(OVERALL_CAP, _js_round(score))


def assess_completeness(result: AnalysisResult, has_pattern: bool = True) -> int:
    score = 50
    if result.agents:
        score += 15
    if result.tools:
        score += 10
    if result.relationships:
        score += 15
    if has_pattern:
        score += 10
    return score


def assess_consistency(result: AnalysisResult) -> int:
    score = 70
    if result.relationships:
        agent_names = {a.name for a in result.agents}
        valid = sum(
            1 for r in result.relationships
            if r.source in agent_names and r.target in agent_names
        )
        score += _js_round(20 * (valid / len(result.relationships)))
    return score


def assess_clarity(source_text: str) -> int:
    score = 60.0
    if _HEADING.search(source_text):
        score += 15
    score += min(10, len(source_text) / 300)
    if "example" in source_text or "for instance" in source_text:
        score += 10
    return _js_round(score)


def score(result: AnalysisResult, source_text: str, has_pattern: bool = True) -> AnalysisResult:
    """Return a copy of result with per-entity and system confidence filled in.

    has_pattern reports whether the model actually supplied an orchestration
    pattern; the normalizer always fills one in, so callers that know it was
    defaulted pass False.
    """
    source_text = source_text or ""
    scored = result.model_copy(deep=True)

    scored.agents = [
        a.model_copy(update={"confidence": agent_confidence(a, source_text)})
        for a in scored.agents
    ]
    scored.tools = [
        t.model_copy(update={"confidence": tool_confidence(t, source_text)})
        for t in scored.tools
    ]
    scored.relationships = [
        r.model_copy(update={"confidence": relationship_confidence(r)})
        for r in scored.relationships
    ]

    scored.system_confidence = SystemConfidence(
        overall=overall_confidence(scored, source_text),
        completeness=assess_completeness(scored, has_pattern),
        consistency=assess_consistency(scored),
        clarity=assess_clarity(source_text),
    )
    return scored


# ---------------------------------------------------------------------------
# Tool-selection scores (refinement pass)
# ---------------------------------------------------------------------------


def _text_len(value: object) -> int:
    return len(value) if isinstance(value, str) else 0


def tool_selection_agent_confidence(agent: dict, tool_selections: list[str]) -> int:
    score = 0
    if _text_len(agent.get("name")) > 0:
        score += 15
    if _text_len(agent.get("description")) > 20:
        score += 20
    if agent.get("capabilities"):
        score += 20

    tools = agent.get("tools") or []
    if tools:
        compatible = sum(1 for t in tools if t in tool_selections)
        score += _js_round(compatible / len(tools) * 30)

    return min(100, score)


def tool_selection_tool_confidence(tool: dict) -> int:
    score = 50
    if _text_len(tool.get("name")) > 0:
        score += 10
    if _text_len(tool.get("description")) > 20:
        score += 20
    if isinstance(tool.get("parameters"), list):
        score += 20
    return min(100, score)


def tool_selection_relationship_confidence(rel: dict) -> int:
    score = 50
    if _text_len(rel.get("type")) > 0:
        score += 15
    if rel.get("source") and rel.get("target"):
        score += 15
    if _text_len(rel.get("description")) > 10:
        score += 20
    return min(100, score)


def _mean(values: list[int]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def score_tool_selection(design: dict, tool_selections: list[str]) -> ToolSelectionConfidence:
    """Score a refined design against the tools the user selected."""
    agents = [a for a in design.get("agents") or [] if isinstance(a, dict)]
    tools = [t for t in design.get("tools") or [] if isinstance(t, dict)]
    relationships = [r for r in design.get("relationships") or [] if isinstance(r, dict)]

    agent_scores = {
        str(a.get("name", "")): tool_selection_agent_confidence(a, tool_selections)
        for a in agents
    }
    tool_scores = [tool_selection_tool_confidence(t) for t in tools]
    rel_scores = [tool_selection_relationship_confidence(r) for r in relationships]

    weighted = 0.0
    for values, weight in (
        ([tool_selection_agent_confidence(a, tool_selections) for a in agents], 0.4),
        (tool_scores, 0.3),
        (rel_scores, 0.3),
    ):
        mean = _mean(values)
        if mean is not None:
            weighted += mean * weight

    return ToolSelectionConfidence(
        overall=min(OVERALL_CAP, _js_round(weighted)),
        agents=agent_scores,
        orchestration=sum(rel_scores),
        tool_integration=sum(tool_scores),
    )
