"""Entity-match evaluator: fuzzy accuracy of an extraction against ground truth.

Matching is greedy. Each expected entity takes its best-scoring actual
entity independently, so one actual entity may serve several expected ones.
"""

from __future__ import annotations

from typing import Any

from ..models.analysis import AnalysisResult
from ..models.evaluation import EvaluationAccuracy

STRING_MATCH_THRESHOLD = 0.7


def string_similarity(a: str, b: str) -> float:
    """Word-level Jaccard similarity."""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    words_a = set(a.split())
    words_b = set(b.split())
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def _list_overlap(actual: list, expected: list) -> float:
    denominator = max(len(expected), len(actual))
    if denominator == 0:
        return 0.0
    matching = sum(1 for item in actual if item in expected)
    return matching / denominator


def entity_match_score(actual: dict, expected: dict) -> float:
    """Score how well one actual entity matches one expected entity (0..1)."""
    total_keys = 0
    score = 0.0

    for key, expected_value in expected.items():
        total_keys += 1
        if key not in actual:
            continue

        actual_value = actual[key]
        if isinstance(expected_value, list) and isinstance(actual_value, list):
            score += _list_overlap(actual_value, expected_value)
        elif isinstance(expected_value, dict) and isinstance(actual_value, dict):
            score += entity_match_score(actual_value, expected_value)
        elif expected_value == actual_value:
            score += 1
        elif isinstance(expected_value, str) and isinstance(actual_value, str):
            similarity = string_similarity(expected_value.lower(), actual_value.lower())
            if similarity > STRING_MATCH_THRESHOLD:
                score += similarity

    return score / total_keys if total_keys else 0.0


def entity_accuracy(actual: list[dict], expected: list[dict]) -> float:
    """Mean best-match score of every expected entity (0..1)."""
    if not expected:
        return 1.0 if not actual else 0.0
    if not actual:
        return 0.0

    total = 0.0
    for expected_entity in expected:
        total += max(
            (entity_match_score(actual_entity, expected_entity) for actual_entity in actual),
            default=0.0,
        )
    return total / len(expected)


def _pattern_type(value: Any) -> Any:
    if isinstance(value, dict):
        value = value.get("type")
    return value.lower() if isinstance(value, str) else value


def evaluate_accuracy(actual: AnalysisResult, expected: dict) -> EvaluationAccuracy:
    """Compare an analysis against hand-authored expected values."""
    actual_data = actual.model_dump(by_alias=True, mode="json")

    accuracy = EvaluationAccuracy(
        agents=entity_accuracy(actual_data["agents"], expected.get("agents") or []),
        tools=entity_accuracy(actual_data["tools"], expected.get("tools") or []),
        relationships=entity_accuracy(
            actual_data["relationships"], expected.get("relationships") or []
        ),
        orchestration_pattern=(
            1.0
            if _pattern_type(actual_data["orchestrationPattern"])
            == _pattern_type(expected.get("orchestrationPattern"))
            else 0.0
        ),
    )
    accuracy.overall = (
        accuracy.agents + accuracy.tools + accuracy.relationships + accuracy.orchestration_pattern
    ) / 4
    return accuracy
