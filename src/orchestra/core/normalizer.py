"""Structural normalizer: maps heterogeneous model output onto canonical models.

Each aliased field is resolved through an explicit, ordered tuple of
candidate keys; the first key holding a usable value wins. Free-form fields
are coerced onto their canonical types before model construction, so only
typed NormalizationError subclasses leave this module.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Iterable, Optional, TypeVar

from pydantic import BaseModel, ValidationError
from rich.console import Console

from ..models.analysis import (
    Agent,
    AnalysisResult,
    OrchestrationPattern,
    OrchestrationType,
    Relationship,
    Tool,
)
from ..models.design import ExecutionResult, GeneratedCode, ProcessStep
from ..models.diagram import DiagramData, DiagramEdge, DiagramGroup, DiagramNode
from .errors import InvalidField, MissingRequiredField, NoNodes

console = Console(stderr=True)

M = TypeVar("M", bound=BaseModel)

DEFAULT_LAYOUT = "dagre"

NODE_KEYS = ("nodes", "vertices", "agents")
EDGE_KEYS = ("edges", "links", "relationships")
NODE_LABEL_KEYS = ("label", "name")
EDGE_SOURCE_KEYS = ("source", "from", "source_id")
EDGE_TARGET_KEYS = ("target", "to", "target_id")
GROUP_NODE_KEYS = ("nodes", "nodeIds")

STEP_KEYS = ("processSteps", "process_steps", "steps")
STEP_AGENT_KEYS = ("agent", "agentName", "name")
STEP_ACTION_KEYS = ("action", "description", "task")
STEP_OUTPUT_KEYS = ("output", "result")
FINAL_RESPONSE_KEYS = ("finalResponse", "final_response", "response")
IMPLEMENTATION_KEYS = ("implementation", "code")
SETUP_KEYS = ("setupInstructions", "setup_instructions", "setup")
USAGE_KEYS = ("exampleUsage", "example_usage", "usage")

# Pattern labels models use that are not one of the canonical types.
PATTERN_ALIASES: dict[str, OrchestrationType] = {
    "peer-based": OrchestrationType.COLLABORATIVE,
    "peer-to-peer": OrchestrationType.COLLABORATIVE,
    "mesh": OrchestrationType.COLLABORATIVE,
    "hybrid": OrchestrationType.COLLABORATIVE,
    "hub-and-spoke": OrchestrationType.SUPERVISORY,
    "pipeline": OrchestrationType.SEQUENTIAL,
    "assembly-line": OrchestrationType.SEQUENTIAL,
}


def _first_present(data: dict, keys: Iterable[str]) -> Any:
    """Return the first truthy value among keys, or None."""
    for key in keys:
        value = data.get(key)
        if value:
            return value
    return None


def _compact(values: dict) -> Optional[dict]:
    kept = {k: v for k, v in values.items() if v is not None}
    return kept or None


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None]


def _dict_items(value: Any) -> list[tuple[int, dict]]:
    """(index, item) pairs for the dict entries of a list; anything else is empty."""
    if not isinstance(value, list):
        return []
    return [(i, item) for i, item in enumerate(value) if isinstance(item, dict)]


def _text(value: Any, sep: str = ", ") -> Optional[str]:
    """Coerce a free-text field. Lists are joined and objects serialized."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return sep.join(v if isinstance(v, str) else json.dumps(v, ensure_ascii=False) for v in value) or None
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def _confidence(value: Any) -> Optional[int]:
    # Model-supplied scores are overwritten by the scorer.
    number = _number(value)
    return None if number is None else int(round(number))


def _style(value: Any, flat: dict) -> Optional[dict]:
    if isinstance(value, dict) and value:
        return value
    return _compact(flat)


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def _build(model: type[M], entity: str, **fields: Any) -> M:
    try:
        return model(**fields)
    except ValidationError as e:
        detail = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}" for err in e.errors()
        )
        raise InvalidField(entity, detail) from e


def _unique_ids(items: list[M]) -> list[M]:
    """Suffix repeated ids with the item's position so every id is distinct."""
    seen: set[str] = set()
    unique: list[M] = []
    for index, item in enumerate(items):
        item_id = item.id
        suffix = index
        while item_id in seen:
            item_id = f"{item.id}-{suffix}"
            suffix += 1
        if item_id != item.id:
            item = item.model_copy(update={"id": item_id})
        seen.add(item_id)
        unique.append(item)
    return unique


# ---------------------------------------------------------------------------
# Diagram-shaped input
# ---------------------------------------------------------------------------


def _normalize_node(node: dict, index: int) -> DiagramNode:
    size = _number(node.get("size"))
    return _build(
        DiagramNode,
        f"diagram node {index}",
        id=str(node.get("id") or f"node{index}"),
        label=str(_first_present(node, NODE_LABEL_KEYS) or f"Node {index}"),
        type=_text(node.get("type")) or "agent",
        role=_text(node.get("role")),
        category=_text(node.get("category")),
        description=_text(node.get("description")),
        size=size if size is not None else 1,
        style=_style(node.get("style"), {
            "shape": node.get("shape"),
            "color": node.get("color"),
        }),
    )


def _normalize_edge(edge: dict, index: int) -> DiagramEdge:
    return _build(
        DiagramEdge,
        f"diagram edge {index}",
        id=str(edge.get("id") or f"edge{index}"),
        source=str(_first_present(edge, EDGE_SOURCE_KEYS) or ""),
        target=str(_first_present(edge, EDGE_TARGET_KEYS) or ""),
        label=_text(edge.get("label")) or "",
        type=_text(edge.get("type")) or "sequential",
        style=_style(edge.get("style"), {
            "lineStyle": edge.get("lineStyle"),
            "thickness": edge.get("thickness"),
            "color": edge.get("color"),
            "bidirectional": edge.get("bidirectional"),
        }),
    )


def _normalize_group(group: dict, index: int) -> DiagramGroup:
    return _build(
        DiagramGroup,
        f"diagram group {index}",
        id=str(group.get("id") or f"group{index}"),
        label=str(_first_present(group, NODE_LABEL_KEYS) or f"Group {index}"),
        nodes=_str_list(_first_present(group, GROUP_NODE_KEYS)),
        style=_style(group.get("style"), {"color": group.get("color")}),
    )


def _fallback_nodes(input_agents: Optional[list[Agent]]) -> list[DiagramNode]:
    return _unique_ids([
        DiagramNode(
            id=agent.id,
            label=agent.name,
            type="agent",
            description=agent.description or None,
        )
        for agent in input_agents or []
    ])


def drop_dangling_edges(nodes: list[DiagramNode], edges: list[DiagramEdge]) -> list[DiagramEdge]:
    """Keep only edges whose source and target are known node ids."""
    node_ids = {n.id for n in nodes}
    kept: list[DiagramEdge] = []
    for edge in edges:
        missing = [
            f"{end} ID '{value}'"
            for end, value in (("source", edge.source), ("target", edge.target))
            if value not in node_ids
        ]
        if missing:
            console.print(
                f"  [yellow]WARN[/yellow] Dropping edge {edge.id}: "
                f"{' and '.join(missing)} not found in nodes"
            )
            continue
        kept.append(edge)
    return kept


def normalize_diagram(parsed: Any, input_agents: Optional[list[Agent]] = None) -> DiagramData:
    """Normalize diagram-shaped model output into DiagramData.

    Edges referencing unknown nodes are dropped, not fatal. With no usable
    nodes, one node per input agent is synthesized; with neither, NoNodes.
    """
    data = parsed if isinstance(parsed, dict) else {}

    nodes = [_normalize_node(n, i) for i, n in _dict_items(_first_present(data, NODE_KEYS))]

    if not nodes:
        nodes = _fallback_nodes(input_agents)
        if not nodes:
            raise NoNodes()
        console.print(
            f"  [yellow]WARN[/yellow] No nodes found in model response, "
            f"generated {len(nodes)} basic nodes from input agents"
        )

    edges = [_normalize_edge(e, i) for i, e in _dict_items(_first_present(data, EDGE_KEYS))]
    edges = drop_dangling_edges(nodes, edges)

    groups = None
    if isinstance(data.get("groups"), list):
        groups = [_normalize_group(g, i) for i, g in _dict_items(data["groups"])]

    layout = data.get("layout")
    if not isinstance(layout, str) or not layout.strip():
        layout = DEFAULT_LAYOUT

    return DiagramData(nodes=nodes, edges=edges, layout=layout, groups=groups)


def basic_diagram(input_agents: list[Agent]) -> DiagramData:
    """Diagram with one node per agent and no edges."""
    nodes = _fallback_nodes(input_agents)
    if not nodes:
        raise NoNodes()
    return DiagramData(nodes=nodes, edges=[], layout=DEFAULT_LAYOUT)


# ---------------------------------------------------------------------------
# Analysis-shaped input
# ---------------------------------------------------------------------------


def parse_orchestration_type(value: Any) -> Optional[OrchestrationType]:
    """Map a model-supplied pattern label onto OrchestrationType."""
    if not isinstance(value, str) or not value.strip():
        return None
    key = value.strip().lower().replace("_", "-").replace(" ", "-")
    try:
        return OrchestrationType(key)
    except ValueError:
        return PATTERN_ALIASES.get(key)


def _normalize_pattern(value: Any) -> OrchestrationPattern:
    if isinstance(value, str):
        value = {"type": value}
    if not isinstance(value, dict):
        return OrchestrationPattern()

    label = _first_present(value, ("type", "name"))
    justification = _text(_first_present(value, ("justification", "description")))
    pattern_type = parse_orchestration_type(label)
    if pattern_type is None:
        if label and not justification:
            justification = _text(label)
        pattern_type = OrchestrationType.SEQUENTIAL
    return OrchestrationPattern(type=pattern_type, justification=justification)


def normalize_agent(data: dict, index: int) -> Agent:
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise MissingRequiredField("agent", "name")
    role = _text(_first_present(data, ("role", "purpose")))
    if not role:
        raise MissingRequiredField(f"agent '{name}'", "role")

    return _build(
        Agent,
        f"agent '{name}'",
        id=str(data.get("id") or f"agent-{_slug(name) or index}"),
        name=name,
        role=role,
        description=_text(data.get("description")) or "",
        purpose=_text(data.get("purpose")),
        capabilities=_str_list(_first_present(data, ("capabilities", "required_capabilities"))),
        limitations=_str_list(data.get("limitations")),
        tools=_str_list(data.get("tools")),
        confidence=_confidence(data.get("confidence")),
    )


def _normalize_tool(data: dict, index: int) -> Tool:
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise MissingRequiredField("tool", "name")
    return _build(
        Tool,
        f"tool '{name}'",
        id=str(data.get("id") or f"tool-{_slug(name) or index}"),
        name=name,
        purpose=_text(_first_present(data, ("purpose", "description"))) or "",
        used_by=_str_list(_first_present(data, ("usedBy", "used_by"))),
        confidence=_confidence(data.get("confidence")),
    )


def _normalize_relationship(data: dict, index: int) -> Relationship:
    return _build(
        Relationship,
        f"relationship {index}",
        id=str(data.get("id") or f"rel-{index}"),
        source=str(_first_present(data, ("source", "from")) or ""),
        target=str(_first_present(data, ("target", "to")) or ""),
        label=_text(data.get("label")),
        type=_text(data.get("type")),
        description=_text(data.get("description")),
        data_flow=_text(_first_present(data, ("dataFlow", "data_flow"))),
        confidence=_confidence(data.get("confidence")),
    )


def normalize_analysis(parsed: Any) -> AnalysisResult:
    """Normalize first-pass analysis JSON into an AnalysisResult.

    Only basic default-filling happens here. A missing agents array is an
    error rather than an empty default.
    """
    if not isinstance(parsed, dict) or not isinstance(parsed.get("agents"), list):
        raise MissingRequiredField("analysis", "agents")

    agents = _unique_ids([normalize_agent(a, i) for i, a in _dict_items(parsed["agents"])])
    tools = _unique_ids([_normalize_tool(t, i) for i, t in _dict_items(parsed.get("tools"))])
    relationships = [_normalize_relationship(r, i) for i, r in _dict_items(parsed.get("relationships"))]

    pattern_data = _first_present(parsed, ("orchestrationPattern", "suggestedOrchestration"))

    return AnalysisResult(
        summary=_text(parsed.get("summary")) or "",
        agents=agents,
        tools=tools,
        relationships=relationships,
        orchestration_pattern=_normalize_pattern(pattern_data),
        constraints=_str_list(parsed.get("constraints")),
        potential_challenges=_str_list(parsed.get("potentialChallenges")),
    )


def normalize_agent_list(parsed: Any) -> list[Agent]:
    """Normalize a refined agent list (array, {agents: [...]}, or one agent)."""
    if isinstance(parsed, dict):
        if isinstance(parsed.get("agents"), list):
            items = parsed["agents"]
        elif parsed.get("name"):
            items = [parsed]
        else:
            raise MissingRequiredField("agents", "agents")
    elif isinstance(parsed, list):
        items = parsed
    else:
        raise MissingRequiredField("agents", "agents")

    return _unique_ids([normalize_agent(a, i) for i, a in _dict_items(items)])


# ---------------------------------------------------------------------------
# Execution and code generation output
# ---------------------------------------------------------------------------


def _normalize_step(value: Any, index: int) -> ProcessStep:
    if not isinstance(value, dict):
        return ProcessStep(step=index + 1, action=_text(value) or "")
    number = _number(_first_present(value, ("step", "stepNumber")))
    return _build(
        ProcessStep,
        f"process step {index}",
        step=int(number) if number is not None else index + 1,
        agent=_text(_first_present(value, STEP_AGENT_KEYS)) or "",
        action=_text(_first_present(value, STEP_ACTION_KEYS)) or "",
        output=_text(_first_present(value, STEP_OUTPUT_KEYS)),
    )


def normalize_execution(parsed: Any, query: str = "") -> ExecutionResult:
    """Normalize a simulated run into an ExecutionResult.

    A final response is required; steps may be objects or plain strings and
    metrics default to an empty object.
    """
    if not isinstance(parsed, dict):
        raise MissingRequiredField("execution result", "finalResponse")
    final_response = _text(_first_present(parsed, FINAL_RESPONSE_KEYS), sep="\n")
    if not final_response:
        raise MissingRequiredField("execution result", "finalResponse")

    steps = _first_present(parsed, STEP_KEYS)
    metrics = parsed.get("metrics")
    return ExecutionResult(
        query=query,
        process_steps=[_normalize_step(s, i) for i, s in enumerate(steps if isinstance(steps, list) else [])],
        final_response=final_response,
        metrics=metrics if isinstance(metrics, dict) else {},
    )


def normalize_generated_code(parsed: Any, language: str = "Python") -> GeneratedCode:
    """Normalize generated implementation code. The implementation is required."""
    if not isinstance(parsed, dict):
        raise MissingRequiredField("generated code", "implementation")
    implementation = _text(_first_present(parsed, IMPLEMENTATION_KEYS), sep="\n")
    if not implementation:
        raise MissingRequiredField("generated code", "implementation")

    return GeneratedCode(
        language=language,
        implementation=implementation,
        setup_instructions=_text(_first_present(parsed, SETUP_KEYS), sep="\n") or "",
        example_usage=_text(_first_present(parsed, USAGE_KEYS), sep="\n") or "",
    )
