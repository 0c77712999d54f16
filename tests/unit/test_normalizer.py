"""Tests for core/normalizer.py."""

from __future__ import annotations

import pytest

from orchestra.core.errors import InvalidField, MissingRequiredField, NoNodes
from orchestra.core.normalizer import (
    basic_diagram,
    normalize_agent,
    normalize_agent_list,
    normalize_analysis,
    normalize_diagram,
    normalize_execution,
    normalize_generated_code,
    parse_orchestration_type,
)
from orchestra.models.analysis import Agent, OrchestrationType
from orchestra.models.diagram import DiagramNode


def _agents() -> list[Agent]:
    return [
        Agent(id="a1", name="Planner", role="Plans work", description="Breaks tasks down"),
        Agent(id="a2", name="Worker", role="Does work"),
    ]


class TestNormalizeDiagram:
    def test_vertices_and_links_aliases(self):
        parsed = {"vertices": [{"id": "n1", "name": "X"}], "links": [{"from": "n1", "to": "n2"}]}
        result = normalize_diagram(parsed)
        assert len(result.nodes) == 1
        node = result.nodes[0]
        assert (node.id, node.label, node.type) == ("n1", "X", "agent")
        assert result.edges == []

    def test_defaults_filled(self):
        parsed = {
            "nodes": [{"label": "A"}, {"label": "B", "shape": "hexagon", "color": "#fff"}],
            "edges": [{"source": "node0", "target": "node1"}],
        }
        result = normalize_diagram(parsed)
        assert [n.id for n in result.nodes] == ["node0", "node1"]
        assert result.nodes[0].size == 1
        assert result.nodes[0].style is None
        assert result.nodes[1].style == {"shape": "hexagon", "color": "#fff"}
        edge = result.edges[0]
        assert (edge.id, edge.label, edge.type) == ("edge0", "", "sequential")
        assert result.layout == "dagre"

    def test_edge_style_compacted(self):
        parsed = {
            "nodes": [{"id": "a", "label": "A"}, {"id": "b", "label": "B"}],
            "edges": [{"source": "a", "target": "b", "lineStyle": "dashed", "bidirectional": True}],
        }
        edge = normalize_diagram(parsed).edges[0]
        assert edge.style == {"lineStyle": "dashed", "bidirectional": True}

    def test_keeps_model_layout_and_groups(self):
        parsed = {
            "nodes": [{"id": "a", "label": "A"}],
            "groups": [{"name": "Core", "nodeIds": ["a"]}],
            "layout": "force",
        }
        result = normalize_diagram(parsed)
        assert result.layout == "force"
        assert result.groups[0].label == "Core"
        assert result.groups[0].nodes == ["a"]

    def test_no_dangling_edges(self):
        parsed = {
            "nodes": [{"id": "a", "label": "A"}, {"id": "b", "label": "B"}],
            "edges": [
                {"source": "a", "target": "b"},
                {"source": "a", "target": "ghost"},
                {"source": "ghost", "target": "b"},
            ],
        }
        result = normalize_diagram(parsed)
        node_ids = {n.id for n in result.nodes}
        assert len(result.edges) == 1
        assert all(e.source in node_ids and e.target in node_ids for e in result.edges)

    def test_falls_back_to_input_agents(self):
        result = normalize_diagram({"edges": []}, _agents())
        assert [n.id for n in result.nodes] == ["a1", "a2"]
        assert result.nodes[0].label == "Planner"

    def test_no_nodes_and_no_agents_raises(self):
        with pytest.raises(NoNodes):
            normalize_diagram({"edges": []})

    def test_non_dict_input_uses_agents(self):
        result = normalize_diagram(["not", "a", "diagram"], _agents())
        assert len(result.nodes) == 2

    def test_idempotent(self):
        parsed = {
            "vertices": [{"id": "n1", "name": "X", "shape": "circle"}, {"id": "n2", "name": "Y"}],
            "links": [{"from": "n1", "to": "n2", "label": "calls"}],
            "groups": [{"id": "g", "label": "G", "nodes": ["n1"]}],
        }
        once = normalize_diagram(parsed)
        twice = normalize_diagram(once.model_dump(exclude_none=True))
        assert twice == once


class TestBasicDiagram:
    def test_one_node_per_agent(self):
        result = basic_diagram(_agents())
        assert len(result.nodes) == 2
        assert result.edges == []
        assert result.layout == "dagre"

    def test_empty_raises(self):
        with pytest.raises(NoNodes):
            basic_diagram([])


class TestParseOrchestrationType:
    @pytest.mark.parametrize(
        "label, expected",
        [
            ("Sequential", OrchestrationType.SEQUENTIAL),
            ("HIERARCHICAL", OrchestrationType.HIERARCHICAL),
            ("peer-based", OrchestrationType.COLLABORATIVE),
            ("Peer to peer", OrchestrationType.COLLABORATIVE),
            ("hub_and_spoke", OrchestrationType.SUPERVISORY),
            ("pipeline", OrchestrationType.SEQUENTIAL),
        ],
    )
    def test_known_labels(self, label, expected):
        assert parse_orchestration_type(label) == expected

    def test_unknown_label(self):
        assert parse_orchestration_type("blackboard") is None

    def test_non_string(self):
        assert parse_orchestration_type(None) is None


class TestNormalizeAgent:
    def test_role_falls_back_to_purpose(self):
        agent = normalize_agent({"name": "Scout", "purpose": "Finds data"}, 0)
        assert agent.role == "Finds data"
        assert agent.purpose == "Finds data"
        assert agent.id == "agent-scout"

    def test_missing_name_raises(self):
        with pytest.raises(MissingRequiredField) as exc_info:
            normalize_agent({"role": "x"}, 0)
        assert exc_info.value.field == "name"

    def test_missing_role_raises(self):
        with pytest.raises(MissingRequiredField) as exc_info:
            normalize_agent({"name": "Scout"}, 0)
        assert exc_info.value.field == "role"

    def test_required_capabilities_alias(self):
        agent = normalize_agent({"name": "A", "role": "r", "required_capabilities": ["x"]}, 0)
        assert agent.capabilities == ["x"]


class TestNormalizeAnalysis:
    def test_passes_through(self, sample_analysis_json):
        result = normalize_analysis(sample_analysis_json)
        assert [a.name for a in result.agents] == ["Triage Agent", "Knowledge Agent"]
        assert result.tools[0].used_by == ["Knowledge Agent"]
        assert result.relationships[0].data_flow == "Ticket text"
        assert result.orchestration_pattern.type == OrchestrationType.SEQUENTIAL
        assert result.potential_challenges == ["Ambiguous tickets"]

    def test_missing_agents_raises(self):
        with pytest.raises(MissingRequiredField):
            normalize_analysis({"summary": "nothing here"})

    def test_missing_pattern_defaults_sequential(self):
        result = normalize_analysis({"agents": []})
        assert result.orchestration_pattern.type == OrchestrationType.SEQUENTIAL
        assert result.orchestration_pattern.justification is None

    def test_unknown_pattern_keeps_label(self):
        result = normalize_analysis({"agents": [], "orchestrationPattern": "blackboard"})
        assert result.orchestration_pattern.type == OrchestrationType.SEQUENTIAL
        assert result.orchestration_pattern.justification == "blackboard"

    def test_suggested_orchestration_alias(self):
        result = normalize_analysis({"agents": [], "suggestedOrchestration": {"name": "parallel"}})
        assert result.orchestration_pattern.type == OrchestrationType.PARALLEL

    def test_relationship_from_to_aliases(self):
        result = normalize_analysis({"agents": [], "relationships": [{"from": "A", "to": "B"}]})
        rel = result.relationships[0]
        assert (rel.id, rel.source, rel.target) == ("rel-0", "A", "B")


class TestNormalizeAgentList:
    def test_array(self):
        agents = normalize_agent_list([{"name": "A", "role": "r"}])
        assert agents[0].name == "A"

    def test_wrapped(self):
        agents = normalize_agent_list({"agents": [{"name": "A", "role": "r"}, {"name": "B", "role": "s"}]})
        assert len(agents) == 2

    def test_single_object(self):
        agents = normalize_agent_list({"name": "A", "role": "r"})
        assert len(agents) == 1

    def test_invalid_raises(self):
        with pytest.raises(MissingRequiredField):
            normalize_agent_list("nope")


class TestLooselyTypedFields:
    def test_fractional_confidence_rounded(self):
        result = normalize_analysis({"agents": [{"name": "Planner", "role": "plans the work", "confidence": 0.85}]})
        assert result.agents[0].confidence == 1

    def test_non_numeric_confidence_dropped(self):
        result = normalize_analysis({
            "agents": [{"name": "Planner", "role": "plans", "confidence": "high"}],
            "tools": [{"name": "Search", "confidence": True}],
        })
        assert result.agents[0].confidence is None
        assert result.tools[0].confidence is None

    def test_list_data_flow_joined(self):
        result = normalize_analysis({
            "agents": [],
            "relationships": [{"from": "A", "to": "B", "dataFlow": ["query", "results"]}],
        })
        assert result.relationships[0].data_flow == "query, results"

    def test_object_data_flow_serialized(self):
        result = normalize_analysis({
            "agents": [],
            "relationships": [{"from": "A", "to": "B", "dataFlow": {"in": "query"}}],
        })
        assert result.relationships[0].data_flow == '{"in": "query"}'

    def test_list_role_joined(self):
        agent = normalize_agent({"name": "Scout", "role": ["search", "summarize"]}, 0)
        assert agent.role == "search, summarize"

    def test_node_size_and_style_coerced(self):
        result = normalize_diagram({
            "nodes": [{"id": "n1", "label": "X", "size": "large", "style": "rounded", "shape": "circle"}],
        })
        node = result.nodes[0]
        assert node.size == 1
        assert node.style == {"shape": "circle"}

    def test_edge_style_string_ignored(self):
        result = normalize_diagram({
            "nodes": [{"id": "a", "label": "A"}, {"id": "b", "label": "B"}],
            "edges": [{"source": "a", "target": "b", "style": "dashed", "label": ["calls"]}],
        })
        edge = result.edges[0]
        assert edge.style is None
        assert edge.label == "calls"

    def test_numeric_size_kept(self):
        result = normalize_diagram({"nodes": [{"id": "n1", "label": "X", "size": 2.5}]})
        assert result.nodes[0].size == 2.5

    def test_scalar_arrays_ignored(self):
        result = normalize_analysis({"agents": [], "tools": 5, "relationships": "none"})
        assert result.tools == []
        assert result.relationships == []

    def test_scalar_agents_array_in_list(self):
        agents = normalize_agent_list({"agents": ["Planner", {"name": "A", "role": "r"}]})
        assert [a.name for a in agents] == ["A"]

    def test_construction_errors_are_typed(self, monkeypatch):
        from orchestra.core import normalizer

        def strict_node(**fields):
            return DiagramNode(**{**fields, "size": "not a number"})

        monkeypatch.setattr(normalizer, "DiagramNode", strict_node)
        with pytest.raises(InvalidField) as exc_info:
            normalize_diagram({"nodes": [{"id": "n1", "label": "X"}]})
        assert exc_info.value.entity == "diagram node 0"
        assert "size" in exc_info.value.detail


class TestUniqueIds:
    def test_colliding_default_agent_ids(self):
        result = normalize_analysis({
            "agents": [{"name": "Agent A", "role": "r"}, {"name": "agent-a", "role": "s"}],
        })
        assert [a.id for a in result.agents] == ["agent-agent-a", "agent-agent-a-1"]

    def test_fallback_nodes_distinct(self):
        agents = [Agent(id="dup", name="One", role="r"), Agent(id="dup", name="Two", role="s")]
        result = basic_diagram(agents)
        assert [n.id for n in result.nodes] == ["dup", "dup-1"]

    def test_suffix_skips_taken_ids(self):
        agents = normalize_agent_list([
            {"id": "x", "name": "A", "role": "r"},
            {"id": "x-1", "name": "B", "role": "r"},
            {"id": "x", "name": "C", "role": "r"},
        ])
        assert [a.id for a in agents] == ["x", "x-1", "x-2"]

    def test_tool_ids_distinct(self):
        result = normalize_analysis({"agents": [], "tools": [{"name": "Web Search"}, {"name": "web search"}]})
        assert len({t.id for t in result.tools}) == 2


class TestNormalizeExecution:
    def test_full_shape(self):
        result = normalize_execution(
            {
                "processSteps": [
                    {"step": 1, "agent": "Triage", "action": "Classified", "output": "billing"},
                    "Knowledge Agent looked up the policy",
                ],
                "finalResponse": "Refunds within 30 days.",
                "metrics": {"totalTimeMs": 1200},
            },
            query="Where is my refund?",
        )
        assert result.query == "Where is my refund?"
        assert [s.step for s in result.process_steps] == [1, 2]
        assert result.process_steps[0].agent == "Triage"
        assert result.process_steps[1].action == "Knowledge Agent looked up the policy"
        assert result.metrics == {"totalTimeMs": 1200}

    def test_step_aliases(self):
        result = normalize_execution({
            "steps": [{"agentName": "Planner", "description": "Planned", "result": ["a", "b"]}],
            "response": "done",
        })
        step = result.process_steps[0]
        assert (step.step, step.agent, step.action, step.output) == (1, "Planner", "Planned", "a, b")

    def test_missing_final_response_raises(self):
        with pytest.raises(MissingRequiredField) as exc_info:
            normalize_execution({"processSteps": []})
        assert exc_info.value.field == "finalResponse"

    def test_non_dict_metrics_default(self):
        result = normalize_execution({"finalResponse": "ok", "metrics": "fast", "processSteps": 3})
        assert result.metrics == {}
        assert result.process_steps == []


class TestNormalizeGeneratedCode:
    def test_aliases_and_language(self):
        code = normalize_generated_code(
            {"code": "print('hi')", "setup": ["pip install langgraph", "export KEY=..."], "usage": "run it"},
            language="Python",
        )
        assert code.implementation == "print('hi')"
        assert code.setup_instructions == "pip install langgraph\nexport KEY=..."
        assert code.example_usage == "run it"
        assert code.language == "Python"

    def test_missing_implementation_raises(self):
        with pytest.raises(MissingRequiredField):
            normalize_generated_code({"setupInstructions": "pip install"})

    def test_non_dict_raises(self):
        with pytest.raises(MissingRequiredField):
            normalize_generated_code(["print(1)"])
