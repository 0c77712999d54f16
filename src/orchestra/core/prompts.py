"""Prompt templates for the synthesis passes, simulated runs and code generation.

Kept as module-level constants so they can be tuned without touching
pipeline logic. Bump PROMPT_VERSION when a template changes; it is stamped
into every analysis result's metadata.
"""

from __future__ import annotations

import json

PROMPT_VERSION = "1.2"

ANALYSIS_SYSTEM = "You are an expert AI system designer specialized in multi-agent orchestration."

ANALYSIS_TEMPLATE = """TASK:
Analyze this system description and extract key components with high accuracy.

SYSTEM DESCRIPTION:
{description}

INSTRUCTIONS:
1. Identify all agents and their specific roles, responsibilities, and capabilities.
2. Determine the tools/APIs each agent requires to fulfill its responsibilities.
3. Map the relationships and data flows between agents.
4. Recommend an orchestration pattern that best suits this system.
5. Specify any constraints or requirements mentioned.

AGENT TYPES TO CONSIDER:
- Coordinator/Orchestrator: manages workflow between other agents
- Information Retrieval: gathers data from sources
- Processing/Analysis: transforms or analyzes data
- Decision Making: makes choices based on criteria
- User Interface: interacts with users
- Domain Specialist: has expertise in specific areas

ORCHESTRATION PATTERNS:
sequential, parallel, conditional, supervisory, hierarchical, collaborative

RESPONSE FORMAT:
Return JSON with this structure:
{{
  "summary": "Brief overview of the system's purpose and function",
  "agents": [
    {{
      "name": "Agent name",
      "role": "Primary function",
      "description": "Detailed description of responsibilities",
      "capabilities": ["capability1", "capability2"]
    }}
  ],
  "tools": [
    {{"name": "Tool name", "purpose": "What this tool does", "usedBy": ["Agent1"]}}
  ],
  "relationships": [
    {{
      "source": "Agent1",
      "target": "Agent2",
      "description": "How they interact",
      "dataFlow": "What information passes between them"
    }}
  ],
  "orchestrationPattern": {{"type": "sequential", "justification": "Why this pattern fits"}},
  "constraints": ["System limitations or requirements"],
  "potentialChallenges": ["Potential implementation challenges"]
}}

Respond with the JSON only, without additional text or markdown formatting.
"""

REFINEMENT_SYSTEM = "You are an expert system designer specializing in multi-agent AI systems."

REFINEMENT_TEMPLATE = """I have an initial agent system design with the following components:

Agents: {agents}

Relationships: {relationships}

Workflow: {workflow}

Integrate these specific tools into the design:
{tools}

Refine the design to integrate these tools. For each agent, specify which tools
it should use and why. Update agent roles, capabilities, and relationships if
needed.

Return your answer in this JSON format:
{{
  "agents": [
    {{
      "id": "string",
      "name": "string",
      "role": "string",
      "description": "string",
      "capabilities": ["string"],
      "tools": ["subset of the provided tools"]
    }}
  ],
  "relationships": [
    {{"from": "agent_id", "to": "agent_id", "type": "delegates_to | reports_to | collaborates_with", "description": "string"}}
  ],
  "workflow": {{
    "steps": [{{"id": "string", "description": "string", "agents": ["agent_id"], "inputs": ["string"], "outputs": ["string"]}}],
    "triggers": ["string"]
  }},
  "orchestrationPattern": {{"name": "string", "description": "string", "advantages": ["string"], "limitations": ["string"]}}
}}
"""

AGENT_REFINEMENT_TEMPLATE = """Based on the initial analysis and the selected tools, refine the agent design
to incorporate these tools appropriately among the different agents.

Initial Analysis:
{analysis}

Selected Tools:
{tools}

Update the agent definitions to include these tools where appropriate. Each
agent should only have tools that align with its purpose and capabilities.

Return the updated array of agents as JSON.
"""

DIAGRAM_TEMPLATE = """Create a system diagram for the following agent configuration and orchestration pattern.

Agents:
{agents}

Orchestration Pattern:
{orchestration}

Generate a diagram representation with nodes and edges for visualization.
Format your response as JSON with this structure:
{{
  "nodes": [
    {{
      "id": "node1",
      "label": "Agent Name",
      "type": "agent | tool | memory | data | user | service | decision",
      "role": "primary | support | specialized",
      "category": "nlu | retrieval | reasoning | planner | memory | tool",
      "description": "Brief description of purpose",
      "size": 1,
      "style": {{"shape": "circle | hexagon | square | cylinder | cloud", "color": "#hex"}}
    }}
  ],
  "edges": [
    {{
      "id": "edge1",
      "source": "node1",
      "target": "node2",
      "label": "interaction type",
      "type": "control | data | read | write | read-write",
      "style": {{"lineStyle": "solid | dashed | dotted", "thickness": 1, "color": "#hex", "bidirectional": false}}
    }}
  ],
  "groups": [
    {{"id": "group1", "label": "Group Name", "nodes": ["node1", "node2"], "style": {{"color": "#hex"}}}}
  ],
  "layout": "hierarchical | dagre | force | circular"
}}

- Represent each agent as a node; add important tools, memory stores and
  external services as nodes when relevant.
- Edges represent the flow of control or data between nodes.
- Suggest a layout: 'hierarchical' for manager/worker relationships, 'dagre'
  for sequential pipelines, 'force' for collaborative meshes, 'circular' for
  peer-to-peer.
"""

MERMAID_TEMPLATE = """Create a Mermaid.js diagram that visualizes this multi-agent system:

Agents: {agents}

Relationships: {relationships}

Orchestration Pattern: {orchestration}

Use a flowchart format. Include all agents, color-code by agent role, and
show the relationships between agents.

Return ONLY the Mermaid diagram code, starting directly with "graph TD" or similar.
"""

EXECUTION_SYSTEM = "You are simulating a multi-agent orchestration system. Stay in character as the system."

EXECUTION_TEMPLATE = """You are simulating an agent orchestration system with the following design:
{design}

Process this user query as if you were this system:
"{query}"

Return JSON with this structure:
{{
  "processSteps": [
    {{"step": 1, "agent": "Agent name", "action": "What the agent did", "output": "What it produced"}}
  ],
  "finalResponse": "The final response to the user",
  "metrics": {{"totalTimeMs": 0, "agentTimesMs": {{"Agent name": 0}}}}
}}
"""

CODEGEN_SYSTEM = "You are an expert AI engineer who writes runnable multi-agent implementations."

CODEGEN_TEMPLATE = """Based on this agent design:
{design}

Generate executable {language} code that implements this agent system using
LangChain and LangGraph. Focus on a working implementation that can be run
locally.

Return JSON with this structure:
{{
  "implementation": "The complete code as a string",
  "setupInstructions": "Instructions for setting up and running the code",
  "exampleUsage": "Example of how to use the implemented system"
}}
"""


def _dump(value: object) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def build_analysis_prompt(description: str) -> str:
    return ANALYSIS_TEMPLATE.format(description=description)


def build_refinement_prompt(analysis: dict, tool_selections: list[str]) -> str:
    return REFINEMENT_TEMPLATE.format(
        agents=_dump(analysis.get("agents")),
        relationships=_dump(analysis.get("relationships")),
        workflow=_dump(analysis.get("workflow")),
        tools="\n".join(tool_selections),
    )


def build_agent_refinement_prompt(analysis: dict, tool_selections: list[str]) -> str:
    return AGENT_REFINEMENT_TEMPLATE.format(
        analysis=_dump(analysis),
        tools=", ".join(tool_selections),
    )


def build_diagram_prompt(agents: list[dict], orchestration: str) -> str:
    return DIAGRAM_TEMPLATE.format(agents=_dump(agents), orchestration=orchestration)


def build_mermaid_prompt(design: dict) -> str:
    return MERMAID_TEMPLATE.format(
        agents=_dump(design.get("agents")),
        relationships=_dump(design.get("relationships")),
        orchestration=_dump(design.get("orchestrationPattern")),
    )


def build_execution_prompt(design: dict, query: str) -> str:
    return EXECUTION_TEMPLATE.format(design=_dump(design), query=query)


def build_codegen_prompt(design: dict, language: str) -> str:
    return CODEGEN_TEMPLATE.format(design=_dump(design), language=language)
