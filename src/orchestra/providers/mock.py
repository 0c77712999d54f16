"""Offline provider returning canned responses for dry runs."""

from __future__ import annotations

from typing import Optional

from ..models.provider import CompletionResult
from .base import BaseProvider

MOCK_ANALYSIS = """Here is the analysis of your system:

```json
{
  "summary": "A customer support system that triages tickets, retrieves answers and escalates hard cases.",
  "agents": [
    {
      "name": "Triage Agent",
      "role": "Classifies incoming support tickets",
      "description": "Reads each ticket, assigns a category and urgency, and routes it to the right agent.",
      "capabilities": ["classification", "routing"]
    },
    {
      "name": "Knowledge Agent",
      "role": "Answers questions from the knowledge base",
      "description": "Searches product documentation and past tickets to draft an answer.",
      "capabilities": ["retrieval", "summarization"]
    },
    {
      "name": "Escalation Agent",
      "role": "Hands unresolved tickets to humans",
      "description": "Packages context for a human specialist when confidence is low.",
      "capabilities": ["handoff"]
    }
  ],
  "tools": [
    {"name": "Vector Search", "purpose": "Semantic lookup over product documentation", "usedBy": ["Knowledge Agent"]},
    {"name": "Ticketing API", "purpose": "Reads and updates support tickets in the helpdesk", "usedBy": ["Triage Agent", "Escalation Agent"]}
  ],
  "relationships": [
    {"source": "Triage Agent", "target": "Knowledge Agent", "description": "Routes answerable tickets for drafting", "dataFlow": "Ticket text and category"},
    {"source": "Knowledge Agent", "target": "Escalation Agent", "description": "Escalates tickets it cannot answer confidently", "dataFlow": "Draft answer and confidence"}
  ],
  "orchestrationPattern": {"type": "Sequential", "justification": "Tickets flow through a fixed pipeline."},
  "constraints": ["Responses within 5 minutes"],
  "potentialChallenges": ["Ambiguous tickets"]
}
```
"""

MOCK_REFINEMENT = """{
  "agents": [
    {"id": "triage", "name": "Triage Agent", "role": "Classifier", "description": "Classifies and routes incoming support tickets.", "capabilities": ["classification"], "tools": ["Ticketing API"]},
    {"id": "knowledge", "name": "Knowledge Agent", "role": "Answerer", "description": "Drafts answers from the documentation index.", "capabilities": ["retrieval"], "tools": ["Vector Search"]}
  ],
  "relationships": [
    {"from": "triage", "to": "knowledge", "type": "delegates_to", "description": "Hands over answerable tickets"}
  ],
  "workflow": {"steps": [{"id": "step1", "description": "Classify ticket", "agents": ["triage"], "inputs": ["ticket"], "outputs": ["category"]}], "triggers": ["new ticket"]},
  "orchestrationPattern": {"name": "sequential", "description": "Fixed pipeline", "advantages": ["Predictable"], "limitations": ["No parallelism"]}
}"""

MOCK_AGENTS = """```json
[
  {"id": "triage", "name": "Triage Agent", "role": "Classifies incoming tickets", "description": "Routes tickets.", "tools": ["Ticketing API"]},
  {"id": "knowledge", "name": "Knowledge Agent", "role": "Answers from documentation", "description": "Drafts answers.", "tools": ["Vector Search"]}
]
```"""

MOCK_DIAGRAM = """{
  "vertices": [
    {"id": "triage", "name": "Triage Agent", "category": "nlu"},
    {"id": "knowledge", "name": "Knowledge Agent", "category": "retrieval"},
    {"id": "search", "name": "Vector Search", "type": "tool", "shape": "cylinder"}
  ],
  "links": [
    {"from": "triage", "to": "knowledge", "label": "routes", "type": "control"},
    {"from": "knowledge", "to": "search", "label": "queries", "type": "read"}
  ],
  "layout": "dagre"
}"""

MOCK_MERMAID = """```mermaid
graph TD
    Triage[Triage Agent] --> Knowledge[Knowledge Agent]
    Knowledge --> Escalation[Escalation Agent]
```"""

MOCK_EXECUTION = """```json
{
  "processSteps": [
    {"step": 1, "agent": "Triage Agent", "action": "Classified the query as a billing question", "output": "category: billing"},
    {"step": 2, "agent": "Knowledge Agent", "action": "Looked up the refund policy", "output": "Refunds within 30 days"}
  ],
  "finalResponse": "You can request a refund within 30 days of purchase from the billing page.",
  "metrics": {"totalTimeMs": 1800, "agentTimesMs": {"Triage Agent": 300, "Knowledge Agent": 1500}}
}
```"""

MOCK_CODE = """{
  "implementation": "from langgraph.graph import StateGraph\\n\\ngraph = StateGraph(dict)\\n",
  "setupInstructions": "pip install langgraph langchain",
  "exampleUsage": "graph.compile().invoke({'query': 'Where is my refund?'})"
}"""

# Distinctive phrase in each prompt template -> canned response. The
# execution and code prompts embed a design, so they are matched first.
MOCK_RESPONSES: list[tuple[str, str]] = [
    ("simulating an agent orchestration system", MOCK_EXECUTION),
    ("Generate executable", MOCK_CODE),
    ("SYSTEM DESCRIPTION:", MOCK_ANALYSIS),
    ("Integrate these specific tools", MOCK_REFINEMENT),
    ("Return the updated array of agents", MOCK_AGENTS),
    ("Create a system diagram", MOCK_DIAGRAM),
    ("Mermaid.js", MOCK_MERMAID),
]


class MockProvider(BaseProvider):
    name = "mock"
    default_model = "mock"

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 0,
        temperature: Optional[float] = None,
    ) -> CompletionResult:
        for marker, response in MOCK_RESPONSES:
            if marker in user_prompt:
                return CompletionResult(success=True, content=response, model=self.model_name)
        return CompletionResult(
            success=False,
            error="No mock response registered for this prompt",
        )
