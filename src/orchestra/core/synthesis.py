"""Synthesis pipeline: the guided passes over a system description.

Each pass calls the model through the retry controller, then runs the raw
text through extraction, normalization and (for analyses) scoring. The
service keeps no state between calls beyond its provider and settings.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel
from rich.console import Console

from ..models.analysis import Agent, AnalysisMetadata, AnalysisResult, OrchestrationType
from ..models.design import ExecutionResult, GeneratedCode, RefinedDesign
from ..models.diagram import DiagramData
from ..providers.base import AIProvider, get_ai_provider
from .config import retry_policy_from_config
from .errors import ExtractionError, MissingRequiredField, NormalizationError
from .extractor import extract_json, extract_mermaid
from .normalizer import (
    basic_diagram,
    normalize_agent_list,
    normalize_analysis,
    normalize_diagram,
    normalize_execution,
    normalize_generated_code,
)
from .prompts import (
    ANALYSIS_SYSTEM,
    CODEGEN_SYSTEM,
    EXECUTION_SYSTEM,
    PROMPT_VERSION,
    REFINEMENT_SYSTEM,
    build_agent_refinement_prompt,
    build_analysis_prompt,
    build_codegen_prompt,
    build_diagram_prompt,
    build_execution_prompt,
    build_mermaid_prompt,
    build_refinement_prompt,
)
from .retry import RetryController, RetryPolicy
from .scorer import score, score_tool_selection

console = Console(stderr=True)

PATTERN_KEYS = ("orchestrationPattern", "suggestedOrchestration")


def _as_dict(value: Union[BaseModel, dict]) -> dict:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json", exclude_none=True)
    return dict(value)


def _list_of_dicts(value: object) -> list[dict]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


class SynthesisService:
    """Runs analysis, refinement and diagram passes against one provider."""

    def __init__(
        self,
        provider: AIProvider,
        retry_policy: Optional[RetryPolicy] = None,
        settings: Optional[dict] = None,
    ):
        self.provider = provider
        self.retry = RetryController(retry_policy)
        self.settings = settings or {}

    @classmethod
    def from_config(
        cls,
        config: dict,
        provider_override: Optional[str] = None,
        model_override: Optional[str] = None,
    ) -> "SynthesisService":
        provider = get_ai_provider(config, provider_override, model_override)
        return cls(
            provider,
            retry_policy=retry_policy_from_config(config),
            settings=config.get("synthesis") or {},
        )

    async def _call_model(
        self,
        prompt: str,
        system_prompt: str = "",
        max_tokens: int = 0,
        temperature: Optional[float] = None,
    ) -> str:
        return await self.retry.run(
            lambda: self.provider.generate(
                prompt,
                system_prompt=system_prompt,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        )

    # ------------------------------------------------------------------
    # Pass 1: analysis
    # ------------------------------------------------------------------

    async def analyze(self, system_description: str) -> AnalysisResult:
        """Extract agents, tools and relationships from a description and score them."""
        start = time.monotonic()

        raw = await self._call_model(build_analysis_prompt(system_description), ANALYSIS_SYSTEM)
        parsed = extract_json(raw)
        result = normalize_analysis(parsed)

        has_pattern = any(parsed.get(key) for key in PATTERN_KEYS)
        scored = score(result, system_description, has_pattern=has_pattern)
        scored.metadata = AnalysisMetadata(
            processing_time_ms=int((time.monotonic() - start) * 1000),
            model_version=getattr(self.provider, "model_name", "") or self.provider.name,
            prompt_version=PROMPT_VERSION,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        return scored

    # ------------------------------------------------------------------
    # Pass 2: refinement with selected tools
    # ------------------------------------------------------------------

    async def refine_design(
        self,
        initial_analysis: Union[AnalysisResult, dict],
        tool_selections: list[str],
    ) -> RefinedDesign:
        """Integrate the selected tools into the design and score the result."""
        prompt = build_refinement_prompt(_as_dict(initial_analysis), tool_selections)
        raw = await self._call_model(
            prompt,
            REFINEMENT_SYSTEM,
            max_tokens=int(self.settings.get("refinement_max_tokens", 4096)),
            temperature=self.settings.get("refinement_temperature", 0.2),
        )

        parsed = extract_json(raw)
        if not isinstance(parsed, dict):
            raise MissingRequiredField("refined design", "agents")

        pattern = parsed.get("orchestrationPattern")
        workflow = parsed.get("workflow")
        return RefinedDesign(
            agents=_list_of_dicts(parsed.get("agents")),
            tools=_list_of_dicts(parsed.get("tools")),
            relationships=_list_of_dicts(parsed.get("relationships")),
            workflow=workflow if isinstance(workflow, dict) else None,
            orchestration_pattern=pattern if isinstance(pattern, dict) else None,
            confidence_scores=score_tool_selection(parsed, tool_selections),
        )

    async def refine_agents(
        self,
        initial_analysis: Union[AnalysisResult, dict],
        tool_selections: list[str],
    ) -> list[Agent]:
        """Return the agent list with selected tools assigned."""
        prompt = build_agent_refinement_prompt(_as_dict(initial_analysis), tool_selections)
        raw = await self._call_model(prompt)
        return normalize_agent_list(extract_json(raw))

    # ------------------------------------------------------------------
    # Pass 3: diagrams
    # ------------------------------------------------------------------

    async def generate_diagram(
        self,
        agents: list[Agent],
        orchestration: Union[OrchestrationType, str],
    ) -> DiagramData:
        """Produce normalized diagram data for the agents.

        If the model output cannot be extracted or normalized, falls back to
        one node per agent. Model call failures always propagate.
        """
        pattern = orchestration.value if isinstance(orchestration, OrchestrationType) else str(orchestration)
        prompt = build_diagram_prompt([_as_dict(a) for a in agents], pattern)
        raw = await self._call_model(prompt)

        try:
            return normalize_diagram(extract_json(raw), agents)
        except (ExtractionError, NormalizationError) as e:
            if not agents:
                raise
            console.print(
                f"  [yellow]WARN[/yellow] Invalid diagram from model ({e}), "
                "using basic diagram"
            )
            return basic_diagram(agents)

    async def generate_mermaid(self, refined_design: Union[RefinedDesign, dict]) -> str:
        """Return Mermaid flowchart source for a refined design."""
        prompt = build_mermaid_prompt(_as_dict(refined_design))
        raw = await self._call_model(
            prompt,
            max_tokens=int(self.settings.get("mermaid_max_tokens", 2048)),
            temperature=self.settings.get("mermaid_temperature", 0.1),
        )
        return extract_mermaid(raw)

    # ------------------------------------------------------------------
    # Simulated execution and code generation
    # ------------------------------------------------------------------

    async def execute_design(self, design: Union[RefinedDesign, dict], query: str) -> ExecutionResult:
        """Have the model play the designed system on one user query.

        Nothing is executed; the result is the model's account of which
        agents handled the query and what the system would answer.
        """
        raw = await self._call_model(
            build_execution_prompt(_as_dict(design), query),
            EXECUTION_SYSTEM,
            temperature=self.settings.get("execution_temperature", 0.4),
        )
        return normalize_execution(extract_json(raw), query)

    async def generate_code(self, design: Union[RefinedDesign, dict], language: str = "Python") -> GeneratedCode:
        """Generate an implementation of the design with setup and usage notes."""
        raw = await self._call_model(
            build_codegen_prompt(_as_dict(design), language),
            CODEGEN_SYSTEM,
            max_tokens=int(self.settings.get("codegen_max_tokens", 8192)),
        )
        return normalize_generated_code(extract_json(raw), language)
