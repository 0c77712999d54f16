"""Markdown rendering of analyses, prompt-test batches, simulated runs and generated code."""

from __future__ import annotations

from ..models.analysis import AnalysisResult
from ..models.design import ExecutionResult, GeneratedCode
from ..models.evaluation import BatchResult


def _cell(value: object) -> str:
    """Make a value safe for a Markdown table cell."""
    text = "" if value is None else str(value)
    return text.replace("|", "\\|").replace("\n", " ")


def _confidence(value: object) -> str:
    return "-" if value is None else f"{value}%"


def generate_analysis_report(result: AnalysisResult, title: str = "System Analysis") -> str:
    """Render an analysis result as a Markdown report."""
    lines: list[str] = []
    lines.append(f"# {title}")
    lines.append("")

    if result.metadata:
        meta = result.metadata
        lines.append(f"**Date:** {meta.timestamp}")
        if meta.model_version:
            lines.append(f"**Model:** {meta.model_version}")
        lines.append(f"**Prompt version:** {meta.prompt_version}")
        lines.append(f"**Processing time:** {meta.processing_time_ms}ms")
        lines.append("")

    if result.summary:
        lines.append("## Summary")
        lines.append("")
        lines.append(result.summary)
        lines.append("")

    pattern = result.orchestration_pattern
    lines.append("## Orchestration")
    lines.append("")
    lines.append(f"**Pattern:** {pattern.type.value}")
    if pattern.justification:
        lines.append(f"**Justification:** {pattern.justification}")
    lines.append("")

    if result.system_confidence:
        sc = result.system_confidence
        lines.append("## Confidence")
        lines.append("")
        lines.append("| Metric | Score |")
        lines.append("|--------|-------|")
        lines.append(f"| Overall | {sc.overall}% |")
        lines.append(f"| Completeness | {sc.completeness}% |")
        lines.append(f"| Consistency | {sc.consistency}% |")
        lines.append(f"| Clarity | {sc.clarity}% |")
        lines.append("")

    lines.append(f"## Agents ({len(result.agents)})")
    lines.append("")
    if result.agents:
        lines.append("| Agent | Role | Capabilities | Confidence |")
        lines.append("|-------|------|--------------|------------|")
        for agent in result.agents:
            caps = ", ".join(agent.capabilities)
            lines.append(
                f"| {_cell(agent.name)} | {_cell(agent.role)} | {_cell(caps)} "
                f"| {_confidence(agent.confidence)} |"
            )
    else:
        lines.append("No agents identified.")
    lines.append("")

    if result.tools:
        lines.append(f"## Tools ({len(result.tools)})")
        lines.append("")
        lines.append("| Tool | Purpose | Used by | Confidence |")
        lines.append("|------|---------|---------|------------|")
        for tool in result.tools:
            used_by = ", ".join(tool.used_by)
            lines.append(
                f"| {_cell(tool.name)} | {_cell(tool.purpose)} | {_cell(used_by)} "
                f"| {_confidence(tool.confidence)} |"
            )
        lines.append("")

    if result.relationships:
        lines.append(f"## Relationships ({len(result.relationships)})")
        lines.append("")
        for rel in result.relationships:
            detail = rel.description or rel.label or ""
            line = f"- **{rel.source}** -> **{rel.target}**"
            if detail:
                line += f": {detail}"
            if rel.data_flow:
                line += f" _({rel.data_flow})_"
            lines.append(line)
        lines.append("")

    if result.constraints:
        lines.append("## Constraints")
        lines.append("")
        for item in result.constraints:
            lines.append(f"- {item}")
        lines.append("")

    if result.potential_challenges:
        lines.append("## Potential Challenges")
        lines.append("")
        for item in result.potential_challenges:
            lines.append(f"- {item}")
        lines.append("")

    return "\n".join(lines)


def generate_batch_report(batch: BatchResult) -> str:
    """Render prompt-test batch metrics as a Markdown report."""
    m = batch.metrics
    lines: list[str] = []
    lines.append("# Prompt Test Batch")
    lines.append("")
    lines.append(f"**Date:** {batch.timestamp}")
    lines.append(f"**Test cases:** {len(batch.test_cases)}")
    lines.append(f"**Success rate:** {round(m.success_rate, 1)}%")
    lines.append("")

    lines.append("## Aggregates")
    lines.append("")
    lines.append("| Metric | Value |")
    lines.append("|--------|-------|")
    lines.append(f"| Average confidence | {round(m.average_confidence, 1)} |")
    lines.append(f"| Average processing time | {round(m.average_processing_time)}ms |")
    lines.append(f"| Total agents | {m.total_agents} |")
    lines.append(f"| Total tools | {m.total_tools} |")
    lines.append(f"| Total relationships | {m.total_relationships} |")
    lines.append("")

    if batch.individual_results:
        lines.append("## Results")
        lines.append("")
        lines.append("| Test case | Confidence | Agents | Tools | Relationships | Time |")
        lines.append("|-----------|------------|--------|-------|---------------|------|")
        for r in batch.individual_results:
            rm = r.metrics
            lines.append(
                f"| {_cell(r.test_case)} | {rm.overall_confidence}% | {rm.agent_count} "
                f"| {rm.tool_count} | {rm.relationship_count} | {rm.processing_time}ms |"
            )
        lines.append("")

    if batch.failures:
        lines.append(f"## Failures ({len(batch.failures)})")
        lines.append("")
        for failure in batch.failures:
            lines.append(f"- {failure.message}")
        lines.append("")

    return "\n".join(lines)


def generate_execution_report(result: ExecutionResult) -> str:
    """Render a simulated run as a Markdown report."""
    lines: list[str] = []
    lines.append("# Simulated Run")
    lines.append("")
    if result.query:
        lines.append(f"**Query:** {result.query}")
        lines.append("")

    lines.append(f"## Steps ({len(result.process_steps)})")
    lines.append("")
    if result.process_steps:
        lines.append("| Step | Agent | Action | Output |")
        lines.append("|------|-------|--------|--------|")
        for step in result.process_steps:
            lines.append(
                f"| {step.step} | {_cell(step.agent)} | {_cell(step.action)} | {_cell(step.output)} |"
            )
    else:
        lines.append("No steps reported.")
    lines.append("")

    lines.append("## Response")
    lines.append("")
    lines.append(result.final_response)
    lines.append("")

    if result.metrics:
        lines.append("## Metrics")
        lines.append("")
        for key, value in result.metrics.items():
            lines.append(f"- **{key}:** {value}")
        lines.append("")

    return "\n".join(lines)


def generate_code_report(code: GeneratedCode) -> str:
    """Render generated code with its setup and usage notes."""
    fence = code.language.lower().split()[0] if code.language.strip() else ""
    lines: list[str] = []
    lines.append(f"# Generated Implementation ({code.language})")
    lines.append("")

    if code.setup_instructions:
        lines.append("## Setup")
        lines.append("")
        lines.append(code.setup_instructions)
        lines.append("")

    lines.append("## Implementation")
    lines.append("")
    lines.append(f"```{fence}")
    lines.append(code.implementation.rstrip("\n"))
    lines.append("```")
    lines.append("")

    if code.example_usage:
        lines.append("## Example Usage")
        lines.append("")
        lines.append(code.example_usage)
        lines.append("")

    return "\n".join(lines)
