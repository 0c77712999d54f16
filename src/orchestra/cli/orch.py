"""Orchestra (orch) - agent-system design from natural-language descriptions.

Every command runs one synthesis pass (or the prompt-testing harness) and
prints JSON or Markdown to stdout. Status lines go to stderr.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console

console = Console(stderr=True)

PROVIDERS = ["gemini", "anthropic", "openai", "ollama", "mock"]
PATTERNS = ["sequential", "parallel", "conditional", "supervisory", "hierarchical", "collaborative"]

EXIT_FAILURE = 1
EXIT_USAGE = 11


def provider_options(func):
    """Options shared by every command that calls a model."""
    func = click.option("--dry-run", is_flag=True, help="Use the mock provider (no API calls)")(func)
    func = click.option("--ai-model", type=str, help="Model override")(func)
    func = click.option("--ai-provider", type=click.Choice(PROVIDERS), help="Provider override")(func)
    func = click.option(
        "--project", "-p",
        type=click.Path(exists=True, file_okay=False),
        default=".",
        help="Project path",
    )(func)
    return func


def _build_service(project: str, ai_provider: Optional[str], ai_model: Optional[str], dry_run: bool):
    from ..core.config import get_effective_config
    from ..core.synthesis import SynthesisService

    config = get_effective_config(Path(project))
    try:
        service = SynthesisService.from_config(
            config,
            provider_override="mock" if dry_run else ai_provider,
            model_override=ai_model,
        )
    except ValueError as e:
        console.print(f"  [red]ERROR[/red] Failed to initialize AI provider: {e}")
        sys.exit(EXIT_FAILURE)

    console.print(f"  [dim]Provider: {service.provider.name} ({service.provider.model_name})[/dim]")
    return service, config


def _run(coro) -> Any:
    """Run a pipeline coroutine, mapping pipeline errors to exit code 1."""
    from ..core.errors import OrchestraError

    try:
        return asyncio.run(coro)
    except OrchestraError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        sys.exit(EXIT_FAILURE)


def _read_json_file(ctx: click.Context, path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8-sig"))
    except (OSError, ValueError) as e:
        click.echo(f"Error: could not read JSON from {path}: {e}", err=True)
        ctx.exit(EXIT_USAGE)


def _dump_model(model) -> str:
    return json.dumps(model.model_dump(by_alias=True, mode="json", exclude_none=True), indent=2, ensure_ascii=False)


def _emit(text: str, output: Optional[str]) -> None:
    if output:
        out_path = Path(output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
        console.print(f"  [green]OK[/green] Wrote {out_path}")
    else:
        click.echo(text)


@click.group()
def orch_cli() -> None:
    """Orchestra - design multi-agent systems from natural-language descriptions."""


@orch_cli.command()
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), required=True)
def init(project: str) -> None:
    """Initialize Orchestra in a project."""
    from ..core.config import initialize_project

    project_path = Path(project)
    initialize_project(project_path)
    console.print(f"  [green]Initialized[/green] .orchestra/ in {project_path.resolve().name}")


@orch_cli.command()
@provider_options
@click.option("--text", type=str, help="System description text")
@click.option("--file", "file_", type=click.Path(exists=True, dir_okay=False), help="File with the system description")
@click.option("--output-format", "-f", type=click.Choice(["json", "markdown"]), default="json")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the result to a file")
@click.pass_context
def analyze(
    ctx: click.Context,
    project: str,
    ai_provider: str | None,
    ai_model: str | None,
    dry_run: bool,
    text: str | None,
    file_: str | None,
    output_format: str,
    output: str | None,
) -> None:
    """Extract agents, tools and relationships from a system description.

    Example: orch analyze --file system.txt -f markdown
    """
    if bool(text) == bool(file_):
        click.echo("Error: provide exactly one of --text or --file.", err=True)
        ctx.exit(EXIT_USAGE)
        return

    description = text if text else Path(file_).read_text(encoding="utf-8-sig")
    if not description.strip():
        click.echo("Error: the system description is empty.", err=True)
        ctx.exit(EXIT_USAGE)
        return

    service, _ = _build_service(project, ai_provider, ai_model, dry_run)
    result = _run(service.analyze(description))

    sc = result.system_confidence
    console.print(
        f"  [green]OK[/green] {len(result.agents)} agents, {len(result.tools)} tools, "
        f"{len(result.relationships)} relationships"
        + (f" [dim](confidence {sc.overall}%)[/dim]" if sc else "")
    )

    if output_format == "markdown":
        from ..formatters.report import generate_analysis_report

        _emit(generate_analysis_report(result), output)
    else:
        _emit(_dump_model(result), output)


@orch_cli.command()
@provider_options
@click.option("--input", "-i", "input_", type=click.Path(exists=True, dir_okay=False), required=True,
              help="Analysis JSON from 'orch analyze'")
@click.option("--tool", "-t", "tools", multiple=True, required=True, help="Tool to integrate (repeatable)")
@click.option("--agents-only", is_flag=True, help="Only return the updated agent list")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the result to a file")
@click.pass_context
def refine(
    ctx: click.Context,
    project: str,
    ai_provider: str | None,
    ai_model: str | None,
    dry_run: bool,
    input_: str,
    tools: tuple[str, ...],
    agents_only: bool,
    output: str | None,
) -> None:
    """Refine an analysis by integrating selected tools.

    Example: orch refine -i analysis.json -t "Vector Search" -t "Ticketing API"
    """
    analysis = _read_json_file(ctx, input_)
    if not isinstance(analysis, dict):
        click.echo("Error: the analysis file must contain a JSON object.", err=True)
        ctx.exit(EXIT_USAGE)
        return

    service, _ = _build_service(project, ai_provider, ai_model, dry_run)
    selections = list(tools)

    if agents_only:
        agents = _run(service.refine_agents(analysis, selections))
        payload = [a.model_dump(by_alias=True, mode="json", exclude_none=True) for a in agents]
        _emit(json.dumps(payload, indent=2, ensure_ascii=False), output)
        return

    design = _run(service.refine_design(analysis, selections))
    console.print(
        f"  [green]OK[/green] Refined design with {len(design.agents)} agents "
        f"[dim](confidence {design.confidence_scores.overall}%)[/dim]"
    )
    _emit(_dump_model(design), output)


@orch_cli.command()
@provider_options
@click.option("--input", "-i", "input_", type=click.Path(exists=True, dir_okay=False), required=True,
              help="JSON with an agent list or an analysis")
@click.option("--orchestration", type=click.Choice(PATTERNS, case_sensitive=False), required=True)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the result to a file")
@click.pass_context
def diagram(
    ctx: click.Context,
    project: str,
    ai_provider: str | None,
    ai_model: str | None,
    dry_run: bool,
    input_: str,
    orchestration: str,
    output: str | None,
) -> None:
    """Generate normalized diagram data for a set of agents."""
    from ..core.errors import NormalizationError
    from ..core.normalizer import normalize_agent_list

    data = _read_json_file(ctx, input_)
    try:
        agents = normalize_agent_list(data)
    except NormalizationError as e:
        click.echo(f"Error: invalid agent list in {input_}: {e}", err=True)
        ctx.exit(EXIT_USAGE)
        return

    service, _ = _build_service(project, ai_provider, ai_model, dry_run)
    result = _run(service.generate_diagram(agents, orchestration.lower()))
    console.print(f"  [green]OK[/green] {len(result.nodes)} nodes, {len(result.edges)} edges")
    _emit(_dump_model(result), output)


@orch_cli.command()
@provider_options
@click.option("--input", "-i", "input_", type=click.Path(exists=True, dir_okay=False), required=True,
              help="Refined design JSON from 'orch refine'")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the diagram to a file")
@click.pass_context
def mermaid(
    ctx: click.Context,
    project: str,
    ai_provider: str | None,
    ai_model: str | None,
    dry_run: bool,
    input_: str,
    output: str | None,
) -> None:
    """Generate a Mermaid flowchart for a refined design."""
    design = _read_json_file(ctx, input_)
    if not isinstance(design, dict):
        click.echo("Error: the design file must contain a JSON object.", err=True)
        ctx.exit(EXIT_USAGE)
        return

    service, _ = _build_service(project, ai_provider, ai_model, dry_run)
    _emit(_run(service.generate_mermaid(design)), output)


@orch_cli.command()
@provider_options
@click.option("--input", "-i", "input_", type=click.Path(exists=True, dir_okay=False), required=True,
              help="Design JSON from 'orch refine' or 'orch analyze'")
@click.option("--query", "-q", type=str, required=True, help="User query to run through the design")
@click.option("--output-format", "-f", type=click.Choice(["json", "markdown"]), default="json")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the result to a file")
@click.pass_context
def execute(
    ctx: click.Context,
    project: str,
    ai_provider: str | None,
    ai_model: str | None,
    dry_run: bool,
    input_: str,
    query: str,
    output_format: str,
    output: str | None,
) -> None:
    """Simulate a design handling one user query.

    Example: orch execute -i design.json -q "Where is my refund?"
    """
    design = _read_json_file(ctx, input_)
    if not isinstance(design, dict):
        click.echo("Error: the design file must contain a JSON object.", err=True)
        ctx.exit(EXIT_USAGE)
        return
    if not query.strip():
        click.echo("Error: the query is empty.", err=True)
        ctx.exit(EXIT_USAGE)
        return

    service, _ = _build_service(project, ai_provider, ai_model, dry_run)
    result = _run(service.execute_design(design, query))
    console.print(f"  [green]OK[/green] Simulated run with {len(result.process_steps)} steps")

    if output_format == "markdown":
        from ..formatters.report import generate_execution_report

        _emit(generate_execution_report(result), output)
    else:
        _emit(_dump_model(result), output)


@orch_cli.command()
@provider_options
@click.option("--input", "-i", "input_", type=click.Path(exists=True, dir_okay=False), required=True,
              help="Design JSON from 'orch refine' or 'orch analyze'")
@click.option("--language", default="Python", show_default=True, help="Target language")
@click.option("--output-format", "-f", type=click.Choice(["json", "markdown"]), default="json")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the result to a file")
@click.pass_context
def codegen(
    ctx: click.Context,
    project: str,
    ai_provider: str | None,
    ai_model: str | None,
    dry_run: bool,
    input_: str,
    language: str,
    output_format: str,
    output: str | None,
) -> None:
    """Generate an implementation of a design."""
    design = _read_json_file(ctx, input_)
    if not isinstance(design, dict):
        click.echo("Error: the design file must contain a JSON object.", err=True)
        ctx.exit(EXIT_USAGE)
        return

    service, _ = _build_service(project, ai_provider, ai_model, dry_run)
    code = _run(service.generate_code(design, language))
    console.print(f"  [green]OK[/green] Generated {len(code.implementation.splitlines())} lines of {code.language}")

    if output_format == "markdown":
        from ..formatters.report import generate_code_report

        _emit(generate_code_report(code), output)
    else:
        _emit(_dump_model(code), output)


# ----------------------------------------------------------------------
# Prompt testing
# ----------------------------------------------------------------------


@orch_cli.group(name="test")
def test_group() -> None:
    """Save, run and evaluate prompt test cases."""


def _harness(project: str, ai_provider: str | None, ai_model: str | None, dry_run: bool):
    from ..core.prompt_testing import PromptTestingHarness

    service, config = _build_service(project, ai_provider, ai_model, dry_run)
    return PromptTestingHarness.from_config(service, config, Path(project))


def _offline_harness(project: str):
    """Harness for commands that never call a model."""
    from ..core.config import get_effective_config
    from ..core.prompt_testing import PromptTestingHarness
    from ..core.synthesis import SynthesisService
    from ..providers.mock import MockProvider

    config = get_effective_config(Path(project))
    service = SynthesisService(MockProvider({}, {}))
    return PromptTestingHarness.from_config(service, config, Path(project))


@test_group.command(name="save")
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), default=".")
@click.argument("name")
@click.option("--file", "file_", type=click.Path(exists=True, dir_okay=False), required=True,
              help="File with the system description")
@click.pass_context
def test_save(ctx: click.Context, project: str, name: str, file_: str) -> None:
    """Save a system description as a named test case."""
    harness = _offline_harness(project)
    description = Path(file_).read_text(encoding="utf-8-sig")
    try:
        path = harness.save_test_case(name, description)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(EXIT_USAGE)
        return
    console.print(f"  [green]OK[/green] Test case '{name}' saved to {path}")


@test_group.command(name="list")
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), default=".")
def test_list(project: str) -> None:
    """List saved test cases."""
    names = _offline_harness(project).list_test_cases()
    if not names:
        console.print("  [dim]No test cases saved[/dim]")
        return
    for name in names:
        click.echo(name)


@test_group.command(name="run")
@provider_options
@click.argument("name")
def test_run(project: str, ai_provider: str | None, ai_model: str | None, dry_run: bool, name: str) -> None:
    """Run one test case through the analysis pass."""
    from ..models.evaluation import TestCaseFailure

    outcome = _run(_harness(project, ai_provider, ai_model, dry_run).run_test_case(name))
    click.echo(_dump_model(outcome))
    if isinstance(outcome, TestCaseFailure):
        sys.exit(EXIT_FAILURE)


@test_group.command(name="batch")
@provider_options
@click.argument("names", nargs=-1, required=True)
@click.option("--output-format", "-f", type=click.Choice(["json", "markdown"]), default="json")
def test_batch(
    project: str,
    ai_provider: str | None,
    ai_model: str | None,
    dry_run: bool,
    names: tuple[str, ...],
    output_format: str,
) -> None:
    """Run several test cases in order and aggregate their metrics."""
    batch = _run(_harness(project, ai_provider, ai_model, dry_run).run_batch_tests(list(names)))

    if output_format == "markdown":
        from ..formatters.report import generate_batch_report

        click.echo(generate_batch_report(batch))
    else:
        click.echo(_dump_model(batch))

    if batch.failures:
        console.print(f"  [yellow]WARN[/yellow] {len(batch.failures)} of {len(names)} test cases failed")
        sys.exit(EXIT_FAILURE)


@test_group.command(name="evaluate")
@provider_options
@click.argument("name")
@click.option("--expected", type=click.Path(exists=True, dir_okay=False), required=True,
              help="JSON file with expected agents, tools, relationships and pattern")
@click.pass_context
def test_evaluate(
    ctx: click.Context,
    project: str,
    ai_provider: str | None,
    ai_model: str | None,
    dry_run: bool,
    name: str,
    expected: str,
) -> None:
    """Run a test case and score the extraction against expected values."""
    from ..models.evaluation import TestCaseFailure

    expected_values = _read_json_file(ctx, expected)
    if not isinstance(expected_values, dict):
        click.echo("Error: the expected-values file must contain a JSON object.", err=True)
        ctx.exit(EXIT_USAGE)
        return

    outcome = _run(_harness(project, ai_provider, ai_model, dry_run).evaluate_extraction(name, expected_values))
    click.echo(_dump_model(outcome))
    if isinstance(outcome, TestCaseFailure):
        sys.exit(EXIT_FAILURE)
    console.print(f"  [green]OK[/green] Overall accuracy: {round(outcome.accuracy.overall * 100)}%")


def main() -> None:
    orch_cli()


if __name__ == "__main__":
    main()
