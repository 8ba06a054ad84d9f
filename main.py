#!/usr/bin/env python3
"""Spec Copilot CLI - turn feature descriptions into structured specs.

Usage:
    # Generate a spec (asks clarifying questions when the description is vague)
    python main.py generate -p checkout -t "Saved carts" -d ./feature.md

    # Score a description without calling a model
    python main.py score -d "Users could maybe save it for later"

    # Manage project contexts and LLM backends
    python main.py context set checkout ./context.json
    python main.py providers use openai-gpt-4o
"""

import asyncio
import json
import logging
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from config import settings
from context import ProjectContextService
from contracts import (
    ClarificationAnswer,
    FeatureInput,
    GenerationMode,
    InputContext,
    ResolvedContext,
)
from errors import SpecCopilotError
from orchestrator import (
    CompletionOrchestrator,
    FlowState,
    GenerationFlow,
    calculate_ambiguity_score,
    needs_clarification,
)
from prompts import template_engine, test_template_render, validate_all_templates
from providers import PREDEFINED_CONFIGS, ConfigurationManager
from stores import JsonFileConfigurationStore, JsonFileContextStore


console = Console()


def read_input_content(value: str) -> str:
    """Return the file contents if ``value`` is an existing file, else ``value`` itself."""
    path = Path(value)
    if path.is_file():
        return path.read_text(encoding="utf-8", errors="replace")
    return value


def read_json_file(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-") or "feature"


def build_services(workspace: Optional[str]) -> Tuple[ProjectContextService, ConfigurationManager]:
    root = Path(workspace) if workspace else settings.get_workspace_path()
    context_service = ProjectContextService(JsonFileContextStore(root / "project_contexts.json"))
    config_manager = ConfigurationManager(JsonFileConfigurationStore(root / "llm_configs.json"))
    return context_service, config_manager


def run(coro, config_manager: Optional[ConfigurationManager] = None):
    """Run a coroutine, reporting domain errors as a failed exit.

    When a configuration manager is given its adapters are closed before the
    event loop shuts down.
    """
    async def _main():
        try:
            return await coro
        finally:
            if config_manager is not None:
                await config_manager.aclose()

    try:
        return asyncio.run(_main())
    except SpecCopilotError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


def build_feature(
    project: str,
    title: str,
    description: str,
    stakeholders: Tuple[str, ...],
    constraints: Tuple[str, ...],
    non_functional: Tuple[str, ...] = (),
    links: Tuple[str, ...] = (),
    inherit: bool = True,
) -> FeatureInput:
    return FeatureInput(
        project_id=project,
        title=title,
        description=read_input_content(description),
        context=InputContext(
            stakeholders=list(stakeholders),
            constraints=list(constraints),
            non_functional=list(non_functional),
            links=list(links),
            inherit_from_project=inherit,
        ),
    )


def collect_answers(flow: GenerationFlow, answers_path: Optional[str]) -> List[ClarificationAnswer]:
    """Read answers from a JSON file, or prompt for each question interactively."""
    if answers_path:
        return [ClarificationAnswer.model_validate(a) for a in read_json_file(answers_path)]

    answers = []
    for clarification in flow.questions.questions:
        reply = click.prompt(f"{clarification.question}", default="", show_default=False)
        if reply.strip():
            answers.append(ClarificationAnswer(question=clarification.question, answer=reply.strip()))
    return answers


@click.group()
@click.option("--workspace", "-w", default=None, help="Workspace directory (default: ./workspace)")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def cli(ctx: click.Context, workspace: Optional[str], verbose: bool):
    """Spec Copilot: structured specifications from feature descriptions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    ctx.obj = {"workspace": workspace}


@cli.command()
@click.option("--project", "-p", required=True, help="Project id")
@click.option("--title", "-t", required=True, help="Feature title")
@click.option("--description", "-d", required=True, help="Description text or path to a file")
@click.option("--stakeholder", "-s", "stakeholders", multiple=True, help="Stakeholder name (repeatable)")
@click.option("--constraint", "-c", "constraints", multiple=True, help="Constraint (repeatable)")
@click.option("--nfr", "non_functional", multiple=True, help="Non-functional requirement (repeatable)")
@click.option("--link", "links", multiple=True, help="Reference URL (repeatable)")
@click.option("--no-inherit", is_flag=True, help="Do not merge with the project context")
@click.option(
    "--mode", "-m",
    type=click.Choice([m.value for m in GenerationMode]),
    default=GenerationMode.FINAL.value,
    help="Specification maturity (default: final)",
)
@click.option("--answers", "answers_path", default=None, help="JSON file of {question, answer} records")
@click.option("--skip-questions", is_flag=True, help="Skip the clarification round")
@click.option("--output", "-o", "output_dir", default=None, help="Output directory (default: ./outputs)")
@click.pass_obj
def generate(
    obj: Dict[str, Any],
    project: str,
    title: str,
    description: str,
    stakeholders: Tuple[str, ...],
    constraints: Tuple[str, ...],
    non_functional: Tuple[str, ...],
    links: Tuple[str, ...],
    no_inherit: bool,
    mode: str,
    answers_path: Optional[str],
    skip_questions: bool,
    output_dir: Optional[str],
):
    """Generate a specification for a feature."""
    feature = build_feature(
        project, title, description, stakeholders, constraints, non_functional, links, not no_inherit
    )

    console.print(Panel.fit(
        f"[bold blue]Spec Copilot[/bold blue]\n[dim]{feature.title}[/dim]",
        border_style="blue",
    ))

    context_service, config_manager = build_services(obj["workspace"])

    async def _generate():
        flow = GenerationFlow(CompletionOrchestrator(config_manager), context_service)

        with Progress(SpinnerColumn(), TextColumn("{task.description}"), console=console) as progress:
            task = progress.add_task("Analysing feature...", total=None)
            state = await flow.start(feature, GenerationMode(mode))
            progress.update(task, completed=True)

        console.print(f"[dim]Ambiguity score:[/dim] {flow.ambiguity_score:.2f}")
        if state != FlowState.CLARIFICATION_PENDING:
            return flow.result

        table = Table(title="Clarifying questions")
        table.add_column("Topic", style="cyan")
        table.add_column("Question")
        table.add_column("Why it matters", style="dim")
        for q in flow.questions.questions:
            table.add_row(q.topic, q.question, q.why_it_matters)
        console.print(table)

        answers = [] if skip_questions else collect_answers(flow, answers_path)
        with Progress(SpinnerColumn(), TextColumn("{task.description}"), console=console) as progress:
            task = progress.add_task("Generating specification...", total=None)
            result = await flow.answer(answers) if answers else await flow.skip()
            progress.update(task, completed=True)
        return result

    result = run(_generate(), config_manager)

    out_dir = Path(output_dir) if output_dir else settings.get_output_path()
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / f"{slugify(feature.project_id)}-{slugify(feature.title)}.json"
    out_path.write_text(result.model_dump_json(indent=2), encoding="utf-8")

    spec = result.output
    console.print(f"\n[green]Summary:[/green] {result.summary}")
    console.print(f"[green]Story:[/green] As a {spec.story.as_a}, I want {spec.story.i_want}, so that {spec.story.so_that}")
    console.print(f"[green]Requirements:[/green] {len(spec.functional_requirements)}  "
                  f"[green]Tasks:[/green] {len(spec.tasks)}  [green]Risks:[/green] {len(spec.risks)}")
    console.print(f"[green]Estimate:[/green] {spec.estimation.complexity.value} "
                  f"({spec.estimation.confidence:.0%} confidence)")
    console.print(f"[dim]Model:[/dim] {result.model_info.provider}/{result.model_info.model}")
    console.print(f"\n[bold]Output saved to:[/bold] {out_path}")


@cli.command()
@click.option("--description", "-d", required=True, help="Description text or path to a file")
@click.option("--stakeholder", "-s", "stakeholders", multiple=True, help="Stakeholder name (repeatable)")
@click.option("--constraint", "-c", "constraints", multiple=True, help="Constraint (repeatable)")
def score(description: str, stakeholders: Tuple[str, ...], constraints: Tuple[str, ...]):
    """Score how ambiguous a description is, without calling a model."""
    feature = build_feature("adhoc", "adhoc", description, stakeholders, constraints)
    value = calculate_ambiguity_score(feature)
    console.print(f"Ambiguity score: [bold]{value:.2f}[/bold]")
    if needs_clarification(value):
        console.print(f"[yellow]Above {settings.ambiguity_threshold} - clarifying questions would be asked[/yellow]")
    else:
        console.print("[green]Clear enough to generate directly[/green]")


# --- Project contexts -------------------------------------------------------

@cli.group()
def context():
    """Manage versioned project contexts."""


@context.command("show")
@click.argument("project")
@click.pass_obj
def context_show(obj: Dict[str, Any], project: str):
    """Print the active context of a project."""
    context_service, _ = build_services(obj["workspace"])
    resolved = run(context_service.get_project_defaults(project))
    console.print_json(resolved.model_dump_json())


@context.command("set")
@click.argument("project")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def context_set(obj: Dict[str, Any], project: str, path: str):
    """Store a context JSON file as the project's new active version."""
    context_service, _ = build_services(obj["workspace"])
    new_context = ResolvedContext.model_validate(read_json_file(path))
    version = run(context_service.create_version(project, new_context, activate=True))
    console.print(f"[green]Created version {version.version}[/green] ({version.id})")


@context.command("update")
@click.argument("project")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def context_update(obj: Dict[str, Any], project: str, path: str):
    """Deep-merge a JSON file of updates over the active context."""
    context_service, _ = build_services(obj["workspace"])
    version = run(context_service.update_context(project, read_json_file(path)))
    console.print(f"[green]Created version {version.version}[/green] ({version.id})")


@context.command("import")
@click.argument("project")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--source", type=click.Choice(["json", "jira", "confluence"]), default="json")
@click.pass_obj
def context_import(obj: Dict[str, Any], project: str, path: str, source: str):
    """Import a context as a new inactive version."""
    context_service, _ = build_services(obj["workspace"])
    try:
        run(context_service.import_context(project, source, Path(path).read_text(encoding="utf-8")))
    except NotImplementedError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    console.print("[green]Imported[/green] (inactive; use 'context activate' to apply)")


@context.command("activate")
@click.argument("version_id")
@click.pass_obj
def context_activate(obj: Dict[str, Any], version_id: str):
    """Make a stored version the active one for its project."""
    context_service, _ = build_services(obj["workspace"])
    version = run(context_service.activate_version(version_id))
    console.print(f"[green]Activated version {version.version}[/green] of {version.project_id}")


@context.command("history")
@click.argument("project")
@click.pass_obj
def context_history(obj: Dict[str, Any], project: str):
    """List context versions with the fields each one changed."""
    context_service, _ = build_services(obj["workspace"])
    entries = run(context_service.history(project))
    if not entries:
        console.print(f"[dim]No context versions for {project}[/dim]")
        return

    console.print(f"[bold]Context history:[/bold] {project}\n")
    for entry in entries:
        marker = "[green]✓ active[/green]" if entry.is_current else ""
        console.print(
            f"  v{entry.version.version}  [dim]{entry.version.id}[/dim]  "
            f"{entry.version.created_at:%Y-%m-%d %H:%M}  {marker}"
        )
        console.print(f"      changed: {', '.join(entry.diff) or '-'}")


@context.command("validate")
@click.argument("project")
@click.pass_obj
def context_validate(obj: Dict[str, Any], project: str):
    """Check the active context for missing pieces."""
    context_service, _ = build_services(obj["workspace"])
    report = context_service.validate_context(run(context_service.get_project_defaults(project)))
    status = "[green]valid[/green]" if report.is_valid else "[yellow]needs attention[/yellow]"
    console.print(f"Context for {project}: {status}")
    for warning in report.warnings:
        console.print(f"  [yellow]![/yellow] {warning}")
    for suggestion in report.suggestions:
        console.print(f"  [dim]-[/dim] {suggestion}")


@context.command("preview")
@click.argument("project")
@click.option("--stakeholder", "-s", "stakeholders", multiple=True)
@click.option("--constraint", "-c", "constraints", multiple=True)
@click.option("--nfr", "non_functional", multiple=True)
@click.pass_obj
def context_preview(
    obj: Dict[str, Any],
    project: str,
    stakeholders: Tuple[str, ...],
    constraints: Tuple[str, ...],
    non_functional: Tuple[str, ...],
):
    """Show the context a feature would resolve to, without saving anything."""
    context_service, _ = build_services(obj["workspace"])
    feature_context = InputContext(
        stakeholders=list(stakeholders),
        constraints=list(constraints),
        non_functional=list(non_functional),
    )
    preview = run(context_service.preview(project, feature_context))
    console.print_json(preview.resolved.model_dump_json())


# --- LLM backends -------------------------------------------------------------

@cli.group()
def providers():
    """Manage LLM backend configurations."""


@providers.command("list")
@click.pass_obj
def providers_list(obj: Dict[str, Any]):
    """List configured backends."""
    _, config_manager = build_services(obj["workspace"])

    async def _list():
        summaries = await config_manager.get_all_configurations()
        return summaries, config_manager.active_id

    summaries, active_id = run(_list(), config_manager)
    table = Table(title="LLM configurations")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Provider")
    table.add_column("Model")
    table.add_column("Active")
    for summary in summaries:
        table.add_row(
            summary.id,
            summary.name,
            summary.provider,
            summary.model or "-",
            "[green]✓[/green]" if summary.id == active_id else "",
        )
    console.print(table)
    console.print(f"\n[dim]Templates:[/dim] {', '.join(PREDEFINED_CONFIGS)}")


@providers.command("add")
@click.argument("config_id")
@click.option("--template", "template_id", type=click.Choice(list(PREDEFINED_CONFIGS)), required=True)
@click.option("--model", default=None, help="Model override")
@click.option("--base-url", default=None, help="Base URL override")
@click.option("--api-key", default=None, help="API key (default: from settings)")
@click.option("--activate", is_flag=True, help="Make this the active configuration")
@click.pass_obj
def providers_add(
    obj: Dict[str, Any],
    config_id: str,
    template_id: str,
    model: Optional[str],
    base_url: Optional[str],
    api_key: Optional[str],
    activate: bool,
):
    """Add a configuration built from a predefined template."""
    _, config_manager = build_services(obj["workspace"])

    customizations: Dict[str, Any] = {}
    if model:
        customizations["model"] = model
    if base_url:
        customizations["base_url"] = base_url
    provider = PREDEFINED_CONFIGS[template_id].provider
    key = api_key or {"openai": settings.openai_api_key, "anthropic": settings.anthropic_api_key}.get(provider)
    if key:
        customizations["api_key"] = key

    async def _add():
        await config_manager.initialize()
        config = config_manager.create_from_template(template_id, **customizations)
        await config_manager.add_configuration(config_id, config)
        if activate:
            await config_manager.set_active(config_id)
        return config

    config = run(_add(), config_manager)
    console.print(f"[green]Added[/green] {config_id} ({config.provider})")
    if config_manager.requires_credential(config) and not getattr(config, "api_key", ""):
        console.print("[yellow]No API key set - pass --api-key or set SPEC_COPILOT_*_API_KEY[/yellow]")


@providers.command("remove")
@click.argument("config_id")
@click.pass_obj
def providers_remove(obj: Dict[str, Any], config_id: str):
    """Remove a configuration."""
    _, config_manager = build_services(obj["workspace"])

    async def _remove():
        await config_manager.initialize()
        await config_manager.remove_configuration(config_id)

    run(_remove(), config_manager)
    console.print(f"[green]Removed[/green] {config_id}")


@providers.command("use")
@click.argument("config_id")
@click.pass_obj
def providers_use(obj: Dict[str, Any], config_id: str):
    """Make a configuration the active one."""
    _, config_manager = build_services(obj["workspace"])

    async def _use():
        await config_manager.initialize()
        await config_manager.set_active(config_id)

    run(_use(), config_manager)
    console.print(f"[green]Active configuration:[/green] {config_id}")


@providers.command("test")
@click.argument("config_id")
@click.pass_obj
def providers_test(obj: Dict[str, Any], config_id: str):
    """Send a short request to check a backend responds."""
    _, config_manager = build_services(obj["workspace"])

    async def _test():
        await config_manager.initialize()
        return await config_manager.test_configuration(config_id)

    outcome = run(_test(), config_manager)
    if outcome["success"]:
        console.print(f"[green]✓ {config_id} responded[/green]")
    else:
        console.print(f"[red]✗ {config_id} failed[/red] {outcome.get('error', '')}")
        sys.exit(1)


@providers.command("validate")
@click.pass_obj
def providers_validate(obj: Dict[str, Any]):
    """Check every configuration offline."""
    _, config_manager = build_services(obj["workspace"])

    async def _validate():
        await config_manager.initialize()
        return config_manager.validate_all()

    results = run(_validate(), config_manager)
    for result in results:
        if result.valid:
            console.print(f"  {result.id:28} [green]✓ valid[/green]")
        else:
            console.print(f"  {result.id:28} [red]✗ {'; '.join(result.errors)}[/red]")


# --- Templates ------------------------------------------------------------------

@cli.group()
def templates():
    """Inspect prompt templates."""


@templates.command("validate")
def templates_validate():
    """Render every template with its sample context."""
    failed = False
    for result in validate_all_templates():
        if result["valid"]:
            console.print(f"  {result['template']:22} [green]✓ renders[/green]")
        else:
            failed = True
            console.print(f"  {result['template']:22} [red]✗ {result['error']}[/red]")
    if failed:
        sys.exit(1)


@templates.command("render")
@click.argument("name", type=click.Choice(template_engine.available_templates()))
def templates_render(name: str):
    """Render a template with its sample context."""
    outcome = test_template_render(name)
    if not outcome["success"]:
        console.print(f"[red]Error:[/red] {outcome['error']}")
        sys.exit(1)
    console.print(outcome["result"], markup=False, highlight=False)


if __name__ == "__main__":
    cli()
