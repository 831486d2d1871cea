"""Typer CLI for lp-generator."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from lp_generator.config import AiSettings, get_settings
from lp_generator.content import ContentModel
from lp_generator.graph import KINDS, configure_logging, get_kind, run_generation
from lp_generator.mappers import BlueprintMapper, DecorationMapper, DesignMapper, ReferenceStyleMapper
from lp_generator.models import (
    ContentBlueprint,
    DecorationSpec,
    DesignSpec,
    HtmlCssBundle,
    ReferenceStyleSpec,
    RunMeta,
)
from lp_generator.resources import list_examples, read_text
from lp_generator.safety import validate_html_css
from lp_generator.storage import (
    ARTIFACT_NAMES,
    artifact_path,
    create_run_dir,
    find_run_dir,
    list_runs,
    read_json,
    save_run_prompt,
    write_json,
    write_text,
)

app = typer.Typer(
    name="lpgen",
    help="lp-generator: AI landing-page content, design tokens and markup.",
    add_completion=False,
)
console = Console()

DEFAULT_RUNS_DIR = "runs"

STYLE_MAPPERS = {
    "design": (DesignSpec, DesignMapper()),
    "decoration": (DecorationSpec, DecorationMapper()),
    "reference_design": (ReferenceStyleSpec, ReferenceStyleMapper()),
}


def _resolve_run(output: str, run_id: str) -> Path:
    """Find a run directory or exit with an error."""
    run_dir = find_run_dir(output, run_id)
    if run_dir is None:
        rprint(f"[red]Error:[/red] Run not found: {run_id}")
        raise typer.Exit(1)
    return run_dir


def _load_meta(run_dir: Path) -> RunMeta:
    return RunMeta.model_validate(read_json(run_dir / "meta.json"))


def _save_meta(run_dir: Path, meta: RunMeta) -> None:
    meta.updated_at = datetime.now(timezone.utc).isoformat()
    write_json(run_dir / "meta.json", meta.model_dump())


def _load_artifact(run_dir: Path):
    path = artifact_path(run_dir, "artifact")
    if not path.exists():
        rprint(f"[red]Error:[/red] artifact.json not found in {run_dir}")
        raise typer.Exit(1)
    return read_json(path)


def _make_transport(settings: AiSettings):
    """Instantiate the OpenAI transport; None lets the run fail as not configured."""
    if not settings.has_api_key:
        return None
    try:
        from lp_generator.llm.openai_provider import OpenAIChatTransport
        return OpenAIChatTransport(settings)
    except EnvironmentError as exc:
        rprint(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)


def _format_messages(messages) -> str:
    return "\n\n".join(f"[{m.role}]\n{m.content}" for m in messages)


# ── generate ─────────────────────────────────────────────────────────────────

@app.command()
def generate(
    kind_name: str = typer.Argument(..., metavar="KIND", help=f"Generation kind: {', '.join(KINDS)}"),
    request_path: str = typer.Argument(..., help="Path to a YAML request file."),
    output: str = typer.Option(DEFAULT_RUNS_DIR, "-o", "--output", help="Base directory for runs."),
    blueprint_run: Optional[str] = typer.Option(
        None, "--blueprint-run", "-b", help="Blueprint run to feed the zip kind."
    ),
) -> None:
    """Run one generation and store the outcome in a new run folder."""
    try:
        kind = get_kind(kind_name)
    except ValueError as exc:
        rprint(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    path = Path(request_path)
    if not path.exists():
        rprint(f"[red]Error:[/red] Request file not found: {path}")
        raise typer.Exit(1)

    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if blueprint_run:
        if kind.name != "zip":
            rprint("[red]Error:[/red] --blueprint-run only applies to the zip kind")
            raise typer.Exit(1)
        raw["blueprint"] = _load_artifact(_resolve_run(output, blueprint_run))

    try:
        request = kind.parse_request(raw)
    except Exception as exc:
        rprint(f"[red]Error:[/red] Invalid request: {exc}")
        raise typer.Exit(1)

    settings = get_settings()
    configure_logging(settings.log_level)
    transport = _make_transport(settings)

    paths = create_run_dir(output, kind.name, path.stem)
    write_json(paths.request_json, request.model_dump(by_alias=True))
    meta = RunMeta(run_id=paths.run_id, kind=kind.name, model=kind.model(settings))
    _save_meta(paths.run_dir, meta)

    first_prompt = kind.build_prompt(request, input_limit=settings.input_limit())
    save_run_prompt(paths.run_dir, f"{kind.name}.txt", _format_messages(first_prompt))

    rprint(f"[blue]Generating[/blue] {kind.name} with [bold]{meta.model}[/bold]...")
    outcome = run_generation(kind, request, transport, settings)

    meta.attempts = outcome.attempts
    meta.errors = list(outcome.errors)
    if not outcome.success:
        meta.status = "failed"
        meta.user_message = outcome.user_message
        _save_meta(paths.run_dir, meta)
        rprint(f"[red]Error:[/red] {outcome.user_message}")
        for error in outcome.errors:
            rprint(f"  [dim]- {error}[/dim]")
        raise typer.Exit(1)

    artifact = outcome.artifact
    if isinstance(artifact, HtmlCssBundle):
        write_text(paths.index_html, artifact.html + "\n")
        write_text(paths.styles_css, artifact.css + "\n")
        paths.bundle_zip.write_bytes(artifact.zip_bytes)
    else:
        write_json(paths.artifact_json, outcome.artifact_json())
    write_json(paths.warnings_json, outcome.warnings)

    meta.status = "succeeded"
    _save_meta(paths.run_dir, meta)

    rprint(f"[green]Run created:[/green] {paths.run_id}")
    rprint(f"  [dim]{paths.run_dir}[/dim]")
    rprint(f"  [dim]attempts={outcome.attempts} warnings={len(outcome.warnings)}[/dim]")
    if outcome.warnings:
        rprint(Panel(Text("\n".join(outcome.warnings)), title="Warnings", border_style="yellow"))


# ── list ─────────────────────────────────────────────────────────────────────

@app.command(name="list")
def list_cmd(
    output: str = typer.Option(DEFAULT_RUNS_DIR, "-o", "--output", help="Base directory for runs."),
    n: int = typer.Option(20, "--n", "-n", help="Number of recent runs to show."),
) -> None:
    """List recent run folders."""
    runs = list_runs(output, limit=n)
    if not runs:
        rprint("[dim]No runs found.[/dim]")
        raise typer.Exit(0)

    table = Table(title="Recent Runs", show_lines=False)
    table.add_column("#", style="dim", width=4)
    table.add_column("Run ID")
    table.add_column("Status")
    for i, name in enumerate(runs, 1):
        meta_file = Path(output) / name / "meta.json"
        status = RunMeta.model_validate(read_json(meta_file)).status if meta_file.exists() else "-"
        table.add_row(str(i), name, status)
    console.print(table)


# ── show ─────────────────────────────────────────────────────────────────────

def _print_run_notes(run_dir: Path) -> None:
    """Status line plus error and warning panels for a stored run."""
    meta_file = artifact_path(run_dir, "meta")
    if meta_file.exists():
        meta = RunMeta.model_validate(read_json(meta_file))
        rprint(f"[dim]{meta.kind} status={meta.status} attempts={meta.attempts} model={meta.model}[/dim]")
        if meta.status == "failed":
            details = [meta.user_message or "", *(f"- {e}" for e in meta.errors)]
            rprint(Panel(Text("\n".join(d for d in details if d)), title="Errors", border_style="red"))

    warnings_file = artifact_path(run_dir, "warnings")
    warnings = read_json(warnings_file) if warnings_file.exists() else []
    if warnings:
        rprint(Panel(Text("\n".join(warnings)), title="Warnings", border_style="yellow"))


@app.command()
def show(
    run_id: str = typer.Argument(..., help="Run ID (exact name or prefix)."),
    output: str = typer.Option(DEFAULT_RUNS_DIR, "-o", "--output", help="Base directory for runs."),
    artifact: str = typer.Option("meta", "-a", "--artifact", help=f"Artifact to display: {', '.join(ARTIFACT_NAMES)}"),
) -> None:
    """Print one stored file of a run, then its errors and warnings."""
    run_dir = _resolve_run(output, run_id)
    try:
        path = artifact_path(run_dir, artifact)
    except ValueError as exc:
        rprint(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    if path.exists():
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            try:
                console.print_json(text)
            except json.JSONDecodeError:
                console.print(text, markup=False, highlight=False)
        else:
            console.print(text, markup=False, highlight=False)
    else:
        # markup runs and failed runs have no artifact.json
        rprint(f"[yellow]No {path.name} in {run_dir.name}[/yellow]")

    _print_run_notes(run_dir)


# ── check ────────────────────────────────────────────────────────────────────

@app.command()
def check(
    html_path: str = typer.Argument(..., help="Path to index.html."),
    css_path: str = typer.Argument(..., help="Path to styles.css."),
) -> None:
    """Run the markup safety filter over an HTML/CSS pair."""
    html_file, css_file = Path(html_path), Path(css_path)
    for p in (html_file, css_file):
        if not p.exists():
            rprint(f"[red]Error:[/red] File not found: {p}")
            raise typer.Exit(1)

    violations = validate_html_css(html_file.read_text(encoding="utf-8"), css_file.read_text(encoding="utf-8"))
    if violations:
        for violation in violations:
            rprint(f"[red]Violation:[/red] {violation}")
        raise typer.Exit(1)
    rprint("[green]OK:[/green] no violations")


# ── apply ────────────────────────────────────────────────────────────────────

@app.command()
def apply(
    run_id: str = typer.Argument(..., help="Blueprint run ID (exact name or prefix)."),
    output: str = typer.Option(DEFAULT_RUNS_DIR, "-o", "--output", help="Base directory for runs."),
    content_path: Optional[str] = typer.Option(None, "--content", "-c", help="Existing content JSON to update."),
    dest: str = typer.Option("content.json", "--dest", "-d", help="Where to write the content JSON."),
) -> None:
    """Map a blueprint run onto a content model JSON."""
    run_dir = _resolve_run(output, run_id)
    meta = _load_meta(run_dir)
    if meta.kind != "blueprint":
        rprint(f"[red]Error:[/red] Run {meta.run_id} is a {meta.kind} run, not a blueprint run")
        raise typer.Exit(1)

    blueprint = ContentBlueprint.model_validate(_load_artifact(run_dir))
    if content_path:
        source = Path(content_path)
        if not source.exists():
            rprint(f"[red]Error:[/red] Content file not found: {source}")
            raise typer.Exit(1)
        content = ContentModel.model_validate(read_json(source))
    else:
        content = ContentModel()

    BlueprintMapper().apply(content, blueprint)
    write_json(Path(dest), content.model_dump())

    groups = ", ".join(g.key for g in content.section_groups) or "(none)"
    rprint(f"[green]Content written:[/green] {dest}")
    rprint(f"  [dim]sections: {groups}[/dim]")


# ── style ────────────────────────────────────────────────────────────────────

@app.command()
def style(
    run_id: str = typer.Argument(..., help="Design, decoration or reference run ID."),
    output: str = typer.Option(DEFAULT_RUNS_DIR, "-o", "--output", help="Base directory for runs."),
    selector: str = typer.Option(":root", "--selector", "-s", help="CSS selector for the variables."),
) -> None:
    """Print the CSS variables and classes for a style run."""
    run_dir = _resolve_run(output, run_id)
    meta = _load_meta(run_dir)
    if meta.kind not in STYLE_MAPPERS:
        rprint(f"[red]Error:[/red] No style mapping for {meta.kind} runs")
        raise typer.Exit(1)

    model, mapper = STYLE_MAPPERS[meta.kind]
    mapping = mapper.map(model.model_validate(_load_artifact(run_dir)))
    console.print(mapping.to_css(selector), markup=False)
    rprint(f"[dim]classes: {mapping.class_attr()}[/dim]")


# ── init ─────────────────────────────────────────────────────────────────────

@app.command()
def init(
    output_dir: str = typer.Option(".", "-o", "--output", help="Directory to create starter files in."),
    force: bool = typer.Option(False, "--force", help="Overwrite existing files."),
) -> None:
    """Create starter request files for every generation kind.

    Run this to get started quickly:
        lpgen init
        lpgen init -o ./requests
    """
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    for name in list_examples():
        target = out / name
        if target.exists() and not force:
            rprint(f"[yellow]Skipped:[/yellow] {target} already exists (use --force to overwrite)")
            continue
        target.write_text(read_text(f"examples/{name}"), encoding="utf-8")
        rprint(f"[green]Created:[/green] {target}")

    rprint()
    rprint("Next steps:")
    rprint("  1. Set [bold]LP_AI_API_KEY[/bold] (or OPENAI_API_KEY)")
    rprint(f"  2. Run: [bold]lpgen generate blueprint {out / 'lp_request.yaml'}[/bold]")
    rprint()
    rprint("For private prompt overrides, set:")
    rprint("  export LP_GENERATOR_PRIVATE_DIR=/path/to/your/private/dir")


if __name__ == "__main__":
    app()
