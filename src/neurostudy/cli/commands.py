"""CLI commands for NeuroStudy.

Commands:
- profile: Show the derived experience profile
- modes / mode: List and toggle support modes
- energy / timer: Record today's energy and the preferred timer
- prompt / steps: Inspect tutor prompts and micro-steps
- seed: Load curriculum into the database
- plan / tasks / move / remove / step: Today's plan
- focus / progress: Focus sessions and gamified progress
- notes: Summarise a .txt/.md/.pdf file into study notes
- chat: Talk to the tutor through a running API server
"""

from dataclasses import replace
from pathlib import Path

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from neurostudy.config.support_modes import list_mode_info
from neurostudy.core.curriculum import (
    DEMO_CURRICULUM_FILE,
    CurriculumLoadError,
    load_curriculum_file,
)
from neurostudy.core.daily_tasks import TaskNotFoundError
from neurostudy.core.focus_session import (
    BADGES,
    EndReason,
    SessionAlreadyEndedError,
)
from neurostudy.core.micro_steps import generate_micro_steps
from neurostudy.core.modes import EnergyLevel, parse_mode, parse_modes
from neurostudy.core.notes_generator import (
    NotesGenerationError,
    UploadValidationError,
    generate_notes,
    notes_error_message,
    read_upload,
)
from neurostudy.core.preferences import (
    PreferencesValidationError,
    validate_timer_preset,
)
from neurostudy.core.study_service import FocusSessionNotFoundError, get_study_service
from neurostudy.core.tutor_prompt import ChapterContext, build_greeting, build_system_prompt
from neurostudy.core.tutor_stream import TutorChat, http_transport
from neurostudy.db.curriculum_repository import get_chapter, seed_curriculum
from neurostudy.llm.client import GatewayError, LLMClient, LLMConfig

app = typer.Typer(
    name="neurostudy",
    help="Study companion with neurodivergent support modes.",
    no_args_is_help=True,
)

console = Console()

STATUS_COLORS = {
    "pending": "blue",
    "in_progress": "yellow",
    "completed": "green",
    "skipped": "dim",
}


def _flag(value: bool) -> str:
    return "[green]on[/green]" if value else "[dim]off[/dim]"


def _print_tasks(tasks) -> None:
    if not tasks:
        console.print("[yellow]No tasks planned for today[/yellow]")
        console.print("  Use: neurostudy seed && neurostudy plan")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", width=3)
    table.add_column("Task", style="cyan")
    table.add_column("Subject")
    table.add_column("Min", justify="right", width=4)
    table.add_column("Steps", justify="center", width=7)
    table.add_column("Status")
    table.add_column("ID", style="dim")

    for task in tasks:
        color = STATUS_COLORS.get(task.status.value, "white")
        table.add_row(
            str(task.order_index + 1),
            task.title,
            task.subject_name,
            str(task.estimated_minutes),
            f"{task.completed_micro_steps}/{len(task.micro_steps)}",
            f"[{color}]{task.status.value}[/{color}]",
            task.id[:8],
        )
    console.print(table)


def _resolve_task_id(prefix: str) -> str:
    """Resolve a task id prefix against today's plan, or exit."""
    tasks = get_study_service().today_tasks(generate=False)
    matches = [t.id for t in tasks if t.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        console.print(f"[red]✗ Task '{prefix}' not found[/red]")
    else:
        console.print(f"[red]✗ Ambiguous task id '{prefix}'[/red]")
    raise typer.Exit(code=1)


# =============================================================================
# PROFILE & MODES
# =============================================================================


@app.command()
def profile() -> None:
    """Show the experience profile derived from modes and energy."""
    service = get_study_service()
    p = service.profile()

    active = ", ".join(m.value for m in p.active_modes) or "none"
    console.print(f"\n[bold]Experience profile[/bold]  [dim]energy:[/dim] {service.energy_level.value}\n")
    console.print(f"  [dim]modes:[/dim]        {active}")
    timer_text = "untimed" if p.untimed else f"{p.default_timer_minutes} min"
    console.print(f"  [dim]timer:[/dim]        {timer_text}")
    console.print(f"  [dim]max tasks:[/dim]    {p.max_tasks_today}")
    console.print(f"  [dim]micro-steps:[/dim]  {p.micro_steps_granularity}")
    console.print(f"  [dim]quick start:[/dim]  {_flag(p.show_quick_start)}")
    console.print(f"  [dim]math steps:[/dim]   {_flag(p.math_step_mode)}")
    console.print(f"  [dim]large buttons:[/dim] {_flag(p.large_buttons)}")
    console.print(f"  [dim]styles:[/dim]       {' '.join(p.body_classes) or '-'}")
    console.print(f"\n  [italic]{p.energy_message}[/italic]\n")


@app.command()
def modes() -> None:
    """List support modes and whether each is enabled."""
    preferences = get_study_service().preferences

    for info in list_mode_info():
        mark = "[green]✓[/green]" if preferences.has_mode(info.mode) else " "
        console.print(f"  {mark} {info.icon} [bold]{info.label}[/bold] [dim]({info.mode.value})[/dim]")
        if info.subtitle:
            console.print(f"      [dim]{info.subtitle}[/dim]")


@app.command()
def mode(
    name: str = typer.Argument(..., help="Mode tag, e.g. 'adhd' or 'sensory_safe'"),
    off: bool = typer.Option(False, "--off", help="Disable instead of enable"),
) -> None:
    """Enable (or disable with --off) a support mode."""
    parsed = parse_mode(name)
    if parsed is None:
        console.print(f"[red]✗ Unknown mode: {name}[/red]")
        console.print("  Use: neurostudy modes")
        raise typer.Exit(code=1)

    p = get_study_service().update_mode(parsed, not off)
    state = "disabled" if off else "enabled"
    console.print(f"[green]✓ {parsed.value} {state}[/green]")
    console.print(f"  [dim]timer:[/dim] {p.default_timer_minutes} min  [dim]max tasks:[/dim] {p.max_tasks_today}")


@app.command()
def energy(
    level: EnergyLevel = typer.Argument(..., help="low, normal or high"),
) -> None:
    """Record today's energy level."""
    p = get_study_service().set_energy_level(level)
    console.print(f"[green]✓ Energy set to {level.value}[/green]")
    console.print(f"  [italic]{p.energy_message}[/italic]")


@app.command()
def timer(
    minutes: int = typer.Argument(..., help="Preferred focus timer: 10, 25 or 45"),
) -> None:
    """Set the preferred focus timer preset."""
    try:
        validate_timer_preset(minutes)
    except PreferencesValidationError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    service = get_study_service()
    p = service.set_preferences(replace(service.preferences, timer_preset=minutes))
    console.print(f"[green]✓ Timer preset: {minutes} min[/green]")
    if p.default_timer_minutes != minutes:
        console.print(f"  [yellow]⚠ Active profile uses {p.default_timer_minutes} min[/yellow]")


# =============================================================================
# PROMPTS & MICRO-STEPS
# =============================================================================


@app.command()
def prompt(
    mode_tags: list[str] | None = typer.Option(
        None, "--mode", "-m", help="Mode tag (repeatable). Default: saved modes"
    ),
    chapter_id: str | None = typer.Option(
        None, "--chapter", "-c", help="Chapter id for chapter context"
    ),
    greeting: bool = typer.Option(
        False, "--greeting", "-g", help="Show the opening greeting instead"
    ),
) -> None:
    """Print the tutor system prompt (or greeting) for a set of modes."""
    service = get_study_service()
    active = parse_modes(mode_tags) if mode_tags else list(service.preferences.selected_modes)

    context = None
    if chapter_id:
        chapter = get_chapter(chapter_id)
        if chapter is None:
            console.print(f"[red]✗ Chapter not found: {chapter_id}[/red]")
            raise typer.Exit(code=1)
        context = ChapterContext(chapter.title, chapter.summary, tuple(chapter.key_points))

    text = build_greeting(active, context) if greeting else build_system_prompt(active, context)
    console.print(text, markup=False, highlight=False)


@app.command()
def steps(
    title: str = typer.Argument(..., help="Task title"),
    detailed: bool | None = typer.Option(
        None, "--detailed/--normal", help="Granularity (default: from profile)"
    ),
) -> None:
    """Show the micro-steps for a task title."""
    if detailed is None:
        detailed = get_study_service().profile().detailed_micro_steps

    for i, step in enumerate(generate_micro_steps(title, detailed), start=1):
        console.print(f"  {i:>2}. {step}")


# =============================================================================
# CURRICULUM & PLAN
# =============================================================================


@app.command()
def seed(
    file: Path | None = typer.Option(
        None, "--file", "-f", help="Curriculum YAML (default: demo curriculum)"
    ),
) -> None:
    """Load curriculum chapters and practice questions into the database."""
    path = file or DEMO_CURRICULUM_FILE
    get_study_service()  # opens the database

    try:
        chapters = load_curriculum_file(path)
    except CurriculumLoadError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    count = seed_curriculum(chapters)
    questions = sum(len(c.questions) for c in chapters)
    console.print(f"[green]✓ Seeded {count} chapters[/green]")
    console.print(f"  [dim]questions:[/dim] {questions}")
    console.print(f"  [dim]source:[/dim]    {path}")


@app.command()
def plan(
    seed_value: int | None = typer.Option(
        None, "--seed", help="Random seed for a reproducible plan"
    ),
) -> None:
    """Generate (or regenerate) today's plan."""
    tasks = get_study_service().generate_tasks(seed=seed_value)
    console.print(f"[green]✓ Planned {len(tasks)} tasks for today[/green]")
    _print_tasks(tasks)


@app.command()
def tasks() -> None:
    """Show today's plan (generated on first use of the day)."""
    _print_tasks(get_study_service().today_tasks())


@app.command()
def move(
    task_id: str = typer.Argument(..., help="Task id or unique prefix"),
    direction: str = typer.Argument(..., help="up or down"),
) -> None:
    """Move a task up or down in today's plan."""
    if direction not in ("up", "down"):
        console.print("[red]✗ Direction must be 'up' or 'down'[/red]")
        raise typer.Exit(code=1)
    _print_tasks(get_study_service().move_task(_resolve_task_id(task_id), direction))


@app.command()
def remove(
    task_id: str = typer.Argument(..., help="Task id or unique prefix"),
) -> None:
    """Remove a task from today's plan."""
    _print_tasks(get_study_service().remove_task(_resolve_task_id(task_id)))


@app.command()
def step(
    task_id: str = typer.Argument(..., help="Task id or unique prefix"),
) -> None:
    """Mark the current micro-step of a task as done."""
    try:
        task = get_study_service().complete_micro_step(_resolve_task_id(task_id))
    except TaskNotFoundError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ {task.completed_micro_steps}/{len(task.micro_steps)} steps[/green]")
    if task.current_step:
        console.print(f"  [dim]next:[/dim] {task.current_step}")
    else:
        console.print("  All steps done!")


# =============================================================================
# FOCUS SESSIONS & PROGRESS
# =============================================================================


@app.command()
def focus(
    task_id: str | None = typer.Argument(None, help="Task id or prefix (omit for a quick session)"),
    minutes: int | None = typer.Option(None, "--minutes", "-t", help="Planned minutes"),
) -> None:
    """Start a focus session."""
    resolved = _resolve_task_id(task_id) if task_id else None
    session = get_study_service().start_session(task_id=resolved, planned_duration=minutes)
    console.print(f"[green]✓ Focus session started ({session.planned_duration} min)[/green]")
    console.print(f"  [dim]session:[/dim] {session.id}")
    console.print(f"  Use: neurostudy finish {session.id}")


@app.command()
def finish(
    session_id: str = typer.Argument(..., help="Focus session id"),
    stopped: bool = typer.Option(False, "--stopped", help="Stopped early (no XP)"),
) -> None:
    """End a focus session."""
    reason = EndReason.USER_STOPPED if stopped else EndReason.COMPLETED
    try:
        session, new_badges = get_study_service().end_session(
            session_id, completed=not stopped, reason=reason
        )
    except (FocusSessionNotFoundError, SessionAlreadyEndedError) as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Session ended: {session.actual_duration} min, +{session.xp_earned} XP[/green]")
    names = {b.id: f"{b.icon} {b.name}" for b in BADGES}
    for badge in new_badges:
        console.print(f"  [yellow]New badge: {names.get(badge, badge)}[/yellow]")


@app.command()
def progress() -> None:
    """Show XP, streaks and badges."""
    p = get_study_service().progress()
    console.print("\n[bold]Progress[/bold]\n")
    console.print(f"  [dim]XP:[/dim]             {p.total_xp}")
    console.print(f"  [dim]focused:[/dim]        {p.total_focused_minutes} min")
    console.print(f"  [dim]sessions:[/dim]       {p.total_sessions_completed}")
    console.print(f"  [dim]streak:[/dim]         {p.current_streak} (best {p.longest_streak})")
    for badge in BADGES:
        mark = "[green]✓[/green]" if badge.id in p.badges else "[dim]·[/dim]"
        console.print(f"  {mark} {badge.icon} {badge.name}")


# =============================================================================
# NOTES & TUTOR
# =============================================================================


@app.command()
def notes(
    file: Path = typer.Argument(..., help=".txt, .md or .pdf file"),
    detail: str = typer.Option(
        "standard", "--detail", "-d", help="brief, standard or comprehensive"
    ),
    provider: str | None = typer.Option(
        None, "--provider", "-p", help="LLM provider: gateway, lmstudio, openai"
    ),
) -> None:
    """Summarise a file into structured study notes."""
    if not file.exists():
        console.print(f"[red]✗ File not found: {file}[/red]")
        raise typer.Exit(code=1)

    try:
        content = read_upload(file)
    except UploadValidationError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    service = get_study_service()
    client = LLMClient(LLMConfig.from_app_config(provider))
    console.print(f"[blue]Generating notes for {file.name}...[/blue]")

    try:
        result = generate_notes(
            content,
            detail_level=detail,
            modes=service.preferences.selected_modes,
            client=client,
        )
    except GatewayError as e:
        console.print(f"[red]✗ {notes_error_message(e)}[/red]")
        raise typer.Exit(code=1)
    except NotesGenerationError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    if result.truncated:
        console.print("  [yellow]⚠ Content was truncated; notes cover an excerpt[/yellow]")

    console.print(Panel(Markdown(result.summary), title="[bold]Summary[/bold]", expand=False))
    sections = (
        ("Key points", result.notes.key_points),
        ("Main themes", result.notes.main_themes),
        ("Important details", result.notes.important_details),
        ("Action items", result.notes.action_items),
    )
    for heading, items in sections:
        if items:
            console.print(f"\n[bold]{heading}[/bold]")
            for item in items:
                console.print(f"  • {item}")


@app.command()
def chat(
    url: str = typer.Option(
        "http://localhost:8000", "--url", help="Base URL of a running API server"
    ),
    chapter_id: str | None = typer.Option(
        None, "--chapter", "-c", help="Chapter id for chapter context"
    ),
) -> None:
    """Chat with the AI tutor (type 'exit' to leave)."""
    service = get_study_service()

    context = None
    if chapter_id:
        chapter = get_chapter(chapter_id)
        if chapter is None:
            console.print(f"[red]✗ Chapter not found: {chapter_id}[/red]")
            raise typer.Exit(code=1)
        context = ChapterContext(chapter.title, chapter.summary, tuple(chapter.key_points))

    conversation = TutorChat(modes=service.preferences.selected_modes, chapter_context=context)
    transport = http_transport(url)
    console.print(Panel(conversation.messages[0].content, title="Tutor", expand=False))

    while True:
        text = typer.prompt("You").strip()
        if text.lower() in ("exit", "quit", "stop"):
            break
        conversation.send(text, transport)
        console.print(Markdown(conversation.messages[-1].content))
