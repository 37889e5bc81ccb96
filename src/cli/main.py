"""
Typer CLI for the Akshara learning core.

Commands:
    akshara summary                     - Profile headline numbers
    akshara skills                      - Per-category skill ledger
    akshara path                        - Learning path with recommended activities
    akshara weak                        - Weak areas and the next activities to play
    akshara achievements                - Unlocked and locked achievements
    akshara due                         - Items due for spaced-repetition review
    akshara attempt CATEGORY ITEM       - Record one answer
    akshara master CATEGORY ITEM        - Mark an item mastered
    akshara play ACTIVITY SCORE         - Record a finished activity
    akshara review ITEM QUALITY         - Grade a review (SM-2 quality 0-5)
    akshara rename NAME                 - Change the display name
    akshara export                      - Print or save the profile as JSON
    akshara import FILE                 - Replace the profile from exported JSON
    akshara reset                       - Start over with a fresh profile

Usage:
    akshara --help
    akshara attempt alphabet ಅ --correct
    akshara play AksharaPopScene 120 --attempts 10 --correct 9
    akshara --data-dir /tmp/akshara summary
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import get_settings
from src.core.catalog import SkillCategory
from src.core.events import EventBus
from src.core.storage import FileStorage
from src.core.telemetry import ErrorReporter
from src.progress.store import ActivityStats, ProfileStore
from src.recommendation.engine import EngineConfig, RecommendationEngine
from src.rewards.achievements import AchievementDefinition
from src.rewards.evaluator import RewardEvaluator
from src.srs.scheduler import SM2Config, SM2Scheduler

app = typer.Typer(
    help="Akshara: adaptive Kannada learning progress from the terminal",
    no_args_is_help=True,
)

console = Console()


# ========================================
# Context Builder (Dependency Injection)
# ========================================


class CLIContext:
    """
    Dependency injection container for CLI commands.

    Builds the store on first use; engine and evaluator share it.
    """

    def __init__(self, data_dir: Path | None = None):
        self.settings = get_settings()
        self.data_dir = data_dir or self.settings.progress_storage_dir
        self.reporter = ErrorReporter(max_errors=self.settings.telemetry_max_errors)
        self.events = EventBus(reporter=self.reporter)
        self._store: ProfileStore | None = None
        self._engine: RecommendationEngine | None = None
        self._evaluator: RewardEvaluator | None = None

    @property
    def store(self) -> ProfileStore:
        if self._store is None:
            self._store = ProfileStore(
                FileStorage(self.data_dir),
                events=self.events,
                reporter=self.reporter,
                storage_key=self.settings.progress_storage_key,
            )
        return self._store

    @property
    def engine(self) -> RecommendationEngine:
        if self._engine is None:
            self._engine = RecommendationEngine(
                self.store,
                scheduler=SM2Scheduler(SM2Config(**self.settings.get_srs_config())),
                config=EngineConfig(**self.settings.get_engine_config()),
            )
        return self._engine

    @property
    def evaluator(self) -> RewardEvaluator:
        if self._evaluator is None:
            self._evaluator = RewardEvaluator(self.store)
        return self._evaluator


@app.callback()
def main_callback(
    ctx: typer.Context,
    data_dir: Path | None = typer.Option(
        None, "--data-dir", help="Profile directory (default: from config)"
    ),
) -> None:
    """Adaptive instruction core for Kannada learning."""
    ctx.obj = CLIContext(data_dir=data_dir)


def _category(value: str) -> SkillCategory:
    try:
        return SkillCategory(value.lower())
    except ValueError:
        valid = ", ".join(c.value for c in SkillCategory)
        rprint(f"[red]Unknown category '{value}'.[/red] Choose one of: {valid}")
        raise typer.Exit(code=1)


def _announce(unlocked: list[AchievementDefinition]) -> None:
    for achievement in unlocked:
        rprint(f"[bold yellow]{achievement.icon} Achievement unlocked:[/bold yellow] {achievement.name}")


def _percent(value: float) -> str:
    return f"{value * 100:.0f}%"


# ========================================
# REPORTS
# ========================================


@app.command("summary")
def summary(ctx: typer.Context) -> None:
    """Show the learner's headline numbers."""
    info = ctx.obj.store.get_profile_summary()

    table = Table(title=f"{info.player_name}'s Progress", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Level", str(info.level))
    table.add_row("Total score", str(info.total_score))
    table.add_row("Stars", str(info.total_stars))
    table.add_row("Games played", str(info.games_played))
    table.add_row("Letters learned", str(info.letters_learned))
    table.add_row("Words learned", str(info.words_learned))
    table.add_row("Started", info.created_at.strftime("%Y-%m-%d"))
    console.print(table)


@app.command("skills")
def skills(ctx: typer.Context) -> None:
    """Show the skill ledger for every category."""
    store = ctx.obj.store

    table = Table(title="Skills", show_header=True)
    table.add_column("Category", style="cyan")
    table.add_column("Level", justify="right")
    table.add_column("Attempts", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Mastered", justify="right", style="green")

    for category, skill in store.profile.skills.items():
        table.add_row(
            category.value,
            str(skill.level),
            str(skill.total_attempts),
            _percent(skill.accuracy) if skill.total_attempts else "-",
            str(len(skill.mastered_items)),
        )
    console.print(table)

    report = store.get_strengths_weaknesses()
    if report.strengths:
        rprint("[green]Strengths:[/green] " + ", ".join(s.category.value for s in report.strengths))
    if report.weaknesses:
        rprint("[red]Weaknesses:[/red] " + ", ".join(s.category.value for s in report.weaknesses))


@app.command("path")
def path(ctx: typer.Context) -> None:
    """Show the learning path through unmastered categories."""
    steps = ctx.obj.engine.generate_learning_path()
    if not steps:
        rprint("[bold green]Every category is mastered![/bold green]")
        return

    table = Table(title="Learning Path", show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Category", style="cyan")
    table.add_column("Level", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Difficulty")
    table.add_column("Activities", max_width=50)

    for number, step in enumerate(steps, start=1):
        table.add_row(
            str(number),
            step.category.value,
            str(step.current_level),
            _percent(step.accuracy),
            step.difficulty.value,
            ", ".join(step.recommended_games),
        )
    console.print(table)


@app.command("weak")
def weak(ctx: typer.Context) -> None:
    """Show weak areas and what to play next."""
    engine = ctx.obj.engine
    areas = engine.identify_weak_areas()

    if areas:
        table = Table(title="Weak Areas", show_header=True)
        table.add_column("Category", style="cyan")
        table.add_column("Accuracy", justify="right", style="red")
        table.add_column("Attempts", justify="right")
        for area in areas:
            table.add_row(area.category.value, _percent(area.accuracy), str(area.attempts))
        console.print(table)
    else:
        rprint("[green]No weak areas yet.[/green]")

    rprint("\n[bold]Play next:[/bold] " + ", ".join(engine.suggest_next_game()))


@app.command("achievements")
def achievements(ctx: typer.Context) -> None:
    """List unlocked and locked achievements."""
    evaluator = ctx.obj.evaluator
    progress = evaluator.get_achievement_progress()

    table = Table(
        title=f"Achievements ({progress.unlocked}/{progress.total}, {progress.percentage:.0f}%)",
        show_header=True,
    )
    table.add_column("", justify="center")
    table.add_column("Name", style="cyan")
    table.add_column("ಕನ್ನಡ")
    table.add_column("Description")
    table.add_column("Status", justify="center")

    for achievement in evaluator.get_unlocked_achievements():
        table.add_row(
            achievement.icon, achievement.name, achievement.name_kannada,
            achievement.description, "[green]unlocked[/green]",
        )
    for achievement in evaluator.get_locked_achievements():
        table.add_row(
            achievement.icon, achievement.name, achievement.name_kannada,
            achievement.description, "[dim]locked[/dim]",
        )
    console.print(table)


@app.command("due")
def due(ctx: typer.Context) -> None:
    """List items due for review, most overdue first."""
    store = ctx.obj.store
    items = ctx.obj.engine.scheduler.due_items(store.srs_data, store.srs_data.keys(), store.now())

    if not items:
        rprint("[green]Nothing due for review.[/green]")
        return

    table = Table(title="Due Reviews", show_header=True)
    table.add_column("Item", style="cyan")
    table.add_column("Days overdue", justify="right")
    table.add_column("Interval", justify="right")
    table.add_column("Ease", justify="right")
    table.add_column("Reviews", justify="right")
    for item in items:
        table.add_row(
            item.item,
            str(item.days_due),
            f"{item.entry.interval}d",
            f"{item.entry.ease_factor:.2f}",
            str(item.entry.review_count),
        )
    console.print(table)


# ========================================
# RECORDING
# ========================================


@app.command("attempt")
def attempt(
    ctx: typer.Context,
    category: str = typer.Argument(..., help="Skill category, e.g. alphabet"),
    item: str = typer.Argument(..., help="Letter, word or phrase attempted"),
    correct: bool = typer.Option(True, "--correct/--wrong", help="Whether the answer was right"),
    time_ms: int | None = typer.Option(
        None, "--time-ms", min=0, help="Answer time; also schedules the item's next review"
    ),
) -> None:
    """Record one answer in a category."""
    resolved = _category(category)
    hint = ctx.obj.engine.get_personalized_hint(resolved, item)
    skill = ctx.obj.store.record_attempt(resolved, item, correct)
    if skill is None:
        rprint(f"[red]Could not record {item}.[/red]")
        raise typer.Exit(code=1)

    mark = "[green]✓[/green]" if correct else "[red]✗[/red]"
    rprint(
        f"{mark} {resolved.value}/{item}: accuracy {_percent(skill.accuracy)} "
        f"({skill.correct_attempts}/{skill.total_attempts}), level {skill.level}"
    )
    if time_ms is not None:
        entry = ctx.obj.engine.review_response(item, correct, time_ms)
        rprint(f"[dim]Next review in {entry.interval}d[/dim]")
    rprint(f"[dim]{hint}[/dim]")
    _announce(ctx.obj.evaluator.check_achievements())


@app.command("master")
def master(
    ctx: typer.Context,
    category: str = typer.Argument(..., help="Skill category"),
    item: str = typer.Argument(..., help="Letter, word or phrase mastered"),
) -> None:
    """Mark an item as mastered."""
    resolved = _category(category)
    if ctx.obj.store.mark_item_mastered(resolved, item):
        rprint(f"[green]✓[/green] Mastered {item} ({resolved.value})")
    else:
        rprint(f"[dim]{item} was already mastered[/dim]")
    _announce(ctx.obj.evaluator.check_achievements())


@app.command("play")
def play(
    ctx: typer.Context,
    activity: str = typer.Argument(..., help="Activity scene key, e.g. AksharaPopScene"),
    score: int = typer.Argument(..., help="Points earned"),
    attempts: int = typer.Option(0, "--attempts", min=0, help="Answers given"),
    correct: int = typer.Option(0, "--correct", min=0, help="Correct answers"),
    play_time: int = typer.Option(0, "--time", min=0, help="Seconds played"),
) -> None:
    """Record a finished activity."""
    stats = ActivityStats(total_attempts=attempts, correct_attempts=correct, play_time=play_time)
    record = ctx.obj.store.record_activity_completion(activity, score, stats)
    if record is None:
        rprint(f"[red]Could not record {activity}.[/red]")
        raise typer.Exit(code=1)

    rprint(
        f"[green]✓[/green] {activity}: {'⭐' * record.stars or 'no stars'} "
        f"(best {record.best_score}, average {record.average_score}, {record.plays} plays)"
    )
    _announce(ctx.obj.evaluator.check_achievements())


@app.command("review")
def review(
    ctx: typer.Context,
    item: str = typer.Argument(..., help="Letter, word or phrase reviewed"),
    quality: int = typer.Argument(..., min=0, max=5, help="SM-2 grade 0-5"),
) -> None:
    """Grade a spaced-repetition review."""
    entry = ctx.obj.engine.review_item(item, quality)
    rprint(
        f"[green]✓[/green] {item}: next review in {entry.interval}d "
        f"(ease {entry.ease_factor:.2f}, mastery {_percent(ctx.obj.engine.calculate_mastery(item))})"
    )


@app.command("rename")
def rename(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="New display name"),
) -> None:
    """Change the learner's display name."""
    stored = ctx.obj.store.set_player_name(name)
    rprint(f"[green]✓[/green] Name set to {stored}")


# ========================================
# PROFILE MANAGEMENT
# ========================================


@app.command("export")
def export(
    ctx: typer.Context,
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to file instead of stdout"),
) -> None:
    """Export the profile as JSON."""
    text = ctx.obj.store.export_profile()
    if output is None:
        typer.echo(text)
        return

    output.write_text(text, encoding="utf-8")
    rprint(f"[green]✓[/green] Exported profile to {output}")


@app.command("import")
def import_(
    ctx: typer.Context,
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Exported profile JSON"),
) -> None:
    """Replace the profile with an exported one."""
    store = ctx.obj.store
    if not store.import_profile(source.read_text(encoding="utf-8")):
        latest = ctx.obj.reporter.recent_errors[-1] if ctx.obj.reporter.recent_errors else None
        reason = latest.message if latest else "unknown error"
        rprint(f"[red]Import failed:[/red] {reason}")
        raise typer.Exit(code=1)

    rprint(f"[green]✓[/green] Imported profile {store.profile.profile_id}")


@app.command("reset")
def reset(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Discard all progress and start a fresh profile."""
    if not force and not typer.confirm("Discard all progress?"):
        rprint("[dim]Cancelled[/dim]")
        raise typer.Exit()

    profile = ctx.obj.store.reset()
    rprint(f"[green]✓[/green] Started fresh profile {profile.profile_id}")


# ========================================
# Entry Point
# ========================================


def main() -> None:
    """CLI entry point."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level,
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
