"""Mnemos CLI: scheduling previews, learner analysis and session planning."""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer
from fastapi.encoders import jsonable_encoder

from mnemos.application.config import EngineConfig, resolve_config
from mnemos.domain.adaptive.models import Severity
from mnemos.domain.cards.models import CardProgress, Direction
from mnemos.infrastructure.adapters.snapshot import LearnerSnapshot, SnapshotError, load_snapshot

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mnemos: adaptive spaced-repetition engine for vocabulary decks.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Inspect mnemos configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

SEVERITY_COLORS = {
    Severity.CRITICAL: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for mnemos."""
    ctx.ensure_object(dict)
    config = resolve_config()
    level = logging.DEBUG if verbose else getattr(logging, config.log_level)
    logging.getLogger().setLevel(level)
    ctx.obj["config"] = config


def _config(ctx: typer.Context) -> EngineConfig:
    if ctx.obj and "config" in ctx.obj:
        return ctx.obj["config"]
    return resolve_config()


def _load(path: Path) -> LearnerSnapshot:
    try:
        return load_snapshot(path)
    except SnapshotError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1) from None


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(jsonable_encoder(payload), indent=2))


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def preview(
    ctx: typer.Context,
    quality: Annotated[int, typer.Argument(help="Quality rating 0-5 for the review.")],
    ease: Annotated[float, typer.Option(help="Current ease factor.")] = 2.5,
    interval: Annotated[int, typer.Option(help="Current interval in days.")] = 0,
    repetitions: Annotated[int, typer.Option(help="Consecutive successful reviews.")] = 0,
    mastery_level: Annotated[int, typer.Option(help="Current mastery level 0-4.")] = 0,
    snapshot: Annotated[
        Path | None,
        typer.Option(help="Learner snapshot; enables smart-scheduling factors."),
    ] = None,
    card: Annotated[
        str | None, typer.Option(help="Card id in the snapshot (required with --snapshot).")
    ] = None,
    direction: Annotated[Direction, typer.Option(help="Review direction.")] = Direction.FORWARD,
    on: Annotated[
        datetime | None, typer.Option("--on", help="Review time (defaults to now).")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """[bold green]Preview[/bold green] the next schedule for one review, without saving."""
    import asyncio

    from mnemos.application.factory import build_service
    from mnemos.application.scheduling.sm2 import schedule
    from mnemos.application.scheduling.smart import ScheduleContext, schedule_smart
    from mnemos.domain.adaptive.models import ScheduleFactors

    config = _config(ctx)
    now = on or datetime.now()
    progress = CardProgress(
        card_id=card or "preview",
        direction=direction,
        ease_factor=ease,
        interval=interval,
        repetitions=repetitions,
        mastery_level=mastery_level,
        next_review_date=now.date(),
    )

    if snapshot is None:
        updated = schedule(progress, quality, today=now.date(), settings=config.scheduling)
        factors = ScheduleFactors(base_interval=updated.interval)
    else:
        if card is None:
            typer.secho("--card is required with --snapshot.", fg="red", err=True)
            raise typer.Exit(2)
        learner = _load(snapshot)
        flashcard = next((f for f in learner.flashcards if f.id == card), None)
        if flashcard is None:
            typer.secho(f"Error: unknown card {card}", fg="red", err=True)
            raise typer.Exit(1)
        stored = {p.key: p for p in learner.progress}.get((card, direction), progress)
        service = build_service(learner, config)

        async def run() -> tuple[CardProgress, ScheduleFactors]:
            context: ScheduleContext = await service.schedule_context(now)
            return schedule_smart(
                flashcard, stored, quality, context, today=now.date(), settings=config.scheduling
            )

        updated, factors = asyncio.run(run())

    if json_output:
        _echo_json({"progress": updated, "factors": factors})
        return

    typer.echo(
        f"Quality {updated.last_quality}: interval {updated.interval}d, "
        f"ease {updated.ease_factor:.2f}, repetitions {updated.repetitions}"
    )
    typer.echo(f"Next review: {updated.next_review_date.isoformat()}")
    typer.echo(f"Mastery level: {updated.mastery_level} ({updated.consecutive_correct} in a row)")
    if factors.reasons:
        typer.echo(f"Base interval {factors.base_interval}d, x{factors.combined_multiplier:.3f}:")
        for reason in factors.reasons:
            typer.echo(f"  - {reason}")


@app.command()
def analyze(
    ctx: typer.Context,
    snapshot: Annotated[Path, typer.Argument(help="Learner snapshot (YAML or JSON).")],
    perfect_streak: Annotated[
        int | None, typer.Option(help="Override the snapshot's perfect streak.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Detect weak spots, learning style and difficulty for a learner snapshot."""
    import asyncio

    from mnemos.application.factory import build_service

    config = _config(ctx)
    learner = _load(snapshot)
    service = build_service(learner, config)
    now = learner.now or datetime.now()
    streak = learner.perfect_streak if perfect_streak is None else perfect_streak

    async def run():
        await service.adjust_difficulty(streak, now=now)
        return await service.analyze(now=now)

    report = asyncio.run(run())

    if json_output:
        _echo_json(report)
        return

    typer.echo(f"Cards: {len(learner.flashcards)}  Sessions: {len(learner.sessions)}")
    if report.weak_spots:
        typer.secho(f"\nWeak spots: {len(report.weak_spots)}", fg="yellow")
        for spot in report.weak_spots:
            typer.secho(
                f"  [{spot.severity.value}] {spot.target} ({spot.score:.0f})",
                fg=SEVERITY_COLORS[spot.severity],
            )
            typer.echo(f"      {spot.description}. {spot.suggested_action}.")
    else:
        typer.secho("Weak spots: 0", fg="green")

    style = report.learning_style
    if style.primary_style is None:
        typer.echo(f"\nLearning style: not enough data ({style.sessions_analyzed} sessions)")
    else:
        secondary = f", secondary {style.secondary_style.value}" if style.secondary_style else ""
        typer.echo(
            f"\nLearning style: {style.primary_style.value}{secondary} "
            f"(confidence {style.confidence_level:.0f}%)"
        )

    difficulty = report.difficulty
    typer.echo(f"Difficulty: {difficulty.global_level} ({difficulty.recent_trend.value})")
    if difficulty.adjustment_history:
        last = difficulty.adjustment_history[-1]
        typer.echo(f"  {last.previous_level} -> {last.new_level}: {last.reason}")


@app.command()
def plan(
    ctx: typer.Context,
    snapshot: Annotated[Path, typer.Argument(help="Learner snapshot (YAML or JSON).")],
    cards: Annotated[
        int | None, typer.Option(help="Target session size. Defaults to config.")
    ] = None,
    seed: Annotated[
        int | None, typer.Option(help="Shuffle cards within each bucket reproducibly.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Daily recommendations and the next session's composition."""
    import asyncio

    from mnemos.application.factory import build_service

    config = _config(ctx)
    learner = _load(snapshot)
    service = build_service(learner, config)
    now = learner.now or datetime.now()

    async def run():
        await service.adjust_difficulty(learner.perfect_streak, now=now)
        return await service.plan(
            current_streak=learner.current_streak,
            last_study_date=learner.last_study_date,
            daily_goal=learner.daily_goal,
            target_cards=cards,
            seed=seed,
            now=now,
        )

    result = asyncio.run(run())

    if json_output:
        _echo_json(result)
        return

    daily = result.daily
    typer.secho(f"Plan for {daily.date.isoformat()}", bold=True)
    for rec in daily.recommendations:
        typer.echo(
            f"  {rec.priority}. {rec.title} - {rec.suggested_card_count} cards, "
            f"~{rec.estimated_time_minutes} min"
        )
        typer.echo(f"     {rec.reasoning}")
    if not daily.recommendations:
        typer.secho("  Nothing to do today.", fg="green")
    slots = ", ".join(slot.value for slot in daily.optimal_time_slots)
    typer.echo(f"Best times: {slots}")

    comp = result.composition
    typer.echo(
        f"\nSession: {comp.total_cards} cards (~{comp.estimated_duration_minutes} min): "
        f"{comp.new_cards} new, {comp.review_cards} review, {comp.weakness_cards} weakness"
    )
    modes = ", ".join(f"{mode.value} {n}" for mode, n in comp.mode_breakdown.items() if n)
    typer.echo(f"Modes: {modes}")
    dist = comp.difficulty_distribution
    typer.echo(f"Difficulty mix: {dist.easy} easy, {dist.medium} medium, {dist.hard} hard")
    if result.queue.shortfall:
        typer.secho(
            f"Only {len(result.queue.items)} cards available for this session.", fg="yellow"
        )


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port to listen on.")] = 8777,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes.")] = False,
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("mnemos.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))


@config_app.command("path")
def config_path():
    """Show which config file would be read, if any."""
    from mnemos.application.config import config_files

    found = next((f for f in config_files() if f.exists()), None)
    if found is None:
        typer.secho("No config file found; using defaults and environment.", fg="yellow")
        for candidate in config_files():
            typer.echo(f"  looked for {candidate}")
        return
    typer.echo(str(found))


def main():
    app()


if __name__ == "__main__":
    main()
