"""loopsafe CLI -- moderate submissions and work the review queue."""

import json
import logging

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from loopsafe import __version__

console = Console()

_DECISION_STYLES = {
    "approved": "green",
    "pending": "yellow",
    "rejected": "red",
    "age_restricted": "magenta",
}


def _decision(value: str) -> str:
    style = _DECISION_STYLES.get(value, "white")
    return f"[{style}]{value}[/]"


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, help="YAML config file (default: $LOOPSAFE_CONFIG)")
@click.option("--verbose", "-v", is_flag=True, help="Log pipeline activity to stderr")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool):
    """loopsafe -- moderation decisions for Loop videos and posts."""
    from loopsafe.config import load_config

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = load_config(config_path)


def _pipeline(ctx: click.Context):
    from loopsafe.moderation.pipeline import ModerationPipeline

    return ModerationPipeline.from_config(ctx.obj)


# ── Moderate ─────────────────────────────────────────────────────────


@main.command()
@click.argument("user_id")
@click.option("--transcript", "-t", default="", help="Transcript of the video's audio")
@click.option("--title", default="", help="Video title")
@click.option("--description", default="", help="Video description")
@click.option("--tag", multiple=True, help="Video tag (repeatable)")
@click.option("--child-content", is_flag=True, help="Video is aimed at children")
@click.option("--visual", "visual_path", default=None, type=click.Path(exists=True), help="JSON file with a visual analysis")
@click.option("--describe", "visual_description", default=None, help="Frame description to send to the oracle")
@click.option("--post-id", default="", help="Post the video belongs to")
@click.pass_context
def moderate(
    ctx: click.Context,
    user_id: str,
    transcript: str,
    title: str,
    description: str,
    tag: tuple,
    child_content: bool,
    visual_path: str | None,
    visual_description: str | None,
    post_id: str,
):
    """Moderate a video submitted by USER_ID and log the decision."""
    from loopsafe.moderation.models import ContentMetadata, VisualAnalysis

    visual = None
    if visual_path:
        with open(visual_path) as f:
            visual = VisualAnalysis.from_dict(json.load(f))

    metadata = ContentMetadata(
        title=title,
        description=description,
        tags=list(tag),
        is_child_content=child_content,
    )
    result = _pipeline(ctx).moderate_video(
        user_id,
        transcript,
        metadata=metadata,
        visual=visual,
        visual_description=visual_description,
        post_id=post_id,
    )

    table = Table(show_header=False, box=None)
    table.add_column(style="dim")
    table.add_column()
    table.add_row("Log id", result.log_id or "")
    table.add_row("Decision", _decision(result.moderation_decision.value))
    table.add_row("Safety score", f"{result.overall_safety_score:.2f}")
    table.add_row("Visual", f"{'safe' if result.visual_analysis.is_safe else 'unsafe'} ({result.visual_analysis.confidence_score:.2f})")
    table.add_row("Audio", f"{'safe' if result.audio_analysis.is_safe else 'unsafe'} ({result.audio_analysis.contextual_score:.2f})")
    table.add_row("Metadata", "safe" if result.metadata_analysis.is_safe else "unsafe")
    if result.age_restriction.is_restricted:
        table.add_row("Age gate", f"{result.age_restriction.minimum_age}+ ({result.age_restriction.reason})")
    cringe = result.cringe
    table.add_row("Cringe", f"{cringe.cringe_score:.2f} {', '.join(cringe.cringe_factors)}")
    console.print(Panel(table, title="Moderation Result"))


@main.command()
@click.argument("user_id")
@click.argument("content")
@click.option("--type", "content_type", default="text", type=click.Choice(["text", "image", "video", "audio"]))
@click.pass_context
def text(ctx: click.Context, user_id: str, content: str, content_type: str):
    """Ask the oracle to moderate CONTENT posted by USER_ID."""
    outcome = _pipeline(ctx).moderate_text(user_id, content, content_type)
    result = outcome.result

    console.print(f"  Log id:     {outcome.log_id}")
    console.print(f"  Decision:   {_decision(outcome.moderation_decision.value)}")
    console.print(f"  Category:   {result.category} ({result.confidence:.2f})")
    console.print(f"  Action:     {result.recommended_action.value}")
    if result.degraded:
        console.print("  [yellow]! oracle unavailable, fallback result used[/]")
    if result.explanation:
        console.print(f"  {result.explanation}")
    if outcome.author_explanation:
        console.print(Panel(outcome.author_explanation, title="For the author"))


# ── Hate speech and sentiment ────────────────────────────────────────


@main.command("hate-speech")
@click.argument("content")
@click.pass_context
def hate_speech(ctx: click.Context, content: str):
    """Check CONTENT for hate speech."""
    result = _pipeline(ctx).detect_hate_speech(content)

    verdict = "[red]hate speech[/]" if result.is_hate_speech else "[green]not hate speech[/]"
    console.print(f"  Verdict:    {verdict}")
    console.print(f"  Category:   {result.category} / severity {result.severity} ({result.confidence:.2f})")
    if result.target_groups:
        console.print(f"  Targets:    {', '.join(result.target_groups)}")
    console.print(f"  Language:   {result.language}")
    if result.feedback_incorporated:
        console.print("  [dim]reviewer feedback on similar content was used[/]")
    if result.degraded:
        console.print("  [yellow]! oracle unavailable, fallback result used[/]")
    if result.explanation:
        console.print(f"  {result.explanation}")


@main.command()
@click.argument("content")
@click.pass_context
def sentiment(ctx: click.Context, content: str):
    """Classify the sentiment of CONTENT."""
    result = _pipeline(ctx).analyze_sentiment(content)

    console.print(f"  Sentiment:  {result.emoji} {result.sentiment} ({result.confidence:.2f})")
    console.print(f"  Emotion:    {result.dominant_emotion}")
    console.print("  Scores:     " + ", ".join(f"{k}={v:.2f}" for k, v in result.scores.items()))
    if result.degraded:
        console.print("  [yellow]! oracle unavailable, fallback result used[/]")


def _label(model_type: str, value: str):
    if model_type == "sentiment":
        return value.lower()
    if value.lower() in ("true", "yes", "hate"):
        return True
    if value.lower() in ("false", "no", "clean"):
        return False
    raise click.BadParameter(f"expected true or false, got {value!r}")


@main.command()
@click.argument("model_type", type=click.Choice(["hate_speech", "sentiment"]))
@click.argument("content")
@click.argument("predicted")
@click.argument("actual")
@click.option("--reviewer", "-r", required=True, help="Who is reviewing")
@click.pass_context
def feedback(ctx: click.Context, model_type: str, content: str, predicted: str, actual: str, reviewer: str):
    """Record that the oracle said PREDICTED for CONTENT where ACTUAL is right."""
    try:
        accuracy = _pipeline(ctx).record_feedback(
            model_type,
            content,
            _label(model_type, predicted),
            _label(model_type, actual),
            reviewer,
        )
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        raise SystemExit(1)
    console.print(f"  [green]v[/] feedback recorded, {model_type} accuracy now {accuracy:.1f}%")


# ── Review queue ─────────────────────────────────────────────────────


@main.command()
@click.option("--type", "content_type", default=None, help="Only entries of this type")
@click.option("--limit", "-n", default=20, help="Maximum entries to show")
@click.pass_context
def pending(ctx: click.Context, content_type: str | None, limit: int):
    """List unreviewed moderation log entries, newest first."""
    entries = _pipeline(ctx).log_store.list_pending(content_type, limit=limit)

    if not entries:
        console.print("[green]Review queue is empty.[/]")
        return

    table = Table(title=f"Pending review ({len(entries)})")
    table.add_column("Id", style="cyan")
    table.add_column("Type")
    table.add_column("User")
    table.add_column("Decision")
    table.add_column("Score", justify="right")

    for entry in entries:
        score = entry.get("overallSafetyScore")
        table.add_row(
            entry["id"],
            entry.get("type", ""),
            entry.get("userId", ""),
            _decision(entry.get("moderationDecision", "")),
            f"{score:.2f}" if score is not None else "-",
        )

    console.print(table)


@main.command()
@click.argument("log_id")
@click.argument("result", type=click.Choice(["approved", "rejected", "age_restricted"]))
@click.option("--reviewer", "-r", required=True, help="Who is reviewing")
@click.option("--notes", default="", help="Admin notes")
@click.pass_context
def review(ctx: click.Context, log_id: str, result: str, reviewer: str, notes: str):
    """Record a moderator's RESULT for moderation log LOG_ID."""
    try:
        _pipeline(ctx).review(log_id, result, reviewer, admin_notes=notes)
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        raise SystemExit(1)
    console.print(f"  [green]v[/] {log_id} reviewed: {_decision(result)}")


@main.command()
@click.option("--actor", default=None, help="Only events by this reviewer")
@click.option("--action", default=None, help="Only events of this action, e.g. moderation_review")
@click.option("--limit", "-n", default=50, help="Maximum events to show")
@click.pass_context
def audit(ctx: click.Context, actor: str | None, action: str | None, limit: int):
    """Show the moderator audit trail, newest first."""
    events = _pipeline(ctx).audit.get_events(actor=actor, action=action, limit=limit)

    if not events:
        console.print("[dim]No audit events.[/]")
        return

    table = Table(title=f"Audit events ({len(events)})")
    table.add_column("Time", style="dim")
    table.add_column("Actor", style="cyan")
    table.add_column("Action")
    table.add_column("Resource")
    table.add_column("Details")

    for event in events:
        status = "" if event.success else "[red]failed[/] "
        table.add_row(
            event.timestamp[:19],
            event.actor,
            event.action,
            f"{event.resource_type}/{event.resource_id}",
            status + ", ".join(f"{k}={v}" for k, v in event.details.items()),
        )

    console.print(table)


# ── Accuracy ─────────────────────────────────────────────────────────


@main.command()
@click.pass_context
def accuracy(ctx: click.Context):
    """Show the tracked accuracy of the moderation models."""
    from loopsafe.metrics.accuracy import AccuracyStore

    metrics = AccuracyStore(ctx.obj.path_for("accuracy")).get_metrics()

    table = Table(title="Model accuracy (%)")
    table.add_column("Model", style="cyan")
    table.add_column("Overall", justify="right")
    table.add_column("Breakdown")

    for name, section in metrics.items():
        breakdown = []
        for key, value in section.items():
            if key == "overall":
                continue
            if isinstance(value, dict):
                breakdown.extend(f"{k}={v:.1f}" for k, v in value.items())
            else:
                breakdown.append(f"{key}={value:.1f}")
        table.add_row(name, f"{section.get('overall', 0):.1f}", ", ".join(breakdown))

    console.print(table)


if __name__ == "__main__":
    main()
