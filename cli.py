#!/usr/bin/env python3
"""
StudyPath - adaptive study companion.
CLI interface for diagnostics, flashcard review and progress.
"""

import logging
import random
from collections import OrderedDict

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config import Config
from learning_core.exceptions import LearningCoreError
from learning_core.mastery import MasteryLevel
from learning_core.review_deck import REVIEW_BUTTONS, ReviewQueue, format_interval, quality_label
from learning_core.service import StudyService
from storage import Database, FileManager, get_snapshot_repository

console = Console()

LEVEL_COLORS = {
    MasteryLevel.UNKNOWN: "dim",
    MasteryLevel.STRUGGLING: "red",
    MasteryLevel.LEARNING: "yellow",
    MasteryLevel.MASTERED: "green",
}


def _level_text(level: MasteryLevel) -> str:
    color = LEVEL_COLORS[level]
    return f"[{color}]{level.value}[/{color}]"


def _load_state():
    repo = get_snapshot_repository()
    try:
        return repo.load(Config.LEARNER_ID)
    finally:
        repo.close()


def _save_state(state):
    repo = get_snapshot_repository()
    try:
        repo.save(Config.LEARNER_ID, state)
    finally:
        repo.close()


def _service() -> StudyService:
    seed = Config.RANDOM_SEED
    return StudyService(rng=random.Random(seed) if seed is not None else None)


def _load_questions(pool):
    questions, rejected = FileManager().load_question_pool(pool)
    if rejected:
        console.print(f"[yellow]Skipped {len(rejected)} malformed question(s)[/yellow]")
    return questions


def _outline(questions):
    """Section id -> topic ids, in first-seen order."""
    sections = OrderedDict()
    for question in questions:
        topics = sections.setdefault(question.section_id, [])
        if question.topic_id not in topics:
            topics.append(question.topic_id)
    return sections


def _fail(e):
    console.print(f"\n[bold red]Error:[/bold red] {e}\n")
    raise click.Abort()


@click.group()
@click.version_option(version="0.1.0", prog_name="StudyPath")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """StudyPath - adaptive diagnostics and spaced-repetition review."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, Config.LOG_LEVEL.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
def init():
    """Initialize StudyPath storage."""
    console.print("\n[bold cyan]Initializing StudyPath...[/bold cyan]\n")

    try:
        Config.ensure_dirs()
        console.print("   ✓ Directories created")

        if Config.STORAGE_BACKEND == "sqlite":
            with Database() as db:
                db.initialize()
            console.print("   ✓ Database schema created")

        console.print("\n[bold green]✨ StudyPath initialized successfully![/bold green]\n")
        console.print(f"Data directory: {Config.DATA_DIR}")
        console.print(f"Storage backend: {Config.STORAGE_BACKEND}\n")

    except (LearningCoreError, ValueError, OSError) as e:
        _fail(e)


@cli.command(name="add-cards")
@click.option("--file", "-f", "file_path", required=True, type=click.Path(exists=True), help="Flashcard JSON file")
@click.option("--topic", "-t", required=True, help="Topic id the cards belong to")
@click.option("--subject", "-s", required=True, help="Subject id the cards belong to")
def add_cards(file_path, topic, subject):
    """Add flashcards from a JSON file to the review deck."""
    try:
        cards, rejected = FileManager().load_flashcards(file_path)
        service = _service()
        state = _load_state()

        added = 0
        for card in cards:
            if card.id not in state.review_deck:
                added += 1
            state = service.add_card_to_deck(state, card.id, topic, subject)

        _save_state(state)

        console.print(f"\n[green]✓ Added {added} card(s) to the review deck[/green]")
        if rejected:
            console.print(f"[yellow]Skipped {len(rejected)} malformed card(s):[/yellow]")
            for item in rejected:
                console.print(f"   [dim]• {item.item_id or '<no id>'}: {item.reason}[/dim]")
        console.print()

    except (LearningCoreError, ValueError, OSError) as e:
        _fail(e)


@cli.command()
@click.option("--subject", "-s", help="Only cards of this subject")
def due(subject):
    """List flashcards due for review, hardest first."""
    try:
        service = _service()
        cards = service.due_cards(_load_state(), subject_id=subject)

        if not cards:
            console.print("\n[green]Nothing due. Come back tomorrow![/green]\n")
            return

        table = Table(title=f"Due cards ({len(cards)})")
        table.add_column("Card", style="cyan")
        table.add_column("Topic")
        table.add_column("EF", justify="right")
        table.add_column("Interval", justify="right")
        table.add_column("Due since")

        for p in cards:
            table.add_row(
                p.card_id,
                p.topic_id,
                f"{p.ease_factor:.2f}",
                format_interval(p.interval),
                p.next_review_date.isoformat(),
            )

        console.print()
        console.print(table)
        console.print()

    except (LearningCoreError, ValueError, OSError) as e:
        _fail(e)


@cli.command()
@click.option("--subject", "-s", help="Only cards of this subject")
@click.option("--cards", "cards_file", type=click.Path(exists=True), help="Flashcard JSON file to show card text")
def review(subject, cards_file):
    """Review due flashcards."""
    try:
        service = _service()
        state = _load_state()

        content = {}
        if cards_file:
            cards, _ = FileManager().load_flashcards(cards_file)
            content = {card.id: card for card in cards}

        queue = ReviewQueue(p.card_id for p in service.due_cards(state, subject_id=subject))
        if queue.is_empty:
            console.print("\n[green]Nothing due. Come back tomorrow![/green]\n")
            return

        console.print(Panel(f"🃏 Review Session: {queue.remaining} card(s)", style="cyan"))
        choices = [str(q) for q in REVIEW_BUTTONS] + ["q"]

        while not queue.is_empty:
            card_id = queue.current
            card = content.get(card_id)

            console.print()
            if card is not None:
                console.print(Panel(card.front, title=card_id, border_style="blue"))
                console.print(Panel(card.back, title="Answer", border_style="green"))
            else:
                console.print(f"[bold]{card_id}[/bold]")

            previews = service.preview_intervals(state, card_id)
            for quality, interval in previews.items():
                console.print(f"  [cyan]{quality}[/cyan] {quality_label(quality):<12} → {format_interval(interval)}")

            answer = click.prompt("Quality", type=click.Choice(choices), show_choices=False)
            if answer == "q":
                break

            quality = int(answer)
            state = service.review_card(state, card_id, quality)
            queue.apply(quality)
            console.print(f"[dim]Remaining: {queue.remaining}[/dim]")

        _save_state(state)
        console.print(f"\n[bold green]Reviewed {queue.reviewed_count} card(s)[/bold green]\n")

    except (LearningCoreError, ValueError, OSError) as e:
        _fail(e)


@cli.command()
@click.option("--subject", "-s", help="Only cards of this subject")
def stats(subject):
    """Show review deck statistics."""
    try:
        result = _service().review_stats(_load_state(), subject_id=subject)

        table = Table(title="Review deck")
        table.add_column("Metric")
        table.add_column("Value", justify="right")
        table.add_row("Total cards", str(result.total))
        table.add_row("Due today", str(result.due_today))
        table.add_row("New", str(result.new_cards))
        table.add_row("Learning", str(result.learning))
        table.add_row("Mastered", str(result.mastered))
        table.add_row("Average EF", f"{result.average_ease_factor:.2f}")

        console.print()
        console.print(table)
        console.print()

    except (LearningCoreError, ValueError, OSError) as e:
        _fail(e)


@cli.command()
@click.option("--pool", "-p", required=True, type=click.Path(exists=True), help="Question pool JSON file")
@click.option("--subject", "-s", required=True, help="Subject id")
def diagnose(pool, subject):
    """Run an adaptive diagnostic over a question pool."""
    try:
        questions = _load_questions(pool)
        service = _service()
        state = service.start_diagnostic(_load_state(), subject)
        selector = service.new_selector(questions)

        console.print(Panel(f"🧭 Diagnostic: {subject}", style="cyan"))

        question = selector.start()
        while question is not None:
            console.print(
                f"\n[bold]Question {selector.answered_count + 1}[/bold] "
                f"[dim]({question.section_id} • {question.difficulty.value})[/dim]"
            )
            if question.text:
                console.print(question.text)
            for option in question.options:
                console.print(f"  [cyan]{option.id}[/cyan]) {option.text}")

            answer = click.prompt(
                "Answer",
                type=click.Choice([o.id for o in question.options]),
                show_choices=False,
            )
            state = service.submit_diagnostic_answer(state, question, answer, selector=selector)

            if question.is_correct_answer(answer):
                console.print("[green]✅ Correct[/green]")
            else:
                console.print(f"[red]❌ Incorrect[/red] [dim](answer: {question.correct_answer})[/dim]")

            question = selector.next_question()

        state = service.complete_diagnostic(state)
        _save_state(state)

        reason = selector.end_reason.value if selector.end_reason else "done"
        table = Table(title="Diagnostic results")
        table.add_column("Section", style="cyan")
        table.add_column("Score", justify="right")
        table.add_column("Level")
        for result in selector.section_results():
            table.add_row(result.section_id, f"{result.score}%", _level_text(result.level))

        console.print()
        console.print(table)
        console.print(f"[dim]{selector.answered_count} answers, ended: {reason}[/dim]\n")

    except (LearningCoreError, ValueError, OSError) as e:
        _fail(e)


@cli.command()
@click.option("--pool", "-p", required=True, type=click.Path(exists=True), help="Question pool JSON file")
@click.option("--subject", "-s", help="Subject id for the overall line")
def mastery(pool, subject):
    """Show section mastery for the sections of a question pool."""
    try:
        sections = _outline(_load_questions(pool))
        service = _service()
        state = _load_state()

        table = Table(title="Section mastery")
        table.add_column("Section", style="cyan")
        table.add_column("Score", justify="right")
        table.add_column("Level")
        table.add_column("Mastered topics", justify="right")

        for section_id, topic_ids in sections.items():
            knowledge = service.section_knowledge(state, section_id, topic_ids)
            table.add_row(
                section_id,
                f"{knowledge.average_score}%",
                _level_text(knowledge.mastery_level),
                f"{knowledge.mastered_count}/{knowledge.topics_count}",
            )

        console.print()
        console.print(table)

        overall = service.subject_knowledge(state, subject or "subject", sections)
        console.print(
            f"\nOverall: {overall.average_score}% {_level_text(overall.mastery_level)} "
            f"[dim]({overall.mastered_sections}/{overall.sections_count} sections mastered)[/dim]\n"
        )

    except (LearningCoreError, ValueError, OSError) as e:
        _fail(e)


@cli.command(name="final-test")
@click.option("--pool", "-p", required=True, type=click.Path(exists=True), help="Question pool JSON file")
@click.option("--subject", "-s", required=True, help="Subject id")
@click.option("--force", is_flag=True, help="Start even if some topics were never studied")
def final_test(pool, subject, force):
    """Take the final test over every question of a pool."""
    try:
        questions = _load_questions(pool)
        sections = _outline(questions)
        service = _service()
        state = _load_state()

        topic_ids = [t for topics in sections.values() for t in topics]
        if not force and not service.can_take_final_test(state, topic_ids):
            console.print("\n[yellow]Study every topic before the final test (or use --force).[/yellow]\n")
            return

        state = service.start_final_test(state, subject, questions)
        console.print(Panel(f"🎓 Final test: {len(questions)} questions", style="cyan"))

        for i, question in enumerate(questions, 1):
            console.print(f"\n[bold]Question {i}/{len(questions)}[/bold]")
            if question.text:
                console.print(question.text)
            for option in question.options:
                console.print(f"  [cyan]{option.id}[/cyan]) {option.text}")
            answer = click.prompt(
                "Answer",
                type=click.Choice([o.id for o in question.options]),
                show_choices=False,
            )
            state = service.answer_final_test(state, question, answer)

        state, completed = service.complete_final_test(state)
        _save_state(state)

        history = state.final_test_history[subject]
        score_color = "green" if completed.score >= 80 else "yellow" if completed.score >= 50 else "red"
        console.print(f"\n[bold]Final Score: [{score_color}]{completed.score}%[/{score_color}][/bold]")
        console.print(f"[dim]Best: {history.best_score}% over {len(history.attempts)} attempt(s)[/dim]\n")

    except (LearningCoreError, ValueError, OSError) as e:
        _fail(e)


@cli.command()
@click.option("--pool", "-p", required=True, type=click.Path(exists=True), help="Question pool JSON file")
@click.option("--subject", "-s", required=True, help="Subject id")
def summary(pool, subject):
    """Show the end-of-course summary for a subject."""
    try:
        sections = _outline(_load_questions(pool))
        result = _service().course_summary(_load_state(), subject, sections)

        console.print(f"\n[bold cyan]{subject}[/bold cyan]\n")
        console.print(f"Final test: {result.final_test_score}%")
        console.print(f"Overall mastery: {_level_text(result.overall_mastery)}")
        console.print(
            f"Topics: {result.mastered_topics} mastered, {result.learning_topics} learning, "
            f"{result.struggling_topics} struggling of {result.total_topics}"
        )
        console.print(f"Flashcards: {result.mastered_flashcards}/{result.total_flashcards} mastered")
        if result.best_section:
            console.print(f"Best section: {result.best_section.section_id} ({result.best_section.score}%)")

        table = Table()
        table.add_column("Section", style="cyan")
        table.add_column("Score", justify="right")
        table.add_column("Level")
        for section in result.section_scores:
            table.add_row(section.section_id, f"{section.score}%", _level_text(section.level))

        console.print()
        console.print(table)
        console.print()

    except (LearningCoreError, ValueError, OSError) as e:
        _fail(e)


if __name__ == "__main__":
    cli()
