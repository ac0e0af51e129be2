"""
SM-2 Scheduler Demonstration

This script shows how the flashcard scheduler reacts to the four review
buttons and prints example progressions, interval previews and deck stats.
"""

from datetime import date, timedelta

from learning_core.review_deck import REVIEW_BUTTONS, format_interval, quality_label
from learning_core.sm2 import SM2Scheduler

START = date(2024, 1, 1)


def print_header(title):
    """Print a formatted header."""
    print(f"\n{'=' * 70}")
    print(f"{title:^70}")
    print(f"{'=' * 70}\n")


def print_review(review_num, quality, progress):
    """Print review information in a formatted way."""
    print(f"Review {review_num} ({quality_label(quality)}):")
    print(f"  Quality:      {quality} / 5")
    print(f"  EF:           {progress.ease_factor:.2f}")
    print(f"  Interval:     {progress.interval} days ({format_interval(progress.interval)})")
    print(f"  Repetitions:  {progress.repetitions}")
    print(f"  Next Review:  {progress.next_review_date.isoformat()}")
    print()


def run(qualities, title):
    """Review one card on each due date with the given qualities."""
    print_header(title)

    progress = SM2Scheduler.create_initial_progress("demo", "topic", "subject", START)
    for i, quality in enumerate(qualities, 1):
        progress = SM2Scheduler.process_review(progress, quality, progress.next_review_date)
        print_review(i, quality, progress)

    print(f"History intervals (before each review): {[e.interval for e in progress.review_history]}")
    return progress


def demo_previews():
    """Show what each button would do for a card mid-way through learning."""
    print_header("Interval Previews")

    progress = SM2Scheduler.create_initial_progress("demo", "topic", "subject", START)
    for quality in (4, 4):
        progress = SM2Scheduler.process_review(progress, quality, progress.next_review_date)

    print(f"Card state: EF={progress.ease_factor:.2f}, interval={progress.interval}, reps={progress.repetitions}\n")
    for quality in REVIEW_BUTTONS:
        interval = SM2Scheduler.preview_next_interval(progress, quality)
        print(f"  {quality} {quality_label(quality):<12} -> {format_interval(interval)}")


def demo_stats():
    """Stats and priority order over a small deck."""
    print_header("Deck Statistics")

    today = START + timedelta(days=30)
    cards = []
    for card_id, qualities in [("easy", [5, 5, 5]), ("hard", [4, 1, 4]), ("new", [])]:
        progress = SM2Scheduler.create_initial_progress(card_id, "topic", "subject", START)
        for quality in qualities:
            progress = SM2Scheduler.process_review(progress, quality, progress.next_review_date)
        cards.append(progress)

    stats = SM2Scheduler.review_stats(cards, today)
    print(f"  Due today:  {stats.due_today}")
    print(f"  New:        {stats.new_cards}")
    print(f"  Learning:   {stats.learning}")
    print(f"  Mastered:   {stats.mastered}")
    print(f"  Average EF: {stats.average_ease_factor:.2f}\n")

    print("Review order:")
    for progress in SM2Scheduler.sort_by_review_priority(cards, today):
        due = "due" if SM2Scheduler.is_due(progress, today) else "not due"
        print(f"  {progress.card_id:<6} EF={progress.ease_factor:.2f} {due} ({progress.next_review_date})")


def main():
    """Run all demonstrations."""
    run([4, 4, 5], "Good, Good, Easy")
    run([5, 5, 5, 5, 5], "Always Easy")
    run([4, 4, 1, 4, 4], "Forgetting and Recovery")
    run([0, 0, 4, 4], "Don't Know Twice (same day)")
    demo_previews()
    demo_stats()


if __name__ == "__main__":
    main()
