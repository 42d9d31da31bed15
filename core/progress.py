"""Applying review outcomes to a learner's progress."""

import copy
from datetime import timedelta

from .config import MAX_BOX
from .models import Item, Progress, ReviewRecord, Stats
from .utils import format_date, parse_date
from .vocabulary import make_custom_item


def get_word_progress(progress_map: dict, item_id: str) -> ReviewRecord:
    """Record for an item, or a fresh box-1 record if it was never reviewed.

    The fresh record is not added to the map.
    """
    return progress_map.get(item_id) or ReviewRecord()


def next_streak(stats: Stats, today) -> int:
    """Streak after practicing on ``today``.

    Unchanged if already practiced today, +1 if the last practice was
    yesterday, otherwise back to 1.
    """
    today = parse_date(today)
    last = parse_date(stats.last_practice_date)
    if last == today:
        return stats.streak
    if last is not None and last == today - timedelta(days=1):
        return stats.streak + 1
    return 1


def apply_review(progress_map: dict, stats: Stats, item_id: str, correct: bool,
                 today) -> tuple[dict, Stats]:
    """Apply one answer to the progress map and stats.

    Correct moves the word up one box (at most MAX_BOX), wrong sends it back
    to box 1. Returns new (progress_map, stats); the inputs are not modified.
    """
    old = get_word_progress(progress_map, item_id)
    today_str = format_date(today)

    record = ReviewRecord(
        box=min(old.box + 1, MAX_BOX) if correct else 1,
        last_seen=today_str,
        correct_count=old.correct_count + (1 if correct else 0),
        wrong_count=old.wrong_count + (0 if correct else 1)
    )
    new_map = copy.deepcopy(progress_map)
    new_map[item_id] = record

    new_stats = Stats(
        streak=next_streak(stats, today),
        last_practice_date=today_str,
        total_correct=stats.total_correct + (1 if correct else 0),
        total_wrong=stats.total_wrong + (0 if correct else 1)
    )
    return new_map, new_stats


def record_review(progress: Progress, item_id: str, correct: bool, today) -> Progress:
    """apply_review on a whole Progress snapshot."""
    words, stats = apply_review(progress.words, progress.stats, item_id, correct, today)
    return Progress(words, stats, list(progress.custom_words))


def reset_progress(custom_words: list[Item] | None = None) -> Progress:
    """A fresh progress snapshot. The learner's own words can be kept."""
    return Progress(custom_words=list(custom_words or []))


def add_custom_word(progress: Progress, text: str, translation: str) -> tuple[Progress, Item]:
    """Add a learner-defined word. Returns (new progress, the new item).

    Raises ValueError for an empty text or translation, or when a word with
    the same text (ignoring case) was already added.
    """
    if not text.strip():
        raise ValueError("The word must not be empty")
    if not translation.strip():
        raise ValueError("The translation must not be empty")
    wanted = text.strip().lower()
    if any(item.text.lower() == wanted for item in progress.custom_words):
        raise ValueError(f"'{text.strip()}' is already one of your words")

    item = make_custom_item(text, translation)
    updated = progress.copy()
    updated.custom_words.append(item)
    return updated, item


def remove_custom_word(progress: Progress, item_id: str) -> Progress | None:
    """Drop a learner-defined word and its review record.

    Returns None when there is no such custom word.
    """
    if not any(item.id == item_id for item in progress.custom_words):
        return None
    updated = progress.copy()
    updated.custom_words = [item for item in updated.custom_words if item.id != item_id]
    updated.words.pop(item_id, None)
    return updated
