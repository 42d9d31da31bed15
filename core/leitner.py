"""Leitner system scheduling: review intervals, priorities and word selection.

Boxes have exponentially increasing review intervals:

- Box 1: review daily (interval = 1 day)
- Box 2: every 2 days
- Box 3: every 4 days
- Box 4: every 8 days
- Box 5: every 16 days (highest box reachable by reviewing)
- Box 6+: keeps doubling (32, 64, ... days). These "invisible" boxes only
  come from imported data or dev tools, but every function here accepts them.

Every function takes ``today`` explicitly and never reads the clock.
"""

import math

from .config import (
    MAX_INTERVAL_EXPONENT,
    NEW_WORD_PRIORITY, BOX_PRIORITY_BASE, BOX_PRIORITY_STEP,
    OVERDUE_BONUS_PER_DAY, OVERDUE_BONUS_CAP,
    NOT_DUE_PRIORITY_BASE, NOT_DUE_PRIORITY_STEP,
)
from .models import Item, ItemWithPriority, PriorityResult, ReviewRecord
from .shuffle import shuffle_without_consecutive_duplicates
from .utils import parse_date


def interval_for_box(box: int) -> float:
    """Review interval in days for a box: 2^(box-1). Box 0 gives 0.5."""
    return 2 ** (min(box, MAX_INTERVAL_EXPONENT + 1) - 1)


def days_since(value, today) -> float:
    """Whole calendar days from ``value`` to ``today``.

    Returns math.inf for a missing or unparseable date. Future dates give a
    negative number.
    """
    seen = parse_date(value)
    if seen is None:
        return math.inf
    return (parse_date(today) - seen).days


def is_due(record: ReviewRecord | None, today) -> bool:
    """Check if a word is due for review. Never-seen words are always due."""
    if record is None or not record.last_seen:
        return True
    return days_since(record.last_seen, today) >= interval_for_box(record.box)


def priority_of(record: ReviewRecord | None, today, item_id: str = None) -> PriorityResult:
    """Calculate the priority score for a word. Higher = more urgent.

    1. Due words outrank words that are not due yet.
    2. Among due words, lower box = higher priority.
    3. Within a box, more overdue = higher priority (bonus capped).
    4. New words sit between due box 1-2 words and due box 3+ words.
    """
    if record is None or not record.last_seen:
        return PriorityResult(NEW_WORD_PRIORITY, True, 0, 0, True, item_id)

    box = record.box
    interval = interval_for_box(box)
    elapsed = days_since(record.last_seen, today)

    if elapsed < interval:
        days_until_due = interval - elapsed
        priority = max(0, NOT_DUE_PRIORITY_BASE - days_until_due * NOT_DUE_PRIORITY_STEP)
        return PriorityResult(priority, False, 0, box, False, item_id)

    days_overdue = elapsed - interval
    box_priority = max(0, BOX_PRIORITY_BASE - box * BOX_PRIORITY_STEP)
    overdue_bonus = min(days_overdue * OVERDUE_BONUS_PER_DAY, OVERDUE_BONUS_CAP)
    return PriorityResult(box_priority + overdue_bonus, True, days_overdue, box, False, item_id)


def sort_by_priority(items: list[Item], progress_map: dict, today) -> list[ItemWithPriority]:
    """Score every item and sort from highest to lowest priority.

    Equal priorities come out in input order, but that is not part of the
    contract and callers must not rely on it.
    """
    scored = [
        ItemWithPriority(item, priority_of(progress_map.get(item.id), today, item.id))
        for item in items
    ]
    return sorted(scored, key=lambda entry: entry.priority, reverse=True)


def select_words(items: list[Item], progress_map: dict, count: int, today,
                 key_of=None, rng=None) -> list[Item]:
    """Select words for a practice session.

    Takes the top ``count`` items by priority, then shuffles them so that
    priority decides which words are practiced but not the order they are
    shown in.
    """
    if not items or count <= 0:
        return []

    ranked = sort_by_priority(items, progress_map, today)
    selected = [entry.item for entry in ranked[:count]]
    return shuffle_without_consecutive_duplicates(
        selected, key_of or (lambda item: item.id), rng=rng
    )


def words_for_review(items: list[Item], progress_map: dict, today) -> list[Item]:
    """All due words (new words included), in catalog order."""
    return [item for item in items if is_due(progress_map.get(item.id), today)]


def get_review_stats(items: list[Item], progress_map: dict, today) -> dict:
    """Count due words for the dashboard.

    Returns {total_due, new_words, due_by_box, overdue_count}. Words that are
    exactly due are not counted as overdue.
    """
    total_due = 0
    new_words = 0
    overdue_count = 0
    due_by_box = {}

    for item in items:
        result = priority_of(progress_map.get(item.id), today, item.id)
        if not result.is_due:
            continue
        total_due += 1
        if result.is_new:
            new_words += 1
        else:
            due_by_box[result.box] = due_by_box.get(result.box, 0) + 1
            if result.days_overdue > 0:
                overdue_count += 1

    return {
        'total_due': total_due,
        'new_words': new_words,
        'due_by_box': due_by_box,
        'overdue_count': overdue_count
    }
