"""Building practice sessions from the catalog."""

import logging
import random

from .config import (
    EXERCISE_TYPES, SESSION_MODES, SESSION_SIZE, MULTIPLE_CHOICE_OPTIONS, CUSTOM_CATEGORY
)
from .leitner import select_words
from .models import Item, LevelInfo, Session
from .shuffle import shuffle
from .vocabulary import get_distractors, primary_translation

logger = logging.getLogger(__name__)


class CategoryLockedError(ValueError):
    """Raised when a session is requested for a category the learner has not unlocked."""


def multiple_choice_options(item: Item, candidates: list[Item],
                            rng: random.Random = None) -> list[dict]:
    """The item's own answer plus distractors, in random order."""
    choices = get_distractors(item, candidates, MULTIPLE_CHOICE_OPTIONS - 1, rng) + [item]
    return [
        {'id': choice.id, 'text': primary_translation(choice.translation)}
        for choice in shuffle(choices, rng)
    ]


def build_session(items: list[Item], progress_map: dict, level_info: LevelInfo,
                  today, category: str = 'all', mode: str = 'mixed',
                  count: int = SESSION_SIZE, rng: random.Random = None) -> Session:
    """Pick the words and exercise types for one practice round.

    Only words from unlocked categories are candidates; the learner's own
    words (CUSTOM_CATEGORY) are always unlocked. ``category`` narrows the
    pool to a single category ('all' keeps every unlocked one). Distractors
    for multiple-choice exercises may come from any of ``items``.
    """
    if mode not in SESSION_MODES:
        raise ValueError(f"Unknown session mode: {mode}")

    unlocked = set(level_info.unlocked_category_ids) | {CUSTOM_CATEGORY}
    if category != 'all' and category not in unlocked:
        raise CategoryLockedError(f"Category '{category}' is not unlocked yet")

    pool = [
        item for item in items
        if item.category in unlocked and (category == 'all' or item.category == category)
    ]
    words = select_words(pool, progress_map, count, today, rng=rng)

    rng = rng or random
    if mode == 'mixed':
        exercise_order = [rng.choice(EXERCISE_TYPES) for _ in words]
    else:
        exercise_order = [mode for _ in words]

    options = [
        multiple_choice_options(word, items, rng) if exercise == 'multiple-choice' else None
        for word, exercise in zip(words, exercise_order)
    ]

    logger.info(f"Built {mode} session: {len(words)} of {len(pool)} words (category={category})")
    return Session(words, exercise_order, mode, category, options)
