"""Learner level and category unlocking.

The level is derived fresh from the progress map on every call and is never
stored. When mastery drops (many words sent back to box 1) the level can go
down again; this is intended.
"""

import math

from .config import MASTERY_THRESHOLD, MASTERY_BOX, MAX_LEVEL, DEFAULT_CATEGORY_DIFFICULTY
from .models import Item, LevelInfo


def category_difficulty_of(category: str, category_difficulty: dict) -> int:
    return category_difficulty.get(category, DEFAULT_CATEGORY_DIFFICULTY)


def _known_categories(category_difficulty: dict, items: list[Item]) -> list[str]:
    """Categories from the difficulty map, then any extra ones used by items."""
    categories = list(category_difficulty)
    seen = set(categories)
    for item in items:
        if item.category not in seen:
            seen.add(item.category)
            categories.append(item.category)
    return categories


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def derive_level(progress_map: dict, category_difficulty: dict, items: list[Item],
                 mastery_threshold: float = MASTERY_THRESHOLD,
                 mastery_box: int = MASTERY_BOX,
                 max_level: int = MAX_LEVEL) -> LevelInfo:
    """Work out the learner's current level.

    Levels are scanned from 1 upward. A level counts as complete when at
    least ``mastery_threshold`` of its words sit in box ``mastery_box`` or
    higher; levels without words are skipped. The first incomplete level is
    the current one. Every category at or below the current level is
    unlocked.
    """
    current_level = max_level
    progress_to_next_level = 100
    words_in_current_level = 0
    mastered_in_current_level = 0
    is_max_level = True

    for level in range(1, max_level + 1):
        words_at_level = [
            item for item in items
            if category_difficulty_of(item.category, category_difficulty) == level
        ]
        if not words_at_level:
            continue

        mastered = [
            item for item in words_at_level
            if item.id in progress_map and progress_map[item.id].box >= mastery_box
        ]
        mastery_percentage = len(mastered) / len(words_at_level)
        words_in_current_level = len(words_at_level)
        mastered_in_current_level = len(mastered)

        if mastery_percentage < mastery_threshold:
            current_level = level
            progress_to_next_level = _round_half_up(mastery_percentage / mastery_threshold * 100)
            is_max_level = False
            break

    unlocked = [
        category for category in _known_categories(category_difficulty, items)
        if category_difficulty_of(category, category_difficulty) <= current_level
    ]

    return LevelInfo(
        current_level=current_level,
        progress_to_next_level=progress_to_next_level,
        words_in_current_level=words_in_current_level,
        mastered_in_current_level=mastered_in_current_level,
        unlocked_category_ids=unlocked,
        is_max_level=is_max_level
    )


def is_category_unlocked(category: str, level_info: LevelInfo) -> bool:
    return category in level_info.unlocked_category_ids
