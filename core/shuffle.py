"""Shuffle utilities for practice sessions."""

import logging
import random

from .config import SHUFFLE_MAX_ATTEMPTS

logger = logging.getLogger(__name__)


def shuffle(items: list, rng: random.Random = None) -> list:
    """Fisher-Yates shuffle into a new list. The input is left untouched."""
    rng = rng or random
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def count_consecutive_duplicates(items: list, key_of) -> int:
    """Number of adjacent pairs sharing the same key."""
    return sum(
        1 for i in range(1, len(items))
        if key_of(items[i]) == key_of(items[i - 1])
    )


def has_consecutive_duplicates(items: list, key_of) -> bool:
    return count_consecutive_duplicates(items, key_of) > 0


def _collides_around(items: list, positions: set, key_of) -> bool:
    """Check the adjacent pairs touching any of the given positions."""
    for pos in positions:
        for left in (pos - 1, pos):
            if 0 <= left and left + 1 < len(items):
                if key_of(items[left]) == key_of(items[left + 1]):
                    return True
    return False


def _try_swap(items: list, i: int, j: int, key_of) -> bool:
    """Swap i and j if neither moved element lands next to its own key."""
    items[i], items[j] = items[j], items[i]
    if _collides_around(items, {i, j}, key_of):
        items[i], items[j] = items[j], items[i]
        return False
    return True


def _repair_collisions(items: list, key_of) -> None:
    """Fix adjacent collisions in place by swapping with a later, then earlier, element."""
    for i in range(1, len(items)):
        if key_of(items[i]) != key_of(items[i - 1]):
            continue
        candidates = list(range(i + 1, len(items))) + list(range(i - 2, -1, -1))
        for j in candidates:
            if _try_swap(items, i, j, key_of):
                break


def shuffle_without_consecutive_duplicates(items: list, key_of,
                                           max_attempts: int = SHUFFLE_MAX_ATTEMPTS,
                                           rng: random.Random = None) -> list:
    """Shuffle so that no two neighbours share a key, as far as possible.

    Each attempt shuffles from scratch and then runs a local repair pass.
    After ``max_attempts`` the attempt with the fewest collisions is
    returned. Some inputs cannot be fixed at all (one key making up more
    than half the items), so this never raises and always returns every
    original element exactly once.
    """
    if len(items) <= 1:
        return list(items)

    best = None
    best_collisions = None
    for _ in range(max(1, max_attempts)):
        candidate = shuffle(items, rng)
        if not has_consecutive_duplicates(candidate, key_of):
            return candidate

        _repair_collisions(candidate, key_of)
        collisions = count_consecutive_duplicates(candidate, key_of)
        if collisions == 0:
            return candidate
        if best is None or collisions < best_collisions:
            best, best_collisions = candidate, collisions

    logger.debug(f"Could not remove all consecutive duplicates: {best_collisions} left "
                 f"after {max(1, max_attempts)} attempts")
    return best
