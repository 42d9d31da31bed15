"""Developer-only progress manipulation.

Nothing in here is part of the normal review flow; ``apply_review`` never
calls into this module.
"""

import copy
import logging

from .config import BOOST_BOX
from .levels import category_difficulty_of
from .models import Item, ReviewRecord
from .utils import format_date

logger = logging.getLogger(__name__)


def boost_to_level(progress_map: dict, items: list[Item], category_difficulty: dict,
                   target_level: int, today) -> tuple[dict, list[str]]:
    """Put every word below ``target_level`` straight into box BOOST_BOX.

    Review counters are kept. Returns (new progress map, boosted item ids);
    the input map is not modified.
    """
    if target_level < 1:
        raise ValueError(f"Target level must be at least 1, got {target_level}")

    new_map = copy.deepcopy(progress_map)
    boosted = []
    today_str = format_date(today)
    for item in items:
        if category_difficulty_of(item.category, category_difficulty) >= target_level:
            continue
        old = new_map.get(item.id) or ReviewRecord()
        new_map[item.id] = ReviewRecord(BOOST_BOX, today_str, old.correct_count, old.wrong_count)
        boosted.append(item.id)

    logger.warning(f"Dev boost to level {target_level}: {len(boosted)} words set to box {BOOST_BOX}")
    return new_map, boosted
