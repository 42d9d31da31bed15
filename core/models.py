"""Domain models for vocabox application."""

import copy


class Item:
    """A vocabulary item from the content catalog."""

    def __init__(self, id: str, category: str, text: str, translation: str = '',
                 category_name: str = None):
        self.id = id
        self.category = category
        self.text = text
        self.translation = translation
        self.category_name = category_name or category

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'category': self.category,
            'category_name': self.category_name,
            'text': self.text,
            'translation': self.translation
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Item':
        return cls(
            data['id'], data['category'], data.get('text', ''),
            data.get('translation', ''), data.get('category_name')
        )

    def __repr__(self) -> str:
        return f"Item({self.id!r}, category={self.category!r})"


class ReviewRecord:
    """Review history of one item in the Leitner system."""

    def __init__(self, box: int = 1, last_seen: str = '', correct_count: int = 0,
                 wrong_count: int = 0):
        self.box = box
        self.last_seen = last_seen  # YYYY-MM-DD, '' = never seen
        self.correct_count = correct_count
        self.wrong_count = wrong_count

    def to_dict(self) -> dict:
        return {
            'box': self.box,
            'last_seen': self.last_seen,
            'correct_count': self.correct_count,
            'wrong_count': self.wrong_count
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ReviewRecord':
        # Older clients wrote camelCase keys (lastSeen, correct, wrong)
        last_seen = data.get('last_seen', data.get('lastSeen', ''))
        return cls(
            box=data.get('box', 1),
            last_seen=last_seen or '',
            correct_count=data.get('correct_count', data.get('correct', 0)),
            wrong_count=data.get('wrong_count', data.get('wrong', 0))
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, ReviewRecord):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (f"ReviewRecord(box={self.box}, last_seen={self.last_seen!r}, "
                f"correct_count={self.correct_count}, wrong_count={self.wrong_count})")


class Stats:
    """Learner-wide practice statistics."""

    def __init__(self, streak: int = 0, last_practice_date: str | None = None,
                 total_correct: int = 0, total_wrong: int = 0):
        self.streak = streak
        self.last_practice_date = last_practice_date
        self.total_correct = total_correct
        self.total_wrong = total_wrong

    def to_dict(self) -> dict:
        return {
            'streak': self.streak,
            'last_practice_date': self.last_practice_date,
            'total_correct': self.total_correct,
            'total_wrong': self.total_wrong
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Stats':
        return cls(
            streak=data.get('streak', 0),
            last_practice_date=data.get('last_practice_date', data.get('lastPractice')),
            total_correct=data.get('total_correct', data.get('totalCorrect', 0)),
            total_wrong=data.get('total_wrong', data.get('totalWrong', 0))
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Stats):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (f"Stats(streak={self.streak}, last_practice_date={self.last_practice_date!r}, "
                f"total_correct={self.total_correct}, total_wrong={self.total_wrong})")


class Progress:
    """A learner's full progress snapshot: per-word records, stats and own words.

    ``from_dict`` trusts its input; stored or uploaded data goes through
    ``core.backup.validate_progress`` first.
    """

    def __init__(self, words: dict | None = None, stats: Stats | None = None,
                 custom_words: list | None = None):
        self.words = words if words is not None else {}  # {item_id: ReviewRecord}
        self.stats = stats if stats is not None else Stats()
        self.custom_words = custom_words if custom_words is not None else []  # [Item]

    def copy(self) -> 'Progress':
        return Progress(copy.deepcopy(self.words), copy.deepcopy(self.stats),
                        copy.deepcopy(self.custom_words))

    def to_dict(self) -> dict:
        return {
            'words': {item_id: record.to_dict() for item_id, record in self.words.items()},
            'stats': self.stats.to_dict(),
            'custom_words': [item.to_dict() for item in self.custom_words]
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Progress':
        words = {
            item_id: ReviewRecord.from_dict(record)
            for item_id, record in data['words'].items()
        }
        custom_words = [Item.from_dict(item) for item in data.get('custom_words', [])]
        return cls(words, Stats.from_dict(data['stats']), custom_words)


class PriorityResult:
    """Scheduling verdict for one item. Recomputed on every call, never stored."""

    def __init__(self, priority: float, is_due: bool, days_overdue: float, box: int,
                 is_new: bool, item_id: str = None):
        self.item_id = item_id
        self.priority = priority
        self.is_due = is_due
        self.days_overdue = days_overdue
        self.box = box
        self.is_new = is_new

    def to_dict(self) -> dict:
        return {
            'item_id': self.item_id,
            'priority': self.priority,
            'is_due': self.is_due,
            'days_overdue': self.days_overdue,
            'box': self.box,
            'is_new': self.is_new
        }

    def __repr__(self) -> str:
        return (f"PriorityResult(item_id={self.item_id!r}, priority={self.priority}, "
                f"is_due={self.is_due}, days_overdue={self.days_overdue}, box={self.box}, "
                f"is_new={self.is_new})")


class ItemWithPriority:
    """An item paired with its priority result."""

    def __init__(self, item: Item, result: PriorityResult):
        self.item = item
        self.result = result

    @property
    def priority(self) -> float:
        return self.result.priority


class LevelInfo:
    """Derived learner tier and the categories it unlocks."""

    def __init__(self, current_level: int, progress_to_next_level: int,
                 words_in_current_level: int, mastered_in_current_level: int,
                 unlocked_category_ids: list, is_max_level: bool):
        self.current_level = current_level
        self.progress_to_next_level = progress_to_next_level
        self.words_in_current_level = words_in_current_level
        self.mastered_in_current_level = mastered_in_current_level
        self.unlocked_category_ids = unlocked_category_ids
        self.is_max_level = is_max_level

    def to_dict(self) -> dict:
        return {
            'current_level': self.current_level,
            'progress_to_next_level': self.progress_to_next_level,
            'words_in_current_level': self.words_in_current_level,
            'mastered_in_current_level': self.mastered_in_current_level,
            'unlocked_category_ids': list(self.unlocked_category_ids),
            'is_max_level': self.is_max_level
        }


class Session:
    """One bounded practice round.

    ``options`` holds, per item, the answer choices of a multiple-choice
    exercise (None for other exercise types).
    """

    def __init__(self, items: list, exercise_order: list, mode: str, category: str,
                 options: list | None = None):
        self.items = items
        self.exercise_order = exercise_order
        self.mode = mode
        self.category = category
        self.options = options if options is not None else [None] * len(items)

    def to_dict(self) -> dict:
        return {
            'mode': self.mode,
            'category': self.category,
            'items': [
                {**item.to_dict(), 'exercise_type': exercise, 'options': choices}
                for item, exercise, choices in zip(self.items, self.exercise_order, self.options)
            ]
        }
