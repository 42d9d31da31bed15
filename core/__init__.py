from .models import Item, ReviewRecord, Stats, Progress, PriorityResult, ItemWithPriority, LevelInfo, Session
from .interfaces import Storage, StateLoadError
from .leitner import (
    interval_for_box, days_since, is_due, priority_of,
    sort_by_priority, select_words, words_for_review, get_review_stats
)
from .shuffle import shuffle, shuffle_without_consecutive_duplicates, has_consecutive_duplicates
from .progress import (
    apply_review, record_review, get_word_progress, reset_progress,
    add_custom_word, remove_custom_word
)
from .levels import derive_level, is_category_unlocked
from .session import build_session, CategoryLockedError
from .backup import (
    export_backup, import_backup, validate_progress, BackupFormatError, ProgressFormatError
)
from .answers import check_answer
from .config import (
    MAX_BOX, MASTERY_THRESHOLD, MASTERY_BOX, MAX_LEVEL,
    SESSION_SIZE, BACKUP_VERSION, LANGUAGE
)

__all__ = [
    'Item', 'ReviewRecord', 'Stats', 'Progress', 'PriorityResult', 'ItemWithPriority',
    'LevelInfo', 'Session',
    'Storage', 'StateLoadError',
    'interval_for_box', 'days_since', 'is_due', 'priority_of',
    'sort_by_priority', 'select_words', 'words_for_review', 'get_review_stats',
    'shuffle', 'shuffle_without_consecutive_duplicates', 'has_consecutive_duplicates',
    'apply_review', 'record_review', 'get_word_progress', 'reset_progress',
    'add_custom_word', 'remove_custom_word',
    'derive_level', 'is_category_unlocked',
    'build_session', 'CategoryLockedError',
    'export_backup', 'import_backup', 'validate_progress', 'BackupFormatError', 'ProgressFormatError',
    'check_answer',
    'MAX_BOX', 'MASTERY_THRESHOLD', 'MASTERY_BOX', 'MAX_LEVEL',
    'SESSION_SIZE', 'BACKUP_VERSION', 'LANGUAGE'
]
