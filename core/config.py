"""Configuration constants for vocabox application."""

LANGUAGE = 'Spanish'

# Leitner boxes
MAX_BOX = 5                    # Highest box reachable through normal reviews
MAX_INTERVAL_EXPONENT = 1023   # Clamp for 2^(box-1) on corrupted box numbers

# Priority scoring
NEW_WORD_PRIORITY = 800        # Between due box 1-2 words and due box 3+ words
BOX_PRIORITY_BASE = 1000
BOX_PRIORITY_STEP = 100        # Box 1 = 900, box 2 = 800, ...
OVERDUE_BONUS_PER_DAY = 10
OVERDUE_BONUS_CAP = 200
NOT_DUE_PRIORITY_BASE = 100
NOT_DUE_PRIORITY_STEP = 10     # Per day until due

# Sessions
SESSION_SIZE = 10
SHUFFLE_MAX_ATTEMPTS = 10
EXERCISE_TYPES = ['flashcard', 'multiple-choice', 'write']
SESSION_MODES = EXERCISE_TYPES + ['mixed']
MULTIPLE_CHOICE_OPTIONS = 4    # Correct answer plus three distractors

# Learner-added words, always unlocked
CUSTOM_CATEGORY = 'custom'
CUSTOM_CATEGORY_NAME = 'My words'

# Level progression
MASTERY_THRESHOLD = 0.7        # 70% of a level's words to move on
MASTERY_BOX = 3                # Box 3+ counts as mastered
MAX_LEVEL = 15
DEFAULT_CATEGORY_DIFFICULTY = 3

# Dev tools
BOOST_BOX = 4

# Backups
BACKUP_VERSION = 1
