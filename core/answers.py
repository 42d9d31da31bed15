"""Checking typed answers with some tolerance for typos."""

import re
import unicodedata

CORRECT = 'correct'
CLOSE = 'close'
WRONG = 'wrong'


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings."""
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], current[j - 1], previous[j]))
        previous = current
    return previous[-1]


def normalize(text: str) -> str:
    """Lower-case, strip accents, Spanish punctuation marks and ellipses."""
    text = unicodedata.normalize('NFD', text.lower().strip())
    text = ''.join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r'^[¿¡]+|[?!]+$', '', text)
    text = re.sub(r'\.{2,}|…', '', text)
    text = re.sub(r'\s+', ' ', text)
    return text.strip()


def _check_single(normalized_input: str, expected: str) -> str:
    normalized_expected = normalize(expected)
    if normalized_input == normalized_expected:
        return CORRECT
    distance = levenshtein(normalized_input, normalized_expected)
    if distance <= max(2, len(normalized_expected) * 2 // 10):
        return CLOSE
    return WRONG


def check_answer(user_input: str, expected: str) -> str:
    """Compare an answer against the expected text.

    ``expected`` may list alternatives separated by commas. Returns
    'correct', 'close' (a small typo) or 'wrong'.
    """
    normalized_input = normalize(user_input)
    if not normalized_input:
        return WRONG
    verdicts = [
        _check_single(normalized_input, alternative)
        for alternative in expected.split(',') if alternative.strip()
    ]
    for verdict in (CORRECT, CLOSE):
        if verdict in verdicts:
            return verdict
    return WRONG


def is_accepted(verdict: str) -> bool:
    """Close answers count as correct for scheduling."""
    return verdict in (CORRECT, CLOSE)
