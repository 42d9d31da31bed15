"""Backup export and import of a learner's progress.

The same structural checks guard progress loaded back from storage, see
``validate_progress``.
"""

import json

from .config import BACKUP_VERSION, CUSTOM_CATEGORY
from .models import Progress


class ProgressFormatError(ValueError):
    """Progress data has the wrong shape."""


class BackupFormatError(ProgressFormatError):
    """The backup could not be read. The message is safe to show to users."""


def export_backup(progress: Progress, exported_at: str = None) -> dict:
    """Build a versioned backup blob."""
    return {
        'version': BACKUP_VERSION,
        'exported_at': exported_at,
        'progress': progress.to_dict()
    }


def _is_count(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _is_text(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _validate_record(item_id, record) -> None:
    if not isinstance(record, dict):
        raise ProgressFormatError(f"progress for '{item_id}' is not an object")
    box = record.get('box', 1)
    if not _is_count(box) or box < 1:
        raise ProgressFormatError(f"box for '{item_id}' must be a positive integer")
    last_seen = record.get('last_seen', record.get('lastSeen', ''))
    if last_seen is not None and not isinstance(last_seen, str):
        raise ProgressFormatError(f"last seen date for '{item_id}' must be a string")
    for key in ('correct_count', 'wrong_count', 'correct', 'wrong'):
        if key in record and not _is_count(record[key]):
            raise ProgressFormatError(f"{key} for '{item_id}' must be a non-negative integer")


def _validate_stats(stats: dict) -> None:
    for key in ('streak', 'total_correct', 'total_wrong', 'totalCorrect', 'totalWrong'):
        if key in stats and not _is_count(stats[key]):
            raise ProgressFormatError(f"stats.{key} must be a non-negative integer")
    last = stats.get('last_practice_date', stats.get('lastPractice'))
    if last is not None and not isinstance(last, str):
        raise ProgressFormatError("last practice date must be a string")


def _validate_custom_words(custom_words) -> None:
    if not isinstance(custom_words, list):
        raise ProgressFormatError("'custom_words' must be a list")
    seen = set()
    for entry in custom_words:
        if not isinstance(entry, dict):
            raise ProgressFormatError("every custom word must be an object")
        if not all(_is_text(entry.get(key)) for key in ('id', 'text', 'translation')):
            raise ProgressFormatError("custom words need an id, a text and a translation")
        if entry.get('category') != CUSTOM_CATEGORY:
            raise ProgressFormatError(f"custom word '{entry['id']}' must be in the '{CUSTOM_CATEGORY}' category")
        if entry['id'] in seen:
            raise ProgressFormatError(f"custom word '{entry['id']}' appears twice")
        seen.add(entry['id'])


def validate_progress(data) -> Progress:
    """Check a progress dict ({words, stats[, custom_words]}) and build Progress.

    Raises ProgressFormatError before anything is built, so bad data never
    yields partial progress.
    """
    if not isinstance(data, dict):
        raise ProgressFormatError("progress must be an object")
    words = data.get('words')
    stats = data.get('stats')
    if not isinstance(words, dict) or not isinstance(stats, dict):
        raise ProgressFormatError("'words' and 'stats' are required")

    for item_id, record in words.items():
        _validate_record(item_id, record)
    _validate_stats(stats)
    if 'custom_words' in data:
        _validate_custom_words(data['custom_words'])

    return Progress.from_dict(data)


def import_backup(blob) -> Progress:
    """Validate a backup blob (dict or JSON text) and turn it into Progress.

    Accepts the versioned format written by export_backup as well as a bare
    {words, stats} object from older exports.
    """
    if isinstance(blob, (str, bytes)):
        try:
            blob = json.loads(blob)
        except ValueError:
            raise BackupFormatError("Could not read backup: the file is not valid JSON")

    if not isinstance(blob, dict):
        raise BackupFormatError("Invalid backup: expected a JSON object")

    if 'progress' in blob:
        version = blob.get('version')
        if not isinstance(version, int) or isinstance(version, bool):
            raise BackupFormatError("Invalid backup: missing or invalid version")
        if version > BACKUP_VERSION:
            raise BackupFormatError(
                f"Backup version {version} was created by a newer release (supported: {BACKUP_VERSION})"
            )
        data = blob['progress']
    else:
        data = blob

    try:
        return validate_progress(data)
    except ProgressFormatError as e:
        raise BackupFormatError(f"Invalid backup: {e}") from e
