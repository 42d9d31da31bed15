"""FastAPI server for vocabox application."""

import asyncio
import logging
import os
import uuid
from datetime import date, datetime

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel
from typing import Optional

logger = logging.getLogger(__name__)

from core.models import Item, Progress
from core.config import LANGUAGE, MAX_LEVEL, SESSION_SIZE, CUSTOM_CATEGORY, CUSTOM_CATEGORY_NAME
from core.interfaces import StateLoadError, is_valid_user_id
from core.leitner import get_review_stats
from core.progress import record_review, reset_progress, add_custom_word, remove_custom_word
from core.levels import derive_level
from core.session import build_session, CategoryLockedError
from core.backup import (
    export_backup, import_backup, validate_progress, BackupFormatError, ProgressFormatError
)
from core.answers import check_answer, is_accepted
from core.admin import boost_to_level
from core import vocabulary

from server.file_storage import FileStorage
from server.postgres_storage import PostgresStorage


# Pydantic models for API
class ReviewRequest(BaseModel):
    item_id: str
    user_id: str = "default"
    correct: Optional[bool] = None
    answer: Optional[str] = None


class BoostRequest(BaseModel):
    target_level: int
    user_id: str = "default"


class CustomWordRequest(BaseModel):
    text: str
    translation: str
    user_id: str = "default"


class LevelResponse(BaseModel):
    current_level: int
    progress_to_next_level: int
    words_in_current_level: int
    mastered_in_current_level: int
    unlocked_category_ids: list[str]
    is_max_level: bool


class ReviewStatsResponse(BaseModel):
    total_due: int
    new_words: int
    due_by_box: dict[int, int]
    overdue_count: int


class StatusResponse(BaseModel):
    language: str
    streak: int
    last_practice_date: Optional[str]
    total_correct: int
    total_wrong: int
    words_seen: int
    total_words: int
    level: LevelResponse
    review: ReviewStatsResponse


class SessionOption(BaseModel):
    id: str
    text: str


class SessionItem(BaseModel):
    id: str
    category: str
    category_name: str
    text: str
    translation: str
    exercise_type: str
    options: Optional[list[SessionOption]] = None


class SessionResponse(BaseModel):
    session_id: str
    mode: str
    category: str
    items: list[SessionItem]


class ReviewResponse(BaseModel):
    item_id: str
    verdict: str
    correct: bool
    expected: str
    old_box: int
    new_box: int
    streak: int
    level_changed: bool
    new_level: int


# Global state (in production, use proper DI)
storage: FileStorage = None
user_progress: dict[str, Progress] = {}

# Writes to a user's progress are applied one at a time
review_locks: dict[str, asyncio.Lock] = {}

# Session tracking
user_sessions: dict[str, str] = {}  # user_id -> session_id


def get_today() -> date:
    """The only clock read in the application; the engine takes today as a parameter."""
    return date.today()


def dev_tools_enabled() -> bool:
    return os.environ.get('VOCABOX_DEV_TOOLS', '') in ('1', 'true', 'yes')


def check_user_id(user_id: str) -> None:
    if not is_valid_user_id(user_id):
        raise HTTPException(status_code=400, detail=f"Invalid user id: {user_id!r}")


def get_session_id(user_id: str) -> str:
    """Get or create a session ID for a user."""
    if user_id not in user_sessions:
        user_sessions[user_id] = str(uuid.uuid4())[:8]
    return user_sessions[user_id]


def new_session(user_id: str) -> str:
    """Create a new session for a user."""
    user_sessions[user_id] = str(uuid.uuid4())[:8]
    return user_sessions[user_id]


def load_progress(user_id: str) -> Progress:
    """Stored progress for a user, or empty progress for a new one.

    Raises StateLoadError or ProgressFormatError when stored state exists
    but is unreadable or malformed.
    """
    state = storage.load_state(user_id)
    if state is None:
        return Progress()
    return validate_progress(state)


def get_progress(user_id: str = "default") -> Progress:
    """Get the in-memory progress for a user, loading it on first use.

    Broken stored state is reported as an error and left on disk untouched,
    so the learner's data can still be recovered or restored from a backup.
    """
    check_user_id(user_id)
    if user_id not in user_progress:
        try:
            user_progress[user_id] = load_progress(user_id)
        except (StateLoadError, ProgressFormatError) as e:
            logger.error(f"Refusing to use stored progress for {user_id}: {e}")
            raise HTTPException(
                status_code=500,
                detail=f"Stored progress for '{user_id}' is damaged; restore a backup or reset"
            )
    return user_progress[user_id]


def save_progress(user_id: str, progress: Progress) -> None:
    """Persist the snapshot, then make it the user's in-memory progress."""
    storage.save_state(progress.to_dict(), user_id)
    user_progress[user_id] = progress


def get_items(progress: Progress) -> list[Item]:
    """The catalog plus the user's own words."""
    return vocabulary.get_all_items() + list(progress.custom_words)


def find_item(progress: Progress, item_id: str) -> Item | None:
    item = vocabulary.get_item(item_id)
    if item is None:
        item = next((word for word in progress.custom_words if word.id == item_id), None)
    return item


def get_level(progress: Progress):
    # Own words are always unlocked and do not count towards levels
    return derive_level(progress.words, vocabulary.CATEGORY_DIFFICULTY, vocabulary.get_all_items())


def log_event(event: str, user_id: str, **data) -> None:
    """Log an event to the storage backend."""
    if storage:
        progress = user_progress.get(user_id)
        level = get_level(progress).current_level if progress else None
        storage.log_event(event, user_id, get_session_id(user_id), level, **data)


def get_review_lock(user_id: str) -> asyncio.Lock:
    if user_id not in review_locks:
        review_locks[user_id] = asyncio.Lock()
    return review_locks[user_id]


app = FastAPI(title="Vocabox API", description="Leitner spaced-repetition vocabulary practice API")


@app.on_event("startup")
async def startup():
    """Initialize storage on startup."""
    global storage

    # File storage by default, set VOCABOX_STORAGE=postgres to use PostgreSQL
    storage_type = os.environ.get('VOCABOX_STORAGE', 'file')
    if storage_type == 'postgres':
        storage = PostgresStorage()
        logger.info("Using PostgreSQL storage")
    else:
        storage = FileStorage()
        logger.info("Using file storage")


@app.get("/")
async def root():
    """Health check."""
    return {"status": "ok", "service": "vocabox"}


# User Management Endpoints
@app.get("/api/users")
async def list_users():
    """List all existing users."""
    users = [u for u in storage.list_users() if u != 'default']
    return {"users": users}


@app.get("/api/users/{user_id}/exists")
async def check_user_exists(user_id: str):
    """Check if a user exists."""
    check_user_id(user_id)
    return {"exists": storage.user_exists(user_id)}


@app.post("/api/users/{user_id}")
async def create_user(user_id: str):
    """Create a new user with empty progress. Returns error if user already exists."""
    check_user_id(user_id)
    if storage.user_exists(user_id):
        return {"success": False, "error": "User already exists"}

    save_progress(user_id, Progress())
    new_session(user_id)
    log_event('user.create', user_id)
    return {"success": True, "user_id": user_id}


@app.delete("/api/users/{user_id}")
async def delete_user(user_id: str):
    """Delete a user and everything stored for them."""
    check_user_id(user_id)
    user_progress.pop(user_id, None)
    user_sessions.pop(user_id, None)
    review_locks.pop(user_id, None)
    if not storage.delete_user(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True}


@app.get("/api/status", response_model=StatusResponse)
async def get_status(user_id: str = "default"):
    """Get streak, totals, level and due counts."""
    progress = get_progress(user_id)
    items = get_items(progress)
    stats = progress.stats

    return StatusResponse(
        language=LANGUAGE,
        streak=stats.streak,
        last_practice_date=stats.last_practice_date,
        total_correct=stats.total_correct,
        total_wrong=stats.total_wrong,
        words_seen=len(progress.words),
        total_words=len(items),
        level=LevelResponse(**get_level(progress).to_dict()),
        review=ReviewStatsResponse(**get_review_stats(items, progress.words, get_today()))
    )


@app.get("/api/levels", response_model=LevelResponse)
async def get_levels(user_id: str = "default"):
    """Current level, progress towards the next one and unlocked categories."""
    return LevelResponse(**get_level(get_progress(user_id)).to_dict())


@app.get("/api/review-stats", response_model=ReviewStatsResponse)
async def get_review_statistics(user_id: str = "default", category: str = None):
    """Due/new/overdue counts, optionally for one category."""
    progress = get_progress(user_id)
    items = get_items(progress)
    if category:
        items = [item for item in items if item.category == category]
    return ReviewStatsResponse(**get_review_stats(items, progress.words, get_today()))


@app.get("/api/categories")
async def get_categories(user_id: str = "default"):
    """Catalog categories with difficulty and lock state, then the user's own words."""
    progress = get_progress(user_id)
    level_info = get_level(progress)
    categories = []
    for category in vocabulary.get_all_categories():
        categories.append({
            "category": category,
            "name": vocabulary.get_category_name(category),
            "difficulty": vocabulary.get_category_difficulty(category),
            "word_count": len(vocabulary.get_category_items(category)),
            "locked": category not in level_info.unlocked_category_ids
        })
    categories.append({
        "category": CUSTOM_CATEGORY,
        "name": CUSTOM_CATEGORY_NAME,
        "difficulty": None,
        "word_count": len(progress.custom_words),
        "locked": False
    })
    return {"categories": categories}


@app.get("/api/session", response_model=SessionResponse)
async def get_session(user_id: str = "default", count: int = SESSION_SIZE,
                      category: str = 'all', mode: str = 'mixed'):
    """Select the words for a new practice round."""
    progress = get_progress(user_id)
    try:
        session = build_session(
            get_items(progress), progress.words, get_level(progress), get_today(),
            category=category, mode=mode, count=count
        )
    except CategoryLockedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    session_id = new_session(user_id)
    log_event('session.start', user_id, mode=mode, category=category, size=len(session.items))
    return SessionResponse(session_id=session_id, **session.to_dict())


@app.post("/api/review", response_model=ReviewResponse)
async def submit_review(request: ReviewRequest):
    """Record one answer and move the word between boxes."""
    user_id = request.user_id
    check_user_id(user_id)
    async with get_review_lock(user_id):
        try:
            progress = get_progress(user_id)
            item = find_item(progress, request.item_id)
            if item is None:
                raise HTTPException(status_code=404, detail=f"Unknown item: {request.item_id}")

            if request.answer is not None:
                verdict = check_answer(request.answer, item.translation)
                correct = is_accepted(verdict)
            elif request.correct is not None:
                correct = request.correct
                verdict = 'correct' if correct else 'wrong'
            else:
                raise HTTPException(status_code=400, detail="Either 'correct' or 'answer' is required")

            old_level = get_level(progress).current_level
            old_record = progress.words.get(item.id)

            updated = record_review(progress, item.id, correct, get_today())
            save_progress(user_id, updated)

            new_level = get_level(updated).current_level
            new_record = updated.words[item.id]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error in submit_review: {type(e).__name__}: {e}")
            raise HTTPException(status_code=500, detail=f"Internal error: {type(e).__name__}: {str(e)}")

    logger.info(f"Review {user_id}: {item.id} {verdict}, box {new_record.box}")
    log_event('review.result', user_id, item_id=item.id, correct=correct, verdict=verdict,
              box=new_record.box)
    if new_level != old_level:
        log_event('level.change', user_id, old_level=old_level, new_level=new_level)

    return ReviewResponse(
        item_id=item.id,
        verdict=verdict,
        correct=correct,
        expected=item.translation,
        old_box=old_record.box if old_record else 0,
        new_box=new_record.box,
        streak=updated.stats.streak,
        level_changed=new_level != old_level,
        new_level=new_level
    )


# Own words
@app.get("/api/custom-words")
async def list_custom_words(user_id: str = "default"):
    """The words this user added, in the order they were added."""
    return {"words": [item.to_dict() for item in get_progress(user_id).custom_words]}


@app.post("/api/custom-words")
async def create_custom_word(request: CustomWordRequest):
    """Add a word of the user's own. It is practiced like any unlocked word."""
    user_id = request.user_id
    check_user_id(user_id)
    async with get_review_lock(user_id):
        progress = get_progress(user_id)
        try:
            updated, item = add_custom_word(progress, request.text, request.translation)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        save_progress(user_id, updated)

    log_event('custom_word.add', user_id, item_id=item.id)
    return item.to_dict()


@app.delete("/api/custom-words/{item_id:path}")
async def delete_custom_word(item_id: str, user_id: str = "default"):
    """Remove one of the user's words together with its review history."""
    check_user_id(user_id)
    async with get_review_lock(user_id):
        updated = remove_custom_word(get_progress(user_id), item_id)
        if updated is None:
            raise HTTPException(status_code=404, detail=f"Unknown custom word: {item_id}")
        save_progress(user_id, updated)

    log_event('custom_word.delete', user_id, item_id=item_id)
    return {"success": True}


@app.get("/api/backup")
async def get_backup(user_id: str = "default"):
    """Export the user's progress as a versioned backup."""
    progress = get_progress(user_id)
    log_event('backup.export', user_id)
    return export_backup(progress, datetime.now().isoformat(timespec='seconds'))


@app.post("/api/backup")
async def restore_backup(request: Request, user_id: str = "default"):
    """Replace the user's progress with an uploaded backup.

    Works even when the stored progress is damaged, since nothing is loaded.
    """
    check_user_id(user_id)
    body = await request.body()
    try:
        progress = import_backup(body)
    except BackupFormatError as e:
        logger.info(f"Rejected backup for {user_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    async with get_review_lock(user_id):
        save_progress(user_id, progress)
    log_event('backup.import', user_id, words=len(progress.words))
    return {"success": True, "words": len(progress.words)}


@app.post("/api/reset")
async def reset(user_id: str = "default"):
    """Clear review progress and stats for a user. Their own words are kept."""
    check_user_id(user_id)
    async with get_review_lock(user_id):
        try:
            kept = (user_progress.get(user_id) or load_progress(user_id)).custom_words
        except (StateLoadError, ProgressFormatError) as e:
            logger.warning(f"Resetting damaged progress for {user_id}: {e}")
            kept = []
        save_progress(user_id, reset_progress(kept))
    log_event('progress.reset', user_id)
    return {"success": True}


@app.post("/api/admin/boost")
async def admin_boost(request: BoostRequest):
    """Dev only: mark every word below a level as known (box 4)."""
    if not dev_tools_enabled():
        raise HTTPException(status_code=403, detail="Dev tools are disabled")
    if not 1 <= request.target_level <= MAX_LEVEL:
        raise HTTPException(status_code=400, detail=f"target_level must be between 1 and {MAX_LEVEL}")

    user_id = request.user_id
    check_user_id(user_id)
    async with get_review_lock(user_id):
        progress = get_progress(user_id)
        words, boosted = boost_to_level(
            progress.words, vocabulary.get_all_items(), vocabulary.CATEGORY_DIFFICULTY,
            request.target_level, get_today()
        )
        save_progress(user_id, Progress(words, progress.stats, list(progress.custom_words)))

    log_event('admin.boost', user_id, target_level=request.target_level, boosted=len(boosted))
    return {"success": True, "boosted": len(boosted),
            "level": get_level(get_progress(user_id)).current_level}


@app.get("/api/events/stats")
async def get_event_stats(user_id: str):
    """Get aggregated event statistics."""
    if not hasattr(storage, 'get_user_stats'):
        return {"error": "Event statistics not available with current storage"}
    return storage.get_user_stats(user_id)


@app.get("/api/events/recent")
async def get_recent_events(user_id: str, event_type: str = None, limit: int = 50):
    """Get recent events for a user."""
    events = storage.get_user_events(user_id, event_type, limit)
    # Convert datetime objects to strings for JSON serialization
    for event in events:
        if 'timestamp' in event and hasattr(event['timestamp'], 'isoformat'):
            event['timestamp'] = event['timestamp'].isoformat()
    return {"events": events}


def create_app():
    """Factory function for creating the app (useful for testing)."""
    return app
