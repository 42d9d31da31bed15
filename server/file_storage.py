"""File-based storage implementation."""

import json
import logging
import os
from datetime import datetime

from core.interfaces import Storage, StateLoadError, is_valid_user_id

logger = logging.getLogger(__name__)


class FileStorage(Storage):
    """File-based storage implementation.

    One JSON file per user plus a shared JSON-lines event log.
    """

    def __init__(self, state_dir: str = None):
        # Project root is one level up from server/
        project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        self.state_dir = state_dir or os.environ.get('VOCABOX_STATE_DIR') or project_root

    def _get_state_file(self, user_id: str) -> str:
        """Get state file path for a user."""
        if not is_valid_user_id(user_id):
            raise ValueError(f"Invalid user id: {user_id!r}")
        if user_id == "default":
            return os.path.join(self.state_dir, 'vocabox_state.json')
        return os.path.join(self.state_dir, f'vocabox_state_{user_id}.json')

    def _get_events_file(self) -> str:
        return os.path.join(self.state_dir, 'vocabox_events.jsonl')

    def load_state(self, user_id: str = "default") -> dict | None:
        state_file = self._get_state_file(user_id)
        if os.path.exists(state_file):
            try:
                with open(state_file, 'r') as f:
                    return json.load(f)
            except (OSError, ValueError) as e:
                logger.error(f"Could not read state for {user_id} from {state_file}: {e}")
                raise StateLoadError(f"Stored progress for '{user_id}' is unreadable") from e
        return None

    def save_state(self, state: dict, user_id: str = "default") -> None:
        os.makedirs(self.state_dir, exist_ok=True)
        state_file = self._get_state_file(user_id)
        tmp_file = state_file + '.tmp'
        with open(tmp_file, 'w') as f:
            json.dump(state, f, indent=2)
        os.replace(tmp_file, state_file)

    def list_users(self) -> list[str]:
        """List all existing user IDs."""
        users = []
        if os.path.exists(self.state_dir):
            for filename in sorted(os.listdir(self.state_dir)):
                if filename == 'vocabox_state.json':
                    users.append('default')
                elif filename.startswith('vocabox_state_') and filename.endswith('.json'):
                    users.append(filename[len('vocabox_state_'):-len('.json')])
        return users

    def user_exists(self, user_id: str) -> bool:
        """Check if a user exists."""
        return os.path.exists(self._get_state_file(user_id))

    def delete_user(self, user_id: str) -> bool:
        """Delete a user's state file."""
        state_file = self._get_state_file(user_id)
        if os.path.exists(state_file):
            os.remove(state_file)
            return True
        return False

    def log_event(self, event: str, user_id: str, session_id: str = None,
                  level: int = None, **data) -> None:
        """Append an event to the JSON-lines log."""
        entry = {
            'timestamp': datetime.now().isoformat(timespec='seconds'),
            'event': event,
            'user_id': user_id,
            'session_id': session_id,
            'level': level,
            'data': data or None
        }
        try:
            os.makedirs(self.state_dir, exist_ok=True)
            with open(self._get_events_file(), 'a') as f:
                f.write(json.dumps(entry) + '\n')
        except OSError as e:
            logger.error(f"Error logging event: {e}")

    def get_user_events(self, user_id: str, event_type: str = None,
                        limit: int = 100) -> list[dict]:
        """Get recent events for a user."""
        events_file = self._get_events_file()
        if not os.path.exists(events_file):
            return []
        events = []
        with open(events_file, 'r') as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                except ValueError:
                    continue
                if entry.get('user_id') != user_id:
                    continue
                if event_type and entry.get('event') != event_type:
                    continue
                events.append(entry)
        events.reverse()
        return events[:limit]
