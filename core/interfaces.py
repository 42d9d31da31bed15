"""Abstract base classes for dependency injection."""

import re
from abc import ABC, abstractmethod

# Letters, digits, '_', '-', '.' and '@'; never a path
USER_ID_PATTERN = re.compile(r'^[\w@-][\w.@-]{0,63}$')


class StateLoadError(Exception):
    """Stored state exists but could not be read."""


def is_valid_user_id(user_id: str) -> bool:
    return isinstance(user_id, str) and USER_ID_PATTERN.fullmatch(user_id) is not None


class Storage(ABC):
    """Abstract base class for learner state storage."""

    @abstractmethod
    def load_state(self, user_id: str = "default") -> dict | None:
        """Load progress state for a user.

        Returns None if the user has no stored state. Raises StateLoadError
        when state exists but cannot be read, so it is never mistaken for a
        new learner and overwritten.
        """
        pass

    @abstractmethod
    def save_state(self, state: dict, user_id: str = "default") -> None:
        """Save progress state for a user. Failures propagate."""
        pass

    @abstractmethod
    def list_users(self) -> list[str]:
        """List all existing user IDs."""
        pass

    @abstractmethod
    def user_exists(self, user_id: str) -> bool:
        """Check if a user has stored state."""
        pass

    @abstractmethod
    def delete_user(self, user_id: str) -> bool:
        """Delete a user's state. Returns True if something was deleted."""
        pass

    @abstractmethod
    def log_event(self, event: str, user_id: str, session_id: str = None,
                  level: int = None, **data) -> None:
        """Append an event to the event log."""
        pass

    @abstractmethod
    def get_user_events(self, user_id: str, event_type: str = None,
                        limit: int = 100) -> list[dict]:
        """Most recent events for a user, newest first."""
        pass
