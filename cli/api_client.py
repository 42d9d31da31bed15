"""REST API client for vocabox server."""

from urllib.parse import quote

import requests


class VocaboxAPIClient:
    """Client for communicating with the vocabox REST API."""

    def __init__(self, base_url: str = "http://localhost:8000", user_id: str = "default"):
        self.base_url = base_url.rstrip('/')
        self.user_id = user_id
        self.session = requests.Session()

    def _get(self, endpoint: str, params: dict = None) -> dict:
        """Make a GET request."""
        if params is None:
            params = {}
        params['user_id'] = self.user_id
        response = self.session.get(f"{self.base_url}{endpoint}", params=params)
        response.raise_for_status()
        return response.json()

    def _post(self, endpoint: str, data: dict) -> dict:
        """Make a POST request."""
        data['user_id'] = self.user_id
        response = self.session.post(f"{self.base_url}{endpoint}", json=data)
        response.raise_for_status()
        return response.json()

    def health_check(self) -> dict:
        """Check if the server is running."""
        response = self.session.get(f"{self.base_url}/")
        response.raise_for_status()
        return response.json()

    def get_status(self) -> dict:
        """Get streak, level and due counts."""
        return self._get("/api/status")

    def get_categories(self) -> dict:
        return self._get("/api/categories")

    def get_session(self, count: int = 10, category: str = 'all', mode: str = 'mixed') -> dict:
        """Start a new practice session."""
        return self._get("/api/session", {'count': count, 'category': category, 'mode': mode})

    def submit_answer(self, item_id: str, answer: str) -> dict:
        """Submit a typed answer for a word."""
        return self._post("/api/review", {'item_id': item_id, 'answer': answer})

    def submit_result(self, item_id: str, correct: bool) -> dict:
        """Submit a self-graded result for a word."""
        return self._post("/api/review", {'item_id': item_id, 'correct': correct})

    def get_custom_words(self) -> dict:
        return self._get("/api/custom-words")

    def add_custom_word(self, text: str, translation: str) -> dict:
        """Add a word of the user's own."""
        return self._post("/api/custom-words", {'text': text, 'translation': translation})

    def delete_custom_word(self, item_id: str) -> dict:
        response = self.session.delete(
            f"{self.base_url}/api/custom-words/{quote(item_id)}",
            params={'user_id': self.user_id}
        )
        response.raise_for_status()
        return response.json()
