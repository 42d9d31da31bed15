"""Tests for the vocabox API server and storage backends."""

import json
import os
import shutil
import tempfile
import unittest
from datetime import date
from unittest.mock import MagicMock, patch
from urllib.parse import quote

import psycopg2
from fastapi.testclient import TestClient

import server.app as app_module
from core.interfaces import Storage, StateLoadError
from core.config import MAX_LEVEL
from core import vocabulary
from server.file_storage import FileStorage
from server.postgres_storage import PostgresStorage


TODAY = date(2024, 6, 15)


# ============================================================================
# Mock Implementations
# ============================================================================

class MockStorage(Storage):
    """In-memory storage for testing."""

    def __init__(self):
        self.states = {}
        self.events = []
        self.save_calls = []
        self.fail_saves = False

    def load_state(self, user_id: str = "default") -> dict | None:
        return self.states.get(user_id)

    def save_state(self, state: dict, user_id: str = "default") -> None:
        self.save_calls.append(user_id)
        if self.fail_saves:
            raise OSError("disk full")
        self.states[user_id] = json.loads(json.dumps(state))

    def list_users(self) -> list[str]:
        return sorted(self.states)

    def user_exists(self, user_id: str) -> bool:
        return user_id in self.states

    def delete_user(self, user_id: str) -> bool:
        return self.states.pop(user_id, None) is not None

    def log_event(self, event: str, user_id: str, session_id: str = None,
                  level: int = None, **data) -> None:
        self.events.append({'event': event, 'user_id': user_id, 'session_id': session_id,
                            'level': level, 'data': data or None})

    def get_user_events(self, user_id: str, event_type: str = None,
                        limit: int = 100) -> list[dict]:
        events = [e for e in reversed(self.events) if e['user_id'] == user_id]
        if event_type:
            events = [e for e in events if e['event'] == event_type]
        return events[:limit]

    def event_names(self) -> list[str]:
        return [e['event'] for e in self.events]


# ============================================================================
# API
# ============================================================================

class APITestCase(unittest.TestCase):
    """Runs the app against MockStorage with a fixed date."""

    def setUp(self):
        self.storage = MockStorage()
        app_module.storage = self.storage
        app_module.user_progress.clear()
        app_module.review_locks.clear()
        app_module.user_sessions.clear()

        today_patch = patch('server.app.get_today', return_value=TODAY)
        today_patch.start()
        self.addCleanup(today_patch.stop)

        self.client = TestClient(app_module.create_app())

    def review(self, item_id: str, user_id: str = 'default', **fields):
        return self.client.post('/api/review', json={'item_id': item_id, 'user_id': user_id, **fields})


class TestStatusEndpoints(APITestCase):

    def test_health(self):
        self.assertEqual(self.client.get('/').json(), {'status': 'ok', 'service': 'vocabox'})

    def test_new_user_status(self):
        data = self.client.get('/api/status').json()
        total = len(vocabulary.get_all_items())
        self.assertEqual(data['streak'], 0)
        self.assertEqual(data['words_seen'], 0)
        self.assertEqual(data['total_words'], total)
        self.assertEqual(data['review']['total_due'], total)
        self.assertEqual(data['review']['new_words'], total)
        self.assertEqual(data['level']['current_level'], 1)
        self.assertEqual(data['level']['unlocked_category_ids'], ['greetings', 'basics'])

    def test_categories_lock_state(self):
        categories = {c['category']: c for c in self.client.get('/api/categories').json()['categories']}
        self.assertFalse(categories['greetings']['locked'])
        self.assertTrue(categories['emotions']['locked'])
        self.assertEqual(categories['greetings']['word_count'], 8)

    def test_review_stats_for_category(self):
        data = self.client.get('/api/review-stats', params={'category': 'greetings'}).json()
        self.assertEqual(data['total_due'], 8)
        self.assertEqual(data['new_words'], 8)


class TestSessionEndpoint(APITestCase):

    def test_default_session(self):
        response = self.client.get('/api/session')
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(len(data['items']), 10)
        for item in data['items']:
            self.assertIn(item['category'], ('greetings', 'basics'))
        self.assertIn('session.start', self.storage.event_names())

    def test_single_mode(self):
        data = self.client.get('/api/session', params={'mode': 'write', 'count': 3}).json()
        self.assertEqual(len(data['items']), 3)
        self.assertEqual({item['exercise_type'] for item in data['items']}, {'write'})

    def test_locked_category(self):
        response = self.client.get('/api/session', params={'category': 'travel'})
        self.assertEqual(response.status_code, 403)

    def test_unknown_mode(self):
        response = self.client.get('/api/session', params={'mode': 'karaoke'})
        self.assertEqual(response.status_code, 400)


class TestReviewEndpoint(APITestCase):

    def test_correct_flag(self):
        data = self.review('greetings:hola', correct=True).json()
        self.assertEqual(data['old_box'], 0)
        self.assertEqual(data['new_box'], 2)
        self.assertEqual(data['streak'], 1)
        saved = self.storage.states['default']
        self.assertEqual(saved['words']['greetings:hola']['box'], 2)
        self.assertEqual(saved['words']['greetings:hola']['last_seen'], '2024-06-15')

    def test_typed_answer(self):
        data = self.review('greetings:hola', answer='Hello').json()
        self.assertEqual(data['verdict'], 'correct')
        self.assertTrue(data['correct'])

        data = self.review('greetings:hola', answer='potato').json()
        self.assertEqual(data['verdict'], 'wrong')
        self.assertFalse(data['correct'])
        self.assertEqual(data['old_box'], 2)
        self.assertEqual(data['new_box'], 1)

    def test_close_answer_counts_as_correct(self):
        data = self.review('greetings:gracias', answer='thnks').json()
        self.assertEqual(data['verdict'], 'close')
        self.assertEqual(data['new_box'], 2)

    def test_unknown_item(self):
        self.assertEqual(self.review('greetings:nope', correct=True).status_code, 404)

    def test_missing_outcome(self):
        self.assertEqual(self.review('greetings:hola').status_code, 400)

    def test_level_change_is_reported(self):
        tier_one = [item.id for item in vocabulary.get_all_items()
                    if vocabulary.get_category_difficulty(item.category) == 1]
        # Two correct answers take a word from new to box 3 (mastered)
        responses = []
        for item_id in tier_one:
            self.review(item_id, correct=True)
            responses.append(self.review(item_id, correct=True).json())
        self.assertTrue(any(r['level_changed'] for r in responses))
        self.assertEqual(responses[-1]['new_level'], 2)
        self.assertIn('level.change', self.storage.event_names())

    def test_users_are_independent(self):
        self.review('greetings:hola', user_id='ana', correct=True)
        self.assertIn('ana', self.storage.states)
        self.assertNotIn('default', self.storage.states)


class TestBackupEndpoints(APITestCase):

    def test_export_then_import(self):
        self.review('greetings:hola', correct=True)
        blob = self.client.get('/api/backup').json()
        self.assertEqual(blob['version'], 1)

        self.client.post('/api/reset')
        self.assertEqual(self.storage.states['default']['words'], {})

        response = self.client.post('/api/backup', content=json.dumps(blob))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['words'], 1)
        self.assertEqual(self.storage.states['default']['words']['greetings:hola']['box'], 2)

    def test_invalid_backup_leaves_progress_alone(self):
        self.review('greetings:hola', correct=True)
        before = json.loads(json.dumps(self.storage.states['default']))

        response = self.client.post('/api/backup', content='{"words": {}}')
        self.assertEqual(response.status_code, 400)
        self.assertIn("'words' and 'stats'", response.json()['detail'])

        response = self.client.post('/api/backup', content='not json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.storage.states['default'], before)


class TestAdminBoost(APITestCase):

    def test_disabled_by_default(self):
        with patch.dict(os.environ, {'VOCABOX_DEV_TOOLS': ''}):
            response = self.client.post('/api/admin/boost', json={'target_level': 3})
        self.assertEqual(response.status_code, 403)

    def test_boost(self):
        with patch.dict(os.environ, {'VOCABOX_DEV_TOOLS': '1'}):
            response = self.client.post('/api/admin/boost', json={'target_level': 3})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['level'], 3)
        self.assertIn('admin.boost', self.storage.event_names())

    def test_target_out_of_range(self):
        with patch.dict(os.environ, {'VOCABOX_DEV_TOOLS': '1'}):
            response = self.client.post('/api/admin/boost', json={'target_level': MAX_LEVEL + 1})
        self.assertEqual(response.status_code, 400)


class TestUserEndpoints(APITestCase):

    def test_create_and_delete(self):
        self.assertTrue(self.client.post('/api/users/ana').json()['success'])
        self.assertFalse(self.client.post('/api/users/ana').json()['success'])
        self.assertTrue(self.client.get('/api/users/ana/exists').json()['exists'])
        self.assertEqual(self.client.get('/api/users').json()['users'], ['ana'])

        self.assertEqual(self.client.delete('/api/users/ana').status_code, 200)
        self.assertEqual(self.client.delete('/api/users/ana').status_code, 404)

    def test_recent_events(self):
        self.review('greetings:hola', user_id='ana', correct=True)
        events = self.client.get('/api/events/recent', params={'user_id': 'ana'}).json()['events']
        self.assertEqual(events[0]['event'], 'review.result')
        self.assertEqual(events[0]['data']['item_id'], 'greetings:hola')


class TestSavingProgress(APITestCase):

    def test_failed_save_keeps_memory_unchanged(self):
        self.storage.fail_saves = True
        for _ in range(2):
            self.assertEqual(self.review('greetings:hola', correct=True).status_code, 500)
        self.assertEqual(app_module.user_progress['default'].words, {})
        self.assertEqual(app_module.user_progress['default'].stats.total_correct, 0)

        self.storage.fail_saves = False
        data = self.review('greetings:hola', correct=True).json()
        self.assertEqual(data['old_box'], 0)
        self.assertEqual(data['new_box'], 2)
        self.assertEqual(self.client.get('/api/status').json()['total_correct'], 1)

    def test_invalid_user_id(self):
        for user_id in ('../evil', 'a/b', 'ana\n'):
            response = self.client.get('/api/status', params={'user_id': user_id})
            self.assertEqual(response.status_code, 400)
            self.assertEqual(self.review('greetings:hola', user_id=user_id, correct=True).status_code, 400)
        self.assertEqual(self.storage.save_calls, [])
        self.assertEqual(app_module.review_locks, {})

    def test_delete_user_drops_lock(self):
        self.review('greetings:hola', user_id='ana', correct=True)
        self.assertIn('ana', app_module.review_locks)
        self.client.delete('/api/users/ana')
        self.assertNotIn('ana', app_module.review_locks)
        self.assertNotIn('ana', app_module.user_progress)


class TestDamagedState(APITestCase):
    """Progress files that exist but cannot be used."""

    def setUp(self):
        super().setUp()
        self.state_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.state_dir)
        self.storage = FileStorage(state_dir=self.state_dir)
        app_module.storage = self.storage
        self.state_file = os.path.join(self.state_dir, 'vocabox_state_ana.json')

    def write_state(self, content: str):
        with open(self.state_file, 'w') as f:
            f.write(content)

    def read_state(self) -> str:
        with open(self.state_file) as f:
            return f.read()

    def test_unreadable_file_is_left_alone(self):
        self.write_state('{broken')
        response = self.review('greetings:hola', user_id='ana', correct=True)
        self.assertEqual(response.status_code, 500)
        self.assertIn('damaged', response.json()['detail'])
        self.assertEqual(self.read_state(), '{broken')

    def test_missing_words_is_rejected(self):
        self.write_state(json.dumps({'stats': {'streak': 40}}))
        response = self.client.get('/api/status', params={'user_id': 'ana'})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(json.loads(self.read_state()), {'stats': {'streak': 40}})

    def test_reset_recovers(self):
        self.write_state('{broken')
        self.assertEqual(self.client.post('/api/reset', params={'user_id': 'ana'}).status_code, 200)
        data = self.client.get('/api/status', params={'user_id': 'ana'}).json()
        self.assertEqual(data['words_seen'], 0)

    def test_backup_restore_recovers(self):
        self.write_state('{broken')
        blob = {'version': 1, 'progress': {
            'words': {'greetings:hola': {'box': 3, 'last_seen': '2024-06-14'}},
            'stats': {'streak': 2, 'last_practice_date': '2024-06-14'}
        }}
        response = self.client.post('/api/backup', params={'user_id': 'ana'}, content=json.dumps(blob))
        self.assertEqual(response.status_code, 200)
        data = self.client.get('/api/status', params={'user_id': 'ana'}).json()
        self.assertEqual(data['words_seen'], 1)
        self.assertEqual(data['streak'], 2)

    def test_valid_file_loads(self):
        self.write_state(json.dumps({
            'words': {'greetings:hola': {'box': 3, 'last_seen': '2024-06-14'}},
            'stats': {'streak': 2, 'last_practice_date': '2024-06-14'}
        }))
        data = self.client.get('/api/status', params={'user_id': 'ana'}).json()
        self.assertEqual(data['words_seen'], 1)
        self.assertEqual(data['streak'], 2)


class TestCustomWordEndpoints(APITestCase):

    def add(self, text: str, translation: str):
        return self.client.post('/api/custom-words', json={'text': text, 'translation': translation})

    def test_add_practice_and_delete(self):
        response = self.add('el gato', 'cat')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['id'], 'custom:el gato')
        self.assertEqual(self.add('El Gato', 'cat').status_code, 400)
        self.assertEqual(self.add('', 'cat').status_code, 400)

        words = self.client.get('/api/custom-words').json()['words']
        self.assertEqual([word['text'] for word in words], ['el gato'])
        self.assertEqual(self.storage.states['default']['custom_words'][0]['translation'], 'cat')

        session = self.client.get('/api/session', params={'category': 'custom'}).json()
        self.assertEqual([item['id'] for item in session['items']], ['custom:el gato'])

        data = self.review('custom:el gato', answer='cat').json()
        self.assertEqual(data['verdict'], 'correct')
        self.assertEqual(data['new_box'], 2)

        status = self.client.get('/api/status').json()
        self.assertEqual(status['total_words'], len(vocabulary.get_all_items()) + 1)
        self.assertEqual(status['level']['current_level'], 1)

        url = '/api/custom-words/' + quote('custom:el gato')
        self.assertEqual(self.client.delete(url).status_code, 200)
        self.assertEqual(self.client.delete(url).status_code, 404)
        self.assertEqual(self.client.get('/api/custom-words').json()['words'], [])
        self.assertNotIn('custom:el gato', self.storage.states['default']['words'])
        self.assertEqual(self.review('custom:el gato', correct=True).status_code, 404)

    def test_listed_as_unlocked_category(self):
        self.add('el gato', 'cat')
        categories = {c['category']: c for c in self.client.get('/api/categories').json()['categories']}
        self.assertFalse(categories['custom']['locked'])
        self.assertEqual(categories['custom']['word_count'], 1)

    def test_reset_keeps_own_words(self):
        self.add('el gato', 'cat')
        self.review('custom:el gato', correct=True)
        self.client.post('/api/reset')
        self.assertEqual(len(self.client.get('/api/custom-words').json()['words']), 1)
        self.assertEqual(self.storage.states['default']['words'], {})


class TestMultipleChoiceSession(APITestCase):

    def test_options(self):
        data = self.client.get('/api/session', params={'mode': 'multiple-choice', 'count': 3}).json()
        self.assertEqual(len(data['items']), 3)
        for item in data['items']:
            option_ids = [option['id'] for option in item['options']]
            self.assertEqual(len(option_ids), 4)
            self.assertIn(item['id'], option_ids)

    def test_write_has_no_options(self):
        data = self.client.get('/api/session', params={'mode': 'write', 'count': 2}).json()
        self.assertEqual([item['options'] for item in data['items']], [None, None])


# ============================================================================
# FileStorage
# ============================================================================

class TestFileStorage(unittest.TestCase):

    def setUp(self):
        self.state_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.state_dir)
        self.storage = FileStorage(state_dir=self.state_dir)

    def test_missing_state(self):
        self.assertIsNone(self.storage.load_state('nobody'))

    def test_state_is_all_it_stores(self):
        for backend in (Storage, FileStorage, PostgresStorage):
            self.assertFalse(hasattr(backend, 'load_config'), backend.__name__)
        self.assertEqual(MockStorage.__abstractmethods__, frozenset())

    def test_save_and_load(self):
        state = {'words': {'w': {'box': 3}}, 'stats': {'streak': 1}}
        self.storage.save_state(state, 'ana')
        self.storage.save_state(state)
        self.assertEqual(self.storage.load_state('ana'), state)
        self.assertEqual(self.storage.list_users(), ['ana', 'default'])
        self.assertTrue(self.storage.user_exists('ana'))

    def test_delete(self):
        self.storage.save_state({}, 'ana')
        self.assertTrue(self.storage.delete_user('ana'))
        self.assertFalse(self.storage.delete_user('ana'))
        self.assertFalse(self.storage.user_exists('ana'))

    def test_corrupt_state_raises(self):
        with open(os.path.join(self.state_dir, 'vocabox_state_bad.json'), 'w') as f:
            f.write('{broken')
        with self.assertRaises(StateLoadError):
            self.storage.load_state('bad')

    def test_user_id_is_never_a_path(self):
        for user_id in ('../x', 'a/b', '..', ''):
            with self.assertRaises(ValueError):
                self.storage.save_state({}, user_id)
        self.assertEqual(os.listdir(self.state_dir), [])

    def test_events(self):
        self.storage.log_event('review.result', 'ana', 's1', 1, item_id='a')
        self.storage.log_event('session.start', 'ana', 's1', 1)
        self.storage.log_event('review.result', 'bob', 's2', 2, item_id='b')

        events = self.storage.get_user_events('ana')
        self.assertEqual([e['event'] for e in events], ['session.start', 'review.result'])
        self.assertEqual(len(self.storage.get_user_events('ana', 'review.result')), 1)
        self.assertEqual(len(self.storage.get_user_events('ana', limit=1)), 1)
        self.assertEqual(self.storage.get_user_events('carol'), [])


# ============================================================================
# PostgresStorage
# ============================================================================

class TestPostgresStorage(unittest.TestCase):
    """Transaction handling against a mocked psycopg2 connection."""

    def setUp(self):
        self.storage = PostgresStorage('postgresql://test/vocabox')
        self.conn = MagicMock(closed=False)
        self.storage._conn = self.conn
        self.cursor = self.conn.cursor.return_value.__enter__.return_value

    def test_load_state(self):
        self.cursor.fetchone.return_value = {'state': {'words': {}, 'stats': {}}}
        self.assertEqual(self.storage.load_state('ana'), {'words': {}, 'stats': {}})
        self.conn.commit.assert_called_once()

        self.cursor.fetchone.return_value = None
        self.assertIsNone(self.storage.load_state('bob'))

    def test_database_error_on_load(self):
        self.cursor.execute.side_effect = psycopg2.OperationalError('server closed the connection')
        with self.assertRaises(StateLoadError):
            self.storage.load_state('ana')
        self.conn.rollback.assert_called_once()
        self.conn.commit.assert_not_called()

    def test_database_error_on_save(self):
        self.cursor.execute.side_effect = psycopg2.OperationalError('disk full')
        with self.assertRaises(psycopg2.Error):
            self.storage.save_state({'words': {}, 'stats': {}}, 'ana')
        self.conn.rollback.assert_called_once()

    def test_event_filter(self):
        self.cursor.fetchall.return_value = []
        self.storage.get_user_events('ana', 'review.result', limit=5)
        query, params = self.cursor.execute.call_args[0]
        self.assertIn('AND event = %s', query)
        self.assertEqual(params, ['ana', 'review.result', 5])


if __name__ == '__main__':
    unittest.main()
