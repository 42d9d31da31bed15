"""Console UI for vocabox application."""

import requests

from core.config import LANGUAGE, MAX_BOX
from cli.api_client import VocaboxAPIClient

# Outcomes of a single exercise besides a review result
SKIP = 'skip'
EXIT = 'exit'


class ConsoleUI:
    """Console user interface for vocabox application."""

    def __init__(self, client: VocaboxAPIClient, count: int = 10, category: str = 'all',
                 mode: str = 'mixed'):
        self.client = client
        self.count = count
        self.category = category
        self.mode = mode

    def print_status(self, status: dict):
        """Print detailed status."""
        level = status['level']
        review = status['review']
        print('\n' + '=' * 50)
        print('STATUS SUMMARY')
        print('=' * 50)
        print(f'\nLanguage: {status["language"]}')
        print(f'Streak: {status["streak"]} day(s)')
        print(f'Answers: {status["total_correct"]} correct, {status["total_wrong"]} wrong')
        print(f'Words seen: {status["words_seen"]}/{status["total_words"]}')

        if level['is_max_level']:
            print(f'\nLevel {level["current_level"]} (max level reached)')
        else:
            print(f'\nLevel {level["current_level"]}: {level["progress_to_next_level"]}% to next level '
                  f'({level["mastered_in_current_level"]}/{level["words_in_current_level"]} mastered)')
        print(f'Unlocked categories: {", ".join(level["unlocked_category_ids"])}')

        print(f'\nDue now: {review["total_due"]} ({review["new_words"]} new, '
              f'{review["overdue_count"]} overdue)')
        for box, count in sorted(review['due_by_box'].items(), key=lambda kv: int(kv[0])):
            print(f'  Box {box}: {count}')
        print('\n' + '=' * 50 + '\n')

    def print_result(self, result: dict):
        """Print the outcome of one answer."""
        if result['verdict'] == 'correct':
            print('Correct!')
        elif result['verdict'] == 'close':
            print(f"Almost! Correct spelling: {result['expected']}")
        else:
            print(f"Wrong. Correct answer: {result['expected']}")

        old_box = result['old_box'] or 'new'
        print(f"Box {old_box} -> {result['new_box']}/{MAX_BOX}")

        if result['level_changed']:
            print(f"\n*** Level changed! Now at level {result['new_level']} ***\n")

    def read_input(self, item: dict, allow_empty: bool = False) -> str:
        """Read a line, handling the status/skip/exit commands.

        Returns the typed text, SKIP or EXIT.
        """
        while True:
            user_input = input('==> ').strip()
            command = user_input.lower()

            if command == 'status':
                self.print_status(self.client.get_status())
                print(f">>> {item['text']}")
            elif command in (SKIP, EXIT):
                return command
            elif user_input or allow_empty:
                return user_input

    def practice_write(self, item: dict):
        """Type the translation; the server grades it."""
        user_input = self.read_input(item)
        if user_input in (SKIP, EXIT):
            return user_input
        return self.client.submit_answer(item['id'], user_input)

    def practice_flashcard(self, item: dict):
        """Think of the answer, reveal it, then grade yourself."""
        print('(press Enter to reveal)')
        user_input = self.read_input(item, allow_empty=True)
        if user_input in (SKIP, EXIT):
            return user_input
        print(f"    {item['translation']}")
        while True:
            print('Did you know it? [y/n]')
            user_input = self.read_input(item).lower()
            if user_input in (SKIP, EXIT):
                return user_input
            if user_input in ('y', 'yes', 'n', 'no'):
                return self.client.submit_result(item['id'], user_input.startswith('y'))

    def practice_multiple_choice(self, item: dict):
        """Pick the translation from numbered options."""
        options = item.get('options') or []
        if not options:
            return self.practice_write(item)
        for number, option in enumerate(options, 1):
            print(f"  {number}) {option['text']}")
        while True:
            user_input = self.read_input(item)
            if user_input in (SKIP, EXIT):
                return user_input
            if user_input.isdigit() and 1 <= int(user_input) <= len(options):
                chosen = options[int(user_input) - 1]
                return self.client.submit_result(item['id'], chosen['id'] == item['id'])
            print(f'Choose a number from 1 to {len(options)}')

    def run_session(self) -> bool:
        """Practice one session. Returns False when the user wants to quit."""
        try:
            session = self.client.get_session(count=self.count, category=self.category,
                                              mode=self.mode)
        except requests.RequestException as e:
            print(f"Error starting session: {e}")
            return False

        items = session['items']
        if not items:
            print('No words available for this category.')
            return False

        exercises = {
            'flashcard': self.practice_flashcard,
            'multiple-choice': self.practice_multiple_choice,
            'write': self.practice_write,
        }
        correct = 0
        for index, item in enumerate(items, 1):
            print(f"\n[{index}/{len(items)}] {item['category_name']}")
            print(f">>> {item['text']}")

            practice = exercises.get(item.get('exercise_type'), self.practice_write)
            result = practice(item)
            if result == EXIT:
                return False
            if result == SKIP:
                continue

            self.print_result(result)
            if result['correct']:
                correct += 1

        print('-' * 40)
        print(f'Session complete: {correct}/{len(items)} correct')
        print('-' * 40)
        return True

    def add_word(self, text: str, translation: str):
        """Add one of the user's own words and report the outcome."""
        try:
            item = self.client.add_custom_word(text, translation)
        except requests.HTTPError as e:
            print(f"Could not add '{text}': {e.response.json().get('detail', e)}")
            return
        print(f"Added {item['text']} = {item['translation']}")

    def run(self):
        """Run the main application loop."""
        # Check server connection
        try:
            health = self.client.health_check()
            print(f"Connected to vocabox server ({health['service']})")
        except requests.RequestException:
            print(f"Error: Cannot connect to server at {self.client.base_url}")
            print("Make sure the server is running: python run_server.py")
            return

        status = self.client.get_status()
        print(f"Level {status['level']['current_level']}, streak {status['streak']}, "
              f"{status['review']['total_due']} words due")

        print(f'\nStarting {LANGUAGE} vocabulary practice!')
        print('Commands: "status" for progress, "skip" to skip a word, "exit" to quit\n')

        while self.run_session():
            again = input('\nAnother session? [Y/n] ').strip().lower()
            if again in ('n', 'no', 'exit'):
                break
        print('Goodbye!')
