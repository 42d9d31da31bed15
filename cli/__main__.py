"""Entry point for vocabox CLI client."""

import argparse
import sys

from core.config import SESSION_MODES
from cli.api_client import VocaboxAPIClient
from cli.console import ConsoleUI


def main():
    parser = argparse.ArgumentParser(description='Vocabox - Spanish vocabulary practice')
    parser.add_argument(
        '--server',
        default='http://localhost:8000',
        help='Server URL (default: http://localhost:8000)'
    )
    parser.add_argument(
        '--user',
        default='default',
        help='User ID (default: default)'
    )
    parser.add_argument(
        '--count',
        type=int,
        default=10,
        help='Words per session (default: 10)'
    )
    parser.add_argument(
        '--category',
        default='all',
        help='Practice a single unlocked category (default: all)'
    )
    parser.add_argument(
        '--mode',
        default='mixed',
        choices=SESSION_MODES,
        help='Exercise type (default: mixed)'
    )
    parser.add_argument(
        '--add',
        nargs=2,
        metavar=('WORD', 'TRANSLATION'),
        help='Add a word of your own and exit'
    )
    args = parser.parse_args()

    client = VocaboxAPIClient(base_url=args.server, user_id=args.user)
    ui = ConsoleUI(client, count=args.count, category=args.category, mode=args.mode)

    if args.add:
        ui.add_word(*args.add)
        return

    try:
        ui.run()
    except KeyboardInterrupt:
        print('\nGoodbye!')
        sys.exit(0)


if __name__ == '__main__':
    main()
