"""Interactive terminal client for the message board server."""

from __future__ import annotations

import argparse
import logging
import os
import sys

# Ensure src/ is on sys.path (so imports work when run directly)
SRC_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from message_board.client import MessageBoardClient  # noqa: E402
from message_board.presentation import render  # noqa: E402

HELP = "commands: post <text> | delete <id> | dismiss | quit"


def main() -> None:
    parser = argparse.ArgumentParser(description="Use the message board from a terminal.")
    parser.add_argument(
        "--url",
        type=str,
        default=os.environ.get("MESSAGE_BOARD_URL", "http://127.0.0.1:3001"),
        help="Server base URL (default: http://127.0.0.1:3001)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log requests to stderr")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    with MessageBoardClient(args.url) as board:
        board.mount()
        print(render(board.state))
        print(HELP)
        while True:
            try:
                line = input("board> ").strip()
            except (EOFError, KeyboardInterrupt):
                print()
                break
            cmd, _, arg = line.partition(" ")
            if cmd in {"quit", "exit"}:
                break
            if cmd == "post":
                board.set_draft(arg)
                board.submit()
            elif cmd == "delete" and arg:
                board.delete(arg.strip())
            elif cmd == "dismiss":
                board.dismiss_error()
            elif cmd:
                print(HELP)
                continue
            print(render(board.state))


if __name__ == "__main__":
    main()
