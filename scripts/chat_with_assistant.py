"""
Terminal chat with the kid-friendly assistant. History persists between runs.

Usage:
    python scripts/chat_with_assistant.py
    python scripts/chat_with_assistant.py --clear

Environment variables:
    FUNFACTORY_CHAT_MODEL  - LiteLLM model string (default: gemini/gemini-2.5-flash)
    GEMINI_API_KEY         - provider key picked up by LiteLLM
    FUNFACTORY_STATE_DIR   - where the chat history is stored (default: ~/.funfactory)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure project root is on the Python path when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from funfactory.chat import ChatHistoryStore, ChatSession, KidChatAssistant  # noqa: E402
from funfactory.common import RemoteGenerationError, ValidationError  # noqa: E402

EXIT_COMMANDS = {"/quit", "/exit"}


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chat with the Fun Factory assistant.")
    parser.add_argument(
        "--state-dir",
        default=None,
        help="Directory holding the saved chat history.",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Optional LiteLLM model override.",
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Forget the saved conversation before starting.",
    )
    return parser.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.WARNING)

    session = ChatSession(
        client=KidChatAssistant(model=args.model),
        store=ChatHistoryStore(args.state_dir),
    )
    if args.clear:
        session.clear()

    if session.messages:
        for message in session.messages:
            speaker = "You" if message.role == "user" else "Assistant"
            print(f"{speaker}: {message.content}")
    else:
        print("Start a conversation! Ask me anything. (type /quit to leave, /clear to start over)")

    while True:
        try:
            text = input("You: ")
        except (EOFError, KeyboardInterrupt):
            print()
            return 0

        command = text.strip().lower()
        if command in EXIT_COMMANDS:
            return 0
        if command == "/clear":
            session.clear()
            print("Conversation cleared.")
            continue

        try:
            reply = session.send_turn(text)
        except ValidationError:
            continue
        except RemoteGenerationError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            continue
        print(f"Assistant: {reply.content}")


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
