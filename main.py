#!/usr/bin/env python3
"""
Computer-Use Agent - CLI Entry Point.

An LLM-powered desktop agent that takes a natural language request and
works on it with screen, shell and file editing tools until the model
stops asking for tools.

Usage:
    python main.py                      # Provider picked from the environment
    python main.py --provider mock      # Offline mode, no API key needed
    python main.py --images 3           # Keep only the 3 most recent screenshots
"""

import argparse
import os
import sys

from loguru import logger

from core.agent import SUPPORTED_PROVIDERS, ClientOptions, ComputerUseClient
from core.context import ContentBlock, TextBlock, ToolUseBlock
from core.errors import AgentConfigError
from core.tool_base import ToolResult


# =============================================================================
# TEST COMMANDS
# =============================================================================

TEST_COMMANDS = [
    # Screen
    "Take a screenshot and describe what you see",
    "Where is the mouse cursor?",
    # Shell
    "Show the current directory",
    "Run 'ls -la' and summarise the output",
    # Files
    "View /etc/hostname",
    "Create a file /tmp/agent-test.txt containing 'Hello World', then show it",
    # Mixed
    "Open a text editor, type 'Hello World' and take a screenshot",
]


def show_menu():
    """Display the test commands menu."""
    print("\n" + "="*50)
    print("TEST COMMANDS (enter number or type your own):")
    print("="*50)
    for i, cmd in enumerate(TEST_COMMANDS, 1):
        print(f"  {i:2}. {cmd}")
    print("="*50)
    print("  0. Exit")
    print("="*50)


class PrintObserver:
    """Prints the assistant's text, its tool calls and their results."""

    def on_api_response(self, response) -> None:
        pass

    def on_output(self, block: ContentBlock) -> None:
        if isinstance(block, TextBlock):
            print(f"\nAssistant: {block.text}")
        elif isinstance(block, ToolUseBlock):
            print(f"[TOOL] {block.name} {block.input}")

    def on_tool_output(self, result: ToolResult, tool_use_id: str) -> None:
        if result.error:
            print(f"[ERR] {result.error}")
        if result.output:
            print(f"[OK] {result.output[:500]}")
        if result.base64_image:
            print(f"[OK] Screenshot captured ({result.media_type or 'image/png'})")
        if result.system:
            print(f"[SYS] {result.system}")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Computer-use agent")
    parser.add_argument("--provider", choices=SUPPORTED_PROVIDERS, help="LLM provider")
    parser.add_argument("--model", help="Model name (defaults per provider)")
    parser.add_argument("--max-tokens", type=int, help="Response size limit per LLM call")
    parser.add_argument("--images", type=int, help="Keep only the N most recent screenshots in context")
    parser.add_argument("--suffix", default="", help="Text appended to the system prompt")
    parser.add_argument("--log-level", default=os.environ.get("AGENT_LOG_LEVEL", "INFO"), help="Log level")
    return parser.parse_args(argv)


def build_options(args: argparse.Namespace) -> ClientOptions:
    """Environment settings overridden by command line flags."""
    options = ClientOptions.from_env(provider=args.provider)

    if args.model:
        options.model = args.model
    if args.max_tokens:
        options.max_tokens = args.max_tokens
    if args.images is not None:
        options.only_n_most_recent_images = args.images
    if args.suffix:
        options.system_prompt_suffix = args.suffix
    return options


def main():
    """Main entry point for the computer-use agent."""
    args = parse_args()

    logger.remove()  # Remove default handler
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}",
        level=args.log_level.upper()
    )

    # Setup readline for arrow key history navigation
    try:
        import readline
    except ImportError:
        readline = None

    # Pre-populate history with test commands (reverse so first is most recent)
    if readline:
        for cmd in reversed(TEST_COMMANDS):
            readline.add_history(cmd)

    try:
        agent = ComputerUseClient(build_options(args), observer=PrintObserver())
    except AgentConfigError as e:
        print(f"[ERR] {e}")
        sys.exit(1)

    print("[AGENT] Computer-Use Agent Initialized.")
    print(f"[AGENT] Provider: {agent.options.provider} | Model: {agent.options.model_name}")
    print(f"[AGENT] Tools: {', '.join(agent.body.list_tools())}")
    print("Tip: Use UP/DOWN arrows to cycle through commands. 'help' shows the menu.")
    show_menu()  # Show menu once at start

    # Main loop
    while True:
        try:
            req = input("\n> ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            break

        if req.lower() in ["exit", "quit", "q", "0"]:
            print("Goodbye!")
            break

        if req.lower() == "help":
            show_menu()
            continue

        if not req:
            continue

        # Handle numbered commands
        if req.isdigit():
            idx = int(req)
            if 1 <= idx <= len(TEST_COMMANDS):
                req = TEST_COMMANDS[idx - 1]
                print(f"Running: {req}")

        try:
            agent.send_message(req)
        except KeyboardInterrupt:
            print("\n[AGENT] Request interrupted.")
        except Exception as e:
            print(f"[ERR] {e}")


if __name__ == "__main__":
    main()
