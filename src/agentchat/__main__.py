"""CLI entry point for agentchat."""

import sys

from agentchat.cli import main

if __name__ == "__main__":
    sys.exit(main())
