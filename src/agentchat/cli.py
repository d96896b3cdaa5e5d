"""Command-line interface for agentchat."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from agentchat import __version__
from agentchat.transcript.models import (
    AssistantMessage,
    Message,
    SessionState,
    SystemMessage,
    ToolCallMessage,
    UserMessage,
)

console = Console()
err_console = Console(stderr=True)

_PREVIEW_CHARS = 200


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="agentchat",
        description="Agent event normalization engine - replay and inspect agent sessions",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=None,
        help="Increase verbosity (can be repeated, up to 4)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Config file path (merged over system/user/project config)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    replay_parser = subparsers.add_parser(
        "replay",
        help="Replay a recorded event log and print the resulting transcripts",
    )
    replay_parser.add_argument("recording", type=Path, help="JSONL event recording")
    replay_parser.add_argument(
        "--session",
        help="Only replay this session id",
    )
    replay_parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Write the replayed events to a new recording",
    )
    replay_parser.add_argument(
        "--thinking",
        action="store_true",
        help="Include reasoning text",
    )

    return parser


def _preview(text: str) -> str:
    text = text.strip()
    if len(text) > _PREVIEW_CHARS:
        text = text[:_PREVIEW_CHARS] + "..."
    return escape(text)


def format_message(message: Message, show_thinking: bool = False) -> str:
    """One rich-markup line (or a few) for a transcript message."""
    match message:
        case UserMessage():
            images = f" [dim](+{len(message.images)} image(s))[/dim]" if message.images else ""
            return f"[bold cyan]user[/bold cyan] {_preview(message.content)}{images}"
        case AssistantMessage():
            lines = []
            if show_thinking and message.thinking:
                lines.append(f"[dim italic]thinking {_preview(message.thinking)}[/dim italic]")
            marker = " [yellow](streaming)[/yellow]" if message.is_streaming else ""
            lines.append(f"[bold green]assistant[/bold green] {_preview(message.content)}{marker}")
            return "\n".join(lines)
        case ToolCallMessage():
            if message.tool_error:
                status = "[red]failed[/red]"
            elif message.tool_result is None:
                status = "[yellow]running[/yellow]"
            else:
                status = "[green]done[/green]"
            lines = [f"[bold magenta]tool[/bold magenta] {escape(message.tool_name)} {status}"]
            for step in message.subagent_steps or ():
                mark = "done" if step.tool_result is not None else "running"
                lines.append(f"    [dim]- {escape(step.tool_name)} ({mark})[/dim]")
            return "\n".join(lines)
        case SystemMessage():
            style = "red" if message.is_error else "blue"
            return f"[bold {style}]system[/bold {style}] {_preview(message.content)}"
    return escape(repr(message))


def print_session(session_id: str, state: SessionState, show_thinking: bool = False) -> None:
    info = state.session_info
    model = f" model={escape(info.model)}" if info and info.model else ""
    flags = []
    if state.is_processing:
        flags.append("processing")
    if not state.is_connected:
        flags.append("disconnected")
    if state.pending_permission is not None:
        flags.append(f"awaiting permission for {state.pending_permission.tool_name}")
    flag_text = f" [yellow]({escape(', '.join(flags))})[/yellow]" if flags else ""

    console.print(f"[bold]session {escape(session_id)}[/bold]{model}{flag_text}")
    for message in state.messages:
        console.print(format_message(message, show_thinking))
    console.print(f"[dim]{len(state.messages)} message(s), cost ${state.total_cost:.4f}[/dim]")
    console.print()


def run_replay(
    recording: Path,
    session_id: str | None,
    config_path: Path | None,
    verbose: int | None,
    show_thinking: bool,
    output: Path | None = None,
) -> int:
    from agentchat.config import ConfigError, load_config
    from agentchat.engine import SessionStore
    from agentchat.logging import setup_logging
    from agentchat.recording import EventPlayer, EventRecorder, RecordingError

    try:
        config = load_config(config_path=config_path)
    except ConfigError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1
    if verbose is not None:
        config.logging.verbose = min(verbose, 4)
    setup_logging(config.logging)

    store = SessionStore(config=config.engine)
    try:
        with EventPlayer(recording) as player:
            if output is None:
                count = player.replay_into(store, session_id)
            else:
                with EventRecorder(output) as recorder:
                    count = player.replay_into(store, session_id, recorder)
    except RecordingError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    err_console.print(f"[dim]Replayed {count} event(s)[/dim]")
    for sid in store.session_ids():
        state = store.snapshot(sid)
        if state is not None:
            print_session(sid, state, show_thinking)
    return 0


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.command == "replay":
        return run_replay(
            parsed.recording,
            parsed.session,
            parsed.config,
            parsed.verbose,
            parsed.thinking,
            parsed.output,
        )

    parser.print_help()
    return 1


def main() -> int:
    return run_cli(sys.argv[1:])
