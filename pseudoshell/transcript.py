"""Transcript adapter and export for pseudoshell.

The Transcript sits between a renderer and a Shell:
1. Echoes the two-line prompt and the typed command before its output
2. Appends command output to an append-only list of OutputLine records
3. Applies ``clear`` by discarding the transcript (history survives)
4. Forwards history recall, TAB completion and Ctrl+C to the session

Transcripts can be exported as plain text or JSON.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .command_handler import CommandResult, LineKind, OutputLine, Shell, command_line
from .tty_handler import (
    SessionState,
    complete,
    generate_prompt,
    handle_ctrl_c,
    history_next,
    history_previous,
)

LOGGER = logging.getLogger(__name__)


class Transcript:
    """An interactive session: one shell, one session state, one transcript.

    Args:
        shell: The interpreter to drive
        state: Existing session state, or None for a fresh one
    """

    def __init__(self, shell: Shell, state: Optional[SessionState] = None):
        self.shell = shell
        self.state = state if state is not None else shell.new_session()
        self.lines: List[OutputLine] = []
        self.started_at = datetime.now(timezone.utc)
        self.last_result: Optional[CommandResult] = None
        self._append_intro()

    def _append_intro(self) -> None:
        if self.shell.intro_command:
            top, bottom = generate_prompt(
                self.state, self.shell.user, self.shell.host, cwd=self.shell.intro_command
            )
            self.lines.append(command_line(top))
            self.lines.append(command_line(f"{bottom} {self.shell.intro_command}"))
        self.lines.extend(self.shell.intro_lines())

    def submit(self, raw: str) -> List[OutputLine]:
        """Run one input line and append its transcript lines.

        Returns:
            The lines appended by this submission (empty after ``clear``)
        """
        if not raw.strip():
            return []

        # Prompt reflects the state before the command runs
        top, bottom = generate_prompt(self.state, self.shell.user, self.shell.host)
        result = self.shell.execute(raw, self.state)
        self.last_result = result

        if result.clear:
            self.lines = []
            return []

        new_lines: List[OutputLine] = []
        if result.echo:
            new_lines.append(command_line(top))
            new_lines.append(command_line(f"{bottom} {raw.strip()}"))
        new_lines.extend(result.lines)
        self.lines.extend(new_lines)
        return new_lines

    def previous(self, current: str = "") -> str:
        """Recall the previous history entry (up arrow)."""
        return history_previous(self.state, current)

    def next(self, current: str = "") -> str:
        """Recall the next history entry (down arrow)."""
        return history_next(self.state, current)

    def complete(self, partial: str) -> str:
        """TAB-complete the input buffer."""
        return complete(
            partial,
            self.shell.command_names(),
            self.state,
            self.shell.fs,
            lambda path, hidden: self.shell.completion_entries(path, hidden, self.state),
        )

    def interrupt(self) -> OutputLine:
        """Ctrl+C: abandon any pending password prompt."""
        line = command_line(handle_ctrl_c(self.state))
        self.lines.append(line)
        return line

    def replay(self) -> None:
        """Start over with a fresh session, keeping command history."""
        history = list(self.state.history)
        self.state = self.shell.new_session()
        self.state.history = history
        self.lines = []
        self.last_result = None
        self.started_at = datetime.now(timezone.utc)
        self._append_intro()
        LOGGER.debug("%s transcript replayed", self.shell.name)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "shell": self.shell.name,
            "started_at": self.started_at.isoformat().replace("+00:00", "Z"),
            "cwd": self.state.cwd,
            "privilege": self.state.privilege.value,
            "history": list(self.state.history),
            "lines": [line.to_dict() for line in self.lines],
        }


def export_as_text(transcript: Transcript, include_metadata: bool = True) -> str:
    """Export a transcript as plain text, one line per record.

    Error lines are prefixed so they stay recognizable without colors.
    """
    lines = []

    if include_metadata:
        lines.append("=" * 60)
        lines.append(f"Shell: {transcript.shell.name}")
        lines.append(f"Started: {transcript.started_at.isoformat()}")
        lines.append(f"Commands: {len(transcript.state.history)}")
        lines.append("=" * 60)
        lines.append("")

    for line in transcript.lines:
        if line.kind is LineKind.ERROR:
            lines.append(f"! {line.text}")
        else:
            lines.append(line.text)

    return "\n".join(lines) + "\n"


def export_as_json(transcript: Transcript, pretty: bool = True) -> str:
    """Export a transcript as JSON."""
    if pretty:
        return json.dumps(transcript.to_dict(), indent=2, ensure_ascii=False)
    return json.dumps(transcript.to_dict(), ensure_ascii=False)


__all__ = [
    "Transcript",
    "export_as_text",
    "export_as_json",
]
