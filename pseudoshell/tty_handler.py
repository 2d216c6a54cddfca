"""Session state and terminal line discipline for pseudoshell.

This module provides:
- The per-session state object (cwd, history, privilege, password mode)
- Command history with index-based recall (up/down arrows)
- TAB completion for command names and paths
- Prompt generation for the two-line Kali-style prompt

The state object is created per session and passed explicitly to every
interpreter call; nothing here is process-wide.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

from .filesystem import ROOT, Entry, VirtualFilesystem

EntryLister = Callable[[str, bool], List[Entry]]

LOGGER = logging.getLogger(__name__)

PROMPT_TOP_PREFIX = "┌──("
PROMPT_BOTTOM_PREFIX = "└─$"
INTERRUPT_MARKER = "^C"


class Privilege(Enum):
    """Privilege level of the session user."""

    NORMAL = "normal"
    ROOT = "root"


@dataclass
class SessionState:
    """Tracks interpreter state for a session.

    Attributes:
        cwd: Current directory, always a registered directory
        history: Previously submitted lines, oldest first
        history_index: Current position in history (-1 = not browsing)
        privilege: Normal user or root
        awaiting_secret: Next line is a password, not a command
        max_history: Maximum number of remembered lines
    """

    cwd: str = ROOT
    history: List[str] = field(default_factory=list)
    history_index: int = -1
    privilege: Privilege = Privilege.NORMAL
    awaiting_secret: bool = False
    max_history: int = 1000

    @property
    def is_root(self) -> bool:
        return self.privilege is Privilege.ROOT

    @property
    def is_browsing(self) -> bool:
        return self.history_index != -1


def add_to_history(state: SessionState, line: str) -> None:
    """Record a submitted line and reset history browsing.

    Blank lines are ignored. Consecutive duplicates are kept: every
    submission is recorded exactly once.
    """
    line = line.strip()
    if not line:
        return

    state.history.append(line)
    if len(state.history) > state.max_history:
        state.history = state.history[-state.max_history :]

    state.history_index = -1


def history_previous(state: SessionState, current: str = "") -> str:
    """Move one entry back in history (up arrow).

    Clamps at the oldest entry. With an empty history the current input
    is returned unchanged.
    """
    if not state.history:
        return current

    if state.history_index == -1:
        state.history_index = len(state.history) - 1
    elif state.history_index > 0:
        state.history_index -= 1

    return state.history[state.history_index]


def history_next(state: SessionState, current: str = "") -> str:
    """Move one entry forward in history (down arrow).

    Moving past the newest entry stops browsing and yields an empty input.
    """
    if state.history_index == -1:
        return current

    if state.history_index < len(state.history) - 1:
        state.history_index += 1
        return state.history[state.history_index]

    state.history_index = -1
    return ""


def handle_ctrl_c(state: SessionState) -> str:
    """Handle Ctrl+C: stop browsing and abandon a pending password prompt.

    Returns:
        The marker line to show in the transcript
    """
    state.history_index = -1
    if state.awaiting_secret:
        LOGGER.debug("Password prompt interrupted")
        state.awaiting_secret = False
    return INTERRUPT_MARKER


def prompt_identity(state: SessionState, user: str, host: str) -> str:
    """Return the ``user㉿host`` part of the prompt.

    Root sessions show ``root㉿<user>`` instead.
    """
    if state.is_root:
        return f"root㉿{user}"
    return f"{user}㉿{host}"


def generate_prompt(state: SessionState, user: str, host: str, cwd: Optional[str] = None) -> Tuple[str, str]:
    """Generate both prompt lines without the typed command.

    Returns:
        Tuple of (top line like ``┌──(yyerf㉿portfolio)-[~]``, ``└─$``)
    """
    path = state.cwd if cwd is None else cwd
    top = f"{PROMPT_TOP_PREFIX}{prompt_identity(state, user, host)})-[{path}]"
    return top, PROMPT_BOTTOM_PREFIX


def get_tab_completions(
    partial: str,
    commands: Iterable[str],
    state: Optional[SessionState] = None,
    fs: Optional[VirtualFilesystem] = None,
    entries: Optional[EntryLister] = None,
) -> List[str]:
    """Get possible completions for partial input.

    The first word completes against command names (case-insensitive);
    later words complete against entries of the current directory when a
    session and filesystem are given. ``entries(path, show_hidden)``
    replaces the plain filesystem listing, so a shell can hide names.
    """
    parts = partial.split()

    if len(parts) == 0 or (len(parts) == 1 and not partial.endswith(" ")):
        prefix = parts[0].lower() if parts else ""
        return sorted(cmd for cmd in commands if cmd.startswith(prefix))

    if state is None or fs is None:
        return []

    to_complete = parts[-1] if not partial.endswith(" ") else ""
    if "/" in to_complete:
        base_text, prefix = to_complete.rsplit("/", 1)
        base = fs.try_resolve(state.cwd, base_text or ROOT)
        lead = base_text + "/"
    else:
        base, prefix, lead = state.cwd, to_complete, ""
    if base is None:
        return []

    completions = []
    lister = entries or (lambda path, hidden: fs.list_entries(path, show_hidden=hidden))
    for entry in lister(base, prefix.startswith(".")):
        if entry.name.startswith(prefix):
            completions.append(lead + entry.name + ("/" if entry.is_dir else ""))
    return sorted(completions)


def complete(
    partial: str,
    commands: Iterable[str],
    state: Optional[SessionState] = None,
    fs: Optional[VirtualFilesystem] = None,
    entries: Optional[EntryLister] = None,
) -> str:
    """Apply TAB completion to the input buffer.

    Only a single unambiguous match changes the buffer.
    """
    completions = get_tab_completions(partial, commands, state, fs, entries)
    if len(completions) != 1:
        return partial

    parts = partial.split()
    if len(parts) <= 1 and not partial.endswith(" "):
        return completions[0]

    head = parts if partial.endswith(" ") else parts[:-1]
    return " ".join(head + [completions[0]])


__all__ = [
    "Privilege",
    "SessionState",
    "add_to_history",
    "history_previous",
    "history_next",
    "handle_ctrl_c",
    "prompt_identity",
    "generate_prompt",
    "get_tab_completions",
    "complete",
    "INTERRUPT_MARKER",
]
