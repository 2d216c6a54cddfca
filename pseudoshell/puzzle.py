"""CTF micro puzzle for pseudoshell.

The puzzle shell is a one-directory sandbox. Progress follows a fixed
sequence of stages:

    greeting -> escalating -> rooted -> hidden_revealed -> cipher_accepted

and any stage can jump to ``solved`` when the exact flag is submitted.
The cipher is a hint toward the flag, not a prerequisite for submitting it.

A timer runs from the first non-blank line of the session to the correct
submission; the fastest completion is persisted through BestTimeRecord.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional

from .command_handler import (
    Command,
    CommandResult,
    OutputLine,
    ParsedCommand,
    Shell,
    command_line,
    error,
    output,
    root_announce,
)
from .config import get_config
from .errors import BadCredentialError, InvalidArgumentError, NotFoundError, PermissionDeniedError
from .filesystem import ROOT, Entry, VirtualFilesystem
from .storage import BestTimeRecord, JsonFileStore, KeyValueStore
from .tty_handler import Privilege, SessionState

LOGGER = logging.getLogger(__name__)

FINAL_FLAG = "FLAG{ur_cr@ck3d_brUh}"
FINAL_CIPHER = "c3Nz.blk"  # AES-256 simulation of "sss" in the visualizer
ESCALATION_SECRET = 'Geof"fr3y"!@yyerf'
HIDDEN_FILENAME = ".shadow"
README_FILENAME = "readme.txt"

GREETING = "There is a puzzle buried in this sandboxed shell. Escalate, enumerate, observe."
ROOT_RIDDLE = (
    "I hide in plain sight yet ls ignores me. Reveal all and you'll see me. "
    "Then read what I whisper."
)
ESCALATE_RIDDLE = (
    "I speak before the crown is worn:\n"
    "The path to secrets stays withdrawn.\n"
    "Ascend with ritual (two words, both short),\n"
    "Then list again for a hidden report."
)
CIPHER_RIDDLE = (
    "Three roles rotate above: count their first initials then compress them. "
    "Present the cipher where S is the key. "
    "(use the encryption with the binary of 100000000)"
)

PUZZLE_HELP = (
    "help           show this help",
    "ls [-a]        list files",
    "cat <file>     read file",
    "cipher <val>   attempt final cipher",
    "submit <flag>  submit flag",
    "clear          clear screen",
)


class PuzzleStage(Enum):
    """Named points in the puzzle's progress."""

    GREETING = "greeting"
    ESCALATING = "escalating"
    ROOTED = "rooted"
    HIDDEN_REVEALED = "hidden_revealed"
    CIPHER_ACCEPTED = "cipher_accepted"
    SOLVED = "solved"


ALLOWED_TRANSITIONS: Dict[PuzzleStage, FrozenSet[PuzzleStage]] = {
    PuzzleStage.GREETING: frozenset({PuzzleStage.ESCALATING, PuzzleStage.SOLVED}),
    PuzzleStage.ESCALATING: frozenset({PuzzleStage.ROOTED, PuzzleStage.SOLVED}),
    PuzzleStage.ROOTED: frozenset({PuzzleStage.HIDDEN_REVEALED, PuzzleStage.SOLVED}),
    PuzzleStage.HIDDEN_REVEALED: frozenset({PuzzleStage.CIPHER_ACCEPTED, PuzzleStage.SOLVED}),
    PuzzleStage.CIPHER_ACCEPTED: frozenset({PuzzleStage.SOLVED}),
    PuzzleStage.SOLVED: frozenset(),
}


@dataclass
class PuzzleState:
    """Puzzle progress for one session.

    Attributes:
        stage: Current stage; only moves along ALLOWED_TRANSITIONS
        revealed_hidden: The hidden file has been listed while root
        started_at: Monotonic ms of the first command, None before it
        elapsed_ms: Completion time, set once solved
        best_elapsed_ms: Cached best time, None until loaded or set
        best_loaded: Whether the store has been consulted
    """

    stage: PuzzleStage = PuzzleStage.GREETING
    revealed_hidden: bool = False
    started_at: Optional[float] = None
    elapsed_ms: Optional[float] = None
    best_elapsed_ms: Optional[float] = None
    best_loaded: bool = False
    _solved_signal: bool = field(default=False, repr=False)

    @property
    def solved(self) -> bool:
        return self.stage is PuzzleStage.SOLVED

    def can_advance(self, target: PuzzleStage) -> bool:
        return target in ALLOWED_TRANSITIONS[self.stage]

    def advance(self, target: PuzzleStage) -> bool:
        """Move to ``target`` if the transition table allows it.

        Out-of-order transitions are ignored. Returns whether the stage
        changed.
        """
        if not self.can_advance(target):
            LOGGER.debug("Ignored transition %s -> %s", self.stage.value, target.value)
            return False
        LOGGER.debug("Puzzle stage %s -> %s", self.stage.value, target.value)
        self.stage = target
        if target is PuzzleStage.SOLVED:
            self._solved_signal = True
        return True

    def take_solved_signal(self) -> bool:
        """Return True exactly once after the puzzle is solved."""
        fired = self._solved_signal
        self._solved_signal = False
        return fired


@dataclass
class PuzzleSession(SessionState):
    """Session state plus puzzle progress."""

    puzzle: PuzzleState = field(default_factory=PuzzleState)


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


def format_time(ms: float) -> str:
    """Format milliseconds as ``MM:SS``."""
    total = int(ms // 1000)
    minutes, seconds = divmod(total, 60)
    return f"{minutes:02d}:{seconds:02d}"


def init_puzzle_filesystem() -> VirtualFilesystem:
    """Build the puzzle sandbox: a readme and the hidden sentinel file."""
    files = {
        f"~/{README_FILENAME}": ESCALATE_RIDDLE,
        f"~/{HIDDEN_FILENAME}": CIPHER_RIDDLE,
    }
    return VirtualFilesystem([ROOT], files, pinned_last=(HIDDEN_FILENAME,))


class PuzzleShell(Shell):
    """CTF variant of the shell.

    Args:
        fs: Sandbox tree, defaults to init_puzzle_filesystem()
        store: Durable store for the best time, defaults to the configured
            JSON file
        clock: Monotonic clock in milliseconds
    """

    name = "puzzle"
    commands = frozenset(
        {
            Command.HELP,
            Command.CLEAR,
            Command.PWD,
            Command.CD,
            Command.LS,
            Command.CAT,
            Command.SUDO,
            Command.CIPHER,
            Command.SUBMIT,
        }
    )
    help_lines = PUZZLE_HELP

    def __init__(
        self,
        fs: Optional[VirtualFilesystem] = None,
        store: Optional[KeyValueStore] = None,
        clock: Callable[[], float] = monotonic_ms,
        user: Optional[str] = None,
        host: Optional[str] = None,
    ):
        super().__init__(fs or init_puzzle_filesystem(), user=user, host=host)
        config = get_config()
        if store is None:
            store = JsonFileStore(config.puzzle.store_path)
        self.best_time = BestTimeRecord(store, config.puzzle.best_time_key)
        self.clock = clock

    def new_session(self) -> PuzzleSession:
        """Start a fresh session; the persisted best time is read here."""
        session = PuzzleSession(max_history=get_config().shell.max_history)
        self.load_best(session.puzzle)
        return session

    def intro_lines(self) -> List[OutputLine]:
        return [output(GREETING)]

    def unknown_message(self, name: str) -> str:
        return "Unknown command"

    def load_best(self, puzzle: PuzzleState) -> Optional[float]:
        if not puzzle.best_loaded:
            puzzle.best_elapsed_ms = self.best_time.load()
            puzzle.best_loaded = True
        return puzzle.best_elapsed_ms

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def on_line(self, state: PuzzleSession) -> None:
        if state.puzzle.started_at is None:
            state.puzzle.started_at = self.clock()

    def handle_secret(self, line: str, state: PuzzleSession) -> CommandResult:
        """Check a password attempt. The attempt itself is never echoed."""
        if line != ESCALATION_SECRET:
            return CommandResult([error("Sorry, try again.")], echo=False)

        state.awaiting_secret = False
        state.privilege = Privilege.ROOT
        state.puzzle.advance(PuzzleStage.ROOTED)
        LOGGER.info("Privilege escalation succeeded")
        return CommandResult(
            [root_announce("Privilege escalation successful. Welcome root."), output(ROOT_RIDDLE)],
            echo=False,
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @staticmethod
    def _may_reveal(path: str, show_hidden: bool, state: PuzzleSession) -> bool:
        """Hidden files show only for root, with -a, at the sandbox root."""
        return state.is_root and show_hidden and path == ROOT

    def visible_entries(self, path: str, show_hidden: bool, state: PuzzleSession) -> List[Entry]:
        reveal = self._may_reveal(path, show_hidden, state)
        entries = self.fs.list_entries(path, show_hidden=reveal)
        if reveal and any(e.name == HIDDEN_FILENAME for e in entries):
            state.puzzle.revealed_hidden = True
            state.puzzle.advance(PuzzleStage.HIDDEN_REVEALED)
        return entries

    def completion_entries(self, path: str, show_hidden: bool, state: PuzzleSession) -> List[Entry]:
        """Completion offers the hidden file only once ``ls -a`` has shown it."""
        reveal = self._may_reveal(path, show_hidden, state) and state.puzzle.revealed_hidden
        return self.fs.list_entries(path, show_hidden=reveal)

    def read_file(self, path: str, state: PuzzleSession) -> str:
        if path == f"~/{HIDDEN_FILENAME}":
            if not state.is_root:
                raise NotFoundError(path)
            if not state.puzzle.revealed_hidden:
                raise PermissionDeniedError("Permission denied (list with -a after escalation).")
        return self.fs.read_file(path)

    def missing_file_message(self, arg: str) -> str:
        return f"cat: {arg}: No such file or directory"

    def sudo(self, parsed: ParsedCommand, state: PuzzleSession) -> List[OutputLine]:
        if parsed.args[:1] != ("su",):
            raise InvalidArgumentError("usage: sudo su")
        if state.is_root:
            raise InvalidArgumentError("Already root.")
        state.awaiting_secret = True
        state.puzzle.advance(PuzzleStage.ESCALATING)
        return [command_line(f"[sudo] password for {self.user}:")]

    def cipher(self, parsed: ParsedCommand, state: PuzzleSession) -> List[OutputLine]:
        if parsed.argument != FINAL_CIPHER:
            raise BadCredentialError("Invalid cipher")
        state.puzzle.advance(PuzzleStage.CIPHER_ACCEPTED)
        return [output("Cipher accepted. Decrypting ..."), output(f"Use submission: {FINAL_FLAG}")]

    def submit(self, parsed: ParsedCommand, state: PuzzleSession) -> CommandResult:
        if parsed.argument != FINAL_FLAG:
            raise BadCredentialError("Incorrect flag")

        puzzle = state.puzzle
        if not puzzle.advance(PuzzleStage.SOLVED):
            return CommandResult([output("Challenge already complete.")])

        if puzzle.started_at is not None:
            puzzle.elapsed_ms = self.clock() - puzzle.started_at
            self.record_completion(puzzle, puzzle.elapsed_ms)
        LOGGER.info("Puzzle solved in %s", format_time(puzzle.elapsed_ms or 0.0))
        return CommandResult(
            [root_announce("✔ Correct flag. Challenge complete.")],
            solved=True,
        )

    def record_completion(self, puzzle: PuzzleState, elapsed_ms: float) -> bool:
        """Persist ``elapsed_ms`` if it beats the best time.

        Returns whether the stored best changed.
        """
        best = self.load_best(puzzle)
        if best is not None and elapsed_ms >= best:
            return False
        self.best_time.save(elapsed_ms)
        puzzle.best_elapsed_ms = elapsed_ms
        LOGGER.info("New best time %.0f ms", elapsed_ms)
        return True


__all__ = [
    "FINAL_FLAG",
    "FINAL_CIPHER",
    "ESCALATION_SECRET",
    "HIDDEN_FILENAME",
    "README_FILENAME",
    "GREETING",
    "PuzzleStage",
    "ALLOWED_TRANSITIONS",
    "PuzzleState",
    "PuzzleSession",
    "PuzzleShell",
    "format_time",
    "init_puzzle_filesystem",
    "monotonic_ms",
]
