"""Command handling logic for pseudoshell.

Implements the interpreter core shared by both shells:
- Tokenizing a raw input line into a command name and arguments.
- A closed set of built-in commands dispatched by explicit branches.
- Built-ins backed by the static virtual filesystem (pwd, cd, ls, cat).
- Recovering every ShellError as a single error line.

The interpreter never formats prompt lines itself; it returns a
CommandResult and leaves transcript rendering to pseudoshell.transcript.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple

from .config import get_config
from .errors import InvalidArgumentError, NotFoundError, ShellError, UnknownCommandError
from .filesystem import Entry, VirtualFilesystem, init_portfolio_filesystem
from .tty_handler import SessionState, add_to_history

LOGGER = logging.getLogger(__name__)


class LineKind(Enum):
    """Styling category of a transcript line."""

    COMMAND = "command"
    OUTPUT = "output"
    ERROR = "error"
    ROOT_ANNOUNCE = "root"


@dataclass(frozen=True)
class OutputLine:
    """A single immutable transcript line."""

    kind: LineKind
    text: str

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "text": self.text}


def output(text: str) -> OutputLine:
    return OutputLine(LineKind.OUTPUT, text)


def error(text: str) -> OutputLine:
    return OutputLine(LineKind.ERROR, text)


def command_line(text: str) -> OutputLine:
    return OutputLine(LineKind.COMMAND, text)


def root_announce(text: str) -> OutputLine:
    return OutputLine(LineKind.ROOT_ANNOUNCE, text)


class Command(Enum):
    """Every built-in command known to any shell."""

    HELP = "help"
    WHOAMI = "whoami"
    CLEAR = "clear"
    PWD = "pwd"
    CD = "cd"
    LS = "ls"
    CAT = "cat"
    SUDO = "sudo"
    CIPHER = "cipher"
    SUBMIT = "submit"


@dataclass(frozen=True)
class ParsedCommand:
    """A tokenized input line.

    Attributes:
        raw: The trimmed input line
        name: First token, lower-cased
        args: Remaining tokens
    """

    raw: str
    name: str
    args: Tuple[str, ...] = ()

    @property
    def argument(self) -> str:
        """Remaining tokens joined back as one free-form argument."""
        return " ".join(self.args)

    def split_flags(self) -> Tuple[str, Optional[str]]:
        """Split ``-x`` style tokens from the target (last plain token)."""
        flags = ""
        target = None
        for part in self.args:
            if part.startswith("-") and len(part) > 1:
                flags += part[1:]
            else:
                target = part
        return flags, target


def parse_command(raw: str) -> Optional[ParsedCommand]:
    """Tokenize a raw line. Returns None for blank input."""
    stripped = raw.strip()
    if not stripped:
        return None
    tokens = stripped.split()
    return ParsedCommand(raw=stripped, name=tokens[0].lower(), args=tuple(tokens[1:]))


@dataclass
class CommandResult:
    """Structured outcome of one interpreter call.

    Attributes:
        lines: Command output, in order
        echo: Whether the adapter should echo the prompt and input
        clear: Whether the adapter should discard its transcript
        solved: Whether this command completed the puzzle
    """

    lines: List[OutputLine] = field(default_factory=list)
    echo: bool = True
    clear: bool = False
    solved: bool = False


class Shell:
    """Base interpreter over a virtual filesystem.

    Subclasses declare the commands they accept, their help text and the
    message used for unknown commands.
    """

    name = "shell"
    commands: FrozenSet[Command] = frozenset()
    help_lines: Tuple[str, ...] = ()
    # Shown as the prompt path of the startup transcript, if any
    intro_command: Optional[str] = None

    def __init__(
        self,
        fs: VirtualFilesystem,
        user: Optional[str] = None,
        host: Optional[str] = None,
    ):
        config = get_config()
        self.fs = fs
        self.user = user or config.shell.user
        self.host = host or config.shell.host

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def new_session(self) -> SessionState:
        return SessionState(max_history=get_config().shell.max_history)

    def intro_lines(self) -> List[OutputLine]:
        """Lines shown when a transcript starts."""
        return []

    def command_names(self) -> List[str]:
        return sorted(c.value for c in self.commands)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def execute(self, raw: str, state: SessionState) -> CommandResult:
        """Run one input line against the session.

        Blank lines do nothing. Every other command line is recorded in
        history exactly once before it is interpreted; password lines are
        never recorded.
        """
        parsed = parse_command(raw)
        if parsed is None:
            return CommandResult(echo=False)

        self.on_line(state)

        if state.awaiting_secret:
            state.history_index = -1
            return self.handle_secret(parsed.raw, state)

        add_to_history(state, parsed.raw)

        try:
            command = self.lookup(parsed.name)
            LOGGER.debug("%s dispatch: %s %r", self.name, command.value, parsed.args)
            if command is Command.CLEAR:
                return CommandResult(echo=False, clear=True)
            return self.dispatch(command, parsed, state)
        except ShellError as exc:
            LOGGER.debug("%s %s: %s", self.name, exc.kind, exc.message)
            return CommandResult([error(exc.message)])

    def lookup(self, name: str) -> Command:
        """Map a command name onto this shell's command set.

        Raises:
            UnknownCommandError: If the shell does not offer the command
        """
        try:
            command = Command(name)
        except ValueError:
            command = None
        if command is None or command not in self.commands:
            raise UnknownCommandError(self.unknown_message(name))
        return command

    def unknown_message(self, name: str) -> str:
        return f"{name}: command not found"

    def on_line(self, state: SessionState) -> None:
        """Hook run for every non-blank line before interpretation."""

    def handle_secret(self, line: str, state: SessionState) -> CommandResult:
        """Handle a line typed while a password prompt is pending."""
        state.awaiting_secret = False
        return CommandResult(echo=False)

    def dispatch(self, command: Command, parsed: ParsedCommand, state: SessionState) -> CommandResult:
        """Run a command from this shell's set.

        Every Command member has a branch here; members a shell does not
        support never reach dispatch because lookup() rejects them.
        """
        if command is Command.HELP:
            return CommandResult([output(line) for line in self.help_lines])
        if command is Command.WHOAMI:
            return CommandResult(self.whoami(state))
        if command is Command.PWD:
            return CommandResult([output(state.cwd)])
        if command is Command.CD:
            return CommandResult(self.cd(parsed, state))
        if command is Command.LS:
            return CommandResult(self.ls(parsed, state))
        if command is Command.CAT:
            return CommandResult(self.cat(parsed, state))
        if command is Command.SUDO:
            return CommandResult(self.sudo(parsed, state))
        if command is Command.CIPHER:
            return CommandResult(self.cipher(parsed, state))
        if command is Command.SUBMIT:
            return self.submit(parsed, state)
        raise NotImplementedError(f"no handler for {command}")

    # ------------------------------------------------------------------
    # Built-in command handlers (virtual FS)
    # ------------------------------------------------------------------

    def whoami(self, state: SessionState) -> List[OutputLine]:
        return [output(self.user)]

    def cd(self, parsed: ParsedCommand, state: SessionState) -> List[OutputLine]:
        target = parsed.argument
        resolved = self.fs.try_resolve(state.cwd, target)
        if resolved is None:
            raise NotFoundError(f"cd: {target}: No such file or directory")
        state.cwd = resolved
        return []

    def ls(self, parsed: ParsedCommand, state: SessionState) -> List[OutputLine]:
        """List a directory.

        A refused path lists the current directory without hidden entries.
        Combined flags count, so ``-la`` includes ``-a``.
        """
        flags, target = parsed.split_flags()
        resolved = self.fs.try_resolve(state.cwd, target or "")
        if resolved is None:
            entries = self.visible_entries(state.cwd, False, state)
        else:
            entries = self.visible_entries(resolved, "a" in flags, state)
        if not entries:
            return []
        return [output("  ".join(e.name for e in entries))]

    def visible_entries(self, path: str, show_hidden: bool, state: SessionState) -> List[Entry]:
        return self.fs.list_entries(path, show_hidden=show_hidden)

    def completion_entries(self, path: str, show_hidden: bool, state: SessionState) -> List[Entry]:
        """Entries offered by TAB completion; never changes session state."""
        return self.fs.list_entries(path, show_hidden=show_hidden)

    def cat(self, parsed: ParsedCommand, state: SessionState) -> List[OutputLine]:
        arg = parsed.argument
        if not arg:
            raise InvalidArgumentError("cat: missing operand")
        path = self.fs.file_path(state.cwd, arg)
        try:
            content = self.read_file(path, state)
        except NotFoundError:
            raise NotFoundError(self.missing_file_message(arg)) from None
        return [output(line) for line in content.rstrip("\n").split("\n")]

    def read_file(self, path: str, state: SessionState) -> str:
        return self.fs.read_file(path)

    def missing_file_message(self, arg: str) -> str:
        return f"cat: {arg}: No such file"

    def sudo(self, parsed: ParsedCommand, state: SessionState) -> List[OutputLine]:
        raise UnknownCommandError(self.unknown_message(parsed.name))

    def cipher(self, parsed: ParsedCommand, state: SessionState) -> List[OutputLine]:
        raise UnknownCommandError(self.unknown_message(parsed.name))

    def submit(self, parsed: ParsedCommand, state: SessionState) -> CommandResult:
        raise UnknownCommandError(self.unknown_message(parsed.name))


# ---------- Portfolio shell ----------

PORTFOLIO_HELP = (
    "Available commands:",
    "  cat <name>   - Show file",
    "  cd <dir>     - Change directory",
    "  clear        - Clear the terminal",
    "  help         - Show this help message",
    "  ls [path]    - List directory contents",
    "  pwd          - Print current directory",
    "  whoami       - Display user info",
)

PORTFOLIO_WHOAMI = (
    "Hi, I'm Geoffrey – a 3rd Year Computer Science student.",
    '"Builder by passion, breaker by curiosity."',
    "Current Focus: Cloud (GCP), Cybersecurity fundamentals, TypeScript, Python + AI tooling.",
    "Core Skills: React · TypeScript · Python · Networking · Linux · Git · (currently learning Laravel)",
    "Legacy GitHub Pages: https://diapz.github.io",
    "Current GitHub: https://github.com/yyerf",
    "Type 'help' to see all commands.",
)


class PortfolioShell(Shell):
    """General-purpose shell over the portfolio home tree."""

    name = "portfolio"
    commands = frozenset(
        {
            Command.HELP,
            Command.WHOAMI,
            Command.CLEAR,
            Command.PWD,
            Command.CD,
            Command.LS,
            Command.CAT,
        }
    )
    help_lines = PORTFOLIO_HELP
    intro_command = "whoami"

    def __init__(
        self,
        fs: Optional[VirtualFilesystem] = None,
        user: Optional[str] = None,
        host: Optional[str] = None,
    ):
        super().__init__(fs or init_portfolio_filesystem(), user=user, host=host)

    def intro_lines(self) -> List[OutputLine]:
        return self.whoami(self.new_session())

    def whoami(self, state: SessionState) -> List[OutputLine]:
        return [output(line) for line in PORTFOLIO_WHOAMI]

    def unknown_message(self, name: str) -> str:
        return f"Command not found: {name}. Type 'help' for available commands."


__all__ = [
    "LineKind",
    "OutputLine",
    "Command",
    "ParsedCommand",
    "CommandResult",
    "Shell",
    "PortfolioShell",
    "parse_command",
    "output",
    "error",
    "command_line",
    "root_announce",
]
