"""pseudoshell - Sandboxed pseudo-shell with a CTF micro puzzle.

A small, stateful command-line emulator over a static virtual filesystem.
It powers an interactive portfolio terminal and a scripted capture-the-flag
puzzle (escalate, enumerate, decode, submit) with best-time tracking.

Key components:
- filesystem: Static virtual filesystem and path resolution
- tty_handler: Session state, history recall, prompts, completion
- command_handler: Tokenizer, command dispatch, portfolio shell
- puzzle: CTF stage machine, puzzle shell, completion timer
- storage: Durable key-value store for the best time
- transcript: Prompt echo, transcript and export
- visualizer: Cancelable encryption animation
- config: Centralized configuration management
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .config import get_config, Config
from .command_handler import PortfolioShell
from .puzzle import PuzzleShell
from .transcript import Transcript

__all__ = [
    "__version__",
    "__license__",
    "get_config",
    "Config",
    "PortfolioShell",
    "PuzzleShell",
    "Transcript",
]
