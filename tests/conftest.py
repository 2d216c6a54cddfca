"""Pytest configuration and fixtures for pseudoshell tests."""

import pytest

from pseudoshell.command_handler import PortfolioShell
from pseudoshell.puzzle import ESCALATION_SECRET, PuzzleShell
from pseudoshell.storage import MemoryStore


class FakeClock:
    """Monotonic millisecond clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def portfolio_shell() -> PortfolioShell:
    return PortfolioShell()


@pytest.fixture
def portfolio_session(portfolio_shell):
    """Create a fresh portfolio session for testing."""
    return portfolio_shell.new_session()


@pytest.fixture
def puzzle_shell(store, clock) -> PuzzleShell:
    return PuzzleShell(store=store, clock=clock)


@pytest.fixture
def puzzle_session(puzzle_shell):
    """Create a fresh puzzle session for testing."""
    return puzzle_shell.new_session()


@pytest.fixture
def rooted_session(puzzle_shell, puzzle_session):
    """A puzzle session that has already escalated to root."""
    puzzle_shell.execute("sudo su", puzzle_session)
    puzzle_shell.execute(ESCALATION_SECRET, puzzle_session)
    return puzzle_session


@pytest.fixture
def revealed_session(puzzle_shell, rooted_session):
    """A root puzzle session that has listed the hidden file."""
    puzzle_shell.execute("ls -a", rooted_session)
    return rooted_session
