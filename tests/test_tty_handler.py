"""Tests for session state, history recall, prompts and completion."""

import pytest

from pseudoshell.filesystem import init_portfolio_filesystem
from pseudoshell.tty_handler import (
    INTERRUPT_MARKER,
    Privilege,
    SessionState,
    add_to_history,
    complete,
    generate_prompt,
    get_tab_completions,
    handle_ctrl_c,
    history_next,
    history_previous,
)

COMMANDS = ["cat", "cd", "clear", "help", "ls", "pwd", "whoami"]


@pytest.fixture
def fs():
    return init_portfolio_filesystem()


class TestSessionState:
    """Tests for SessionState dataclass."""

    def test_default_values(self):
        """SessionState starts at home as a normal user."""
        state = SessionState()
        assert state.cwd == "~"
        assert state.history == []
        assert state.history_index == -1
        assert state.privilege is Privilege.NORMAL
        assert state.awaiting_secret is False
        assert not state.is_root
        assert not state.is_browsing

    def test_root_privilege(self):
        state = SessionState(privilege=Privilege.ROOT)
        assert state.is_root


class TestAddToHistory:
    """Tests for history recording."""

    def test_records_line(self):
        state = SessionState()
        add_to_history(state, "ls")
        assert state.history == ["ls"]

    def test_strips_whitespace(self):
        state = SessionState()
        add_to_history(state, "  pwd  ")
        assert state.history == ["pwd"]

    def test_ignores_blank(self):
        """Blank lines are never recorded."""
        state = SessionState()
        add_to_history(state, "   ")
        assert state.history == []

    def test_keeps_duplicates(self):
        """Repeated submissions are each recorded once."""
        state = SessionState()
        add_to_history(state, "ls")
        add_to_history(state, "ls")
        assert state.history == ["ls", "ls"]

    def test_trims_to_max(self):
        state = SessionState(max_history=3)
        for cmd in ["a", "b", "c", "d"]:
            add_to_history(state, cmd)
        assert state.history == ["b", "c", "d"]

    def test_resets_index(self):
        state = SessionState(history=["a", "b"], history_index=0)
        add_to_history(state, "c")
        assert state.history_index == -1


class TestHistoryRecall:
    """Tests for up/down arrow recall."""

    def test_previous_starts_at_newest(self):
        state = SessionState(history=["a", "b", "c"])
        assert history_previous(state) == "c"
        assert state.history_index == 2

    def test_previous_walks_back_and_clamps(self):
        """Up arrow stops at the oldest entry."""
        state = SessionState(history=["a", "b", "c"])
        assert [history_previous(state) for _ in range(4)] == ["c", "b", "a", "a"]
        assert state.history_index == 0

    def test_previous_empty_history(self):
        state = SessionState()
        assert history_previous(state, "partial") == "partial"
        assert state.history_index == -1

    def test_next_when_not_browsing(self):
        """Down arrow without browsing leaves the buffer alone."""
        state = SessionState(history=["a"])
        assert history_next(state, "typed") == "typed"

    def test_next_walks_forward(self):
        state = SessionState(history=["a", "b", "c"])
        history_previous(state)
        history_previous(state)
        history_previous(state)
        assert history_next(state) == "b"
        assert history_next(state) == "c"

    def test_next_past_newest_clears(self):
        """Moving past the newest entry yields an empty buffer."""
        state = SessionState(history=["a", "b"])
        history_previous(state)
        assert history_next(state, "ignored") == ""
        assert state.history_index == -1


class TestCtrlC:
    """Tests for Ctrl+C handling."""

    def test_returns_marker(self):
        state = SessionState()
        assert handle_ctrl_c(state) == INTERRUPT_MARKER

    def test_cancels_password_prompt(self):
        state = SessionState(awaiting_secret=True)
        handle_ctrl_c(state)
        assert state.awaiting_secret is False

    def test_stops_browsing(self):
        state = SessionState(history=["a"], history_index=0)
        handle_ctrl_c(state)
        assert state.history_index == -1


class TestGeneratePrompt:
    """Tests for prompt generation."""

    def test_normal_prompt(self):
        """Normal users show user㉿host."""
        top, bottom = generate_prompt(SessionState(), "yyerf", "portfolio")
        assert top == "┌──(yyerf㉿portfolio)-[~]"
        assert bottom == "└─$"

    def test_root_prompt(self):
        """Root shows root㉿user."""
        state = SessionState(privilege=Privilege.ROOT)
        top, _ = generate_prompt(state, "yyerf", "portfolio")
        assert top == "┌──(root㉿yyerf)-[~]"

    def test_prompt_follows_cwd(self):
        state = SessionState(cwd="~/projects")
        top, _ = generate_prompt(state, "yyerf", "portfolio")
        assert top.endswith("-[~/projects]")

    def test_explicit_path(self):
        top, _ = generate_prompt(SessionState(), "yyerf", "portfolio", cwd="whoami")
        assert top.endswith("-[whoami]")


class TestTabCompletion:
    """Tests for TAB completion."""

    def test_command_prefix(self):
        assert get_tab_completions("he", COMMANDS) == ["help"]

    def test_ambiguous_command(self):
        assert get_tab_completions("c", COMMANDS) == ["cat", "cd", "clear"]

    def test_empty_lists_all(self):
        assert get_tab_completions("", COMMANDS) == COMMANDS

    def test_case_insensitive_command(self):
        assert get_tab_completions("WH", COMMANDS) == ["whoami"]

    def test_path_needs_session(self):
        assert get_tab_completions("cd pro", COMMANDS) == []

    def test_directory_gets_slash(self, fs):
        state = SessionState()
        assert get_tab_completions("cd pro", COMMANDS, state, fs) == ["projects/"]

    def test_file_has_no_slash(self, fs):
        state = SessionState()
        assert get_tab_completions("cat ab", COMMANDS, state, fs) == ["about"]

    def test_nested_path(self, fs):
        state = SessionState()
        assert get_tab_completions("cd certifications/le", COMMANDS, state, fs) == [
            "certifications/leadership/"
        ]

    def test_unknown_base_directory(self, fs):
        state = SessionState()
        assert get_tab_completions("cd nowhere/x", COMMANDS, state, fs) == []

    def test_entry_lister_replaces_listing(self, fs):
        """A custom lister decides which names are offered."""
        state = SessionState()
        seen = []

        def lister(path, show_hidden):
            seen.append((path, show_hidden))
            return [entry for entry in fs.list_entries(path) if entry.name != "projects"]

        assert get_tab_completions("cd pro", COMMANDS, state, fs, lister) == []
        assert seen == [("~", False)]

    def test_dot_prefix_asks_for_hidden(self, fs):
        state = SessionState()
        seen = []

        def lister(path, show_hidden):
            seen.append(show_hidden)
            return []

        get_tab_completions("cat .", COMMANDS, state, fs, lister)
        assert seen == [True]


class TestComplete:
    """Tests for applying completion to the buffer."""

    def test_single_command_match(self):
        assert complete("who", COMMANDS) == "whoami"

    def test_ambiguous_is_unchanged(self):
        """Several matches leave the buffer alone."""
        assert complete("c", COMMANDS) == "c"

    def test_no_match_is_unchanged(self):
        assert complete("zzz", COMMANDS) == "zzz"

    def test_path_argument(self, fs):
        state = SessionState()
        assert complete("cd cert", COMMANDS, state, fs) == "cd certifications/"

    def test_home_anchored_path(self, fs):
        state = SessionState(cwd="~/projects")
        assert complete("cat ~/con", COMMANDS, state, fs) == "cat ~/contact"

    def test_relative_to_cwd(self, fs):
        state = SessionState(cwd="~/projects")
        assert complete("cat gui", COMMANDS, state, fs) == "cat guilds.md"
